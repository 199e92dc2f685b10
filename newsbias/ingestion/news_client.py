"""Client for the topic search API of the content provider."""

import logging
from typing import List, Optional

import httpx
from pydantic import ValidationError

from ..errors import FetchError
from .models import SourceArticle, SourceResponse

logger = logging.getLogger(__name__)

DEFAULT_NEWS_URL = "https://newsapi.org/v2/everything"


class NewsSourceClient:
    """Fetch and normalize articles for a topic."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_NEWS_URL,
        page: Optional[str] = None,
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialize news source client.

        Args:
            api_key: Provider credential, sent as the ``apikey`` query parameter
            base_url: Search endpoint
            page: Optional page token forwarded as ``page``
            timeout: Per-request timeout in seconds
            client: Shared HTTP client; a short-lived one is created per call otherwise
        """
        self.api_key = api_key
        self.base_url = base_url
        self.page = page
        self.timeout = timeout
        self.client = client

    def _params(self, topic: str) -> dict:
        params = {"q": topic, "apikey": self.api_key}
        if self.page:
            params["page"] = self.page
        return params

    async def _get(self, topic: str) -> httpx.Response:
        if self.client is not None:
            return await self.client.get(self.base_url, params=self._params(topic), timeout=self.timeout)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.get(self.base_url, params=self._params(topic))

    async def fetch(self, topic: str) -> List[SourceArticle]:
        """
        Fetch articles for a topic, in provider order.

        Raises:
            FetchError: On transport failure, non-2xx status, undecodable body,
                or a provider status other than success
        """
        try:
            response = await self._get(topic)
        except httpx.HTTPError as e:
            raise FetchError(f"request to news provider failed: {e}") from e

        if not response.is_success:
            raise FetchError(
                f"unexpected status {response.status_code} from news provider",
                {"status_code": response.status_code},
            )

        try:
            payload = SourceResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise FetchError(f"invalid response from news provider: {e}") from e

        if not payload.is_success():
            raise FetchError(f"news provider returned status {payload.status!r}")

        items = payload.items()
        logger.debug("News provider returned %d articles for %r", len(items), topic)
        return items
