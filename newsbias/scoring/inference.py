"""Client for the remote bias-scoring inference endpoint."""

import json
import logging
from typing import Any, Optional, Tuple, Union

import httpx

from ..errors import InferenceError, ParseError

logger = logging.getLogger(__name__)

SCORE_KEYS = ("bias", "bias_score", "score")
SNIPPET_LENGTH = 200


def response_snippet(body: Union[str, bytes]) -> str:
    """Trimmed, length-capped response body for logs."""
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    trimmed = body.strip()
    if not trimmed:
        return "<empty>"
    if len(trimmed) > SNIPPET_LENGTH:
        return trimmed[:SNIPPET_LENGTH] + "..."
    return trimmed


def _to_float(text: str) -> Optional[float]:
    try:
        return float(text.strip())
    except ValueError:
        return None


def extract_score(data: Any) -> Tuple[Optional[float], bool]:
    """
    Search a decoded JSON value for a score.

    Mappings are checked for ``bias``, ``bias_score`` and ``score`` first, then
    every value; sequences are searched item by item. Numbers and numeric
    strings count as scores. Booleans do not.

    Returns:
        (score, found)
    """
    if isinstance(data, dict):
        for key in SCORE_KEYS:
            if key in data:
                score, found = extract_score(data[key])
                if found:
                    return score, True
        for value in data.values():
            score, found = extract_score(value)
            if found:
                return score, True
    elif isinstance(data, list):
        for item in data:
            score, found = extract_score(item)
            if found:
                return score, True
    elif isinstance(data, bool):
        return None, False
    elif isinstance(data, (int, float)):
        return float(data), True
    elif isinstance(data, str):
        parsed = _to_float(data)
        if parsed is not None:
            return parsed, True

    return None, False


def parse_bias_score(body: Union[str, bytes]) -> float:
    """
    Read a bias score from an inference response body.

    Tries structured JSON first, then the whole trimmed body as a bare number.

    Raises:
        ParseError: If neither yields a number
    """
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    trimmed = body.strip()
    if not trimmed:
        raise ParseError("empty response body")

    try:
        payload = json.loads(trimmed)
    except ValueError:
        payload = None
    else:
        score, found = extract_score(payload)
        if found:
            return score

    value = _to_float(trimmed)
    if value is None:
        raise ParseError(f"unable to parse bias score from response: {response_snippet(trimmed)}")
    return value


class BiasInferenceClient:
    """Send article text to the inference endpoint and read back a score."""

    def __init__(
        self,
        api_url: str,
        api_token: str,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialize inference client.

        Args:
            api_url: Endpoint URL
            api_token: Bearer token
            timeout: Per-request timeout in seconds
            client: Shared HTTP client (for testing and connection reuse)
        """
        self.api_url = api_url
        self.api_token = api_token
        self.timeout = timeout
        self.client = client

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            # Cold endpoints otherwise answer 503 immediately while the model loads.
            "X-Wait-For-Model": "true",
        }

    async def _post(self, payload: dict) -> httpx.Response:
        if self.client is not None:
            return await self.client.post(self.api_url, json=payload, headers=self._headers(), timeout=self.timeout)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.api_url, json=payload, headers=self._headers())

    async def score(self, text: str) -> float:
        """
        Score one article description.

        Raises:
            InferenceError: On transport failure or a non-2xx response
            ParseError: If the response carries no readable score
        """
        logger.debug("Sending description (%d chars) to inference endpoint %s", len(text), self.api_url)

        try:
            response = await self._post({"inputs": text, "parameters": {}})
        except httpx.HTTPError as e:
            raise InferenceError(f"inference request failed: {e}") from e

        snippet = response_snippet(response.text)
        logger.debug("Inference endpoint returned status %d with body: %s", response.status_code, snippet)

        if not response.is_success:
            raise InferenceError(
                f"inference endpoint returned status {response.status_code}: {response.text.strip()}",
                status_code=response.status_code,
            )

        score = parse_bias_score(response.text)
        logger.debug("Parsed bias score: %.4f", score)
        return score
