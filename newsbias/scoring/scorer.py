"""Scoring orchestrator: download stored bodies, score them, write scores back."""

import logging
import re
from typing import List, Optional, Sequence

import httpx

from ..blocking import run_blocking
from ..config.models import InferenceSettings
from ..db.articles import ArticleRepository
from ..errors import InferenceError, NewsBiasError, StoreError
from ..models import Article
from .inference import BiasInferenceClient
from .models import BiasProcessingResult
from .retry import RetryPolicy, invoke_with_retry

logger = logging.getLogger(__name__)

DESCRIPTION_MARKER = "description:"
_MARKER_PATTERN = re.compile(re.escape(DESCRIPTION_MARKER), re.IGNORECASE)


class DownloadError(NewsBiasError):
    """A stored body could not be retrieved."""
    pass


def extract_description(body: str) -> str:
    """
    Pull the description out of a stored article body.

    Everything after the first case-insensitive ``description:`` marker,
    trimmed. Without a marker the whole trimmed body is used.
    """
    text = body.strip()
    if not text:
        return ""

    normalized = text.replace("\r\n", "\n")
    match = _MARKER_PATTERN.search(normalized)
    if match is None:
        return normalized.strip()
    return normalized[match.end():].strip()


class BiasScorer:
    """Score a batch of stored articles, one at a time."""

    def __init__(
        self,
        repository: ArticleRepository,
        inference: BiasInferenceClient,
        retry_policy: Optional[RetryPolicy] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        download_timeout: float = 30.0,
    ) -> None:
        """
        Initialize scorer.

        Args:
            repository: Article repository bound to this run's connection
            inference: Inference endpoint client
            retry_policy: Retry policy for inference calls
            http_client: Client used to download stored bodies
            download_timeout: Per-download timeout in seconds
        """
        self.repository = repository
        self.inference = inference
        self.retry_policy = retry_policy or RetryPolicy()
        self.http_client = http_client
        self.download_timeout = download_timeout

    async def download_text(self, url: str) -> str:
        """Fetch a stored body through its retrieval URL."""
        try:
            if self.http_client is not None:
                response = await self.http_client.get(url, timeout=self.download_timeout)
            else:
                async with httpx.AsyncClient(timeout=self.download_timeout) as client:
                    response = await client.get(url)
        except httpx.HTTPError as e:
            raise DownloadError(str(e) or type(e).__name__) from e

        if not response.is_success:
            raise DownloadError(f"unexpected status {response.status_code} downloading article")
        return response.text

    async def score_articles(self, articles: Sequence[Article]) -> BiasProcessingResult:
        """
        Score each article independently.

        A failing article is recorded with its reason and never stops the
        batch. Only a missing store connection is fatal.
        """
        result = BiasProcessingResult(total=len(articles))
        self.repository.ensure_available()

        if not articles:
            logger.info("No articles provided for bias scoring")
            return result

        logger.info("Starting bias scoring for %d articles", len(articles))

        for article in articles:
            await self._score_one(article, result)

        logger.info(
            "Bias scoring complete: updated=%d failed=%d total=%d",
            result.updated,
            result.failed,
            result.total,
        )
        return result

    async def _score_one(self, article: Article, result: BiasProcessingResult) -> None:
        article_id = str(article.id)
        title = article.title
        logger.info("Processing article %s: %s", article_id, title.strip())

        if not article.s3_url.strip():
            logger.warning("Skipping article %s due to missing S3 URL", article_id)
            result.record_failure(article_id, title, "missing s3 url")
            return

        try:
            body = await self.download_text(article.s3_url)
        except DownloadError as e:
            logger.warning("Failed to download article %s: %s", article_id, e)
            result.record_failure(article_id, title, f"download failed: {e}")
            return

        description = extract_description(body)
        if not description:
            logger.warning("Article %s has an empty description after parsing", article_id)
            result.record_failure(article_id, title, "description is empty")
            return

        try:
            score = await invoke_with_retry(self.inference, description, self.retry_policy)
        except InferenceError as e:
            logger.warning("Inference failed for article %s: %s", article_id, e)
            result.record_failure(article_id, title, f"inference invocation failed: {e}")
            return

        try:
            await run_blocking(self.repository.update_bias, article.id, score)
        except StoreError as e:
            logger.warning("Failed to update bias score for article %s: %s", article_id, e)
            result.record_failure(article_id, title, f"failed to update bias: {e}")
            return

        article.bias = score
        result.updated += 1
        logger.info("Updated bias score for article %s to %.4f", article_id, score)


def build_scorer(
    repository: ArticleRepository,
    settings: InferenceSettings,
    download_timeout: float = 30.0,
    inference: Optional[BiasInferenceClient] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> BiasScorer:
    """Assemble a scorer from resolved inference settings."""
    if inference is None:
        inference = BiasInferenceClient(
            api_url=settings.api_url,
            api_token=settings.api_token,
            timeout=settings.timeout,
        )
    return BiasScorer(
        repository=repository,
        inference=inference,
        retry_policy=RetryPolicy(
            max_attempts=settings.max_attempts,
            backoff_seconds=settings.backoff_seconds,
        ),
        http_client=http_client,
        download_timeout=download_timeout,
    )


def select_for_scoring(
    repository: ArticleRepository,
    force: bool = False,
    limit: Optional[int] = None,
) -> List[Article]:
    """Unscored articles (or all of them with ``force``), optionally capped."""
    return repository.list_for_scoring(force=force, limit=limit)
