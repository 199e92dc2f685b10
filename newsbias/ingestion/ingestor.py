"""Ingestion orchestrator: fetch, dedup by link, store bodies, record metadata."""

import asyncio
import logging
import uuid
from datetime import timedelta
from typing import Dict, Iterable, Optional

from ..blocking import run_blocking
from ..config.models import DEFAULT_MAX_ARTICLES, DEFAULT_PRESIGN_TTL, IngestionSettings
from ..db.articles import ArticleRepository
from ..errors import DuplicateLinkError, FetchError, NewsBiasError, StoreWriteError
from ..models import UNSCORED_BIAS, Article
from .models import SourceArticle, TopicSummary
from .news_client import NewsSourceClient
from .object_store import ObjectStore, S3ObjectStore

logger = logging.getLogger(__name__)


def topic_tag(topic: str) -> str:
    """Tag under which a topic's articles are stored."""
    return topic.strip().lower()


def object_key(tag: str, hash_val: uuid.UUID) -> str:
    """Object store key for an article body."""
    return f"{tag}:{hash_val}.txt"


class ArticleIngestor:
    """Upsert a topic's articles into the repository and the object store."""

    def __init__(
        self,
        repository: ArticleRepository,
        source: NewsSourceClient,
        object_store: ObjectStore,
        presign_ttl: timedelta = DEFAULT_PRESIGN_TTL,
        max_articles: int = DEFAULT_MAX_ARTICLES,
        topic_timeout: float = 20.0,
    ) -> None:
        """
        Initialize ingestor.

        Args:
            repository: Article repository bound to this run's connection
            source: Content provider client
            object_store: Gateway for article bodies
            presign_ttl: Lifetime of minted retrieval URLs
            max_articles: Candidates processed per topic, in provider order
            topic_timeout: Seconds allowed for each topic's provider fetch
        """
        self.repository = repository
        self.source = source
        self.object_store = object_store
        self.presign_ttl = presign_ttl
        self.max_articles = max_articles if max_articles > 0 else DEFAULT_MAX_ARTICLES
        self.topic_timeout = topic_timeout

    async def ingest_topics(self, topics: Iterable[str]) -> Dict[str, TopicSummary]:
        """
        Ingest each topic in turn.

        Any failure aborts the run; articles upserted before the failing step
        stay committed.

        Returns:
            Summary per lower-cased topic tag
        """
        topics = list(topics)
        if not topics:
            return {}

        self.repository.ensure_available()

        results: Dict[str, TopicSummary] = {}
        for topic in topics:
            try:
                summary = await self.ingest_topic(topic)
            except NewsBiasError as e:
                logger.error("Ingestion failed for topic %r: %s", topic, e)
                raise
            results[topic_tag(topic)] = summary
        return results

    async def ingest_topic(self, topic: str) -> TopicSummary:
        """Fetch one topic and upsert up to ``max_articles`` of its articles."""
        trimmed = topic.strip()
        if not trimmed:
            raise FetchError("topic cannot be empty")

        try:
            candidates = await asyncio.wait_for(self.source.fetch(trimmed), timeout=self.topic_timeout)
        except asyncio.TimeoutError as e:
            raise FetchError(
                f"failed to fetch news for topic {trimmed}: timed out after {self.topic_timeout:g}s"
            ) from e
        except FetchError as e:
            raise FetchError(f"failed to fetch news for topic {trimmed}: {e}", e.details) from e

        tag = topic_tag(trimmed)
        summary = TopicSummary()

        for candidate in candidates[: self.max_articles]:
            link = candidate.article_url()
            title = (candidate.title or "").strip()
            if not link or not title:
                summary.skipped += 1
                continue

            if await self._upsert(tag, link, title, candidate):
                summary.stored += 1
            else:
                summary.updated += 1

        logger.info(
            "Topic %s: stored=%d updated=%d skipped=%d",
            tag,
            summary.stored,
            summary.updated,
            summary.skipped,
        )
        return summary

    async def _upsert(self, tag: str, link: str, title: str, candidate: SourceArticle) -> bool:
        """
        Insert or refresh one article.

        Returns:
            True if a new row was inserted, False if an existing row was updated
        """
        body = candidate.render_text()

        existing = await run_blocking(self.repository.find_by_link, link)
        if existing is not None:
            await self._refresh(existing, tag, title, candidate, body)
            return False

        hash_val = uuid.uuid4()
        s3_url = await self._store_body(tag, hash_val, body)
        record = Article(
            title=title,
            description=candidate.description or "",
            link=link,
            image_url=candidate.image_link(),
            author=candidate.primary_author(),
            tags=tag,
            hash_val=hash_val,
            s3_url=s3_url,
            bias=UNSCORED_BIAS,
        )

        try:
            await run_blocking(self.repository.insert, record)
        except DuplicateLinkError:
            # A concurrent ingestion inserted the same link first.
            duplicate = await run_blocking(self.repository.find_by_link, link)
            if duplicate is None:
                raise StoreWriteError(f"failed to load existing duplicate for link {link}")
            logger.info("Link %s was inserted concurrently; updating existing row", link)
            await self._refresh(duplicate, tag, title, candidate, body)
            return False

        return True

    async def _refresh(
        self,
        existing: Article,
        tag: str,
        title: str,
        candidate: SourceArticle,
        body: str,
    ) -> Article:
        """Rewrite the body under the article's own key and save refreshed fields."""
        if existing.hash_val is None:
            existing.hash_val = uuid.uuid4()

        existing.s3_url = await self._store_body(tag, existing.hash_val, body)
        existing.title = title
        existing.description = candidate.description or ""
        existing.image_url = candidate.image_link()
        existing.author = candidate.primary_author()
        existing.tags = tag
        return await run_blocking(self.repository.save, existing)

    async def _store_body(self, tag: str, hash_val: uuid.UUID, body: str) -> str:
        key = object_key(tag, hash_val)
        await run_blocking(self.object_store.put, key, body)
        return await run_blocking(self.object_store.presign, key, self.presign_ttl)


def build_ingestor(
    repository: ArticleRepository,
    settings: IngestionSettings,
    object_store: Optional[ObjectStore] = None,
    source: Optional[NewsSourceClient] = None,
) -> ArticleIngestor:
    """Assemble an ingestor from resolved settings, building missing collaborators."""
    if source is None:
        source = NewsSourceClient(
            api_key=settings.api_key,
            base_url=settings.base_url,
            page=settings.page,
            timeout=settings.source_timeout,
        )
    if object_store is None:
        object_store = S3ObjectStore(bucket=settings.bucket, region=settings.region)

    return ArticleIngestor(
        repository=repository,
        source=source,
        object_store=object_store,
        presign_ttl=settings.presign_ttl,
        max_articles=settings.max_articles,
        topic_timeout=settings.topic_timeout,
    )
