"""Pipeline orchestrator that runs ingestion, scoring and on-demand topic queries."""

import asyncio
import logging
import time
from typing import Dict, Iterable, List, Optional

import httpx

from ..blocking import run_blocking
from ..config import Config
from ..db.articles import ArticleRepository
from ..errors import ScoringIncomplete
from ..ingestion import NewsSourceClient, ObjectStore, TopicSummary, build_ingestor, topic_tag
from ..models import Article
from ..scoring import BiasInferenceClient, BiasProcessingResult, build_scorer, select_for_scoring

logger = logging.getLogger(__name__)

SCORING_INCOMPLETE_MESSAGE = "failed to score bias for all articles"


class PipelineOrchestrator:
    """Runs the pipeline's entry points against one repository."""

    def __init__(
        self,
        repository: ArticleRepository,
        config: Config,
        source: Optional[NewsSourceClient] = None,
        object_store: Optional[ObjectStore] = None,
        inference: Optional[BiasInferenceClient] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize pipeline orchestrator.

        Collaborators left as None are built from configuration on each run.
        """
        self.repository = repository
        self.config = config
        self.source = source
        self.object_store = object_store
        self.inference = inference
        self.http_client = http_client

    @property
    def run_timeout(self) -> float:
        return self.config.config.pipeline.run_timeout

    @property
    def max_articles(self) -> int:
        return self.config.config.pipeline.max_articles

    def _ingestor(self):
        settings = self.config.get_ingestion_settings()
        return build_ingestor(
            self.repository,
            settings,
            object_store=self.object_store,
            source=self.source,
        )

    def _scorer(self):
        settings = self.config.get_inference_settings()
        return build_scorer(
            self.repository,
            settings,
            download_timeout=self.config.config.pipeline.download_timeout,
            inference=self.inference,
            http_client=self.http_client,
        )

    async def run_ingestion(self, topics: Optional[Iterable[str]] = None) -> Dict[str, TopicSummary]:
        """
        Ingest the given topics, or the configured defaults.

        The whole run is bounded by the run timeout; ``asyncio.TimeoutError``
        propagates to the caller.
        """
        if topics is None:
            topics = self.config.config.pipeline.topics
        topics = list(topics)

        ingestor = self._ingestor()
        start = time.time()
        results = await asyncio.wait_for(ingestor.ingest_topics(topics), timeout=self.run_timeout)
        logger.info("Ingested %d topics in %.1fs", len(results), time.time() - start)
        return results

    async def run_scoring(self, force: bool = False, limit: Optional[int] = None) -> BiasProcessingResult:
        """Score unscored articles (all articles with ``force``), at most ``limit`` of them."""
        self.repository.ensure_available()
        articles = await run_blocking(select_for_scoring, self.repository, force=force, limit=limit)
        if not articles:
            logger.info("No articles available for scoring")
            return BiasProcessingResult()

        return await self._scorer().score_articles(articles)

    def lookup_topics(self, topics: Iterable[str]) -> Dict[str, List[Article]]:
        """Stored articles per topic, matched case-insensitively. Blank topics are ignored."""
        self.repository.ensure_available()

        results: Dict[str, List[Article]] = {}
        for topic in topics:
            name = topic.strip()
            if not name:
                continue
            results[name] = self.repository.list_by_tag(topic_tag(name))
        return results

    async def run_query(self, topic: str) -> Dict[str, List[Article]]:
        """
        Ingest one topic, score its newest articles and return them.

        Raises:
            ScoringIncomplete: If any selected article could not be scored
            asyncio.TimeoutError: If the flow exceeds the run timeout
        """
        return await asyncio.wait_for(self._query(topic), timeout=self.run_timeout)

    async def _query(self, topic: str) -> Dict[str, List[Article]]:
        query = topic.strip()
        tag = topic_tag(query)

        ingestor = self._ingestor()
        await ingestor.ingest_topics([query])

        articles = await run_blocking(self.repository.list_by_tag, tag, limit=self.max_articles)
        if articles:
            result = await self._scorer().score_articles(articles)
            if result.failed:
                logger.warning(
                    "Scoring incomplete for query %r: %d of %d failed",
                    query,
                    result.failed,
                    result.total,
                )
                raise ScoringIncomplete(SCORING_INCOMPLETE_MESSAGE, result.failed_items())

        refreshed = await run_blocking(self.repository.list_by_tag, tag, limit=self.max_articles)
        return {query: refreshed}


async def run_ingestion(
    repository: ArticleRepository,
    config: Config,
    topics: Optional[Iterable[str]] = None,
) -> Dict[str, TopicSummary]:
    """Ingest the configured default topics (or ``topics``)."""
    return await PipelineOrchestrator(repository, config).run_ingestion(topics)


async def run_scoring(
    repository: ArticleRepository,
    config: Config,
    force: bool = False,
    limit: Optional[int] = None,
) -> BiasProcessingResult:
    """Score stored articles."""
    return await PipelineOrchestrator(repository, config).run_scoring(force=force, limit=limit)


def lookup_topics(
    repository: ArticleRepository,
    config: Config,
    topics: Iterable[str],
) -> Dict[str, List[Article]]:
    """Stored articles per topic."""
    return PipelineOrchestrator(repository, config).lookup_topics(topics)


async def run_query(repository: ArticleRepository, config: Config, topic: str) -> Dict[str, List[Article]]:
    """Ingest, score and return one topic's newest articles."""
    return await PipelineOrchestrator(repository, config).run_query(topic)
