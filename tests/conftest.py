"""Shared test doubles for the pipeline."""

import asyncio
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import httpx
import pytest

from newsbias.config import Config, ConfigModel
from newsbias.errors import DuplicateLinkError, ObjectStoreError, StoreUnavailable, StoreWriteError
from newsbias.ingestion import ObjectStore
from newsbias.ingestion.models import SourceArticle
from newsbias.models import UNSCORED_BIAS, Article

OBJECT_BASE_URL = "https://objects.test"


class FakeRepository:
    """In-memory stand-in for ArticleRepository."""

    def __init__(self, available: bool = True) -> None:
        self.available = available
        self.rows: Dict[str, Article] = {}
        self.race_links: set = set()
        self.fail_bias_updates: set = set()
        self.bias_updates: List[tuple] = []
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def ensure_available(self) -> None:
        if not self.available:
            raise StoreUnavailable()

    def add(self, **fields) -> Article:
        """Seed a stored row directly."""
        fields.setdefault("hash_val", uuid.uuid4())
        article = Article(id=uuid.uuid4(), created_at=self._tick(), **fields)
        self.rows[article.link] = article
        return article.model_copy()

    def find_by_link(self, link: str) -> Optional[Article]:
        row = self.rows.get(link)
        return row.model_copy() if row else None

    def insert(self, article: Article) -> Article:
        if article.link in self.race_links:
            # Another writer wins between the lookup and the insert.
            self.race_links.discard(article.link)
            self.add(
                title="winner",
                link=article.link,
                tags=article.tags,
                s3_url="https://objects.test/winner",
            )
        if article.link in self.rows:
            raise DuplicateLinkError(article.link)

        stored = article.model_copy(update={"id": uuid.uuid4(), "created_at": self._tick()})
        self.rows[stored.link] = stored
        return stored.model_copy()

    def save(self, article: Article) -> Article:
        current = self.rows[article.link]
        updated = current.model_copy(
            update={
                "title": article.title,
                "description": article.description,
                "image_url": article.image_url,
                "author": article.author,
                "tags": article.tags,
                "hash_val": article.hash_val,
                "s3_url": article.s3_url,
                "updated_at": self._tick(),
            }
        )
        self.rows[article.link] = updated
        return updated.model_copy()

    def update_bias(self, article_id, score: float) -> None:
        if article_id in self.fail_bias_updates:
            raise StoreWriteError("connection reset")
        for link, row in self.rows.items():
            if row.id == article_id:
                self.rows[link] = row.model_copy(update={"bias": score})
                self.bias_updates.append((article_id, score))
                return
        raise StoreWriteError(f"article {article_id} not found")

    def list_for_scoring(self, force: bool = False, limit: Optional[int] = None) -> List[Article]:
        rows = sorted(self.rows.values(), key=lambda a: a.created_at)
        if not force:
            rows = [a for a in rows if a.bias == UNSCORED_BIAS]
        if limit:
            rows = rows[:limit]
        return [a.model_copy() for a in rows]

    def list_by_tag(self, topic: str, limit: Optional[int] = None) -> List[Article]:
        tag = topic.strip().lower()
        rows = [a for a in self.rows.values() if a.tags.lower() == tag and a.deleted_at is None]
        rows.sort(key=lambda a: a.created_at, reverse=True)
        if limit:
            rows = rows[:limit]
        return [a.model_copy() for a in rows]


class FakeObjectStore(ObjectStore):
    """Keeps bodies in a dict and mints deterministic URLs."""

    def __init__(self, fail_on_put: bool = False) -> None:
        self.objects: Dict[str, str] = {}
        self.puts: List[str] = []
        self.fail_on_put = fail_on_put

    def put(self, key: str, body: str) -> None:
        if self.fail_on_put:
            raise ObjectStoreError(f"failed to upload {key}: access denied")
        self.puts.append(key)
        self.objects[key] = body

    def presign(self, key: str, ttl: timedelta) -> str:
        return f"{OBJECT_BASE_URL}/{key}?ttl={int(ttl.total_seconds())}"


class FakeSource:
    """Content provider returning canned candidates per topic."""

    def __init__(self, articles: Optional[Dict[str, List[dict]]] = None, delay: float = 0.0) -> None:
        self.articles = articles or {}
        self.delay = delay
        self.calls: List[str] = []

    async def fetch(self, topic: str) -> List[SourceArticle]:
        self.calls.append(topic)
        if self.delay:
            await asyncio.sleep(self.delay)
        return [SourceArticle.model_validate(item) for item in self.articles.get(topic, [])]


def candidate(n: int, **overrides) -> dict:
    """A provider article in the ``url``/``urlToImage``/``author`` shape."""
    item = {
        "title": f"Headline {n}",
        "description": f"Summary of story {n}.",
        "url": f"https://news.test/story-{n}",
        "urlToImage": f"https://img.test/{n}.jpg",
        "author": f"Reporter {n}",
    }
    item.update(overrides)
    return item


def object_transport(store: FakeObjectStore) -> httpx.MockTransport:
    """Serve FakeObjectStore bodies over HTTP at their presigned URLs."""

    def handler(request: httpx.Request) -> httpx.Response:
        key = request.url.path.lstrip("/")
        if key in store.objects:
            return httpx.Response(200, text=store.objects[key])
        return httpx.Response(404, text="NoSuchKey")

    return httpx.MockTransport(handler)


@pytest.fixture
def repository() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def object_store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def config(tmp_path, monkeypatch) -> Config:
    """Config with every deployment setting present in the environment."""
    monkeypatch.setenv("NEWS_API_KEY", "test-key")
    monkeypatch.setenv("AWS_S3_BUCKET", "news-bodies")
    monkeypatch.setenv("AWS_REGION", "us-east-1")
    monkeypatch.setenv("HF_TOKEN", "hf-test-token")
    monkeypatch.delenv("S3_PRESIGN_TTL", raising=False)
    for name in ("NEWSDATA_PAGE", "HUGGINGFACE_ENDPOINT_URL", "HUGGINGFACE_MODEL_URL", "DB_URL"):
        monkeypatch.delenv(name, raising=False)
    model = ConfigModel(inference={"backoff_seconds": 0.0})
    return Config(tmp_path / "config.yaml", model)
