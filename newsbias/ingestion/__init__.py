"""Article ingestion: content provider, object store and upsert orchestration."""

from .ingestor import ArticleIngestor, build_ingestor, object_key, topic_tag
from .models import SourceArticle, SourceResponse, TopicSummary
from .news_client import NewsSourceClient
from .object_store import ObjectStore, S3ObjectStore

__all__ = [
    "ArticleIngestor",
    "NewsSourceClient",
    "ObjectStore",
    "S3ObjectStore",
    "SourceArticle",
    "SourceResponse",
    "TopicSummary",
    "build_ingestor",
    "object_key",
    "topic_tag",
]
