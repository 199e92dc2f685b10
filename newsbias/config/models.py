"""Configuration models."""

from datetime import timedelta
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

DEFAULT_TOPICS = [
    "Technology",
    "Climate",
    "Economy",
    "Health",
    "Diplomacy",
    "Culture",
]

DEFAULT_INFERENCE_URL = "https://m6rebwzf26vlh38c.us-east-1.aws.endpoints.huggingface.cloud"
DEFAULT_MAX_ARTICLES = 5
DEFAULT_PRESIGN_TTL = timedelta(hours=24)


class PostgresConfig(BaseModel):
    """Postgres configuration."""

    url_env: Optional[str] = Field("DB_URL", description="Environment variable holding a full DSN")
    host: str = Field("localhost", description="Database host")
    port: int = Field(5432, description="Database port")
    database: str = Field("newsbias", description="Database name")
    user: str = Field("newsbias", description="Database user")
    password: Optional[str] = Field(None, description="Database password")
    password_env: Optional[str] = Field(None, description="Environment variable for password")


class NewsSourceConfig(BaseModel):
    """Content provider configuration."""

    base_url: str = Field("https://newsapi.org/v2/everything", description="Search endpoint")
    api_key: Optional[str] = Field(None, description="API key (prefer api_key_env)")
    api_key_env: Optional[str] = Field("NEWS_API_KEY", description="Environment variable for API key")
    page: Optional[str] = Field(None, description="Result page token")
    page_env: Optional[str] = Field("NEWSDATA_PAGE", description="Environment variable for page token")
    timeout: float = Field(15.0, description="Per-request timeout in seconds", gt=0)


class ObjectStoreConfig(BaseModel):
    """S3 bucket configuration."""

    bucket: Optional[str] = Field(None, description="Bucket name")
    bucket_env: Optional[str] = Field("AWS_S3_BUCKET", description="Environment variable for bucket")
    region: Optional[str] = Field(None, description="Bucket region")
    region_env: Optional[str] = Field("AWS_REGION", description="Environment variable for region")
    presign_ttl: Optional[str] = Field(None, description="Retrieval URL lifetime, e.g. 24h or PT24H")
    presign_ttl_env: Optional[str] = Field("S3_PRESIGN_TTL", description="Environment variable for TTL")


class InferenceConfig(BaseModel):
    """Bias inference endpoint configuration."""

    url: Optional[str] = Field(None, description="Endpoint URL")
    url_env: List[str] = Field(
        default_factory=lambda: ["HUGGINGFACE_ENDPOINT_URL", "HUGGINGFACE_MODEL_URL"],
        description="Environment variables checked for the endpoint URL, in order",
    )
    token: Optional[str] = Field(None, description="Bearer token (prefer token_env)")
    token_env: List[str] = Field(
        default_factory=lambda: ["HF_TOKEN", "HUGGINGFACE_API_TOKEN"],
        description="Environment variables checked for the token, in order",
    )
    timeout: float = Field(30.0, description="Per-request timeout in seconds", gt=0)
    max_attempts: int = Field(3, description="Attempts per article", ge=1, le=10)
    backoff_seconds: float = Field(1.0, description="Wait before the first retry", ge=0.0)


class PipelineConfig(BaseModel):
    """Run limits and timeouts."""

    topics: List[str] = Field(default_factory=lambda: list(DEFAULT_TOPICS))
    max_articles: int = Field(DEFAULT_MAX_ARTICLES, description="Candidates processed per topic")
    topic_timeout: float = Field(20.0, description="Content fetch timeout per topic", gt=0)
    run_timeout: float = Field(120.0, description="Timeout for a full ingestion or query run", gt=0)
    download_timeout: float = Field(30.0, description="Object download timeout", gt=0)

    @field_validator("max_articles")
    @classmethod
    def default_non_positive(cls, v: int) -> int:
        """Fall back to the default cap for non-positive values."""
        if v <= 0:
            return DEFAULT_MAX_ARTICLES
        return v


class IngestionSettings(BaseModel):
    """Resolved settings for one ingestion run."""

    api_key: str
    base_url: str
    page: Optional[str] = None
    source_timeout: float = 15.0
    bucket: str
    region: str
    presign_ttl: timedelta = DEFAULT_PRESIGN_TTL
    max_articles: int = DEFAULT_MAX_ARTICLES
    topic_timeout: float = 20.0


class InferenceSettings(BaseModel):
    """Resolved settings for the inference endpoint."""

    api_url: str
    api_token: str
    timeout: float = 30.0
    max_attempts: int = 3
    backoff_seconds: float = 1.0


class ConfigModel(BaseModel):
    """Main configuration model."""

    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    news_source: NewsSourceConfig = Field(default_factory=NewsSourceConfig)
    object_store: ObjectStoreConfig = Field(default_factory=ObjectStoreConfig)
    inference: InferenceConfig = Field(default_factory=InferenceConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
