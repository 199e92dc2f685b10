"""Article model for stored, topic-tagged articles."""

from typing import Any, Optional
from uuid import UUID

from pydantic import Field, field_validator

from .base import DBModel

UNSCORED_BIAS = 0.0


class Article(DBModel):
    """Article model."""

    title: str = Field("", description="Article title")
    description: str = Field("", description="Article description as sent by the provider")
    link: str = Field(..., description="Canonical article URL, unique")
    image_url: str = Field("", description="Lead image URL")
    author: str = Field("", description="Primary author")
    tags: str = Field("", description="Lower-cased topic tag")
    hash_val: Optional[UUID] = Field(None, description="Identifier used in the object key")
    s3_url: str = Field("", description="Time-limited retrieval URL for the stored body")
    bias: float = Field(UNSCORED_BIAS, description="Bias score, 0 until scored")
    is_activated: bool = Field(True, description="Whether the article is active")

    @field_validator("title", "description", "image_url", "author", "tags", "s3_url", mode="before")
    @classmethod
    def null_to_empty(cls, v: Any) -> Any:
        """Nullable text columns read back as empty strings."""
        return "" if v is None else v

    @field_validator("bias", mode="before")
    @classmethod
    def null_to_unscored(cls, v: Any) -> Any:
        """A NULL bias column reads back as unscored."""
        return UNSCORED_BIAS if v is None else v