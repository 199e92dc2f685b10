"""Data models for ingestion."""

from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

DESCRIPTION_PLACEHOLDER = "Description unavailable."


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


class SourceArticle(BaseModel):
    """
    One article as returned by the content provider.

    The provider family answers with two shapes: ``link``/``image_url``/
    ``creator`` and ``url``/``urlToImage``/``author``. Both are accepted and
    the accessors below pick the canonical field first.
    """

    article_id: Optional[str] = Field(None, description="Provider article ID")
    title: Optional[str] = Field(None, description="Article title")
    description: Optional[str] = Field(None, description="Article description/summary")
    content: Optional[str] = Field(None, description="Raw (often truncated) article content")
    link: Optional[str] = Field(None, description="Article URL (legacy field)")
    url: Optional[str] = Field(None, description="Article URL")
    image_url: Optional[str] = Field(None, description="Image URL (legacy field)")
    url_to_image: Optional[str] = Field(None, alias="urlToImage", description="Image URL")
    pub_date: Optional[str] = Field(None, alias="pubDate", description="Publication date (legacy field)")
    published_at: Optional[str] = Field(None, alias="publishedAt", description="Publication date")
    creator: Optional[List[str]] = Field(None, description="Author list")
    author: Optional[str] = Field(None, description="Single author (legacy field)")

    class Config:
        """Pydantic config."""

        populate_by_name = True
        extra = "ignore"

    @field_validator("creator", mode="before")
    @classmethod
    def coerce_creator(cls, v: Any) -> Any:
        """Some responses carry a bare string or nulls inside the list."""
        if v is None:
            return None
        if isinstance(v, str):
            return [v]
        if isinstance(v, list):
            return [item for item in v if isinstance(item, str)]
        return None

    def article_url(self) -> str:
        """Canonical article link."""
        return _clean(self.url) or _clean(self.link)

    def image_link(self) -> str:
        """Canonical image link."""
        return _clean(self.url_to_image) or _clean(self.image_url)

    def primary_author(self) -> str:
        """First non-blank creator, else the single author field."""
        for creator in self.creator or []:
            name = creator.strip()
            if name:
                return name
        return _clean(self.author)

    def render_text(self) -> str:
        """Plain-text body written to the object store."""
        description = _clean(self.description) or _clean(self.content) or DESCRIPTION_PLACEHOLDER
        return f"Title: {_clean(self.title)}\n\nDescription: {description}\n"


class SourceResponse(BaseModel):
    """Search response from the content provider."""

    status: Optional[str] = Field(None, description="Provider status string")
    results: Optional[List[SourceArticle]] = Field(None, description="Article list (first shape)")
    articles: Optional[List[SourceArticle]] = Field(None, description="Article list (second shape)")

    class Config:
        """Pydantic config."""

        populate_by_name = True
        extra = "ignore"

    def is_success(self) -> bool:
        """Missing status counts as success."""
        return _clean(self.status).lower() in ("", "success", "ok")

    def items(self) -> List[SourceArticle]:
        """Whichever article list is populated, ``results`` first."""
        if self.results:
            return self.results
        return self.articles or []


class TopicSummary(BaseModel):
    """Outcome of ingesting one topic."""

    stored: int = Field(0, description="Articles inserted")
    updated: int = Field(0, description="Existing articles refreshed")
    skipped: int = Field(0, description="Candidates without link or title")
