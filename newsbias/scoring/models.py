"""Scoring models."""

from typing import List

from pydantic import BaseModel, Field


class FailedItem(BaseModel):
    """An article that could not be scored."""

    id: str = Field(..., description="Article ID")
    title: str = Field("", description="Article title")
    reason: str = Field(..., description="Why scoring failed")


class BiasProcessingResult(BaseModel):
    """Outcome of a scoring run."""

    updated: int = Field(0, description="Articles whose score was written")
    failed: int = Field(0, description="Articles that could not be scored")
    total: int = Field(0, description="Articles in the batch")
    failures: List[FailedItem] = Field(default_factory=list, description="Failures in processing order")

    def record_failure(self, article_id: str, title: str, reason: str) -> None:
        """Count a failed article and keep its reason."""
        self.failed += 1
        self.failures.append(FailedItem(id=article_id, title=title, reason=reason))

    def failed_items(self) -> List[dict]:
        """Failures as plain dicts, in processing order."""
        return [item.model_dump() for item in self.failures]
