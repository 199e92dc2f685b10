"""Exceptions raised by the ingestion and scoring pipeline."""

from typing import Any, Dict, List, Optional


class NewsBiasError(Exception):
    """Base class for pipeline errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class ConfigError(NewsBiasError):
    """A required setting is missing."""

    def __init__(self, message: str, setting: Optional[str] = None):
        super().__init__(message, {"setting": setting} if setting else None)
        self.setting = setting


class StoreError(NewsBiasError):
    """Relational store failure."""
    pass


class StoreUnavailable(StoreError):
    """No open connection to the relational store."""

    def __init__(self, message: str = "database connection unavailable"):
        super().__init__(message)


class StoreWriteError(StoreError):
    """Insert or update failed."""
    pass


class DuplicateLinkError(StoreWriteError):
    """Insert rejected by the unique constraint on ``link``."""

    def __init__(self, link: str):
        super().__init__(f"article with link {link} already exists", {"link": link})
        self.link = link


class FetchError(NewsBiasError):
    """The content source could not be reached or reported a failure."""
    pass


class ObjectStoreError(NewsBiasError):
    """Object write or URL presign failed."""
    pass


class InferenceError(NewsBiasError):
    """The inference endpoint rejected or failed a request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, {"status_code": status_code} if status_code else None)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        """Only 5xx responses are worth another attempt."""
        return self.status_code is not None and 500 <= self.status_code < 600


class ParseError(InferenceError):
    """No numeric score could be read from an inference response."""

    def __init__(self, message: str):
        super().__init__(message)


class ScoringIncomplete(NewsBiasError):
    """At least one article in a batch could not be scored."""

    def __init__(self, message: str, failures: List[Dict[str, Any]]):
        super().__init__(message, {"failures": failures})
        self.failures = failures
