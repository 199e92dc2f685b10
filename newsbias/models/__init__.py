"""Data models for newsbias."""

from .article import UNSCORED_BIAS, Article
from .base import DBModel

__all__ = ["Article", "DBModel", "UNSCORED_BIAS"]
