"""Database management for newsbias."""

from .articles import ArticleRepository
from .connection import close_pools, get_connection, get_connection_pool
from .init import init_database, validate_connection

__all__ = [
    "ArticleRepository",
    "close_pools",
    "get_connection",
    "get_connection_pool",
    "init_database",
    "validate_connection",
]
