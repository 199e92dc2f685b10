"""Database connection management."""

import os
from contextlib import contextmanager
from typing import Any, Dict, Generator

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool


class DatabaseConfig:
    """Database configuration."""

    def __init__(self, config: Dict[str, Any]) -> None:
        """Initialize database config from dict."""
        self.url = config.get("url")
        self.host = config.get("host", "localhost")
        self.port = config.get("port", 5432)
        self.database = config.get("database", "newsbias")
        self.user = config.get("user", "newsbias")

        # Handle password from environment variable if specified
        password_env = config.get("password_env")
        if password_env and os.environ.get(password_env):
            self.password = os.environ[password_env]
        else:
            self.password = config.get("password") or ""

    @property
    def connection_string(self) -> str:
        """Get psycopg connection string."""
        if self.url:
            return self.url
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


_connection_pools: Dict[str, ConnectionPool] = {}


def get_connection_pool(config: Dict[str, Any]) -> ConnectionPool:
    """Get or create the connection pool for a database."""
    conninfo = DatabaseConfig(config).connection_string
    pool = _connection_pools.get(conninfo)
    if pool is None:
        pool = ConnectionPool(
            conninfo,
            min_size=1,
            max_size=10,
            kwargs={"row_factory": dict_row},
            open=True,
        )
        _connection_pools[conninfo] = pool
    return pool


@contextmanager
def get_connection(config: Dict[str, Any]) -> Generator[psycopg.Connection, None, None]:
    """Get a database connection from the pool."""
    pool = get_connection_pool(config)
    with pool.connection() as conn:
        yield conn


def close_pools(timeout: float = 5.0) -> None:
    """Close every open pool."""
    while _connection_pools:
        _, pool = _connection_pools.popitem()
        pool.close(timeout=timeout)
