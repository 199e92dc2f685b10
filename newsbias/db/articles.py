"""Article storage keyed by link."""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

import psycopg
from psycopg import Connection
from psycopg.errors import UniqueViolation
from psycopg.rows import dict_row

from ..errors import DuplicateLinkError, StoreError, StoreUnavailable, StoreWriteError
from ..models import UNSCORED_BIAS, Article

logger = logging.getLogger(__name__)

ARTICLE_COLUMNS = """
    id, title, description, link, image_url, author, tags, hash_val,
    s3_url, bias, is_activated, created_at, updated_at, deleted_at
"""


class ArticleRepository:
    """
    Relational access to the ``articles`` table.

    A repository wraps one connection for the duration of a run. Writes are
    committed immediately so a later failure in the same run never undoes an
    article that was already upserted.
    """

    def __init__(self, conn: Optional[Connection]) -> None:
        """Initialize repository over an open connection."""
        self.conn = conn

    def ensure_available(self) -> None:
        """Raise StoreUnavailable unless the connection is open."""
        if self.conn is None or self.conn.closed:
            raise StoreUnavailable()

    def _to_article(self, row: Optional[Dict[str, Any]]) -> Optional[Article]:
        if row is None:
            return None
        return Article.model_validate(row)

    def _rollback(self) -> None:
        try:
            self.conn.rollback()
        except psycopg.Error as e:
            logger.warning("Rollback failed: %s", e)

    def find_by_link(self, link: str) -> Optional[Article]:
        """
        Look up an article by exact link.

        Soft-deleted rows are included because the unique constraint covers
        them as well.
        """
        self.ensure_available()
        try:
            with self.conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {ARTICLE_COLUMNS} FROM articles WHERE link = %s LIMIT 1",
                    (link,),
                )
                row = cur.fetchone()
            self.conn.commit()
        except psycopg.Error as e:
            self._rollback()
            raise StoreError(f"db lookup failed for link {link}: {e}") from e
        return self._to_article(row)

    def insert(self, article: Article) -> Article:
        """
        Insert a new article.

        Raises:
            DuplicateLinkError: If another row already holds the same link
            StoreWriteError: On any other database failure
        """
        self.ensure_available()
        try:
            with self.conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    INSERT INTO articles (
                        title, description, link, image_url, author,
                        tags, hash_val, s3_url, bias
                    ) VALUES (
                        %s, %s, %s, %s, %s, %s, %s, %s, %s
                    )
                    RETURNING {ARTICLE_COLUMNS}
                    """,
                    (
                        article.title,
                        article.description,
                        article.link,
                        article.image_url,
                        article.author,
                        article.tags,
                        article.hash_val,
                        article.s3_url,
                        article.bias,
                    ),
                )
                row = cur.fetchone()
            self.conn.commit()
        except UniqueViolation as e:
            self._rollback()
            raise DuplicateLinkError(article.link) from e
        except psycopg.Error as e:
            self._rollback()
            raise StoreWriteError(f"failed to store article {article.link}: {e}") from e
        return self._to_article(row)

    def save(self, article: Article) -> Article:
        """Write back the mutable fields of an existing article."""
        self.ensure_available()
        if article.id is None:
            raise StoreWriteError(f"cannot update article {article.link} without an id")

        try:
            with self.conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    UPDATE articles
                    SET
                        title = %s,
                        description = %s,
                        image_url = %s,
                        author = %s,
                        tags = %s,
                        hash_val = %s,
                        s3_url = %s
                    WHERE id = %s
                    RETURNING {ARTICLE_COLUMNS}
                    """,
                    (
                        article.title,
                        article.description,
                        article.image_url,
                        article.author,
                        article.tags,
                        article.hash_val,
                        article.s3_url,
                        article.id,
                    ),
                )
                row = cur.fetchone()
            self.conn.commit()
        except psycopg.Error as e:
            self._rollback()
            raise StoreWriteError(f"failed to update article {article.link}: {e}") from e

        if row is None:
            raise StoreWriteError(f"article {article.id} no longer exists")
        return self._to_article(row)

    def update_bias(self, article_id: UUID, score: float) -> None:
        """Persist a computed bias score."""
        self.ensure_available()
        try:
            with self.conn.cursor() as cur:
                cur.execute(
                    "UPDATE articles SET bias = %s WHERE id = %s",
                    (score, article_id),
                )
            self.conn.commit()
        except psycopg.Error as e:
            self._rollback()
            raise StoreWriteError(str(e)) from e

    def list_for_scoring(self, force: bool = False, limit: Optional[int] = None) -> List[Article]:
        """
        Select articles for a scoring run.

        Args:
            force: Select every article instead of only unscored ones
            limit: Cap on the number of rows, ignored unless positive
        """
        self.ensure_available()
        query = f"SELECT {ARTICLE_COLUMNS} FROM articles WHERE deleted_at IS NULL"
        params: List[Any] = []

        if not force:
            query += " AND bias = %s"
            params.append(UNSCORED_BIAS)

        query += " ORDER BY created_at"

        if limit and limit > 0:
            query += " LIMIT %s"
            params.append(limit)

        return self._fetch_all(query, params)

    def list_by_tag(self, topic: str, limit: Optional[int] = None) -> List[Article]:
        """Articles whose tag matches the topic case-insensitively, newest first."""
        self.ensure_available()
        lowered = topic.strip().lower()
        if not lowered:
            return []

        query = (
            f"SELECT {ARTICLE_COLUMNS} FROM articles "
            "WHERE LOWER(tags) = %s AND deleted_at IS NULL "
            "ORDER BY created_at DESC"
        )
        params: List[Any] = [lowered]

        if limit and limit > 0:
            query += " LIMIT %s"
            params.append(limit)

        return self._fetch_all(query, params)

    def _fetch_all(self, query: str, params: List[Any]) -> List[Article]:
        try:
            with self.conn.cursor(row_factory=dict_row) as cur:
                cur.execute(query, params)
                rows = cur.fetchall()
            self.conn.commit()
        except psycopg.Error as e:
            self._rollback()
            raise StoreError(f"failed to load articles: {e}") from e
        return [Article.model_validate(row) for row in rows]
