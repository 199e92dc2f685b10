"""HTTP API: ingestion and scoring triggers, topic lookups and on-demand queries."""

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional

import psycopg
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..config import Config
from ..db.articles import ArticleRepository
from ..db.connection import get_connection_pool
from ..errors import NewsBiasError, ScoringIncomplete, StoreUnavailable
from ..models import Article
from ..pipeline import PipelineOrchestrator

logger = logging.getLogger(__name__)

app = FastAPI(title="newsbias API")

TRUE_VALUES = {"1", "t", "T", "TRUE", "true", "True"}


class TopicsPayload(BaseModel):
    topics: List[str] = Field(default_factory=list)


def error_response(status_code: int, message: str, details: Any = None) -> JSONResponse:
    payload: Dict[str, Any] = {"error": message}
    if details is not None:
        payload["details"] = details
    return JSONResponse(payload, status_code=status_code)


def parse_flag(value: Optional[str]) -> bool:
    """Query-string boolean. Anything unrecognised reads as false."""
    return value is not None and value.strip() in TRUE_VALUES


def serialize_topics(topics: Dict[str, List[Article]]) -> Dict[str, List[Dict[str, Any]]]:
    return {name: [a.model_dump(mode="json") for a in articles] for name, articles in topics.items()}


@app.exception_handler(RequestValidationError)
async def _invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.errors())
    return error_response(400, "Invalid request body")


@app.exception_handler(ScoringIncomplete)
async def _scoring_incomplete(request: Request, exc: ScoringIncomplete) -> JSONResponse:
    return error_response(500, exc.message, exc.failures)


@app.exception_handler(NewsBiasError)
async def _pipeline_error(request: Request, exc: NewsBiasError) -> JSONResponse:
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return error_response(500, exc.message)


@app.exception_handler(asyncio.TimeoutError)
async def _run_timeout(request: Request, exc: asyncio.TimeoutError) -> JSONResponse:
    logger.error("%s %s exceeded the run timeout", request.method, request.url.path)
    return error_response(504, "request timed out")


def get_config() -> Config:
    return Config()


def get_repository(config: Config = Depends(get_config)) -> Iterator[ArticleRepository]:
    """One pooled connection per request."""
    try:
        pool = get_connection_pool(config.get_db_config())
        conn = pool.getconn()
    except psycopg.Error as e:
        logger.error("Database connection unavailable: %s", e)
        raise StoreUnavailable() from e

    try:
        yield ArticleRepository(conn)
    finally:
        pool.putconn(conn)


def get_orchestrator(
    repository: ArticleRepository = Depends(get_repository),
    config: Config = Depends(get_config),
) -> PipelineOrchestrator:
    return PipelineOrchestrator(repository, config)


@app.get("/health")
def health() -> Dict[str, Any]:
    return {"ok": True, "ts": datetime.now(timezone.utc).isoformat(timespec="seconds")}


@app.get("/fetch-news")
async def fetch_news(orchestrator: PipelineOrchestrator = Depends(get_orchestrator)) -> Dict[str, Any]:
    summary = await orchestrator.run_ingestion()
    return {
        "message": "News fetched and stored successfully",
        "summary": {tag: s.model_dump() for tag, s in summary.items()},
    }


@app.get("/rank-biases")
async def rank_biases(
    force: Optional[str] = None,
    limit: Optional[str] = None,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
):
    parsed_limit = None
    if limit is not None and limit.strip():
        try:
            parsed_limit = int(limit.strip())
        except ValueError:
            parsed_limit = 0
        if parsed_limit <= 0:
            return error_response(400, "limit must be a positive integer")

    result = await orchestrator.run_scoring(force=parse_flag(force), limit=parsed_limit)
    if result.total == 0:
        return {"message": "no articles available for scoring", "updated": 0, "failed": 0}

    return {
        "message": "bias scores processed",
        "updated": result.updated,
        "failed": result.failed,
        "total": result.total,
        "failed_items": result.failed_items(),
    }


@app.post("/get-news-by-topic")
def get_news_by_topic(
    payload: TopicsPayload,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
):
    if not payload.topics:
        return error_response(400, "No topics provided")
    return {"topics": serialize_topics(orchestrator.lookup_topics(payload.topics))}


async def _query_from_request(request: Request) -> Optional[str]:
    query = request.query_params.get("query", "").strip()
    if query:
        return query

    body = await request.body()
    if not body.strip():
        return ""
    try:
        data = json.loads(body)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    return str(data.get("query") or "").strip()


@app.api_route("/news-by-query", methods=["GET", "POST"])
async def news_by_query(
    request: Request,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
):
    query = await _query_from_request(request)
    if query is None:
        return error_response(400, "Invalid request body")
    if not query:
        return error_response(400, "query parameter is required")

    topics = await orchestrator.run_query(query)
    return {"topics": serialize_topics(topics)}
