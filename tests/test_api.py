"""Tests for the HTTP API."""

import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import FakeSource, candidate, object_transport
from newsbias.api.app import app, get_orchestrator
from newsbias.errors import StoreUnavailable
from newsbias.pipeline import PipelineOrchestrator
from newsbias.scoring import BiasInferenceClient


def _inference(status: int = 200, body: str = '{"bias": 0.55}') -> BiasInferenceClient:
    return BiasInferenceClient(
        "https://inference.test/model",
        "hf-token",
        client=httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(status, text=body))),
    )


@pytest.fixture
def make_client(repository, config, object_store):
    def factory(source=None, inference=None) -> TestClient:
        orchestrator = PipelineOrchestrator(
            repository,
            config,
            source=source or FakeSource(),
            object_store=object_store,
            inference=inference or _inference(),
            http_client=httpx.AsyncClient(transport=object_transport(object_store)),
        )
        app.dependency_overrides[get_orchestrator] = lambda: orchestrator
        return TestClient(app)

    yield factory
    app.dependency_overrides.clear()


def test_health(make_client):
    response = make_client().get("/health")
    assert response.status_code == 200
    assert response.json()["ok"] is True


def test_fetch_news(make_client):
    client = make_client(source=FakeSource({"Technology": [candidate(1), candidate(2, title="")]}))

    response = client.get("/fetch-news")

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "News fetched and stored successfully"
    assert body["summary"]["technology"] == {"stored": 1, "updated": 0, "skipped": 1}


def test_fetch_news_config_error(make_client, monkeypatch):
    monkeypatch.delenv("AWS_S3_BUCKET")

    response = make_client().get("/fetch-news")

    assert response.status_code == 500
    assert "AWS_S3_BUCKET" in response.json()["error"]


@pytest.mark.parametrize("limit", ["0", "-3", "abc"])
def test_rank_biases_rejects_bad_limit(make_client, limit):
    response = make_client().get("/rank-biases", params={"limit": limit})

    assert response.status_code == 400
    assert response.json() == {"error": "limit must be a positive integer"}


def test_rank_biases_with_nothing_to_score(make_client):
    response = make_client().get("/rank-biases")

    assert response.status_code == 200
    assert response.json() == {"message": "no articles available for scoring", "updated": 0, "failed": 0}


def test_rank_biases_reports_failures(make_client, repository, object_store):
    object_store.objects["technology:1.txt"] = "Title: A\n\nDescription: ok\n"
    repository.add(title="A", link="https://news.test/a", tags="technology", s3_url="https://objects.test/technology:1.txt")
    missing = repository.add(title="B", link="https://news.test/b", tags="technology", s3_url="")

    response = make_client().get("/rank-biases", params={"limit": "10"})

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "bias scores processed"
    assert (body["updated"], body["failed"], body["total"]) == (1, 1, 2)
    assert body["failed_items"] == [{"id": str(missing.id), "title": "B", "reason": "missing s3 url"}]


def test_get_news_by_topic(make_client, repository):
    repository.add(title="A", link="https://news.test/a", tags="climate", bias=0.2)

    response = make_client().post("/get-news-by-topic", json={"topics": ["Climate", ""]})

    assert response.status_code == 200
    topics = response.json()["topics"]
    assert list(topics) == ["Climate"]
    assert topics["Climate"][0]["link"] == "https://news.test/a"
    assert topics["Climate"][0]["bias"] == 0.2


def test_get_news_by_topic_requires_topics(make_client):
    response = make_client().post("/get-news-by-topic", json={"topics": []})

    assert response.status_code == 400
    assert response.json() == {"error": "No topics provided"}


def test_news_by_query_get(make_client):
    client = make_client(source=FakeSource({"Space": [candidate(1)]}))

    response = client.get("/news-by-query", params={"query": "Space"})

    assert response.status_code == 200
    articles = response.json()["topics"]["Space"]
    assert len(articles) == 1
    assert articles[0]["bias"] == pytest.approx(0.55)


def test_news_by_query_post_body(make_client):
    client = make_client(source=FakeSource({"Space": [candidate(1)]}))

    response = client.post("/news-by-query", json={"query": " Space "})

    assert response.status_code == 200
    assert list(response.json()["topics"]) == ["Space"]


def test_news_by_query_requires_query(make_client):
    client = make_client()

    assert client.get("/news-by-query").status_code == 400
    assert client.post("/news-by-query", json={"query": "  "}).json() == {"error": "query parameter is required"}
    assert client.post("/news-by-query", content=b"{not json").json() == {"error": "Invalid request body"}


def test_news_by_query_partial_failure(make_client):
    client = make_client(source=FakeSource({"Space": [candidate(1)]}), inference=_inference(400, "bad input"))

    response = client.get("/news-by-query", params={"query": "Space"})

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "failed to score bias for all articles"
    assert body["details"][0]["title"] == "Headline 1"


def test_store_unavailable_is_reported():
    def unavailable():
        raise StoreUnavailable()

    app.dependency_overrides[get_orchestrator] = unavailable
    try:
        response = TestClient(app).get("/rank-biases")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"error": "database connection unavailable"}


def test_run_timeout_maps_to_504(make_client, monkeypatch):
    async def too_slow(self, topic):
        raise asyncio.TimeoutError()

    monkeypatch.setattr(PipelineOrchestrator, "run_query", too_slow)

    response = make_client().get("/news-by-query", params={"query": "Space"})

    assert response.status_code == 504
    assert response.json() == {"error": "request timed out"}


@pytest.mark.parametrize("body", [b"not json", b'{"topics": "Climate"}'])
def test_get_news_by_topic_rejects_malformed_body(make_client, body):
    response = make_client().post(
        "/get-news-by-topic", content=body, headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request body"}


@pytest.mark.parametrize("force, rescored", [("maybe", False), ("", False), ("0", False), ("true", True), ("1", True)])
def test_rank_biases_reads_force_leniently(make_client, repository, object_store, force, rescored):
    object_store.objects["health:1.txt"] = "Title: A\n\nDescription: ok\n"
    repository.add(title="A", link="https://news.test/a", tags="health", bias=0.9, s3_url="https://objects.test/health:1.txt")

    response = make_client().get("/rank-biases", params={"force": force})

    assert response.status_code == 200
    assert response.json()["updated"] == (1 if rescored else 0)
    expected = 0.55 if rescored else 0.9
    assert repository.rows["https://news.test/a"].bias == pytest.approx(expected)
