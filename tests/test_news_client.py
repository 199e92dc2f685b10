"""Tests for the content provider client."""

import httpx
import pytest

from newsbias.errors import FetchError
from newsbias.ingestion import NewsSourceClient
from newsbias.ingestion.models import DESCRIPTION_PLACEHOLDER, SourceArticle


def _client(handler, **kwargs) -> NewsSourceClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return NewsSourceClient(api_key="secret", base_url="https://provider.test/search", client=http, **kwargs)


@pytest.mark.asyncio
async def test_fetch_sends_query_and_credential():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        return httpx.Response(200, json={"status": "ok", "articles": [{"title": "A", "url": "https://a.test"}]})

    items = await _client(handler, page="next-page").fetch("Climate")

    assert seen == {"q": "Climate", "apikey": "secret", "page": "next-page"}
    assert [item.article_url() for item in items] == ["https://a.test"]


@pytest.mark.asyncio
async def test_fetch_accepts_results_shape():
    payload = {
        "status": "success",
        "results": [
            {
                "title": "B",
                "link": "https://b.test",
                "image_url": "https://b.test/img.png",
                "creator": [None, "  ", "Jane Doe"],
            }
        ],
    }
    items = await _client(lambda request: httpx.Response(200, json=payload)).fetch("Economy")

    assert len(items) == 1
    assert items[0].article_url() == "https://b.test"
    assert items[0].image_link() == "https://b.test/img.png"
    assert items[0].primary_author() == "Jane Doe"


@pytest.mark.asyncio
async def test_missing_status_counts_as_success():
    items = await _client(lambda request: httpx.Response(200, json={"articles": []})).fetch("Health")
    assert items == []


@pytest.mark.asyncio
async def test_provider_error_status_fails():
    handler = lambda request: httpx.Response(200, json={"status": "error", "results": []})

    with pytest.raises(FetchError, match="status 'error'"):
        await _client(handler).fetch("Health")


@pytest.mark.asyncio
async def test_non_2xx_fails():
    handler = lambda request: httpx.Response(429, json={"status": "error"})

    with pytest.raises(FetchError, match="unexpected status 429"):
        await _client(handler).fetch("Health")


@pytest.mark.asyncio
async def test_undecodable_body_fails():
    handler = lambda request: httpx.Response(200, text="<html>maintenance</html>")

    with pytest.raises(FetchError, match="invalid response"):
        await _client(handler).fetch("Health")


@pytest.mark.asyncio
async def test_transport_error_fails():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(FetchError, match="request to news provider failed"):
        await _client(handler).fetch("Health")


def test_render_text_uses_content_then_placeholder():
    with_content = SourceArticle(title=" T ", content="Body text")
    bare = SourceArticle(title="T")

    assert with_content.render_text() == "Title: T\n\nDescription: Body text\n"
    assert bare.render_text() == f"Title: T\n\nDescription: {DESCRIPTION_PLACEHOLDER}\n"


def test_url_preferred_over_link():
    article = SourceArticle.model_validate({"url": "https://new.test", "link": "https://old.test"})
    assert article.article_url() == "https://new.test"
