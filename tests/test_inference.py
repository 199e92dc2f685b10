"""Tests for the inference client and response parsing."""

import json

import httpx
import pytest

from newsbias.errors import InferenceError, ParseError
from newsbias.scoring import BiasInferenceClient, extract_score, parse_bias_score
from newsbias.scoring.inference import response_snippet


@pytest.mark.parametrize(
    "body, expected",
    [
        ('{"bias": 0.42}', 0.42),
        ('{"label": {"score": "0.42"}}', 0.42),
        ("0.42", 0.42),
        ('[{"label": "left", "score": 0.91}]', 0.91),
        ('{"score": 0.1, "bias": 0.7}', 0.7),
        ('  -0.25\n', -0.25),
    ],
)
def test_parse_bias_score(body, expected):
    assert parse_bias_score(body) == pytest.approx(expected)


@pytest.mark.parametrize("body", ["", "   ", "not a number", '{"label": "left"}', '{"ok": true}'])
def test_parse_bias_score_rejects_bodies_without_score(body):
    with pytest.raises(ParseError):
        parse_bias_score(body)


def test_extract_score_ignores_booleans():
    assert extract_score({"flag": True}) == (None, False)
    assert extract_score([False, 3]) == (3.0, True)


def test_response_snippet():
    assert response_snippet("   ") == "<empty>"
    assert response_snippet("x" * 250) == "x" * 200 + "..."


@pytest.mark.asyncio
async def test_score_posts_text_with_headers():
    seen = {"requests": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["requests"] += 1
        seen["headers"] = request.headers
        seen["payload"] = json.loads(request.content)
        return httpx.Response(200, json=[{"label": "bias", "score": 0.37}])

    client = BiasInferenceClient(
        "https://inference.test/model",
        "hf-token",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )

    score = await client.score("Some description")

    assert score == pytest.approx(0.37)
    assert seen["requests"] == 1
    assert seen["payload"] == {"inputs": "Some description", "parameters": {}}
    assert seen["headers"]["authorization"] == "Bearer hf-token"
    assert seen["headers"]["x-wait-for-model"] == "true"
    assert seen["headers"]["accept"] == "application/json"


@pytest.mark.asyncio
async def test_non_2xx_raises_with_status():
    client = BiasInferenceClient(
        "https://inference.test/model",
        "hf-token",
        client=httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(503, text="loading"))),
    )

    with pytest.raises(InferenceError) as exc_info:
        await client.score("text")

    assert exc_info.value.status_code == 503
    assert exc_info.value.retryable
    assert "status 503: loading" in str(exc_info.value)


@pytest.mark.asyncio
async def test_transport_error_is_not_retryable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    client = BiasInferenceClient(
        "https://inference.test/model",
        "hf-token",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )

    with pytest.raises(InferenceError) as exc_info:
        await client.score("text")

    assert exc_info.value.status_code is None
    assert not exc_info.value.retryable


def test_retryable_only_for_server_errors():
    assert InferenceError("x", status_code=500).retryable
    assert InferenceError("x", status_code=599).retryable
    assert not InferenceError("x", status_code=429).retryable
    assert not InferenceError("x", status_code=400).retryable
    assert not ParseError("x").retryable
