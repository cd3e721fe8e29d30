import json

import httpx
import pytest

from backend.src.services.embedding import (
    EmbeddingError,
    EmbeddingService,
    preprocess_query,
    preprocess_text,
)


@pytest.fixture
def configured(app_env):
    return app_env.model_copy(update={"openai_api_key": "sk-test"})


def _service(config, handler) -> EmbeddingService:
    return EmbeddingService(config, transport=httpx.MockTransport(handler))


def test_preprocess_text_collapses_whitespace_and_caps_length():
    assert preprocess_text("  hello \n\t world  ") == "hello world"
    assert len(preprocess_text("a" * 9000)) == 8000
    assert preprocess_text(None) == ""


@pytest.mark.parametrize(
    "query,expected",
    [
        ("Find times I felt calm?", "times i felt calm"),
        ("show   my gratitude!!", "my gratitude"),
        ("Grief.", "grief"),
    ],
)
def test_preprocess_query(query, expected):
    assert preprocess_query(query) == expected


@pytest.mark.asyncio
async def test_unconfigured_service_returns_none(app_env):
    def handler(request):
        raise AssertionError("no request expected")

    service = _service(app_env, handler)

    assert not service.is_configured()
    assert await service.embed("anything") is None


@pytest.mark.asyncio
async def test_embed_posts_to_embeddings_endpoint(configured):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={"data": [{"embedding": [0.1, 0.2, 0.3]}], "usage": {"total_tokens": 4}},
        )

    vector = await _service(configured, handler).embed("  a calm   morning ")

    assert vector == [0.1, 0.2, 0.3]
    assert seen["url"] == "https://api.openai.com/v1/embeddings"
    assert seen["auth"] == "Bearer sk-test"
    assert seen["body"]["input"] == "a calm morning"
    assert seen["body"]["model"] == "text-embedding-3-small"


@pytest.mark.asyncio
async def test_blank_text_skips_the_request(configured):
    def handler(request):
        raise AssertionError("no request expected")

    assert await _service(configured, handler).embed("   ") is None


@pytest.mark.asyncio
async def test_rate_limit_raises_with_retry_after(configured):
    def handler(request):
        return httpx.Response(429, headers={"Retry-After": "12"})

    with pytest.raises(EmbeddingError, match="Retry after 12 seconds"):
        await _service(configured, handler).embed("text")


@pytest.mark.asyncio
async def test_server_error_raises(configured):
    def handler(request):
        return httpx.Response(500, text="boom")

    with pytest.raises(EmbeddingError, match="500"):
        await _service(configured, handler).embed("text")


@pytest.mark.asyncio
async def test_malformed_payload_raises(configured):
    def handler(request):
        return httpx.Response(200, json={"data": [{"embedding": ["x"]}]})

    with pytest.raises(EmbeddingError, match="Invalid embedding format"):
        await _service(configured, handler).embed("text")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="oops"),
        httpx.Response(200, json={"data": ["flat"]}),
        httpx.Response(200, json=[1.0, 2.0]),
    ],
)
async def test_unusable_bodies_raise_embedding_error(configured, response):
    with pytest.raises(EmbeddingError):
        await _service(configured, lambda request: response).embed("text")


@pytest.mark.asyncio
async def test_network_error_is_wrapped(configured):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(EmbeddingError, match="Network error"):
        await _service(configured, handler).embed("text")


@pytest.mark.asyncio
async def test_embed_query_preprocesses(configured):
    inputs = []

    def handler(request):
        inputs.append(json.loads(request.content)["input"])
        return httpx.Response(200, json={"data": [{"embedding": [1.0]}]})

    await _service(configured, handler).embed_query("Search moments of joy?")

    assert inputs == ["moments of joy"]
