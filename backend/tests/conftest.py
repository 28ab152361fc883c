"""Pytest fixtures: an app wired to fake upstreams."""

from typing import Any, Dict, List

import httpx
import pytest
from fastapi.testclient import TestClient

from llm_chat.config import Settings
from llm_chat.main import create_app

DEFAULT_PROMPT = "You are a test assistant."


class ChunkStream(httpx.AsyncByteStream):
    """Response body delivered as exactly these chunks."""

    def __init__(self, chunks: List[bytes]) -> None:
        self.chunks = chunks

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk


async def aiter_chunks(chunks):
    for chunk in chunks:
        yield chunk


class FakeInferenceClient:
    """Stands in for Workers AI; records every run() call."""

    def __init__(self, chunks: List[bytes] | None = None, error: Exception | None = None) -> None:
        self.chunks = chunks if chunks is not None else [b'data: {"response":"Hi"}\n\n']
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def run(self, model_id: str, inputs: Dict[str, Any]):
        self.calls.append({"model_id": model_id, "inputs": inputs})
        if self.error is not None:
            raise self.error
        return aiter_chunks(self.chunks)


class GeminiUpstream:
    """MockTransport handler playing the Gemini endpoint."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.chunks: List[bytes] = [b'{"candidates": []}']
        self.response: httpx.Response | None = None
        self.error: Exception | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.response is not None:
            return self.response
        return httpx.Response(200, stream=ChunkStream(self.chunks))


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def public_dir(tmp_path):
    public = tmp_path / "public"
    public.mkdir()
    (public / "index.html").write_text("<html>chat</html>", encoding="utf-8")
    (public / "chat.js").write_text("console.log('chat');", encoding="utf-8")
    return public


@pytest.fixture
def settings(tmp_path, public_dir):
    return Settings(
        gemini_api_key="gemini-test-key",
        cloudflare_account_id="acct-123",
        cloudflare_api_token="cf-token",
        system_prompt=DEFAULT_PROMPT,
        public_dir=public_dir,
        log_dir=tmp_path / "logs",
    )


@pytest.fixture
def inference_client():
    return FakeInferenceClient()


@pytest.fixture
def gemini_upstream():
    return GeminiUpstream()


@pytest.fixture
def app(settings, inference_client, gemini_upstream):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(gemini_upstream))
    return create_app(settings, http_client=http_client, inference_client=inference_client)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
