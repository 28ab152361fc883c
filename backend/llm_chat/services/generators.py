"""
Backend stream generators.

Both generators share one shape: ``await generate(messages, params)`` does
all upstream work that can fail up front and returns an async iterator of
chunks to hand to the HTTP response.
"""

from __future__ import annotations

import codecs
from typing import Any, AsyncIterable, AsyncIterator, Dict, List, Protocol

import httpx

from llm_chat.errors import BackendNotConfigured
from llm_chat.models.chat import ChatMessage
from llm_chat.services.upstream import aclose, iter_body, open_stream


class InferenceClient(Protocol):
    async def run(self, model_id: str, inputs: Dict[str, Any]) -> AsyncIterator[bytes]:
        ...


class WorkersAIGenerator:
    """Primary backend: shapes parameters and passes the client's stream through untouched."""

    def __init__(self, inference_client: InferenceClient, model_id: str) -> None:
        self.inference_client = inference_client
        self.model_id = model_id

    async def generate(
        self,
        messages: List[ChatMessage],
        params: Dict[str, Any] | None = None,
    ) -> AsyncIterator[bytes]:
        inputs: Dict[str, Any] = {
            "messages": [m.model_dump() for m in messages],
            "stream": True,
        }
        inputs.update(params or {})
        return await self.inference_client.run(self.model_id, inputs)


# Gemini spells the sampling knobs differently
GEMINI_PARAM_NAMES = {
    "temperature": "temperature",
    "top_k": "topK",
    "top_p": "topP",
}


def build_prompt(messages: List[ChatMessage]) -> str:
    # Roles are dropped: Gemini gets one flat prompt, not a turn history.
    return "\n".join(msg.content for msg in messages)


def build_gemini_request(prompt: str, params: Dict[str, Any] | None = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
    generation_config = {
        GEMINI_PARAM_NAMES[name]: value
        for name, value in (params or {}).items()
        if name in GEMINI_PARAM_NAMES
    }
    if generation_config:
        body["generationConfig"] = generation_config
    return body


def format_sse(text: str) -> str:
    return f"data: {text}\n\n"


async def iter_sse_frames(chunks: AsyncIterable[bytes]) -> AsyncIterator[str]:
    """
    Wrap each upstream chunk as one Server-Sent Events frame.

    Decoding is incremental: a UTF-8 sequence split across two chunks is
    held until it is complete, so a chunk holding only part of a character
    produces no frame. Undecodable bytes become U+FFFD.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    try:
        async for chunk in chunks:
            text = decoder.decode(chunk)
            if text:
                yield format_sse(text)
        tail = decoder.decode(b"", final=True)
        if tail:
            yield format_sse(tail)
    finally:
        await aclose(chunks)


class GeminiGenerator:
    """Secondary backend: one generateContent call, body re-framed as SSE."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None,
        api_key: str | None,
        endpoint: str,
    ) -> None:
        self.http_client = http_client
        self.api_key = api_key
        self.endpoint = endpoint

    async def generate(
        self,
        messages: List[ChatMessage],
        params: Dict[str, Any] | None = None,
    ) -> AsyncIterator[str]:
        if not self.api_key:
            raise BackendNotConfigured("GEMINI_API_KEY is not set")

        prompt = build_prompt(messages)
        response = await open_stream(
            self.http_client,
            "POST",
            self.endpoint,
            provider="Gemini API",
            headers={
                "Content-Type": "application/json",
                "X-goog-api-key": self.api_key,
            },
            json=build_gemini_request(prompt, params),
        )
        return iter_sse_frames(iter_body(response, "Gemini API"))
