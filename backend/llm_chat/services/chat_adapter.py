from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Literal, Optional, Protocol

import anyio
from fastapi.responses import JSONResponse, Response, StreamingResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from llm_chat.errors import ChatError, InvalidChatRequest
from llm_chat.models.chat import ChatMessage, ChatRequest, ErrorResponse
from llm_chat.services.upstream import aclose
from llm_chat.utils.logger import log_chat_call

logger = logging.getLogger(__name__)

Backend = Literal["gemini", "workers-ai"]

STREAM_HEADERS = {
    "content-type": "text/event-stream",
    "cache-control": "no-cache",
    "connection": "keep-alive",
}


class StreamGenerator(Protocol):
    async def generate(
        self,
        messages: List[ChatMessage],
        params: Optional[Dict[str, Any]] = None,
    ) -> AsyncIterator[Any]:
        ...


def parse_chat_request(body: bytes) -> ChatRequest:
    try:
        payload = json.loads(body)
        return ChatRequest.model_validate(payload)
    except (ValueError, ValidationError) as exc:
        raise InvalidChatRequest(str(exc)) from exc


def ensure_system_prompt(messages: List[ChatMessage], system_prompt: str) -> List[ChatMessage]:
    """
    Put the default system message first when the conversation has none.
    Conversations that already carry a system message come back unchanged.
    """
    if any(msg.role == "system" for msg in messages):
        return list(messages)
    return [ChatMessage(role="system", content=system_prompt), *messages]


def select_backend(model: Optional[str]) -> Backend:
    return "gemini" if model == "gemini" else "workers-ai"


def error_response(status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse().model_dump())


class ChatAdapter:
    """
    Turns one POST /api/chat body into a streamed reply.

    This is the only place request failures are caught. Anything raised
    before the stream starts becomes a JSON error response; a failure after
    that just ends the stream early.
    """

    def __init__(
        self,
        generators: Dict[str, StreamGenerator],
        system_prompt: str,
        log_dir: Path,
    ) -> None:
        self.generators = generators
        self.system_prompt = system_prompt
        self.log_dir = log_dir

    async def handle(self, body: bytes) -> Response:
        request: Optional[ChatRequest] = None
        backend: Optional[Backend] = None
        try:
            request = parse_chat_request(body)
            messages = ensure_system_prompt(request.messages, self.system_prompt)
            backend = select_backend(request.model)
            stream = await self.generators[backend].generate(
                messages, request.sampling_params()
            )
        except ChatError as exc:
            logger.error("Error processing chat request (%s): %s", type(exc).__name__, exc)
            await self._log(
                request, backend, "error", exc.status_code, {"error_type": type(exc).__name__}
            )
            return error_response(exc.status_code)
        except Exception as exc:
            logger.exception("Error processing chat request")
            await self._log(request, backend, "error", 500, {"error_type": type(exc).__name__})
            return error_response(500)

        return StreamingResponse(
            self._relay(stream, request, backend),
            status_code=200,
            headers=STREAM_HEADERS,
        )

    async def _relay(
        self,
        stream: AsyncIterator[Any],
        request: ChatRequest,
        backend: str,
    ) -> AsyncIterator[Any]:
        chunks = 0
        # stays "disconnected" if the consumer stops iterating early
        outcome = "disconnected"
        extra: Dict[str, Any] = {}
        try:
            async for chunk in stream:
                chunks += 1
                yield chunk
            outcome = "streamed"
            logger.info("%s stream completed (%d chunks)", backend, chunks)
        except Exception as exc:
            outcome = "aborted"
            extra["error_type"] = type(exc).__name__
            logger.exception("%s stream aborted after %d chunks", backend, chunks)
            raise
        finally:
            extra["chunks"] = chunks
            with anyio.CancelScope(shield=True):
                # Stop reading upstream once the client is gone
                await aclose(stream)
                await self._log(request, backend, outcome, 200, extra)

    async def _log(
        self,
        request: Optional[ChatRequest],
        backend: Optional[str],
        outcome: str,
        status_code: int,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        await run_in_threadpool(
            log_chat_call,
            self.log_dir,
            model=request.model if request else None,
            backend=backend,
            message_count=len(request.messages) if request else 0,
            outcome=outcome,
            status_code=status_code,
            extra=extra or None,
        )
