from __future__ import annotations

import logging
from typing import AsyncIterator

import httpx

from llm_chat.errors import UpstreamProtocolError, UpstreamTimeout, UpstreamUnavailable

logger = logging.getLogger(__name__)

NO_BODY_STATUSES = {204, 205, 304}


async def open_stream(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    provider: str,
    headers: dict[str, str] | None = None,
    json: object = None,
) -> httpx.Response:
    """
    Send a request and return the response with its body still unread.
    Everything that can go wrong before the first body byte is raised here
    as a typed error, so callers fail before streaming starts.
    """
    request = client.build_request(method, url, headers=headers, json=json)
    try:
        response = await client.send(request, stream=True)
    except httpx.TimeoutException as exc:
        raise UpstreamTimeout(f"{provider} timed out: {exc}") from exc
    except httpx.TransportError as exc:
        raise UpstreamUnavailable(f"{provider} unreachable: {exc}") from exc

    if response.is_error:
        await response.aread()
        await response.aclose()
        logger.warning(
            "%s returned %s: %s", provider, response.status_code, response.text[:500]
        )
        raise UpstreamProtocolError(f"{provider} returned status {response.status_code}")

    if (
        response.status_code in NO_BODY_STATUSES
        or response.headers.get("content-length") == "0"
    ):
        await response.aclose()
        raise UpstreamProtocolError(f"Failed to get reader from {provider} response")

    return response


async def iter_body(response: httpx.Response, provider: str) -> AsyncIterator[bytes]:
    """Yield body chunks in arrival order, closing the response however iteration ends."""
    try:
        async for chunk in response.aiter_bytes():
            yield chunk
    finally:
        await response.aclose()
        logger.debug("%s response closed", provider)


async def aclose(stream: object) -> None:
    close = getattr(stream, "aclose", None)
    if close is not None:
        await close()
