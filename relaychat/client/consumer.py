"""Client stream consumer for the relay endpoint.

Reads the relay's event stream incrementally and hands payloads to the
caller one at a time through an async generator.
"""

import json
import logging
import os
from collections.abc import AsyncGenerator, AsyncIterable, AsyncIterator
from contextlib import asynccontextmanager

import httpx

from relaychat.errors import NoResponseBody, RequestFailed, UpstreamError
from relaychat.models.schemas import CanonicalToken, ChatMessage, TokenKind
from relaychat.relay.framing import DONE_SENTINEL, EventStreamDecoder, extract_data
from relaychat.relay.reader import error_message_from_json

logger = logging.getLogger(__name__)

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")
CHAT_PATH = "/api/chat"

STATUS_MESSAGES = {
    429: "Rate limit exceeded. Please wait a moment before sending another message.",
    401: "Invalid API key. Please check your OpenRouter API key.",
    402: "Insufficient credits. Please check your OpenRouter account.",
}


def describe_failure(status_code: int, detail: str | None = None) -> str:
    """User-facing message for a failed relay request."""
    if status_code in STATUS_MESSAGES:
        return STATUS_MESSAGES[status_code]
    message = f"API request failed with status {status_code}. Please try again."
    if detail:
        message = f"{message} ({detail})"
    return message


def parse_payload(payload: str) -> CanonicalToken:
    """Route a relay payload to its channel.

    Tagged payloads lose their tag. Untagged payloads are treated as content
    so older, non-tagging relays keep working.

    Raises:
        UpstreamError: If the payload is an in-band ``{"error": ...}`` event.
    """
    for kind in TokenKind:
        tag = f"{kind.value}:"
        if payload.startswith(tag):
            return CanonicalToken(kind=kind, text=payload[len(tag):])

    if payload.startswith("{"):
        try:
            data = json.loads(payload)
        except ValueError:
            data = None
        if isinstance(data, dict) and "error" in data:
            raise UpstreamError(error_message_from_json(data) or "Unknown relay error")

    return CanonicalToken(kind=TokenKind.CONTENT, text=payload)


async def iter_payloads(chunks: AsyncIterable[bytes]) -> AsyncGenerator[str]:
    """Decode event-stream bytes into payloads until the sentinel.

    Args:
        chunks: Body bytes, split at arbitrary boundaries.

    Yields:
        The data payload of every event, prefix stripped.
    """
    decoder = EventStreamDecoder()

    async def frames() -> AsyncIterator[list[str]]:
        async for chunk in chunks:
            for lines in decoder.feed(chunk):
                yield lines
        for lines in decoder.finish():
            yield lines

    async for lines in frames():
        payload = extract_data(lines)
        if payload is None:
            continue
        if payload == DONE_SENTINEL:
            return
        yield payload


def _error_detail(response: httpx.Response) -> str | None:
    try:
        return error_message_from_json(response.json())
    except ValueError:
        return response.text[:200] or None


class RelayClient:
    """HTTP client for the relay's streaming chat endpoint."""

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 120.0,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Relay server URL.
            http_client: Optional shared client. A new one is opened per
                request when omitted.
            timeout: Timeout for clients created here.
        """
        self._base_url = base_url.rstrip("/")
        self._http = http_client
        self._timeout = timeout

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http is not None:
            yield self._http
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            yield client

    async def stream_chat(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
    ) -> AsyncGenerator[str]:
        """Stream raw payloads for one turn.

        The generator is single-pass; closing it early closes the response.

        Args:
            messages: Conversation context.
            model: Optional upstream model override.

        Yields:
            Payload strings in arrival order, without the sentinel.

        Raises:
            RequestFailed: Non-success status or connection failure.
            NoResponseBody: The relay answered without a body.
        """
        body: dict[str, object] = {"messages": [m.model_dump() for m in messages]}
        if model:
            body["model"] = model

        async with self._client() as client:
            try:
                async with client.stream(
                    "POST",
                    f"{self._base_url}{CHAT_PATH}",
                    json=body,
                    headers={"Accept": "text/event-stream"},
                ) as response:
                    if not response.is_success:
                        await response.aread()
                        detail = _error_detail(response)
                        logger.warning(f"Relay returned {response.status_code}: {detail}")
                        raise RequestFailed(
                            describe_failure(response.status_code, detail),
                            response.status_code,
                        )
                    if response.status_code == 204 or response.headers.get("content-length") == "0":
                        raise NoResponseBody("No response body from relay.")

                    async for payload in iter_payloads(response.aiter_bytes()):
                        yield payload
            except httpx.RequestError as e:
                logger.warning(f"Relay connection failed: {e!r}")
                raise RequestFailed(f"Connection failed: {e}") from e
