"""Upstream stream reader.

Turns the provider's response body into a lazy sequence of frames,
tolerating network reads that split lines, frames or UTF-8 sequences.
"""

import json
import logging
from collections.abc import AsyncGenerator, AsyncIterable
from typing import Any

import httpx

from relaychat.errors import UpstreamUnavailable
from relaychat.models.schemas import FrameKind, UpstreamFrame
from relaychat.relay.framing import DONE_SENTINEL, EventStreamDecoder, extract_data

logger = logging.getLogger(__name__)

MAX_ERROR_TEXT = 500


def error_message_from_json(data: Any) -> str | None:
    """Pull a human readable message out of a provider error body.

    Understands ``{"error": {"message": ...}}``, ``{"error": "..."}`` and
    ``{"message": ...}``.
    """
    if not isinstance(data, dict):
        return None
    error = data.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message:
            return message
    if isinstance(error, str) and error:
        return error
    message = data.get("message")
    if isinstance(message, str) and message:
        return message
    return None


def extract_error_message(raw: bytes, status_code: int) -> str:
    """Describe a non-success provider response."""
    text = raw.decode("utf-8", errors="replace").strip()
    try:
        data = json.loads(text)
    except ValueError:
        data = None

    message = error_message_from_json(data)
    if message:
        return message
    if text and data is None:
        return text[:MAX_ERROR_TEXT]
    return f"Upstream request failed with status {status_code}"


class UpstreamStreamReader:
    """Single-pass reader over a provider response body.

    Attributes:
        status_code: HTTP status returned by the provider.
    """

    def __init__(self, status_code: int, body: AsyncIterable[bytes] | None) -> None:
        """Initialize the reader.

        Args:
            status_code: HTTP status returned by the provider.
            body: Byte chunks of the response body, or None when the response
                has no body.
        """
        self.status_code = status_code
        self._body = body
        self._started = False

    @classmethod
    def from_response(cls, response: httpx.Response) -> "UpstreamStreamReader":
        """Wrap a streaming httpx response without reading it."""
        no_body = response.status_code == 204 or response.headers.get("content-length") == "0"
        return cls(response.status_code, None if no_body else response.aiter_bytes())

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def has_body(self) -> bool:
        return self._body is not None

    async def frames(self) -> AsyncGenerator[UpstreamFrame]:
        """Yield frames until the end-of-stream sentinel or end of body.

        A non-success response yields exactly one error frame carrying the
        provider's message.

        Raises:
            UpstreamUnavailable: If a successful response has no body.
            RuntimeError: If the stream is read a second time.
        """
        if self._started:
            raise RuntimeError("Upstream stream can only be read once")
        self._started = True

        if not self.is_success:
            raw = b"".join([chunk async for chunk in self._body]) if self._body else b""
            message = extract_error_message(raw, self.status_code)
            logger.warning(f"Upstream returned {self.status_code}: {message}")
            yield UpstreamFrame(kind=FrameKind.ERROR, data=message, status_code=self.status_code)
            return

        if self._body is None:
            raise UpstreamUnavailable("No response body from upstream provider.")

        async for lines in self._frame_lines():
            data = extract_data(lines)
            if data is None:
                logger.debug(f"Skipping frame without data: {lines!r}")
                continue
            if data.strip() == DONE_SENTINEL:
                yield UpstreamFrame(kind=FrameKind.DONE)
                return
            yield UpstreamFrame(kind=FrameKind.DATA, data=data)

    async def _frame_lines(self) -> AsyncGenerator[list[str]]:
        decoder = EventStreamDecoder(normalize_crlf=True)
        async for chunk in self._body:
            for lines in decoder.feed(chunk):
                yield lines
        for lines in decoder.finish():
            yield lines
