"""Relay writer: canonical tokens to the outbound event stream.

Every token becomes one event whose payload is tagged with the token kind,
so the client can route it without parsing JSON. The stream always ends
with the ``[DONE]`` sentinel, including after an error.
"""

import json
import logging
from collections.abc import AsyncGenerator, AsyncIterable, Awaitable, Callable

import httpx

from relaychat.errors import RelayChatError
from relaychat.models.schemas import CanonicalToken, ErrorPayload
from relaychat.relay.framing import DONE_SENTINEL, encode_event

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


def encode_token(token: CanonicalToken) -> str:
    """Encode a token as ``data: <kind>:<text>`` event text."""
    return encode_event(f"{token.kind.value}:{token.text}")


def encode_error(message: str) -> str:
    """Encode an in-band ``{"error": ...}`` event."""
    return encode_event(json.dumps(ErrorPayload(error=message).model_dump()))


def encode_done() -> str:
    return encode_event(DONE_SENTINEL)


class RelayWriter:
    """Streams canonical tokens as event-stream text.

    The writer is consumed by a streaming HTTP response; each yielded string
    is sent to the client as its own chunk.
    """

    def __init__(self, on_close: Callable[[], Awaitable[None]] | None = None) -> None:
        """Initialize the writer.

        Args:
            on_close: Awaited once the stream ends, however it ends. Used to
                release the upstream response.
        """
        self._on_close = on_close
        self.tokens_written = 0

    async def stream(self, tokens: AsyncIterable[CanonicalToken]) -> AsyncGenerator[str]:
        """Yield one event per token, then the sentinel.

        Errors raised by the token source after streaming has started are
        delivered as an error event, since the status line is already sent.
        """
        error: str | None = None
        try:
            try:
                async for token in tokens:
                    self.tokens_written += 1
                    yield encode_token(token)
            except RelayChatError as e:
                logger.warning(f"Upstream error during relay: {e.message}")
                error = e.message
            except httpx.HTTPError as e:
                logger.warning(f"Upstream connection lost during relay: {e!r}")
                error = f"Upstream connection lost: {e}"
            except Exception:
                logger.exception("Relay failed")
                error = INTERNAL_ERROR_MESSAGE

            if error is not None:
                yield encode_error(error)
            yield encode_done()
            logger.info(
                f"Relay finished: tokens={self.tokens_written} error={error is not None}"
            )
        finally:
            if self._on_close is not None:
                await self._on_close()
