"""Event normalizer: provider delta frames to canonical tokens.

Only the first choice of each chat-completion chunk is considered. Frames
that are not JSON delta events are provider noise and are dropped.
"""

import json
import logging
from collections.abc import AsyncGenerator, AsyncIterable
from typing import Any

from relaychat.errors import DecodeNoise, UpstreamError
from relaychat.models.schemas import CanonicalToken, FrameKind, TokenKind, UpstreamFrame
from relaychat.relay.reader import error_message_from_json

logger = logging.getLogger(__name__)


def parse_delta(payload: str) -> dict[str, Any]:
    """Return the first choice's delta from a frame payload.

    Raises:
        DecodeNoise: If the payload is not JSON or has no delta.
        UpstreamError: If the payload is an in-band provider error.
    """
    try:
        data = json.loads(payload)
    except ValueError as e:
        raise DecodeNoise("Frame payload is not JSON") from e

    if not isinstance(data, dict):
        raise DecodeNoise("Frame payload is not an object")

    if "error" in data:
        message = error_message_from_json(data) or "Upstream provider reported an error"
        raise UpstreamError(message)

    choices = data.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        raise DecodeNoise("Frame has no choices")

    delta = choices[0].get("delta")
    if not isinstance(delta, dict):
        raise DecodeNoise("Frame has no delta")
    return delta


def tokens_from_delta(delta: dict[str, Any]) -> list[CanonicalToken]:
    """Build the tokens for one delta, reasoning before content."""
    tokens: list[CanonicalToken] = []
    for kind in (TokenKind.REASONING, TokenKind.CONTENT):
        text = delta.get(kind.value)
        if isinstance(text, str) and text:
            tokens.append(CanonicalToken(kind=kind, text=text))
    return tokens


async def normalize(frames: AsyncIterable[UpstreamFrame]) -> AsyncGenerator[CanonicalToken]:
    """Convert upstream frames into canonical tokens in arrival order.

    Args:
        frames: Frames produced by the upstream reader.

    Yields:
        One reasoning and/or one content token per delta frame.

    Raises:
        UpstreamError: On an error frame or an in-band provider error.
    """
    noise = 0
    async for frame in frames:
        if frame.kind is FrameKind.DONE:
            break
        if frame.kind is FrameKind.ERROR:
            raise UpstreamError(frame.data, frame.status_code)

        try:
            delta = parse_delta(frame.data)
        except DecodeNoise as e:
            noise += 1
            logger.debug(f"Dropping frame ({e}): {frame.data[:80]!r}")
            continue

        for token in tokens_from_delta(delta):
            yield token

    if noise:
        logger.debug(f"Dropped {noise} non-delta frames")
