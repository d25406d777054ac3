"""Chat relay endpoint.

Validates the request, opens the upstream stream and relays it to the
client as tagged Server-Sent Events. Failures detected before streaming
are answered with a plain JSON error and a matching status.
"""

import logging

import httpx
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, Response, StreamingResponse
from pydantic import ValidationError as PydanticValidationError

from relaychat.errors import RelayChatError, UpstreamError, UpstreamUnavailable, ValidationError
from relaychat.models.schemas import ChatRequest, ErrorPayload
from relaychat.relay.config import RelayConfig, get_relay_config
from relaychat.relay.normalizer import normalize
from relaychat.relay.reader import UpstreamStreamReader
from relaychat.relay.upstream import UpstreamClient
from relaychat.relay.writer import RelayWriter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])

INVALID_MESSAGES = "Invalid messages format."
METHOD_NOT_ALLOWED = "Method not allowed"

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def get_upstream_client(config: RelayConfig = Depends(get_relay_config)) -> UpstreamClient:
    """Create the per-turn upstream client.

    Resolving the config here makes a missing credential fail the request
    before the body is even read.
    """
    return UpstreamClient(config)


async def _read_chat_request(request: Request) -> ChatRequest:
    """Parse and validate the relay request body.

    Raises:
        ValidationError: 400 if the body is not JSON or messages is not a
            list of chat messages.
    """
    try:
        body = await request.json()
    except ValueError as e:
        raise ValidationError(INVALID_MESSAGES) from e

    if not isinstance(body, dict) or not isinstance(body.get("messages"), list):
        raise ValidationError(INVALID_MESSAGES)

    try:
        return ChatRequest.model_validate(body)
    except PydanticValidationError as e:
        raise ValidationError(INVALID_MESSAGES) from e


@router.post("/chat")
async def chat(
    request: Request,
    upstream: UpstreamClient = Depends(get_upstream_client),
) -> Response:
    """Relay a chat completion as a Server-Sent Events stream.

    Args:
        request: The incoming request. Body is ``{messages, model?}``.
        upstream: Upstream client for this turn.

    Returns:
        StreamingResponse of ``data: reasoning:<text>`` and
        ``data: content:<text>`` events ending with ``data: [DONE]``.

    Raises:
        400: Invalid messages.
        500: Missing API key.
        502 or the provider's status: Upstream failure before streaming.
    """
    try:
        chat_request = await _read_chat_request(request)
        response = await upstream.open(
            chat_request.messages,
            chat_request.model,
            referer=request.headers.get("origin", ""),
        )
        reader = UpstreamStreamReader.from_response(response)
        if not reader.is_success:
            frame = await anext(reader.frames())
            raise UpstreamError(frame.data, reader.status_code)
        if not reader.has_body:
            raise UpstreamUnavailable("No response body from upstream provider.")
    except RelayChatError:
        await upstream.aclose()
        raise
    except httpx.HTTPError as e:
        await upstream.aclose()
        raise UpstreamUnavailable(f"Upstream connection lost: {e}") from e
    except Exception:
        await upstream.aclose()
        raise

    logger.info(f"Relaying stream for {len(chat_request.messages)} messages")
    writer = RelayWriter(on_close=upstream.aclose)
    return StreamingResponse(
        writer.stream(normalize(reader.frames())),
        media_type="text/event-stream",
        headers=STREAM_HEADERS,
    )


# The NiceGUI mount at "/" would otherwise answer non-POST methods.
@router.api_route(
    "/chat",
    methods=["GET", "HEAD", "PUT", "PATCH", "DELETE", "OPTIONS"],
    include_in_schema=False,
)
async def chat_method_not_allowed() -> JSONResponse:
    """Reject every method except POST."""
    return JSONResponse(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        content=ErrorPayload(error=METHOD_NOT_ALLOWED).model_dump(),
        headers={"Allow": "POST"},
    )
