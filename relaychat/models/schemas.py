from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class TokenKind(str, Enum):
    """Channel a canonical token belongs to."""

    REASONING = "reasoning"
    CONTENT = "content"


class FrameKind(str, Enum):
    """Kinds of frames recovered from the upstream event stream."""

    DATA = "data"
    DONE = "done"
    ERROR = "error"


class ChatMessage(BaseModel):
    """A single message in the context sent upstream.

    Attributes:
        role: The speaker identifier (system, user, or assistant).
        content: The message text.
    """

    model_config = ConfigDict(frozen=True)

    role: Literal["system", "user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """Request payload for the relay endpoint.

    Attributes:
        messages: Ordered conversation context.
        model: Optional upstream model id overriding the configured default.
    """

    messages: list[ChatMessage]
    model: str | None = None


class CanonicalToken(BaseModel):
    """Provider-independent unit of streamed text.

    Attributes:
        kind: Whether the text is reasoning or final answer content.
        text: The incremental text.
    """

    model_config = ConfigDict(frozen=True)

    kind: TokenKind
    text: str


class UpstreamFrame(BaseModel):
    """A logical event recovered from the provider byte stream.

    Attributes:
        kind: data, done (end-of-stream sentinel) or error.
        data: Joined data payload for data frames, message for error frames.
        status_code: Provider HTTP status for error frames.
    """

    model_config = ConfigDict(frozen=True)

    kind: FrameKind
    data: str = ""
    status_code: int | None = None


class ErrorPayload(BaseModel):
    """JSON error body used both as a response and as an in-band event."""

    error: str


class Message(BaseModel):
    """A message stored in a conversation transcript.

    Attributes:
        id: Identifier unique within the conversation.
        text: Display text. Assistant text may carry a reasoning span.
        is_bot: True for assistant messages.
        timestamp: When the message was appended.
    """

    id: int
    text: str
    is_bot: bool
    timestamp: datetime = Field(default_factory=datetime.now)


class Conversation(BaseModel):
    """A persisted conversation with its transcript and metadata."""

    id: str
    title: str = "New Chat"
    messages: list[Message] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
