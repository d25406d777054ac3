"""Pydantic models for the relay protocol and the conversation store.

Provides type safety and validation for everything that crosses a boundary.

Models:
    - ChatMessage: Message in the context sent upstream
    - ChatRequest: Incoming relay request payload
    - UpstreamFrame: Frame recovered from the provider stream
    - CanonicalToken: Normalized (kind, text) unit
    - ErrorPayload: JSON error body
    - Message, Conversation: Persisted transcript
"""

from relaychat.models.schemas import (
    CanonicalToken,
    ChatMessage,
    ChatRequest,
    Conversation,
    ErrorPayload,
    FrameKind,
    Message,
    TokenKind,
    UpstreamFrame,
)

__all__ = [
    "CanonicalToken",
    "ChatMessage",
    "ChatRequest",
    "Conversation",
    "ErrorPayload",
    "FrameKind",
    "Message",
    "TokenKind",
    "UpstreamFrame",
]
