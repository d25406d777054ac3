"""One chat turn: user message in, assistant message out.

The transcript only ever receives the user message and one final
assistant message. Every failure becomes an error-text assistant message.
"""

import logging
from collections.abc import Callable
from contextlib import aclosing

import httpx
from pydantic import BaseModel

from relaychat.client.composer import DisplayComposer, split_display_text
from relaychat.client.consumer import RelayClient, parse_payload
from relaychat.client.store import ConversationStore
from relaychat.errors import EmptyResponse, RelayChatError
from relaychat.models.schemas import ChatMessage, Conversation

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a helpful and friendly AI assistant."
EMPTY_RESPONSE_MESSAGE = "No response from AI"
INTERRUPTED_MESSAGE = "Response interrupted"
ERROR_TEMPLATE = "Sorry, I encountered an error: {message}"


class TurnResult(BaseModel):
    """Outcome of a turn.

    Attributes:
        text: Text stored as the assistant message.
        error: Failure message, or None when the turn succeeded.
    """

    text: str
    error: str | None = None


def build_context(conversation: Conversation, user_text: str) -> list[ChatMessage]:
    """Build the upstream context for a new user message.

    Reasoning spans stored with earlier assistant replies are not sent back.
    """
    context = [ChatMessage(role="system", content=SYSTEM_PROMPT)]
    for message in conversation.messages:
        if message.is_bot:
            _, reply = split_display_text(message.text)
            context.append(ChatMessage(role="assistant", content=reply))
        else:
            context.append(ChatMessage(role="user", content=message.text))
    context.append(ChatMessage(role="user", content=user_text))
    return context


class ChatTurn:
    """Runs turns against the relay and records them in the store."""

    def __init__(self, client: RelayClient, store: ConversationStore, model: str | None = None) -> None:
        self._client = client
        self._store = store
        self._model = model

    async def run(
        self,
        conversation_id: str,
        user_text: str,
        on_update: Callable[[str], None] | None = None,
    ) -> TurnResult:
        """Send a message and stream the reply.

        Args:
            conversation_id: Conversation to append to.
            user_text: The user's message.
            on_update: Called with the recomposed display text after every
                token, for progressive rendering.

        Returns:
            TurnResult with the stored assistant text.

        Raises:
            ValueError: If the message is blank.
            KeyError: If the conversation does not exist.
            asyncio.CancelledError: Re-raised after recording an interrupted reply.
        """
        if not user_text.strip():
            raise ValueError("Message must not be empty")

        conversation = self._store.get(conversation_id)
        context = build_context(conversation, user_text)
        self._store.append_message(conversation_id, user_text, is_bot=False)

        composer = DisplayComposer()
        try:
            async with aclosing(self._client.stream_chat(context, self._model)) as payloads:
                async for payload in payloads:
                    text = composer.add(parse_payload(payload))
                    if on_update is not None:
                        on_update(text)
            if composer.token_count == 0:
                raise EmptyResponse(EMPTY_RESPONSE_MESSAGE)
        except (RelayChatError, httpx.HTTPError) as e:
            message = e.message if isinstance(e, RelayChatError) else str(e) or type(e).__name__
            logger.warning(f"Turn failed in {conversation_id}: {message}")
            text = ERROR_TEMPLATE.format(message=message)
            self._store.append_message(conversation_id, text, is_bot=True)
            return TurnResult(text=text, error=message)
        except BaseException:
            # cancellation included: the turn still ends with one assistant message
            logger.warning(f"Turn interrupted in {conversation_id}")
            self._store.append_message(
                conversation_id, ERROR_TEMPLATE.format(message=INTERRUPTED_MESSAGE), is_bot=True
            )
            raise

        self._store.append_message(conversation_id, composer.text, is_bot=True)
        logger.info(f"Turn complete in {conversation_id}: {composer.token_count} tokens")
        return TurnResult(text=composer.text)
