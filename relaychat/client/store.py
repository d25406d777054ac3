"""Conversation store with a pluggable key-value persistence hook.

Conversations are loaded once at startup and written back after every
mutation. The backend only needs string get/set semantics.
"""

import logging
import os
import uuid
from collections.abc import MutableMapping
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from relaychat.models.schemas import Conversation, Message

logger = logging.getLogger(__name__)

STORAGE_KEY = "chatbot-conversations"
GREETING = "Hello! I'm your AI assistant. How can I help you today?"
DEFAULT_TITLE = "New Chat"
TITLE_LENGTH = 30

_conversations_adapter = TypeAdapter(list[Conversation])


class KeyValueStore(Protocol):
    """Minimal persistence interface."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class InMemoryKeyValueStore:
    """Process-local backend, mostly for tests."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


class MappingKeyValueStore:
    """Adapts any mutable mapping, such as NiceGUI's ``app.storage.user``."""

    def __init__(self, mapping: MutableMapping[str, Any]) -> None:
        self._mapping = mapping

    def get(self, key: str) -> str | None:
        value = self._mapping.get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        self._mapping[key] = value


class JsonFileKeyValueStore:
    """Backend keeping one file per key in a directory."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self._root / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)


def select_backend(user_storage: MutableMapping[str, Any]) -> KeyValueStore:
    """Pick the persistence backend for the chat page.

    ``RELAYCHAT_STORAGE_DIR`` switches to one JSON file per key in that
    directory, shared by every browser. Otherwise conversations live in the
    per-user mapping.
    """
    storage_dir = os.getenv("RELAYCHAT_STORAGE_DIR")
    if storage_dir:
        logger.info(f"Persisting conversations under {storage_dir}")
        return JsonFileKeyValueStore(storage_dir)
    return MappingKeyValueStore(user_storage)


def make_title(first_message: str) -> str:
    """Title derived from the first user message."""
    if len(first_message) > TITLE_LENGTH:
        return first_message[:TITLE_LENGTH] + "..."
    return first_message


class ConversationStore:
    """Ordered collection of conversations, newest first.

    Mutations are limited to creating, appending messages and deleting;
    each one is persisted immediately.
    """

    def __init__(self, backend: KeyValueStore, key: str = STORAGE_KEY) -> None:
        self._backend = backend
        self._key = key
        self._conversations: list[Conversation] = []

    @property
    def conversations(self) -> list[Conversation]:
        return list(self._conversations)

    def load(self) -> None:
        """Read conversations from the backend.

        A missing or unreadable payload leaves the store empty.
        """
        raw = self._backend.get(self._key)
        if not raw:
            self._conversations = []
            return
        try:
            self._conversations = _conversations_adapter.validate_json(raw)
        except PydanticValidationError as e:
            logger.warning(f"Discarding unreadable conversations ({e.error_count()} errors)")
            self._conversations = []
            return
        logger.info(f"Loaded {len(self._conversations)} conversations")

    def save(self) -> None:
        self._backend.set(self._key, _conversations_adapter.dump_json(self._conversations).decode())

    def create(self) -> Conversation:
        """Create a conversation seeded with the assistant greeting."""
        conversation = Conversation(
            id=uuid.uuid4().hex,
            title=DEFAULT_TITLE,
            messages=[Message(id=1, text=GREETING, is_bot=True)],
        )
        self._conversations.insert(0, conversation)
        self.save()
        return conversation

    def get(self, conversation_id: str) -> Conversation:
        """Look up a conversation.

        Raises:
            KeyError: If the id is unknown.
        """
        for conversation in self._conversations:
            if conversation.id == conversation_id:
                return conversation
        raise KeyError(conversation_id)

    def append_message(self, conversation_id: str, text: str, is_bot: bool) -> Message:
        """Append a message and persist.

        The first user message also becomes the conversation title.
        """
        conversation = self.get(conversation_id)
        if not is_bot and not any(not m.is_bot for m in conversation.messages):
            conversation.title = make_title(text)

        next_id = max((m.id for m in conversation.messages), default=0) + 1
        message = Message(id=next_id, text=text, is_bot=is_bot)
        conversation.messages.append(message)
        conversation.updated_at = datetime.now()
        self.save()
        return message

    def delete(self, conversation_id: str) -> str:
        """Delete a conversation and persist.

        Returns:
            Id of the conversation that should become current: the first
            remaining one, or a newly created one when none remain.
        """
        conversation = self.get(conversation_id)
        self._conversations.remove(conversation)
        if not self._conversations:
            return self.create().id
        self.save()
        return self._conversations[0].id
