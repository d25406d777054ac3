"""Unit tests for the conversation store and its backends."""

from pathlib import Path

import pytest
import pytest_check as check

from relaychat.client.store import (
    GREETING,
    STORAGE_KEY,
    ConversationStore,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    MappingKeyValueStore,
    make_title,
    select_backend,
)


class TestConversationStore:
    """Tests for store mutations and persistence."""

    def test_create_seeds_greeting(self, memory_store: ConversationStore) -> None:
        conversation = memory_store.create()

        check.equal(conversation.title, "New Chat")
        check.equal(len(conversation.messages), 1)
        check.equal(conversation.messages[0].text, GREETING)
        check.is_true(conversation.messages[0].is_bot)

    def test_newest_first(self, memory_store: ConversationStore) -> None:
        first = memory_store.create()
        second = memory_store.create()

        check.equal([c.id for c in memory_store.conversations], [second.id, first.id])

    def test_first_user_message_sets_title(self, memory_store: ConversationStore) -> None:
        conversation = memory_store.create()

        memory_store.append_message(conversation.id, "What is the capital of France, and why?", is_bot=False)
        memory_store.append_message(conversation.id, "Paris.", is_bot=True)
        memory_store.append_message(conversation.id, "Second question", is_bot=False)

        check.equal(memory_store.get(conversation.id).title, "What is the capital of France,...")

    def test_append_assigns_increasing_ids(self, memory_store: ConversationStore) -> None:
        conversation = memory_store.create()

        user = memory_store.append_message(conversation.id, "hi", is_bot=False)
        bot = memory_store.append_message(conversation.id, "hello", is_bot=True)

        check.equal((user.id, bot.id), (2, 3))

    def test_append_bumps_updated_at(self, memory_store: ConversationStore) -> None:
        conversation = memory_store.create()
        before = conversation.updated_at

        memory_store.append_message(conversation.id, "hi", is_bot=False)

        check.greater_equal(memory_store.get(conversation.id).updated_at, before)

    def test_unknown_id_raises(self, memory_store: ConversationStore) -> None:
        with pytest.raises(KeyError):
            memory_store.append_message("missing", "hi", is_bot=False)

    def test_delete_returns_next_conversation(self, memory_store: ConversationStore) -> None:
        older = memory_store.create()
        newer = memory_store.create()

        next_id = memory_store.delete(newer.id)

        check.equal(next_id, older.id)
        check.equal([c.id for c in memory_store.conversations], [older.id])

    def test_delete_last_creates_new(self, memory_store: ConversationStore) -> None:
        only = memory_store.create()

        next_id = memory_store.delete(only.id)

        check.not_equal(next_id, only.id)
        check.equal(len(memory_store.conversations), 1)

    def test_mutations_are_persisted_and_reloaded(self) -> None:
        backend = InMemoryKeyValueStore()
        store = ConversationStore(backend)
        conversation = store.create()
        store.append_message(conversation.id, "hi", is_bot=False)
        store.append_message(conversation.id, "[[THINKING]]x[[/THINKING]]hello", is_bot=True)

        reloaded = ConversationStore(backend)
        reloaded.load()

        check.equal(reloaded.conversations, store.conversations)
        check.is_in(STORAGE_KEY, backend.data)

    def test_corrupt_payload_loads_empty(self) -> None:
        backend = InMemoryKeyValueStore()
        backend.set(STORAGE_KEY, "{not json")
        store = ConversationStore(backend)

        store.load()

        check.equal(store.conversations, [])


class TestBackends:
    """Tests for key-value backends."""

    def test_json_file_backend(self, tmp_path: Path) -> None:
        backend = JsonFileKeyValueStore(tmp_path / "kv")

        check.is_none(backend.get("k"))
        backend.set("k", '{"a": 1}')
        check.equal(JsonFileKeyValueStore(tmp_path / "kv").get("k"), '{"a": 1}')

    def test_mapping_backend(self) -> None:
        mapping: dict[str, object] = {"other": 5}
        backend = MappingKeyValueStore(mapping)

        backend.set("k", "v")

        check.equal(mapping["k"], "v")
        check.is_none(backend.get("other"))

    def test_select_backend_defaults_to_user_storage(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("RELAYCHAT_STORAGE_DIR", raising=False)

        check.is_instance(select_backend({}), MappingKeyValueStore)

    def test_select_backend_uses_storage_dir(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Conversations saved through the file backend survive a new store."""
        monkeypatch.setenv("RELAYCHAT_STORAGE_DIR", str(tmp_path / "conversations"))
        store = ConversationStore(select_backend({}))
        conversation = store.create()

        reloaded = ConversationStore(select_backend({}))
        reloaded.load()

        check.is_instance(select_backend({}), JsonFileKeyValueStore)
        check.equal([c.id for c in reloaded.conversations], [conversation.id])
        check.is_true((tmp_path / "conversations" / f"{STORAGE_KEY}.json").exists())


def test_make_title_truncates() -> None:
    check.equal(make_title("short"), "short")
    check.equal(make_title("x" * 31), "x" * 30 + "...")
