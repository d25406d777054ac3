"""Pytest fixtures and shared test configuration.

Fixtures:
    - relay_config: Valid relay configuration with a fake key
    - memory_store: Conversation store on an in-memory backend
    - relay_app: Factory for a relay app wired to a fake upstream
    - async_client: HTTPX client bound to the relay app

The upstream provider is always faked with httpx.MockTransport; no test
talks to the network.
"""

from collections.abc import AsyncGenerator, Callable

import httpx
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from relaychat.api.app import create_app
from relaychat.api.chat import get_upstream_client
from relaychat.client.store import ConversationStore, InMemoryKeyValueStore
from relaychat.relay.config import RelayConfig
from tests.fakes import upstream_factory


@pytest.fixture(autouse=True)
def relay_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's .env from leaking into tests."""
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-test-key")
    monkeypatch.delenv("OPENROUTER_MODEL", raising=False)
    monkeypatch.delenv("OPENROUTER_API_URL", raising=False)


@pytest.fixture
def relay_config() -> RelayConfig:
    """Return a relay configuration with a fake API key."""
    return RelayConfig(api_key="sk-test-key")


@pytest.fixture
def memory_store() -> ConversationStore:
    """Return an empty conversation store backed by memory."""
    store = ConversationStore(InMemoryKeyValueStore())
    store.load()
    return store


@pytest.fixture
def relay_app() -> Callable[[httpx.AsyncClient], FastAPI]:
    """Return a factory building the relay app against a fake upstream.

    Returns:
        Callable taking the upstream httpx client.
    """

    def build(upstream_http: httpx.AsyncClient) -> FastAPI:
        app = create_app()
        app.dependency_overrides[get_upstream_client] = upstream_factory(upstream_http)
        return app

    return build


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client bound to the real relay app.

    Yields:
        Configured AsyncClient for making test requests.
    """
    transport = ASGITransport(app=create_app())
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
