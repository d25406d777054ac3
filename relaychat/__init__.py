"""RelayChat - streaming chat client with a thin relay to an LLM provider.

Combines FastAPI for the streaming relay, httpx for upstream and client-side
HTTP streaming, NiceGUI for the chat interface, and Pydantic for data validation.

Components:
    - relay: upstream reading, delta normalization and outbound event writing
    - api: HTTP relay endpoint and application factory
    - client: relay stream consumer, display composition, conversation store
    - ui: Web interface for chat interactions
    - models: Message and token schemas
"""

__version__ = "0.1.0"
