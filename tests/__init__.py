"""Test package for RelayChat.

Unit tests cover each stage of the relay and client in isolation;
integration tests run the FastAPI relay in-process and drive it with
the real client.

Structure:
    - unit/: Framing, reader, normalizer, writer, consumer, composer, store
    - integration/: Relay endpoint and end-to-end chat turns

The LLM provider is always faked with httpx.MockTransport.
Leverages pytest with pytest-check for soft assertions.
"""
