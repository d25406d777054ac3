"""Unit tests for individual components in isolation.

Coverage:
    - relay/: Framing, upstream reading, normalization, writing, config
    - client/: Payload consumption, display composition, conversation store

Uses in-memory byte streams and mock transports for external services.
"""
