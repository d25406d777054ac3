"""Integration tests for components working together as a system.

Coverage:
    - Relay endpoint contract over real HTTP semantics (ASGITransport)
    - Full chat turns from the client through the relay to a fake provider
"""
