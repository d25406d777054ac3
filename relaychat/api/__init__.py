"""FastAPI endpoints for the chat relay.

Endpoints:
    - GET /health: Service health status
    - POST /api/chat: Streamed chat completion (Server-Sent Events)
"""

from relaychat.api.app import app, create_app

__all__ = ["app", "create_app"]
