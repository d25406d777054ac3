"""NiceGUI interface - thin visualization layer for chat interactions.

Responsibilities:
    - Conversation list with create, select and delete
    - Progressive rendering of streamed replies
    - Collapsible display of the model's reasoning

Contains minimal business logic. Delegates turns to the client package.
"""
