"""Client side of the relay protocol.

Responsibilities:
    - Consuming the relay event stream incrementally
    - Routing tagged payloads into reasoning and content buffers
    - Composing the annotated display text after every token
    - Conversation storage and turn orchestration

Contains no rendering. The UI layer only calls into ChatTurn and the store.
"""

from relaychat.client.composer import DisplayComposer, compose_display_text, split_display_text
from relaychat.client.consumer import RelayClient, parse_payload
from relaychat.client.store import ConversationStore
from relaychat.client.turn import ChatTurn, TurnResult

__all__ = [
    "ChatTurn",
    "ConversationStore",
    "DisplayComposer",
    "RelayClient",
    "TurnResult",
    "compose_display_text",
    "parse_payload",
    "split_display_text",
]
