"""Streaming relay between the LLM provider and the browser client.

Responsibilities:
    - Upstream request construction and configuration
    - Split-safe decoding of the provider event stream into frames
    - Normalization of JSON deltas into reasoning/content tokens
    - Re-framing tokens as a tagged outbound event stream

Maintains clean separation from the HTTP layer.
"""

from relaychat.relay.config import RelayConfig, get_relay_config
from relaychat.relay.normalizer import normalize
from relaychat.relay.reader import UpstreamStreamReader
from relaychat.relay.upstream import UpstreamClient
from relaychat.relay.writer import RelayWriter

__all__ = [
    "RelayConfig",
    "RelayWriter",
    "UpstreamClient",
    "UpstreamStreamReader",
    "get_relay_config",
    "normalize",
]
