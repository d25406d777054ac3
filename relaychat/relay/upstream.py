"""HTTP client for the upstream chat-completions provider."""

import logging
from typing import Any

import httpx

from relaychat.errors import UpstreamUnavailable
from relaychat.models.schemas import ChatMessage
from relaychat.relay.config import RelayConfig

logger = logging.getLogger(__name__)


class UpstreamClient:
    """Opens streaming chat-completion requests against the provider.

    Each instance serves a single turn. It owns its httpx client unless one
    is injected, and `aclose` releases both the response and the client.
    """

    def __init__(
        self,
        config: RelayConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=config.timeout)
        self._response: httpx.Response | None = None

    @property
    def config(self) -> RelayConfig:
        return self._config

    def build_payload(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
    ) -> dict[str, Any]:
        """Build the JSON request body for a streamed completion."""
        return {
            "model": model or self._config.model_name,
            "messages": [message.model_dump() for message in messages],
            "temperature": self._config.temperature,
            "max_tokens": self._config.max_tokens,
            "stream": True,
        }

    def build_headers(self, referer: str = "") -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._config.api_key}",
            "Content-Type": "application/json",
            "Accept": "text/event-stream",
            "HTTP-Referer": referer,
            "X-Title": self._config.app_title,
        }

    async def open(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        referer: str = "",
    ) -> httpx.Response:
        """Send the request and return the response with its body unread.

        Args:
            messages: Conversation context.
            model: Optional model id overriding the configured default.
            referer: Origin of the browser request, forwarded for attribution.

        Returns:
            The streaming httpx response. Its status is not checked here.

        Raises:
            UpstreamUnavailable: If the provider cannot be reached.
        """
        payload = self.build_payload(messages, model)
        request = self._http.build_request(
            "POST",
            self._config.api_url,
            json=payload,
            headers=self.build_headers(referer),
        )
        logger.info(f"Opening upstream stream: model={payload['model']} messages={len(messages)}")
        try:
            self._response = await self._http.send(request, stream=True)
        except httpx.HTTPError as e:
            logger.warning(f"Upstream request failed: {e!r}")
            raise UpstreamUnavailable(f"Could not reach the upstream provider: {e}") from e
        return self._response

    async def aclose(self) -> None:
        """Release the upstream response and, if owned, the HTTP client."""
        if self._response is not None:
            await self._response.aclose()
            self._response = None
        if self._owns_client:
            await self._http.aclose()
