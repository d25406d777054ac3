"""Relay configuration with environment variable loading.

Pydantic-based configuration for the upstream chat-completions relay.
The API key is a server-side secret and never reaches the browser.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from relaychat.errors import ConfigurationError

# Load environment variables from .env file
load_dotenv()

DEFAULT_API_URL = "https://openrouter.ai/api/v1/chat/completions"
DEFAULT_MODEL = "deepseek/deepseek-r1-0528:free"
MISSING_KEY_MESSAGE = "API key not configured on server."


class RelayConfig(BaseModel):
    """Configuration for the upstream relay.

    Attributes:
        api_key: Bearer credential for the provider.
        api_url: Chat-completions endpoint URL.
        model_name: Default model id when the request does not name one.
        temperature: Sampling temperature (0.0 = deterministic, 2.0 = creative).
        max_tokens: Maximum tokens in generated response.
        app_title: Application name sent to the provider for attribution.
        timeout: Upstream HTTP timeout in seconds.
    """

    api_key: str = Field(
        default_factory=lambda: os.getenv("OPENROUTER_API_KEY", ""),
        validate_default=True,
        description="Bearer credential for the upstream provider",
    )
    api_url: str = Field(
        default_factory=lambda: os.getenv("OPENROUTER_API_URL") or DEFAULT_API_URL,
        description="Chat-completions endpoint",
    )
    model_name: str = Field(
        default_factory=lambda: os.getenv("OPENROUTER_MODEL") or DEFAULT_MODEL,
        description="Default upstream model",
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for response generation",
    )
    max_tokens: int = Field(
        default=1000,
        ge=1,
        le=128000,
        description="Maximum tokens in generated response",
    )
    app_title: str = Field(
        default_factory=lambda: os.getenv("RELAY_APP_TITLE", "DeathChat"),
        description="Sent upstream as X-Title",
    )
    timeout: float = Field(default=120.0, gt=0.0)

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Validate that the API key is provided and non-empty."""
        if not v or not v.strip():
            raise ValueError(MISSING_KEY_MESSAGE)
        return v.strip()


def get_relay_config() -> RelayConfig:
    """Create relay configuration from environment.

    Returns:
        Configured RelayConfig instance.

    Raises:
        ConfigurationError: If no API key is set or a value is out of range.
    """
    try:
        return RelayConfig()
    except PydanticValidationError as e:
        fields = {str(err["loc"][0]) for err in e.errors() if err["loc"]}
        if "api_key" in fields:
            raise ConfigurationError(MISSING_KEY_MESSAGE) from e
        raise ConfigurationError(f"Invalid relay configuration: {', '.join(sorted(fields))}") from e
