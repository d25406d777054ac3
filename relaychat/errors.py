"""Error taxonomy shared by the relay and the client.

Every error carries a user-facing message and the HTTP status the relay
uses when the error is raised before streaming has begun.
"""


class RelayChatError(Exception):
    """Base class for relay and client errors.

    Attributes:
        message: Human readable description, safe to show to users.
        status_code: HTTP status used when rendered as a JSON error.
    """

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ConfigurationError(RelayChatError):
    """Server is missing its upstream credential or has invalid settings."""

    status_code = 500


class ValidationError(RelayChatError):
    """Request body is malformed."""

    status_code = 400


class UpstreamUnavailable(RelayChatError):
    """Provider could not be reached or returned no body."""

    status_code = 502


class UpstreamError(RelayChatError):
    """Provider answered with a non-success status or an in-band error."""

    status_code = 502


class DecodeNoise(RelayChatError):
    """Frame is not a recognizable JSON delta event. Never surfaced."""


class NoResponseBody(RelayChatError):
    """Relay response carried no body."""


class RequestFailed(RelayChatError):
    """Relay request failed before any token was received."""


class EmptyResponse(RelayChatError):
    """Turn finished without producing a single token."""
