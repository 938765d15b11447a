"""oapclient error types."""

from __future__ import annotations

from typing import Any

__all__ = [
    "AuthError",
    "ConfigError",
    "ConnectError",
    "OapError",
    "ReadError",
    "RenderError",
    "SendError",
    "ValidationError",
]


class OapError(Exception):
    """Base error for OAP client operations."""


class ConnectError(OapError):
    """Transport connection to the administrator could not be opened.

    Args:
        message: Human-readable error description.
        retryable: Whether the failure looks transient (timeouts, refused
            connections). The client itself never retries; the flag is
            informational for callers.
    """

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable

    def __reduce__(self) -> tuple[type[ConnectError], tuple[str], dict[str, bool]]:
        """Preserve retryable flag across pickle/unpickle."""
        return (type(self), (str(self),), {"retryable": self.retryable})

    def __setstate__(self, state: dict[str, Any] | None) -> None:
        if state is None:
            return
        self.retryable = state.get("retryable", False)


class AuthError(OapError):
    """Credentials rejected by the administrator."""


class SendError(OapError):
    """Command could not be written to the channel."""


class ReadError(OapError):
    """Reply could not be read or parsed."""


class ValidationError(OapError):
    """Request parameters are missing or inconsistent for a mutating command."""


class RenderError(OapError):
    """The rendering collaborator failed to transform a document."""


class ConfigError(OapError):
    """Configuration validation error."""
