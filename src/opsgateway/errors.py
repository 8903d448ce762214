"""Application specific exception hierarchy."""

from __future__ import annotations

from typing import Any


class OpsGatewayError(RuntimeError):
    """Base exception that carries structured context."""

    def __init__(self, message: str, *, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.context = context or {}


class CallbackValidationError(OpsGatewayError):
    """Raised when the Slack ``response_url`` is missing or malformed."""


class DeliveryError(OpsGatewayError):
    """Raised when the outcome could not be posted to the callback URL."""


class ControlPlaneError(OpsGatewayError):
    """Raised when an EC2 or ECS call fails."""


class PermissionConfigError(OpsGatewayError):
    """Raised when a permission document is inconsistent."""


class PayloadError(ValueError):
    """Raised when a webhook body cannot be decoded at all."""


class ParseError(ValueError):
    """Raised when a slash command cannot be turned into a ``Command``.

    The message is user facing and is delivered back to Slack verbatim.
    """


class UnknownCommandError(ParseError):
    """Raised for command tokens outside the supported set."""

    def __init__(self, token: str) -> None:
        super().__init__(f"Unknown command: {token}")
        self.token = token


__all__ = [
    "OpsGatewayError",
    "CallbackValidationError",
    "DeliveryError",
    "ControlPlaneError",
    "PermissionConfigError",
    "PayloadError",
    "ParseError",
    "UnknownCommandError",
]
