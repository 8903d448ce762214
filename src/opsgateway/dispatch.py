"""Deliver command outcomes to Slack's ``response_url``."""

from __future__ import annotations

from typing import Any
from urllib.parse import urlsplit

import requests

from .config.settings import DEFAULT_CALLBACK_TIMEOUT
from .errors import CallbackValidationError, DeliveryError
from .logging_config import get_logger

LOGGER = get_logger(__name__)

_ALLOWED_SCHEMES = {"https", "http"}


def validate_callback_url(value: Any) -> str:
    """Return ``value`` when it is an absolute http(s) URL with a host."""

    if not value or not isinstance(value, str):
        raise CallbackValidationError("Invalid response URL provided.")
    try:
        parts = urlsplit(value.strip())
    except ValueError as exc:
        raise CallbackValidationError(
            "Failed to parse response URL.", context={"response_url": value}
        ) from exc
    if parts.scheme.lower() not in _ALLOWED_SCHEMES or not parts.hostname:
        raise CallbackValidationError(
            "Failed to parse response URL.", context={"response_url": value}
        )
    return value.strip()


class ResponseDispatcher:
    """POST ``{"text": ...}`` once; no retries."""

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        timeout: float = DEFAULT_CALLBACK_TIMEOUT,
    ) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout

    def deliver(self, target: Any, message: str) -> None:
        url = validate_callback_url(target)
        try:
            response = self.session.post(
                url,
                json={"text": message},
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            LOGGER.error("Slack callback request failed", extra={"error": str(exc)})
            raise DeliveryError(str(exc), context={"error": str(exc)}) from exc

        if not 200 <= response.status_code < 300:
            snippet = (getattr(response, "text", "") or "")[:200]
            LOGGER.error(
                "Slack callback rejected",
                extra={"status_code": response.status_code, "snippet": snippet},
            )
            raise DeliveryError(
                f"Failed to send response to Slack: {response.status_code}",
                context={"status_code": response.status_code, "snippet": snippet},
            )

        LOGGER.debug("Slack callback delivered", extra={"status_code": response.status_code})


__all__ = ["ResponseDispatcher", "validate_callback_url"]
