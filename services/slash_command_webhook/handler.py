"""Lambda handler for Slack slash commands delivered through API Gateway."""

from __future__ import annotations

import base64
import binascii
from typing import Any, Dict, Optional

from opsgateway.config.secrets import extract_secret_string, get_secret
from opsgateway.config.settings import Settings
from opsgateway.logging_config import configure_logging, get_logger
from opsgateway.orchestrator import Orchestrator
from opsgateway.signature import verify_signature

configure_logging()
LOGGER = get_logger(__name__)

SETTINGS = Settings.from_env()

_ORCHESTRATOR: Optional[Orchestrator] = None
_SECRET_CACHE: Optional[str] = None


def handler(
    event: Dict[str, Any], context: Any
) -> Dict[str, Any]:  # pragma: no cover - context unused
    """Entrypoint for API Gateway -> Lambda invocations."""

    method = (event.get("httpMethod") or _request_context_method(event) or "POST").upper()
    if method != "POST":
        return _response(405, "Method Not Allowed")

    try:
        raw_body = _raw_body(event)
    except ValueError as exc:
        LOGGER.warning("Malformed webhook body: %s", exc)
        return _response(400, "Invalid payload")

    expected_secret = _resolve_secret()
    if expected_secret is None and SETTINGS.signing_secret_arn:
        return _response(401, "Unauthorized")
    if expected_secret:
        valid = verify_signature(
            secret=expected_secret,
            body=raw_body,
            timestamp=_header(event, "X-Slack-Request-Timestamp"),
            signature=_header(event, "X-Slack-Signature"),
        )
        if not valid:
            LOGGER.warning("Slack request signature rejected")
            return _response(401, "Unauthorized")

    return _orchestrator().handle(raw_body).to_lambda()


def _orchestrator() -> Orchestrator:
    global _ORCHESTRATOR
    if _ORCHESTRATOR is None:
        _ORCHESTRATOR = Orchestrator.from_settings(SETTINGS)
    return _ORCHESTRATOR


def _request_context_method(event: Dict[str, Any]) -> Optional[str]:
    http = (event.get("requestContext") or {}).get("http") or {}
    return http.get("method")


def _header(event: Dict[str, Any], key: str) -> Optional[str]:
    headers = event.get("headers") or {}
    for candidate, value in headers.items():
        if candidate.lower() == key.lower():
            return value
    return None


def _raw_body(event: Dict[str, Any]) -> bytes:
    raw_body = event.get("body") or b""
    if event.get("isBase64Encoded"):
        try:
            raw_body = base64.b64decode(raw_body, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("Invalid base64 body") from exc
    if isinstance(raw_body, bytes):
        return raw_body
    if isinstance(raw_body, str):
        return raw_body.encode("utf-8")
    raise ValueError("Unsupported body type")


def _resolve_secret() -> Optional[str]:
    global _SECRET_CACHE
    if SETTINGS.signing_secret:
        return SETTINGS.signing_secret
    if not SETTINGS.signing_secret_arn:
        return None
    if _SECRET_CACHE is not None:
        return _SECRET_CACHE
    resolved = extract_secret_string(
        get_secret(SETTINGS.signing_secret_arn), "signing_secret", "secret", "value"
    )
    if resolved is None:
        LOGGER.error("Failed to resolve Slack signing secret")
        return None
    _SECRET_CACHE = resolved
    return resolved


def _response(status: int, body: str) -> Dict[str, Any]:
    return {
        "statusCode": status,
        "headers": {"Content-Type": "text/plain"},
        "body": body,
    }


__all__ = ["handler"]
