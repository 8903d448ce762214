"""HMAC signature validation for Slack slash-command requests."""

from __future__ import annotations

import hashlib
import hmac
import time
from typing import Callable, Union

BytesLike = Union[bytes, bytearray, memoryview]

SIGNATURE_VERSION = "v0"
MAX_CLOCK_SKEW_SECONDS = 60 * 5


def _ensure_bytes(value: str | BytesLike) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    return value.encode("utf-8")


def compute_signature(*, secret: str | BytesLike, timestamp: str, body: str | BytesLike) -> str:
    """Return the ``v0=<hex>`` signature Slack sends for ``body``."""

    basestring = b":".join(
        [SIGNATURE_VERSION.encode("ascii"), timestamp.encode("utf-8"), _ensure_bytes(body)]
    )
    digest = hmac.new(_ensure_bytes(secret), basestring, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_VERSION}={digest}"


def verify_signature(
    *,
    secret: str | BytesLike | None,
    body: str | BytesLike,
    timestamp: str | None,
    signature: str | None,
    now: Callable[[], float] = time.time,
) -> bool:
    """Return ``True`` when ``signature`` matches and ``timestamp`` is fresh."""

    if not secret or not signature or not timestamp:
        return False
    try:
        issued_at = int(timestamp.strip())
    except ValueError:
        return False
    if abs(now() - issued_at) > MAX_CLOCK_SKEW_SECONDS:
        return False
    expected = compute_signature(secret=secret, timestamp=timestamp.strip(), body=body)
    return hmac.compare_digest(expected, signature.strip())


__all__ = ["compute_signature", "verify_signature"]
