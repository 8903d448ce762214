"""Environment-driven runtime settings for the gateway."""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Mapping

DEFAULT_OPS_CHANNEL = "devops"
DEFAULT_CALLBACK_TIMEOUT = 10.0


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, read once at cold start."""

    ops_channel: str = DEFAULT_OPS_CHANNEL
    permissions_file: str | None = None
    permissions_secret: str | None = None
    callback_timeout: float = DEFAULT_CALLBACK_TIMEOUT
    signing_secret: str | None = None
    signing_secret_arn: str | None = None
    aws_region: str | None = None

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        source = os.environ if env is None else env
        return cls(
            ops_channel=(source.get("OPSGATEWAY_OPS_CHANNEL") or DEFAULT_OPS_CHANNEL).strip(),
            permissions_file=_optional(source.get("OPSGATEWAY_PERMISSIONS_FILE")),
            permissions_secret=_optional(source.get("OPSGATEWAY_PERMISSIONS_SECRET")),
            callback_timeout=_positive_float(
                source.get("OPSGATEWAY_CALLBACK_TIMEOUT"), DEFAULT_CALLBACK_TIMEOUT
            ),
            signing_secret=_optional(source.get("SLACK_SIGNING_SECRET")),
            signing_secret_arn=_optional(source.get("SLACK_SIGNING_SECRET_ARN")),
            aws_region=_optional(source.get("AWS_REGION") or source.get("AWS_DEFAULT_REGION")),
        )


def _optional(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _positive_float(raw: str | None, default: float) -> float:
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"Expected a number of seconds, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"Timeout must be positive, got {raw!r}")
    return value


__all__ = ["DEFAULT_CALLBACK_TIMEOUT", "DEFAULT_OPS_CHANNEL", "Settings"]
