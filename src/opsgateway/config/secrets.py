"""Helpers for loading configuration secrets from AWS Secrets Manager."""

from __future__ import annotations

from functools import lru_cache
import json
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..logging_config import get_logger

LOGGER = get_logger(__name__)

SecretValue = Any


@lru_cache(maxsize=None)
def _client():  # pragma: no cover - exercised indirectly via get_secret
    return boto3.client("secretsmanager")


@lru_cache(maxsize=None)
def get_secret(name: str) -> Optional[SecretValue]:
    """Return the decoded secret for ``name``.

    ``None`` is returned when the secret cannot be resolved. JSON payloads are
    parsed into dictionaries while plain strings are returned as-is.
    """

    if not name:
        raise ValueError("Secret name must be provided")

    try:
        response = _client().get_secret_value(SecretId=name)
    except (ClientError, BotoCoreError) as exc:
        LOGGER.error(
            "Unable to read secret",
            extra={"identifier": name, "error": str(exc)},
        )
        return None

    secret_string = response.get("SecretString")
    if secret_string is not None:
        return _decode_secret_string(secret_string)

    binary_secret = response.get("SecretBinary")
    if isinstance(binary_secret, (bytes, bytearray)):
        try:
            return _decode_secret_string(binary_secret.decode("utf-8"))
        except UnicodeDecodeError:
            LOGGER.error("Secret payload is not UTF-8", extra={"identifier": name})
            return None

    return None


def _decode_secret_string(payload: str) -> SecretValue:
    if not payload:
        return None
    try:
        return json.loads(payload)
    except json.JSONDecodeError:
        return payload


def extract_secret_string(secret: SecretValue, *keys: str) -> Optional[str]:
    """Pull a plain string out of a decoded secret.

    JSON secrets are searched for ``keys`` in order, then for the first string
    value they hold.
    """

    if isinstance(secret, str):
        return secret or None
    if isinstance(secret, dict):
        for key in keys:
            if isinstance(secret.get(key), str):
                return secret[key]
        for value in secret.values():
            if isinstance(value, str):
                return value
    return None


__all__ = ["extract_secret_string", "get_secret"]
