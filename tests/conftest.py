"""Shared pytest fixtures for the ops gateway tests."""

from __future__ import annotations

import socket
from typing import Any

import pytest

from opsgateway.permissions import PermissionTable


@pytest.fixture(scope="session", autouse=True)
def block_network() -> None:
    """Prevent outbound network access during the entire test session.

    Unix sockets stay usable because event loops rely on socket pairs.
    """

    original_connect = socket.socket.connect
    original_connect_ex = socket.socket.connect_ex

    def _guard(self: socket.socket, address: Any) -> Any:
        if self.family == getattr(socket, "AF_UNIX", None):
            return original_connect(self, address)
        raise RuntimeError("Network access is disabled during tests.")

    def _guard_ex(self: socket.socket, address: Any) -> Any:
        if self.family == getattr(socket, "AF_UNIX", None):
            return original_connect_ex(self, address)
        raise RuntimeError("Network access is disabled during tests.")

    socket.socket.connect = _guard  # type: ignore[method-assign]
    socket.socket.connect_ex = _guard_ex  # type: ignore[method-assign]

    try:
        yield
    finally:
        socket.socket.connect = original_connect  # type: ignore[method-assign]
        socket.socket.connect_ex = original_connect_ex  # type: ignore[method-assign]


@pytest.fixture(autouse=True)
def _aws_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    for key in (
        "OPSGATEWAY_OPS_CHANNEL",
        "OPSGATEWAY_PERMISSIONS_FILE",
        "OPSGATEWAY_PERMISSIONS_SECRET",
        "OPSGATEWAY_CALLBACK_TIMEOUT",
        "SLACK_SIGNING_SECRET",
        "SLACK_SIGNING_SECRET_ARN",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def permission_table() -> PermissionTable:
    return PermissionTable.from_mapping(
        {
            "users": {
                "alice": "senior",
                "ivan": "intern",
                "maria": "medium",
                "ghost": "empty",
            },
            "roles": {
                "intern": {"ec2": ["branch-server1", "branch-server2"], "ecs": []},
                "medium": {"ec2": ["dev-server1"], "ecs": ["staging-cluster"]},
                "senior": {"ec2": ["dev-qa-servers"], "ecs": ["webledger-books-staging"]},
                "empty": {},
            },
        }
    )
