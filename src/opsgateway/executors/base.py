"""Shared contract for per-resource-kind executors."""

from __future__ import annotations

from typing import Protocol

from ..commands import Command


class ResourceExecutor(Protocol):
    def execute(self, command: Command, identity: str) -> str:
        """Run ``command`` and return the message to post back to Slack."""


__all__ = ["ResourceExecutor"]
