"""Slack-triggered start/stop gateway for EC2 instance groups and ECS services."""

from __future__ import annotations

from .commands import Action, Command, SlashCommandRequest, parse_command, parse_form
from .orchestrator import Acknowledgment, Orchestrator
from .permissions import PermissionTable, ResourceKind

__all__ = [
    "Acknowledgment",
    "Action",
    "Command",
    "Orchestrator",
    "PermissionTable",
    "ResourceKind",
    "SlashCommandRequest",
    "parse_command",
    "parse_form",
]
