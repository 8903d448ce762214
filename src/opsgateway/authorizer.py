"""Decide whether a user's role may act on a command's target."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .commands import Action, Command
from .permissions import PermissionTable, ResourceKind


class Reason(str, Enum):
    ALLOWED = "allowed"
    UNKNOWN_USER = "unknown_user"
    NOT_PERMITTED = "not_permitted"


@dataclass(frozen=True)
class AuthorizationDecision:
    allowed: bool
    reason: Reason
    message: str = ""


def unknown_user_message(identity: str | None) -> str:
    return f"User @{identity} is not recognized."


def _denied_message(identity: str, command: Command) -> str:
    if command.kind is ResourceKind.EC2:
        return (
            f"User @{identity} is not authorized to {command.action.value} "
            f'EC2 instances with the name "{command.target}".'
        )
    if command.action is Action.START:
        verb = "start or deploy"
    else:
        verb = "stop"
    return (
        f"User @{identity} is not authorized to {verb} the ECS service "
        f'"{command.service}" in cluster "{command.target}".'
    )


def authorize(
    table: PermissionTable,
    identity: str | None,
    role: str | None,
    command: Command,
) -> AuthorizationDecision:
    """Check the command's primary name against the role's allow-list.

    ECS commands are authorized on the cluster only; any service inside an
    allowed cluster may be started or stopped.
    """

    if role is None:
        return AuthorizationDecision(
            allowed=False,
            reason=Reason.UNKNOWN_USER,
            message=unknown_user_message(identity),
        )
    if not table.is_allowed(role, command.kind, command.target):
        return AuthorizationDecision(
            allowed=False,
            reason=Reason.NOT_PERMITTED,
            message=_denied_message(identity or "", command),
        )
    return AuthorizationDecision(allowed=True, reason=Reason.ALLOWED)


__all__ = ["AuthorizationDecision", "Reason", "authorize", "unknown_user_message"]
