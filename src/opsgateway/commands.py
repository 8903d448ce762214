"""Parse Slack slash-command payloads into structured commands."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping
from urllib.parse import parse_qs

from .errors import ParseError, PayloadError, UnknownCommandError
from .permissions import ResourceKind


class Action(str, Enum):
    START = "start"
    STOP = "stop"


_COMMANDS: Mapping[str, tuple[Action, ResourceKind]] = {
    "start-ec2": (Action.START, ResourceKind.EC2),
    "stop-ec2": (Action.STOP, ResourceKind.EC2),
    "start-ecs": (Action.START, ResourceKind.ECS),
    "stop-ecs": (Action.STOP, ResourceKind.ECS),
}


@dataclass(frozen=True)
class SlashCommandRequest:
    """Fields Slack posts for a slash command invocation."""

    command: str
    text: str
    response_url: str | None
    channel_name: str | None
    user_name: str | None

    @classmethod
    def from_fields(cls, fields: Mapping[str, Any]) -> "SlashCommandRequest":
        return cls(
            command=_field(fields, "command") or "",
            text=_field(fields, "text") or "",
            response_url=_field(fields, "response_url"),
            channel_name=_field(fields, "channel_name"),
            user_name=_field(fields, "user_name"),
        )


@dataclass(frozen=True)
class Command:
    """An authorizable lifecycle request.

    ``target`` is the EC2 ``Name`` tag or the ECS cluster; ``service`` and
    ``revision`` are only populated for ECS commands.
    """

    token: str
    action: Action
    kind: ResourceKind
    target: str
    service: str | None = None
    revision: str | None = None


def _field(fields: Mapping[str, Any], key: str) -> str | None:
    value = fields.get(key)
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None:
        return None
    return str(value)


def parse_form(raw_body: str | bytes) -> SlashCommandRequest:
    """Decode the URL-encoded body Slack sends with a slash command."""

    if isinstance(raw_body, (bytes, bytearray)):
        try:
            raw_body = bytes(raw_body).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise PayloadError("Invalid encoding") from exc
    fields = parse_qs(raw_body or "", keep_blank_values=True)
    return SlashCommandRequest.from_fields(fields)


def _tokens(text: str) -> list[str]:
    stripped = text.strip()
    if not stripped:
        return []
    return stripped.split(" ")


def parse_command(token: str, text: str | None) -> Command:
    """Return the ``Command`` for ``token`` and its free-text argument.

    Raises :class:`ParseError` with a Slack-ready message when the arguments
    do not fit the command.
    """

    name = (token or "").strip().lstrip("/")
    try:
        action, kind = _COMMANDS[name]
    except KeyError:
        raise UnknownCommandError(token) from None

    tokens = _tokens(text or "")
    if kind is ResourceKind.EC2:
        # Exactly one name; extra words are never trimmed into a different target.
        if len(tokens) != 1 or not tokens[0]:
            raise ParseError(
                f"Please provide the EC2 instance name, for example `/{name} dev-qa-servers`."
            )
        return Command(token=token, action=action, kind=kind, target=tokens[0])

    if len(tokens) < 2 or not tokens[0] or not tokens[1]:
        raise ParseError(
            f"Please provide the cluster and service names, for example "
            f"`/{name} <cluster> <service> [task-definition]`."
        )
    revision = tokens[2] if len(tokens) > 2 and tokens[2] else None
    return Command(
        token=token,
        action=action,
        kind=kind,
        target=tokens[0],
        service=tokens[1],
        revision=revision if action is Action.START else None,
    )


__all__ = [
    "Action",
    "Command",
    "SlashCommandRequest",
    "parse_command",
    "parse_form",
]
