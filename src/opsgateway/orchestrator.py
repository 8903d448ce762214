"""Wire parsing, authorization, execution and delivery for one request."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping

from .authorizer import authorize, unknown_user_message
from .commands import SlashCommandRequest, parse_command, parse_form
from .config.settings import Settings
from .control_plane import ControlPlane
from .dispatch import ResponseDispatcher, validate_callback_url
from .errors import CallbackValidationError, DeliveryError, ParseError, PayloadError
from .executors import ResourceExecutor, build_executors
from .logging_config import get_logger
from .permissions import PermissionTable, ResourceKind, load_permission_table

LOGGER = get_logger(__name__)


class Stage(str, Enum):
    """Pipeline checkpoints, in order. A request stops at the first refusal."""

    RECEIVED = "received"
    VALIDATED = "validated"
    CHANNEL_CHECKED = "channel_checked"
    ROLE_RESOLVED = "role_resolved"
    PARSED = "parsed"
    AUTHORIZED = "authorized"
    EXECUTED = "executed"
    DELIVERED = "delivered"
    DELIVERY_FAILED = "delivery_failed"


@dataclass(frozen=True)
class Acknowledgment:
    """Synchronous reply to the webhook caller.

    ``reached`` is the last checkpoint the command passed before its outcome
    was produced; ``stage`` is where handling ended, including delivery.
    """

    status_code: int
    body: str = ""
    stage: Stage = Stage.DELIVERED
    reached: Stage = Stage.RECEIVED
    message: str | None = None

    def to_lambda(self) -> Dict[str, Any]:
        return {
            "statusCode": self.status_code,
            "headers": {"Content-Type": "text/plain"},
            "body": self.body,
        }


def channel_denied_message(ops_channel: str) -> str:
    return (
        "The command is not allowed in this channel. "
        f"Please use the #{ops_channel} channel to start/stop services."
    )


class Orchestrator:
    """Handle a slash command end to end.

    Delivery to ``response_url`` happens inline, after execution and before
    the acknowledgment is returned, so a failed delivery is reported as a
    500 to the webhook caller.
    """

    def __init__(
        self,
        table: PermissionTable,
        executors: Mapping[ResourceKind, ResourceExecutor],
        dispatcher: ResponseDispatcher,
        *,
        ops_channel: str = "devops",
    ) -> None:
        self.table = table
        self.executors = executors
        self.dispatcher = dispatcher
        self.ops_channel = ops_channel

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        control_plane: ControlPlane | None = None,
        dispatcher: ResponseDispatcher | None = None,
    ) -> "Orchestrator":
        plane = control_plane or ControlPlane(region_name=settings.aws_region)
        return cls(
            load_permission_table(settings),
            build_executors(plane),
            dispatcher or ResponseDispatcher(timeout=settings.callback_timeout),
            ops_channel=settings.ops_channel,
        )

    def handle(self, payload: str | bytes | SlashCommandRequest) -> Acknowledgment:
        if isinstance(payload, SlashCommandRequest):
            request = payload
        else:
            try:
                request = parse_form(payload)
            except PayloadError as exc:
                LOGGER.warning("Malformed slash command body", extra={"reason": str(exc)})
                return Acknowledgment(
                    status_code=400, body="Invalid payload", stage=Stage.RECEIVED
                )

        LOGGER.info(
            "Slash command received",
            extra={
                "command": request.command,
                "user": request.user_name,
                "channel": request.channel_name,
            },
        )

        try:
            target = validate_callback_url(request.response_url)
        except CallbackValidationError as exc:
            LOGGER.warning(
                "Invalid or missing response URL",
                extra={"response_url": request.response_url, "reason": str(exc)},
            )
            return Acknowledgment(
                status_code=400, body="Invalid response URL provided.", stage=Stage.RECEIVED
            )

        message, reached = self.outcome(request)

        try:
            self.dispatcher.deliver(target, message)
        except DeliveryError as exc:
            LOGGER.error("Error sending Slack response", extra={"error": str(exc)})
            return Acknowledgment(
                status_code=500,
                body=f"Error sending response to Slack: {exc}",
                stage=Stage.DELIVERY_FAILED,
                reached=reached,
                message=message,
            )

        return Acknowledgment(
            status_code=200, stage=Stage.DELIVERED, reached=reached, message=message
        )

    def outcome(self, request: SlashCommandRequest) -> tuple[str, Stage]:
        """Return the single Slack message for ``request`` and the last stage passed."""

        if request.channel_name != self.ops_channel:
            LOGGER.info(
                "Command rejected outside ops channel",
                extra={"channel": request.channel_name},
            )
            return channel_denied_message(self.ops_channel), Stage.VALIDATED

        identity = request.user_name
        role = self.table.role_of(identity)
        if role is None:
            LOGGER.info("Unrecognized user", extra={"user": identity})
            return unknown_user_message(identity), Stage.CHANNEL_CHECKED

        try:
            command = parse_command(request.command, request.text)
        except ParseError as exc:
            LOGGER.info(
                "Command could not be parsed",
                extra={"command": request.command, "reason": str(exc)},
            )
            return str(exc), Stage.ROLE_RESOLVED

        decision = authorize(self.table, identity, role, command)
        if not decision.allowed:
            LOGGER.info(
                "Command denied",
                extra={
                    "user": identity,
                    "role": role,
                    "target": command.target,
                    "reason": decision.reason.value,
                },
            )
            return decision.message, Stage.PARSED

        executor = self.executors.get(command.kind)
        if executor is None:
            LOGGER.error("No executor registered", extra={"kind": command.kind.value})
            message = f"No handler is configured for {command.kind.value} commands."
            return message, Stage.AUTHORIZED

        return executor.execute(command, identity or ""), Stage.EXECUTED


__all__ = [
    "Acknowledgment",
    "Orchestrator",
    "Stage",
    "channel_denied_message",
]
