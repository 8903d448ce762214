"""Start and stop EC2 instances that share a ``Name`` tag."""

from __future__ import annotations

from ..commands import Action, Command
from ..control_plane import ACTIVE_INSTANCE_STATES, ControlPlane
from ..errors import ControlPlaneError
from ..logging_config import get_logger

LOGGER = get_logger(__name__)

_PROGRESSIVE = {Action.START: "starting", Action.STOP: "stopping"}


class ComputeGroupExecutor:
    def __init__(self, control_plane: ControlPlane) -> None:
        self._control_plane = control_plane

    def execute(self, command: Command, identity: str) -> str:
        name = command.target
        try:
            instance_ids = self._control_plane.lookup_compute_group_members(
                name, ACTIVE_INSTANCE_STATES
            )
        except ControlPlaneError as exc:
            return f'Failed to look up EC2 instances with the name "{name}". Error: {exc}'

        if not instance_ids:
            LOGGER.info("No EC2 instances matched", extra={"name_tag": name})
            return f"No EC2 instances found with the name: {name}"

        try:
            if command.action is Action.START:
                self._control_plane.start_compute(instance_ids)
            else:
                self._control_plane.stop_compute(instance_ids)
        except ControlPlaneError as exc:
            return (
                f'Failed to {command.action.value} EC2 instances with the name "{name}". '
                f"Error: {exc}"
            )

        LOGGER.info(
            "EC2 lifecycle transition requested",
            extra={
                "action": command.action.value,
                "name_tag": name,
                "instance_ids": instance_ids,
                "user": identity,
            },
        )
        return (
            f'User @{identity} is {_PROGRESSIVE[command.action]} EC2 instances with name "{name}": '
            f"{', '.join(instance_ids)}"
        )


__all__ = ["ComputeGroupExecutor"]
