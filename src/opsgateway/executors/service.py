"""Scale and redeploy ECS services."""

from __future__ import annotations

from ..commands import Action, Command
from ..control_plane import ControlPlane
from ..errors import ControlPlaneError
from ..logging_config import get_logger

LOGGER = get_logger(__name__)


class ManagedServiceExecutor:
    """Start sets one task and forces a deployment; stop scales to zero."""

    def __init__(self, control_plane: ControlPlane) -> None:
        self._control_plane = control_plane

    def execute(self, command: Command, identity: str) -> str:
        if command.action is Action.START:
            return self._start(command, identity)
        return self._stop(command, identity)

    def _start(self, command: Command, identity: str) -> str:
        cluster, service = command.target, command.service
        try:
            self._control_plane.update_managed_service(
                cluster,
                service,
                desired_count=1,
                force_redeploy=True,
                revision=command.revision,
            )
        except ControlPlaneError as exc:
            return (
                f'Failed to start or deploy the ECS service "{service}" in cluster '
                f'"{cluster}". Error: {exc}'
            )

        LOGGER.info(
            "ECS deployment triggered",
            extra={
                "cluster": cluster,
                "service": service,
                "task_definition": command.revision or "latest",
                "user": identity,
            },
        )
        return (
            f"User @{identity} has successfully started and triggered a deployment of the "
            f'ECS service "{service}" in cluster "{cluster}" using task definition '
            f'"{command.revision or "latest"}".'
        )

    def _stop(self, command: Command, identity: str) -> str:
        cluster, service = command.target, command.service
        try:
            self._control_plane.update_managed_service(
                cluster, service, desired_count=0, force_redeploy=False
            )
        except ControlPlaneError as exc:
            return (
                f'Failed to stop the ECS service "{service}" in cluster "{cluster}". '
                f"Error: {exc}"
            )

        LOGGER.info(
            "ECS service scaled to zero",
            extra={"cluster": cluster, "service": service, "user": identity},
        )
        return f'User @{identity} is stopping ECS service "{service}" in cluster "{cluster}".'


__all__ = ["ManagedServiceExecutor"]
