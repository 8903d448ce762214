"""Thin boto3 wrapper around the EC2 and ECS calls the gateway needs."""

from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .errors import ControlPlaneError
from .logging_config import get_logger

LOGGER = get_logger(__name__)

ACTIVE_INSTANCE_STATES = ("pending", "running", "stopping", "stopped")

# Each lifecycle call is attempted exactly once.
_SINGLE_ATTEMPT = Config(retries={"total_max_attempts": 1, "mode": "standard"})


def _error_code(exc: Exception) -> Optional[str]:
    if isinstance(exc, ClientError):
        return (exc.response.get("Error", {}) or {}).get("Code")
    return None


def _wrap(operation: str, exc: Exception, **context: Any) -> ControlPlaneError:
    code = _error_code(exc)
    LOGGER.error(
        "Control plane call failed",
        extra={"operation": operation, "error_code": code, "error": str(exc), **context},
    )
    return ControlPlaneError(str(exc), context={"operation": operation, "code": code, **context})


class ControlPlane:
    """EC2/ECS operations used by the resource executors.

    Clients are created lazily so importing the module never touches AWS.
    """

    def __init__(
        self,
        *,
        ec2_client: Any | None = None,
        ecs_client: Any | None = None,
        region_name: str | None = None,
    ) -> None:
        self._ec2 = ec2_client
        self._ecs = ecs_client
        self._region_name = region_name

    @property
    def ec2(self) -> Any:
        if self._ec2 is None:
            self._ec2 = boto3.client("ec2", region_name=self._region_name, config=_SINGLE_ATTEMPT)
        return self._ec2

    @property
    def ecs(self) -> Any:
        if self._ecs is None:
            self._ecs = boto3.client("ecs", region_name=self._region_name, config=_SINGLE_ATTEMPT)
        return self._ecs

    def lookup_compute_group_members(
        self, name: str, states: Iterable[str] = ACTIVE_INSTANCE_STATES
    ) -> list[str]:
        """Return ids of instances whose ``Name`` tag equals ``name``."""

        filters = [
            {"Name": "tag:Name", "Values": [name]},
            {"Name": "instance-state-name", "Values": list(states)},
        ]
        instance_ids: list[str] = []
        try:
            paginator = self.ec2.get_paginator("describe_instances")
            for page in paginator.paginate(Filters=filters):
                for reservation in page.get("Reservations", []):
                    for instance in reservation.get("Instances", []):
                        instance_id = instance.get("InstanceId")
                        if instance_id:
                            instance_ids.append(instance_id)
        except (ClientError, BotoCoreError) as exc:
            raise _wrap("describe_instances", exc, name_tag=name) from exc
        return instance_ids

    def start_compute(self, instance_ids: Sequence[str]) -> None:
        try:
            self.ec2.start_instances(InstanceIds=list(instance_ids))
        except (ClientError, BotoCoreError) as exc:
            raise _wrap("start_instances", exc, instance_ids=list(instance_ids)) from exc

    def stop_compute(self, instance_ids: Sequence[str]) -> None:
        try:
            self.ec2.stop_instances(InstanceIds=list(instance_ids))
        except (ClientError, BotoCoreError) as exc:
            raise _wrap("stop_instances", exc, instance_ids=list(instance_ids)) from exc

    def update_managed_service(
        self,
        cluster: str,
        service: str,
        desired_count: int,
        force_redeploy: bool,
        revision: str | None = None,
    ) -> None:
        params: dict[str, Any] = {
            "cluster": cluster,
            "service": service,
            "desiredCount": desired_count,
        }
        if force_redeploy:
            params["forceNewDeployment"] = True
        if revision:
            params["taskDefinition"] = revision
        try:
            self.ecs.update_service(**params)
        except (ClientError, BotoCoreError) as exc:
            raise _wrap("update_service", exc, cluster=cluster, service=service) from exc


__all__ = ["ACTIVE_INSTANCE_STATES", "ControlPlane"]
