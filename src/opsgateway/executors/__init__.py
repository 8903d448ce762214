"""Resource executors keyed by :class:`~opsgateway.permissions.ResourceKind`."""

from __future__ import annotations

from typing import Mapping

from ..control_plane import ControlPlane
from ..permissions import ResourceKind
from .base import ResourceExecutor
from .compute import ComputeGroupExecutor
from .service import ManagedServiceExecutor


def build_executors(control_plane: ControlPlane) -> Mapping[ResourceKind, ResourceExecutor]:
    return {
        ResourceKind.EC2: ComputeGroupExecutor(control_plane),
        ResourceKind.ECS: ManagedServiceExecutor(control_plane),
    }


__all__ = [
    "ComputeGroupExecutor",
    "ManagedServiceExecutor",
    "ResourceExecutor",
    "build_executors",
]
