"""Static user → role and role → resource permission tables."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import yaml

from .config.secrets import get_secret
from .config.settings import Settings
from .errors import PermissionConfigError
from .logging_config import get_logger

LOGGER = get_logger(__name__)


class ResourceKind(str, Enum):
    EC2 = "ec2"
    ECS = "ecs"


DEFAULT_PERMISSIONS: Mapping[str, Any] = {
    "users": {
        "er.gauravds": "senior",
        "shivam.kumar": "senior",
        "satyam.choksey": "senior",
        "saurabh.singh": "senior",
        "sujoy.gaur": "senior",
        "sonuy0199": "senior",
        "abhay.faldu": "senior",
    },
    "roles": {
        "intern": {
            "ec2": ["branch-server1", "branch-server2"],
            "ecs": [],
        },
        "medium": {
            "ec2": ["dev-server1", "dev-server2"],
            "ecs": ["staging-cluster"],
        },
        "senior": {
            "ec2": ["dev-qa-servers", "branch-server2"],
            "ecs": [
                "webledger-office-production",
                "webledger-books-production",
                "webledger-office-staging",
                "webledger-auth-production",
                "webledger-books-staging",
                "webledger-books-staging-ec2",
            ],
        },
    },
}


@dataclass(frozen=True)
class PermissionTable:
    """Immutable permission matrix.

    ``users`` maps a Slack handle to a role name and ``roles`` maps a role to
    the resource names it may act on, per :class:`ResourceKind`. Matching is
    exact and case-sensitive.
    """

    users: Mapping[str, str] = field(default_factory=dict)
    roles: Mapping[str, Mapping[ResourceKind, frozenset[str]]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        missing = sorted({role for role in self.users.values() if role not in self.roles})
        if missing:
            raise PermissionConfigError(
                "Users reference undefined roles",
                context={"roles": missing},
            )
        object.__setattr__(self, "users", MappingProxyType(dict(self.users)))
        object.__setattr__(
            self,
            "roles",
            MappingProxyType(
                {
                    role: MappingProxyType(
                        {kind: frozenset(kinds.get(kind, ())) for kind in ResourceKind}
                    )
                    for role, kinds in self.roles.items()
                }
            ),
        )

    def role_of(self, identity: str | None) -> str | None:
        if not identity:
            return None
        return self.users.get(identity)

    def allowed_names(self, role: str | None, kind: ResourceKind) -> frozenset[str]:
        if role is None:
            return frozenset()
        grants = self.roles.get(role)
        if grants is None:
            return frozenset()
        return grants[kind]

    def is_allowed(self, role: str | None, kind: ResourceKind, name: str) -> bool:
        return name in self.allowed_names(role, kind)

    @classmethod
    def from_mapping(cls, document: Mapping[str, Any]) -> "PermissionTable":
        """Build a table from ``{"users": {...}, "roles": {...}}``."""

        if not isinstance(document, Mapping):
            raise PermissionConfigError("Permission document must be a mapping")

        users = document.get("users") or {}
        roles = document.get("roles") or {}
        if not isinstance(users, Mapping) or not isinstance(roles, Mapping):
            raise PermissionConfigError("'users' and 'roles' must be mappings")

        parsed_roles: dict[str, dict[ResourceKind, frozenset[str]]] = {}
        for role, grants in roles.items():
            grants = grants or {}
            if not isinstance(grants, Mapping):
                raise PermissionConfigError(
                    "Role grants must be a mapping", context={"role": role}
                )
            parsed: dict[ResourceKind, frozenset[str]] = {}
            for kind_name, names in grants.items():
                try:
                    kind = ResourceKind(str(kind_name))
                except ValueError as exc:
                    raise PermissionConfigError(
                        f"Unknown resource kind: {kind_name}",
                        context={"role": role, "kind": kind_name},
                    ) from exc
                if isinstance(names, str) or not isinstance(names, (list, tuple, set)):
                    raise PermissionConfigError(
                        "Resource names must be a list",
                        context={"role": role, "kind": kind_name},
                    )
                parsed[kind] = frozenset(str(name) for name in names)
            parsed_roles[str(role)] = parsed

        return cls(
            users={str(user): str(role) for user, role in users.items()},
            roles=parsed_roles,
        )


def load_permission_table(settings: Settings) -> PermissionTable:
    """Resolve the permission document configured for this process.

    Secrets Manager wins over a local YAML file; without either, the built-in
    table is used.
    """

    if settings.permissions_secret:
        document = get_secret(settings.permissions_secret)
        if document is None:
            raise PermissionConfigError(
                "Permission secret could not be read",
                context={"identifier": settings.permissions_secret},
            )
        if isinstance(document, str):
            document = yaml.safe_load(document)
        LOGGER.info("Loaded permissions from Secrets Manager")
        return PermissionTable.from_mapping(document)

    if settings.permissions_file:
        path = Path(settings.permissions_file)
        try:
            with path.open("r", encoding="utf-8") as handle:
                document = yaml.safe_load(handle)
        except OSError as exc:
            raise PermissionConfigError(
                f"Unable to read permission file: {path}", context={"path": str(path)}
            ) from exc
        except yaml.YAMLError as exc:
            raise PermissionConfigError(
                f"Invalid YAML in permission file: {path}", context={"path": str(path)}
            ) from exc
        LOGGER.info("Loaded permissions from file", extra={"path": str(path)})
        return PermissionTable.from_mapping(document or {})

    return PermissionTable.from_mapping(DEFAULT_PERMISSIONS)


__all__ = [
    "DEFAULT_PERMISSIONS",
    "PermissionTable",
    "ResourceKind",
    "load_permission_table",
]
