"""Command line helpers for inspecting the gateway's permission table."""

from __future__ import annotations

import argparse
from typing import Sequence

from .authorizer import authorize, unknown_user_message
from .commands import parse_command
from .config.settings import Settings
from .errors import ParseError, PermissionConfigError
from .logging_config import configure_logging, get_logger
from .permissions import PermissionTable, ResourceKind, load_permission_table


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="opsgateway", description="Ops gateway utilities")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    subcommands = parser.add_subparsers(dest="command", required=True)

    permissions = subcommands.add_parser(
        "permissions", help="Show roles and the resources they may control"
    )
    permissions.add_argument("--user", help="Only show the role assigned to this user")

    check = subcommands.add_parser(
        "check", help="Parse and authorize a slash command without executing it"
    )
    check.add_argument("--user", required=True, help="Slack user_name")
    check.add_argument("--slash-command", required=True, help="e.g. /start-ec2")
    check.add_argument("--text", default="", help="Free-text argument")
    return parser


def _print_role(table: PermissionTable, role: str) -> None:
    print(role)
    for kind in ResourceKind:
        names = ", ".join(sorted(table.allowed_names(role, kind))) or "-"
        print(f"  {kind.value}: {names}")


def _run_permissions(table: PermissionTable, user: str | None) -> int:
    if user:
        role = table.role_of(user)
        if role is None:
            print(unknown_user_message(user))
            return 1
        print(f"@{user} ->", end=" ")
        _print_role(table, role)
        return 0
    for role in sorted(table.roles):
        _print_role(table, role)
    return 0


def _run_check(table: PermissionTable, user: str, token: str, text: str) -> int:
    role = table.role_of(user)
    if role is None:
        print(f"DENY {unknown_user_message(user)}")
        return 1
    try:
        command = parse_command(token, text)
    except ParseError as exc:
        print(f"INVALID {exc}")
        return 2
    decision = authorize(table, user, role, command)
    if not decision.allowed:
        print(f"DENY {decision.message}")
        return 1
    print(f"ALLOW {command.action.value} {command.kind.value} {command.target}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    logger = get_logger(__name__)

    try:
        table = load_permission_table(Settings.from_env())
    except PermissionConfigError as exc:
        logger.error("Unable to load permissions", extra={"error": str(exc), **exc.context})
        print(f"FAIL {exc}")
        return 1

    if args.command == "permissions":
        return _run_permissions(table, args.user)
    if args.command == "check":
        return _run_check(table, args.user, args.slash_command, args.text)

    parser.error(f"Unsupported command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
