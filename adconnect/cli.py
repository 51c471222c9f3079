"""Command line front end.

    python -m adconnect login  --user jdoe@example.com
    python -m adconnect groups --user jdoe@example.com --detailed
    python -m adconnect users  --user jdoe@example.com --formatted

Connection settings come from AD_* environment variables, the password
from AD_PASSWORD or an interactive prompt.
"""
from __future__ import annotations

import argparse
import getpass
import json
import logging
import os
import sys
from dataclasses import asdict, is_dataclass
from datetime import datetime
from typing import Any, Optional, Sequence

from pydantic import ValidationError

from .ad import ActiveDirectory, OperationResult, RawEntry
from .env_settings import get_env
from .log_config import setup_logging

logger = logging.getLogger(__name__)


def _jsonable(value: Any) -> Any:
    if isinstance(value, RawEntry):
        return {"dn": value.dn, "object": value.object}
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bytes):
        return value.hex()
    return str(value)


def _render(result: OperationResult) -> dict:
    if result.success:
        return {"success": True, "payload": result.payload}
    return {
        "success": False,
        "reason": result.reason,
        "cause": str(result.cause) if result.cause is not None else None,
    }


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--user", required=True, help="UPN, DN or DOMAIN\\sAMAccountName")
    common.add_argument("--base", default=None, help="Override the configured search base")

    parser = argparse.ArgumentParser(prog="adconnect", description="Active Directory authentication connector")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("login", parents=[common], help="Authenticate and print the user's entry")
    groups = sub.add_parser("groups", parents=[common], help="List groups visible to the user")
    groups.add_argument("--detailed", action="store_true")
    users = sub.add_parser("users", parents=[common], help="List users visible to the user")
    users.add_argument("--formatted", action="store_true")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    env = get_env()
    setup_logging(env.log_level, env.log_file)

    try:
        cfg = env.to_config(warn=logger.warning)
    except ValidationError as e:
        logger.error("Invalid directory settings: %s", e)
        return 2

    password = os.environ.get("AD_PASSWORD")
    if password is None:
        password = getpass.getpass(f"Password for {args.user}: ")

    client = ActiveDirectory(cfg, log=logger)
    if args.command == "login":
        result = client.authenticate_and_fetch(args.user, password, base=args.base)
    elif args.command == "groups":
        result = client.list_groups(args.user, password, base=args.base, detailed=args.detailed)
    else:
        result = client.list_users(args.user, password, base=args.base, formatted=args.formatted)

    json.dump(_render(result), sys.stdout, default=_jsonable, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0 if result.success else 1
