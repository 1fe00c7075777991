"""
Administrative commands.

Parameterized maintenance tasks run against the configured database:

    ceo-admin restore-user --email alex.ceo@company.com
    ceo-admin reset-password --email alex.ceo@company.com
    ceo-admin add-member --email sam@company.com --all-channels
    ceo-admin check-schema

Every command writes one audit log line (secrets redacted), prints its
result as JSON and disposes the engine before exiting.

Exit codes: 0 success, 1 not found, 2 rejected (conflict, constraint
violation, invalid input or schema drift). Anything unexpected propagates
with a traceback.
"""

import argparse
import asyncio
import getpass
import json
import random
import sys
import uuid
from typing import Any, Callable, Dict, List, Optional, Sequence

from pydantic import ValidationError
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ceo_platform.apps.channels.services import (
    add_member,
    get_channel,
    link_categories_by_type,
    list_channels,
)
from ceo_platform.apps.users.models import VALID_ROLES
from ceo_platform.apps.users.schemas import AdminUserResponse, UserCreate
from ceo_platform.apps.users.services import (
    backfill_defaults,
    create_user,
    find_by_email,
    reset_password,
    restore_user,
    unlock_user,
)
from ceo_platform.apps.channels.models import VALID_MEMBER_ROLES
from ceo_platform.db.database import async_session_factory, dispose_engine
from ceo_platform.db.models import Base
from ceo_platform.utils.exceptions import BaseAPIException, ResourceNotFoundException
from ceo_platform.utils.logger import configure_logging, get_logger
from ceo_platform.utils.metrics import admin_commands

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_REJECTED = 2

SECRET_ARGS = frozenset({"password"})
MIN_PASSWORD_LENGTH = 8
IGNORED_TABLES = frozenset({"alembic_version"})


class CommandRejected(Exception):
    """The command ran but its result is a failure (e.g. schema drift)."""

    def __init__(self, message: str, result: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.result = result or {}


def redact(args: argparse.Namespace) -> Dict[str, Any]:
    """Command arguments safe to log."""
    return {
        key: ("***" if key in SECRET_ARGS and value is not None else value)
        for key, value in vars(args).items()
        if key != "handler"
    }


def _prompt_password() -> str:
    password = getpass.getpass("New password: ")
    if password != getpass.getpass("Repeat password: "):
        raise CommandRejected("Passwords do not match")
    return password


def _user_summary(user) -> Dict[str, Any]:
    return AdminUserResponse.model_validate(user).model_dump(mode="json")


# ── Handlers ──────────────────────────────────────────────────────────────────

async def cmd_create_user(session: AsyncSession, args: argparse.Namespace) -> Dict[str, Any]:
    password = args.password
    if password is None and args.prompt_password:
        password = _prompt_password()
    data = UserCreate(
        email=args.email,
        name=args.name,
        role=args.role,
        department=args.department,
        job_title=args.job_title,
        password=password,
        email_verified=True,
    )
    user = await create_user(session, data)
    return {"created": True, "user": _user_summary(user)}


async def cmd_restore_user(session: AsyncSession, args: argparse.Namespace) -> Dict[str, Any]:
    user = await restore_user(session, args.email)
    return {"restored": True, "user": _user_summary(user)}


async def cmd_reset_password(session: AsyncSession, args: argparse.Namespace) -> Dict[str, Any]:
    # Look the account up first so a typo in the email fails before prompting.
    await find_by_email(session, args.email)
    password = args.password if args.password is not None else _prompt_password()
    if len(password) < MIN_PASSWORD_LENGTH:
        raise CommandRejected(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    user = await reset_password(session, args.email, password)
    return {"password_reset": True, "user": _user_summary(user)}


async def cmd_unlock_user(session: AsyncSession, args: argparse.Namespace) -> Dict[str, Any]:
    user = await unlock_user(session, args.email)
    return {"unlocked": True, "user": _user_summary(user)}


async def cmd_add_member(session: AsyncSession, args: argparse.Namespace) -> Dict[str, Any]:
    user = await find_by_email(session, args.email)
    if args.all_channels:
        channels = await list_channels(session)
    else:
        channels = [await get_channel(session, args.channel_id)]

    results: List[Dict[str, Any]] = []
    for channel in channels:
        outcome = await add_member(session, channel.id, user.id, role=args.role)
        results.append({"channel_id": str(channel.id), "channel": channel.name, "result": outcome.value})

    return {"user": user.email, "channels": results}


async def cmd_backfill_defaults(session: AsyncSession, args: argparse.Namespace) -> Dict[str, Any]:
    rng = random.Random(args.seed) if args.seed is not None else None
    changed = await backfill_defaults(session, include_deleted=args.include_deleted, rng=rng)
    return {"users_updated": changed}


async def cmd_link_categories(session: AsyncSession, args: argparse.Namespace) -> Dict[str, Any]:
    changed = await link_categories_by_type(session)
    return {"channels_updated": changed}


def _schema_drift(sync_conn) -> Dict[str, Any]:
    inspector = inspect(sync_conn)
    live_tables = set(inspector.get_table_names()) - IGNORED_TABLES
    expected_tables = set(Base.metadata.tables)

    missing_columns: Dict[str, List[str]] = {}
    for name in sorted(expected_tables & live_tables):
        live_columns = {col["name"] for col in inspector.get_columns(name)}
        missing = sorted(set(Base.metadata.tables[name].columns.keys()) - live_columns)
        if missing:
            missing_columns[name] = missing

    return {
        "missing_tables": sorted(expected_tables - live_tables),
        "unexpected_tables": sorted(live_tables - expected_tables),
        "missing_columns": missing_columns,
    }


async def cmd_check_schema(session: AsyncSession, args: argparse.Namespace) -> Dict[str, Any]:
    """Compare the live database with the ORM metadata."""
    connection = await session.connection()
    drift = await connection.run_sync(_schema_drift)
    result = {"ok": not (drift["missing_tables"] or drift["missing_columns"]), **drift}
    if not result["ok"]:
        raise CommandRejected("Database schema does not match the models", result)
    return result


# ── Parser ────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ceo-admin",
        description="Administrative commands for the CEO platform database.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  ceo-admin restore-user --email alex.ceo@company.com
  ceo-admin reset-password --email alex.ceo@company.com
  ceo-admin add-member --email sam@company.com --channel-id 0b6f...
  ceo-admin backfill-defaults --seed 42
""",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("create-user", help="Create an account.")
    p.add_argument("--email", required=True)
    p.add_argument("--name", required=True)
    p.add_argument("--role", default="staff", choices=VALID_ROLES)
    p.add_argument("--department")
    p.add_argument("--job-title")
    p.add_argument("--password", help="Initial password (omit for none).")
    p.add_argument("--prompt-password", action="store_true", help="Read the password interactively.")
    p.set_defaults(handler=cmd_create_user)

    p = sub.add_parser("restore-user", help="Undo a soft delete.")
    p.add_argument("--email", required=True)
    p.set_defaults(handler=cmd_restore_user)

    p = sub.add_parser("reset-password", help="Set a new password and clear any lockout.")
    p.add_argument("--email", required=True)
    p.add_argument("--password", help="New password (prompted when omitted).")
    p.set_defaults(handler=cmd_reset_password)

    p = sub.add_parser("unlock-user", help="Clear failed-login lockout.")
    p.add_argument("--email", required=True)
    p.set_defaults(handler=cmd_unlock_user)

    p = sub.add_parser("add-member", help="Add a user to one channel or to every channel.")
    p.add_argument("--email", required=True)
    target = p.add_mutually_exclusive_group(required=True)
    target.add_argument("--channel-id", type=uuid.UUID)
    target.add_argument("--all-channels", action="store_true")
    p.add_argument("--role", default="member", choices=VALID_MEMBER_ROLES)
    p.set_defaults(handler=cmd_add_member)

    p = sub.add_parser("backfill-defaults", help="Fill empty profile fields with defaults.")
    p.add_argument("--include-deleted", action="store_true")
    p.add_argument("--seed", type=int, help="Seed for generated values.")
    p.set_defaults(handler=cmd_backfill_defaults)

    p = sub.add_parser("link-categories", help="Assign categories to channels by type.")
    p.set_defaults(handler=cmd_link_categories)

    p = sub.add_parser("check-schema", help="Compare the database with the models.")
    p.set_defaults(handler=cmd_check_schema)

    return parser


# ── Runner ────────────────────────────────────────────────────────────────────

def _emit(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, default=str))


async def run(
    args: argparse.Namespace,
    session_factory: Callable[[], AsyncSession] = async_session_factory,
) -> int:
    """Execute one parsed command and return its exit code."""
    logger.info(f"admin command {args.command}", extra={"args": redact(args)})
    status = "error"
    try:
        async with session_factory() as session:
            try:
                result = await args.handler(session, args)
            except Exception:
                await session.rollback()
                raise
        status = "ok"
        _emit({"command": args.command, "status": "ok", "result": result})
        return EXIT_OK
    except ResourceNotFoundException as e:
        status = "not_found"
        logger.warning(f"{args.command}: {e.detail}")
        _emit({"command": args.command, "status": "not_found", "error": e.detail})
        return EXIT_NOT_FOUND
    except BaseAPIException as e:
        status = "rejected"
        logger.warning(f"{args.command}: {e.detail}")
        _emit({"command": args.command, "status": "rejected", "error": e.detail})
        return EXIT_REJECTED
    except ValidationError as e:
        status = "rejected"
        errors = [f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors()]
        _emit({"command": args.command, "status": "rejected", "error": errors})
        return EXIT_REJECTED
    except IntegrityError as e:
        status = "rejected"
        logger.warning(f"{args.command}: constraint violation: {e.orig}")
        _emit({"command": args.command, "status": "rejected", "error": str(e.orig)})
        return EXIT_REJECTED
    except CommandRejected as e:
        status = "rejected"
        logger.warning(f"{args.command}: {e}")
        _emit({"command": args.command, "status": "rejected", "error": str(e), "result": e.result})
        return EXIT_REJECTED
    finally:
        admin_commands.labels(command=args.command, status=status).inc()
        await dispose_engine()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
