"""
VMS Auth Command-Line Entry Point.

Bootstraps the dependency graph via constructor injection, starts the
auth service on an asyncio loop, and runs a single command.  Every
subsystem is wired here; no module-level globals.

Usage::

    python main.py login --email john@company.com --role employee
    python main.py --demo login --email john@company.com --role employee
    python main.py signup --email jane@company.com --name "Jane Doe" --role guard
    python main.py seed
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import sys
from typing import Optional, Sequence

from vms_auth.auth import SessionManager
from vms_auth.config import AppConfig, get_config
from vms_auth.database import DatabaseManager
from vms_auth.logger import StructuredLogger, get_logger
from vms_auth.models.auth_models import AuthResult, LoginCredentials, SignupCredentials
from vms_auth.models.enums import UserRole
from vms_auth.repositories.base_repository import ProfileStoreError
from vms_auth.seed import seed_demo_profiles
from vms_auth.services import create_services

_ROLE_CHOICES: list[str] = [str(role) for role in UserRole]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vms-auth", description=__doc__.splitlines()[1])
    parser.add_argument(
        "--demo",
        action="store_true",
        help="Accept the built-in demo credentials (overrides DEMO_MODE).",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    login = commands.add_parser("login", help="Sign in as a role.")
    login.add_argument("--email", required=True)
    login.add_argument("--password", help="Prompted for when omitted.")
    login.add_argument("--role", required=True, choices=_ROLE_CHOICES)

    signup = commands.add_parser("signup", help="Create an account and its profile.")
    signup.add_argument("--email", required=True)
    signup.add_argument("--password", help="Prompted for when omitted.")
    signup.add_argument("--name", required=True)
    signup.add_argument("--role", required=True, choices=_ROLE_CHOICES)
    signup.add_argument("--department")

    commands.add_parser("seed", help="Insert the unlinked demo profiles.")
    return parser


def _print_result(result: AuthResult) -> int:
    print(result.model_dump_json(indent=2))
    return 0 if result.success else 1


async def run(args: argparse.Namespace, config: AppConfig) -> int:
    """Wire dependencies, start the auth service, run *args.command*."""
    logger: StructuredLogger = get_logger("vms_auth.main")

    # ------------------------------------------------------------------
    # 1. Supabase client (offline mode when unconfigured)
    # ------------------------------------------------------------------
    db = await DatabaseManager.connect(
        supabase_url=config.SUPABASE_URL,
        supabase_key=config.SUPABASE_ANON_KEY.get_secret_value(),
        logger=get_logger("vms_auth.database"),
    )

    # ------------------------------------------------------------------
    # 2. Session state + services
    # ------------------------------------------------------------------
    session = SessionManager(logger=get_logger("vms_auth.session"))
    services = create_services(db=db, config=config, session=session)
    auth = services["auth_service"]

    if args.command == "seed":
        try:
            inserted = await seed_demo_profiles(services["user_repository"], logger)
        except ProfileStoreError as exc:
            logger.error("Seeding failed: %s", exc)
            return 1
        print(f"Inserted {inserted} demo profile(s).")
        return 0

    # ------------------------------------------------------------------
    # 3. Session restoration, then the command
    # ------------------------------------------------------------------
    await auth.start()
    try:
        password = args.password or getpass.getpass("Password: ")
        if args.command == "login":
            creds = LoginCredentials(email=args.email, password=password, role=args.role)
            result = await auth.login(creds.email, creds.password, creds.role)
        else:
            signup = SignupCredentials(
                email=args.email,
                password=password,
                name=args.name,
                role=args.role,
                department=args.department,
            )
            result = await auth.signup(
                signup.email, signup.password, signup.name, signup.role, signup.department,
            )
        return _print_result(result)
    finally:
        await auth.close()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = get_config()
    if args.demo:
        config = config.model_copy(update={"DEMO_MODE": True})
    return asyncio.run(run(args, config))


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        sys.exit(130)
