"""
Business Logic Services Package.

Services depend on the repository layer for profile access and on the
identity-provider client for sessions.

The ``create_services()`` factory wires every collaborator together and
returns a typed dict that the application layer can consume without
knowing the internal dependency graph.
"""

from __future__ import annotations

from typing import TypedDict

from vms_auth.auth import SessionManager
from vms_auth.config import AppConfig
from vms_auth.database import DatabaseManager
from vms_auth.identity_provider import SupabaseIdentityProvider
from vms_auth.logger import get_logger
from vms_auth.repositories.user_repository import UserRepository
from vms_auth.services.auth_service import AuthService
from vms_auth.services.demo_accounts import DemoAccountRegistry


class ServiceContainer(TypedDict):
    """Typed container for the wired services."""

    user_repository: UserRepository
    identity_provider: SupabaseIdentityProvider
    demo_accounts: DemoAccountRegistry
    auth_service: AuthService


def create_services(
    db: DatabaseManager,
    config: AppConfig,
    session: SessionManager,
) -> ServiceContainer:
    """
    Wire the profile store, identity provider and auth service.

    This is the single composition root for the service layer.  The
    entry point calls this once at startup, then awaits
    ``auth_service.start()`` on its event loop.

    Args:
        db: DatabaseManager holding the async Supabase client.
        config: Application configuration.
        session: The shared session state holder.

    Returns:
        ServiceContainer mapping service names to fully-wired instances.
    """
    logger = get_logger("vms_auth.services")

    user_repository = UserRepository(db=db, logger=logger, table=config.USERS_TABLE)
    identity_provider = SupabaseIdentityProvider(db=db, logger=logger)
    demo_accounts = DemoAccountRegistry(enabled=config.DEMO_MODE, logger=logger)

    auth_service = AuthService(
        repo=user_repository,
        identity=identity_provider,
        session=session,
        demo_accounts=demo_accounts,
        logger=logger,
        default_department=config.DEFAULT_DEPARTMENT,
    )

    return ServiceContainer(
        user_repository=user_repository,
        identity_provider=identity_provider,
        demo_accounts=demo_accounts,
        auth_service=auth_service,
    )
