"""
Identity Provider Client.

Thin async adapter over the Supabase auth client.  It translates the
vendor session/user objects into ``ProviderIdentity`` so the rest of the
package never depends on Supabase response shapes.

Supabase delivers session-change notifications through a synchronous
callback; :meth:`SupabaseIdentityProvider.on_session_change` keeps that
contract and returns a zero-argument ``unsubscribe`` callable.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from vms_auth.database import DatabaseManager
from vms_auth.logger import StructuredLogger
from vms_auth.models.auth_models import ProviderIdentity
from vms_auth.models.enums import SessionEvent

SessionChangeHandler = Callable[[SessionEvent, Optional[ProviderIdentity]], None]
Unsubscribe = Callable[[], None]


class IdentityProviderError(Exception):
    """Raised when the provider answers without the expected user."""


def identity_from_session(session: Any) -> Optional[ProviderIdentity]:
    """Extract the identity from a Supabase ``Session`` (or ``None``)."""
    user = getattr(session, "user", None) if session is not None else None
    return identity_from_user(user)


def identity_from_user(user: Any) -> Optional[ProviderIdentity]:
    """Extract the identity from a Supabase ``User`` (or ``None``)."""
    if user is None or not getattr(user, "id", None):
        return None
    return ProviderIdentity(user_id=str(user.id), email=getattr(user, "email", None))


class SupabaseIdentityProvider:
    """Session issuance and teardown backed by Supabase auth.

    Every method propagates provider exceptions unchanged; the caller
    (``AuthService``) owns classification and logging of failures.

    Parameters
    ----------
    db:
        Database manager owning the async Supabase client.
    logger:
        Structured JSON logger.
    """

    def __init__(self, db: DatabaseManager, logger: StructuredLogger) -> None:
        self._db: DatabaseManager = db
        self._logger: StructuredLogger = logger

    async def get_current_session(self) -> Optional[ProviderIdentity]:
        session = await self._db.supabase.auth.get_session()
        return identity_from_session(session)

    def on_session_change(self, handler: SessionChangeHandler) -> Unsubscribe:
        """Register *handler* for provider session-change notifications."""

        def _callback(event: Any, session: Any) -> None:
            handler(SessionEvent.parse(event), identity_from_session(session))

        subscription = self._db.supabase.auth.on_auth_state_change(_callback)
        self._logger.debug("Subscribed to identity-provider session changes.")
        return subscription.unsubscribe

    async def sign_in_with_password(self, email: str, password: str) -> ProviderIdentity:
        response = await self._db.supabase.auth.sign_in_with_password({
            "email": email,
            "password": password,
        })
        identity = identity_from_user(response.user)
        if identity is None:
            raise IdentityProviderError("Identity provider returned no user for sign-in.")
        return identity

    async def sign_up(self, email: str, password: str) -> ProviderIdentity:
        response = await self._db.supabase.auth.sign_up({
            "email": email,
            "password": password,
        })
        identity = identity_from_user(response.user)
        if identity is None:
            raise IdentityProviderError("Identity provider returned no user for sign-up.")
        return identity

    async def sign_out(self) -> None:
        await self._db.supabase.auth.sign_out()
