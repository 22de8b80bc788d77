"""
User Repository.

The profile store: all access to the ``users`` relation goes through
this class.  Lookups return ``None`` when no row matches and raise
``ProfileStoreError`` when the store itself fails.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from vms_auth.database import DatabaseManager
from vms_auth.logger import StructuredLogger
from vms_auth.models.enums import UserRole
from vms_auth.models.user import NewUserProfile, UserProfile
from vms_auth.repositories.base_repository import BaseRepository, ProfileStoreError


class UserRepository(BaseRepository):
    """Data access layer for ``UserProfile`` rows.

    **No ``delete()`` method.**  Profiles are removed only by the
    ``ON DELETE CASCADE`` on the identity-provider account, never by
    this layer.  There is also no role update: a role is fixed at
    creation.
    """

    TABLE = "users"

    def __init__(
        self,
        db: DatabaseManager,
        logger: StructuredLogger,
        table: Optional[str] = None,
    ) -> None:
        super().__init__(db, logger)
        if table:
            self.TABLE = table

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def get_by_id(self, profile_id: str) -> Optional[UserProfile]:
        """Fetch a profile by primary key."""
        row = await self._maybe_one(
            lambda: self.supabase.table(self.TABLE).select("*").eq("id", profile_id),
            operation_name=f"get_by_id ({self.TABLE})",
        )
        return UserProfile(**row) if row else None

    async def get_by_auth_user_id(self, auth_user_id: str) -> Optional[UserProfile]:
        """Fetch the profile linked to an identity-provider account."""
        row = await self._maybe_one(
            lambda: (
                self.supabase.table(self.TABLE)
                .select("*")
                .eq("auth_user_id", auth_user_id)
            ),
            operation_name=f"get_by_auth_user_id ({self.TABLE})",
        )
        return UserProfile(**row) if row else None

    async def get_by_email(self, email: str) -> Optional[UserProfile]:
        """Fetch a profile by email (unique, stored lowercase)."""
        normalized_email = email.strip().lower()
        row = await self._maybe_one(
            lambda: self.supabase.table(self.TABLE).select("*").eq("email", normalized_email),
            operation_name=f"get_by_email ({self.TABLE})",
        )
        return UserProfile(**row) if row else None

    async def get_by_email_and_role(self, email: str, role: UserRole) -> Optional[UserProfile]:
        """Fetch the profile matching both *email* and *role*."""
        normalized_email = email.strip().lower()
        row = await self._maybe_one(
            lambda: (
                self.supabase.table(self.TABLE)
                .select("*")
                .eq("email", normalized_email)
                .eq("role", str(role))
            ),
            operation_name=f"get_by_email_and_role ({self.TABLE})",
        )
        return UserProfile(**row) if row else None

    async def get_unlinked_by_email(self, email: str) -> Optional[UserProfile]:
        """Fetch a pre-seeded profile that has no identity-provider link yet."""
        normalized_email = email.strip().lower()
        row = await self._maybe_one(
            lambda: (
                self.supabase.table(self.TABLE)
                .select("*")
                .eq("email", normalized_email)
                .is_("auth_user_id", "null")
            ),
            operation_name=f"get_unlinked_by_email ({self.TABLE})",
        )
        return UserProfile(**row) if row else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def insert(self, profile: NewUserProfile) -> UserProfile:
        """Insert a new profile and return the stored row."""
        data = profile.to_row()
        data["email"] = profile.email.strip().lower()
        rows = await self._execute(
            lambda: self.supabase.table(self.TABLE).insert(data),
            operation_name=f"insert ({self.TABLE})",
        )
        if not rows:
            raise ProfileStoreError(f"insert ({self.TABLE}) returned no row")
        created = UserProfile(**rows[0])
        self._logger.info("Profile created: %s (%s)", created.id, created.role)
        return created

    async def link_auth_user(self, profile_id: str, auth_user_id: str) -> Optional[UserProfile]:
        """Bind an unlinked profile to an identity-provider account.

        The update only matches while ``auth_user_id`` is still null, so a
        profile is never re-linked to a second account.  Returns ``None``
        when no row was updated (already linked, or gone).
        """
        rows = await self._execute(
            lambda: (
                self.supabase.table(self.TABLE)
                .update({"auth_user_id": auth_user_id})
                .eq("id", profile_id)
                .is_("auth_user_id", "null")
            ),
            operation_name=f"link_auth_user ({self.TABLE})",
        )
        if not rows:
            self._logger.warning(
                "Profile %s was not linked: already linked or missing.", profile_id,
            )
            return None
        self._logger.info("Profile %s linked to auth user %s", profile_id, auth_user_id)
        return UserProfile(**rows[0])

    async def touch_last_login(
        self,
        profile_id: str,
        when: Optional[datetime] = None,
    ) -> datetime:
        """Stamp ``last_login`` on a profile and return the stamp used."""
        stamp = when or datetime.now(timezone.utc)
        payload: dict[str, Any] = {"last_login": stamp.isoformat()}
        await self._execute(
            lambda: self.supabase.table(self.TABLE).update(payload).eq("id", profile_id),
            operation_name=f"touch_last_login ({self.TABLE})",
        )
        return stamp
