"""
Shared Enumerations for VMS Auth Models.

StrEnum values compare equal to their string equivalents, so rows read
from the ``users`` relation (``role = 'admin'``) match directly.
"""

from __future__ import annotations
from enum import StrEnum


class UserRole(StrEnum):
    """The three fixed application roles.

    Mirrors the ``user_role`` Postgres enum.  A role is assigned at
    signup (or by the seeding process) and never changes afterwards.
    """

    ADMIN = "admin"
    EMPLOYEE = "employee"
    GUARD = "guard"


class SessionEvent(StrEnum):
    """Identity-provider session-change notifications.

    Values match the Supabase ``AuthChangeEvent`` names.
    """

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"
    MFA_CHALLENGE_VERIFIED = "MFA_CHALLENGE_VERIFIED"

    @classmethod
    def parse(cls, value: object) -> "SessionEvent":
        """Coerce a provider event (enum member or string) to ``SessionEvent``.

        Unknown names map to ``USER_UPDATED``, which only triggers a
        re-resolution of the current session.
        """
        raw = getattr(value, "value", value)
        try:
            return cls(str(raw))
        except ValueError:
            return cls.USER_UPDATED
