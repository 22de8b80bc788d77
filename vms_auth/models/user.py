"""
User Models.

``UserProfile`` mirrors one row of the ``users`` relation.
``SessionUser`` is the in-memory projection handed to consumers while a
session is active.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from vms_auth.models.enums import UserRole

DEFAULT_DEPARTMENT: str = "General"


class UserProfile(BaseModel):
    """Represents a persisted user profile row.

    ``auth_user_id`` is ``None`` for pre-seeded profiles that have not
    yet been linked to an identity-provider account.
    """

    id: str
    auth_user_id: Optional[str] = None
    email: str
    name: str
    role: UserRole
    department: str = DEFAULT_DEPARTMENT
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @field_validator("id", "auth_user_id", mode="before")
    @classmethod
    def _uuid_to_str(cls, value: object) -> object:
        return str(value) if value is not None else None

    @field_validator("department", mode="before")
    @classmethod
    def _default_department(cls, value: object) -> object:
        return DEFAULT_DEPARTMENT if value is None else value

    @property
    def is_linked(self) -> bool:
        """``True`` when the profile is bound to an identity-provider account."""
        return self.auth_user_id is not None


class NewUserProfile(BaseModel):
    """Insert payload for the ``users`` relation.

    ``id``, ``created_at`` and ``last_login`` are assigned by the store.
    """

    auth_user_id: Optional[str] = None
    email: str
    name: str
    role: UserRole
    department: str = DEFAULT_DEPARTMENT

    def to_row(self) -> dict[str, Optional[str]]:
        return {
            "auth_user_id": self.auth_user_id,
            "email": self.email,
            "name": self.name,
            "role": str(self.role),
            "department": self.department,
        }


class SessionUser(BaseModel):
    """The authenticated user exposed to consumers."""

    id: str
    name: str
    email: str
    role: UserRole
    department: str
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_profile(
        cls,
        profile: UserProfile,
        last_login: Optional[datetime] = None,
    ) -> "SessionUser":
        """Project *profile* onto the session view.

        *last_login* overrides the stored stamp (demo logins report the
        moment of authentication).
        """
        return cls(
            id=profile.id,
            name=profile.name,
            email=profile.email,
            role=profile.role,
            department=profile.department,
            created_at=profile.created_at,
            last_login=last_login if last_login is not None else profile.last_login,
        )
