"""
Data Models Package.

Re-exports the Pydantic models for short imports:
    from vms_auth.models import UserRole, UserProfile, SessionUser, AuthResult
"""

from __future__ import annotations

from vms_auth.models.enums import SessionEvent, UserRole
from vms_auth.models.user import NewUserProfile, SessionUser, UserProfile
from vms_auth.models.auth_models import (
    AuthErrorCode,
    AuthResult,
    AuthState,
    LoginCredentials,
    ProviderIdentity,
    SignupCredentials,
    ValidationResult,
)

__all__ = [
    "AuthErrorCode",
    "AuthResult",
    "AuthState",
    "LoginCredentials",
    "NewUserProfile",
    "ProviderIdentity",
    "SessionEvent",
    "SessionUser",
    "SignupCredentials",
    "UserProfile",
    "UserRole",
    "ValidationResult",
]
