"""
Authentication Pipeline Models.

Pydantic models and enumerations for the auth request/response
contracts between ``AuthService`` and its consumers.

Every auth operation returns a structured, inspectable ``AuthResult``
rather than a bare boolean, so the failure category survives up to the
UI layer.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, computed_field

from vms_auth.models.enums import UserRole
from vms_auth.models.user import SessionUser


# ---------------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------------

class AuthErrorCode(StrEnum):
    """Exhaustive enumeration of authentication error categories."""

    INVALID_CREDENTIALS = "invalid_credentials"
    EMAIL_ALREADY_EXISTS = "email_already_exists"
    NETWORK_ERROR = "network_error"
    PROVIDER_ERROR = "provider_error"
    PROFILE_STORE_ERROR = "profile_store_error"
    PROFILE_NOT_FOUND = "profile_not_found"
    ROLE_MISMATCH = "role_mismatch"
    LINK_FAILED = "link_failed"
    PARTIAL_SIGNUP = "partial_signup"
    VALIDATION_ERROR = "validation_error"
    UNKNOWN_ERROR = "unknown_error"


# ---------------------------------------------------------------------------
# Identity-provider error-code mapping
# ---------------------------------------------------------------------------

PROVIDER_ERROR_MAP: dict[str, tuple[AuthErrorCode, str]] = {
    "invalid_credentials": (
        AuthErrorCode.INVALID_CREDENTIALS,
        "Incorrect email or password.",
    ),
    "invalid login credentials": (
        AuthErrorCode.INVALID_CREDENTIALS,
        "Incorrect email or password.",
    ),
    "invalid_grant": (
        AuthErrorCode.INVALID_CREDENTIALS,
        "Incorrect email or password.",
    ),
    "email_not_confirmed": (
        AuthErrorCode.INVALID_CREDENTIALS,
        "Please confirm your email address before signing in.",
    ),
    "user_already_exists": (
        AuthErrorCode.EMAIL_ALREADY_EXISTS,
        "An account with this email already exists. Try signing in.",
    ),
    "user already registered": (
        AuthErrorCode.EMAIL_ALREADY_EXISTS,
        "An account with this email already exists. Try signing in.",
    ),
    "weak_password": (
        AuthErrorCode.VALIDATION_ERROR,
        "The password does not meet the strength requirements.",
    ),
}


# ---------------------------------------------------------------------------
# Validation result
# ---------------------------------------------------------------------------

class ValidationResult(BaseModel):
    """Result of a single client-side field validation check."""

    is_valid: bool
    error_message: Optional[str] = None


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class LoginCredentials(BaseModel):
    """Email, password and the role the user is signing in as."""

    email: str
    password: str
    role: UserRole


class SignupCredentials(BaseModel):
    """Registration request.  ``department`` falls back to the configured
    default when omitted."""

    email: str
    password: str
    name: str
    role: UserRole
    department: Optional[str] = None


# ---------------------------------------------------------------------------
# Identity-provider session
# ---------------------------------------------------------------------------

class ProviderIdentity(BaseModel):
    """The identity carried by a provider session (or a fresh signup)."""

    user_id: str
    email: Optional[str] = None

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Unified auth response
# ---------------------------------------------------------------------------

class AuthResult(BaseModel):
    """Unified response for login and signup.

    Truthiness follows ``success``, so callers that only need the
    boolean outcome can write ``if await auth.login(...):``.

    Attributes
    ----------
    success:
        ``True`` when the operation completed without error.
    error_code:
        Structured error category (``None`` on success).
    error_message:
        Human-readable error description (``None`` on success).
    user:
        The session user, when one was established by the call.
    is_demo_login:
        ``True`` when the login was served by the demo credential table.
    """

    success: bool
    error_code: Optional[AuthErrorCode] = None
    error_message: Optional[str] = None
    user: Optional[SessionUser] = None
    is_demo_login: bool = False

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def failure(cls, error_code: AuthErrorCode, error_message: str) -> "AuthResult":
        return cls(success=False, error_code=error_code, error_message=error_message)


# ---------------------------------------------------------------------------
# Consumer-facing state
# ---------------------------------------------------------------------------

class AuthState(BaseModel):
    """Read-only snapshot published to consumers."""

    current_user: Optional[SessionUser] = None
    is_loading: bool = True

    model_config = ConfigDict(frozen=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_authenticated(self) -> bool:
        return self.current_user is not None
