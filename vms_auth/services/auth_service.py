"""
Authentication Service.

Single orchestrator for every authentication concern of the VMS client:
session restoration, login (demo table and identity provider), linking
of pre-seeded profiles, signup, logout and error classification.

Sits between the consumers and the identity provider / profile store so
that views stay thin form handlers.  All operations return a typed
``AuthResult``; nothing but programming errors is raised to the caller.

Session-change notifications from the provider are the only path that
populates ``current_user`` for provider logins.  While ``login`` or
``signup`` is in flight those notifications are held back; the last one
is replayed through the normal path when the operation succeeds and
dropped when it fails, so a rejected login never exposes a profile.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Coroutine
from datetime import datetime, timezone
from typing import Any, Optional, Union

import httpx

from vms_auth.auth import SessionManager, StateListener
from vms_auth.database import SupabaseOfflineError
from vms_auth.identity_provider import SupabaseIdentityProvider, Unsubscribe
from vms_auth.logger import StructuredLogger
from vms_auth.models.auth_models import (
    PROVIDER_ERROR_MAP,
    AuthErrorCode,
    AuthResult,
    AuthState,
    ProviderIdentity,
    ValidationResult,
)
from vms_auth.models.enums import SessionEvent, UserRole
from vms_auth.models.user import DEFAULT_DEPARTMENT, NewUserProfile, SessionUser, UserProfile
from vms_auth.repositories.base_repository import ProfileStoreError
from vms_auth.repositories.user_repository import UserRepository
from vms_auth.services.base_service import BaseService
from vms_auth.services.demo_accounts import DemoAccountRegistry
from vms_auth.utils.audit import log_audit_event


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_EMAIL_RE: re.Pattern[str] = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)+$"
)

# Supabase rejects shorter passwords by default.
_MIN_PASSWORD_LENGTH: int = 6

# Matches C0 controls (U+0000–U+001F), DEL (U+007F), and C1 controls (U+0080–U+009F).
_CONTROL_CHAR_RE: re.Pattern[str] = re.compile(r"[\x00-\x1f\x7f-\x9f]")

_NETWORK_ERRORS: tuple[type[BaseException], ...] = (
    ConnectionError,
    TimeoutError,
    httpx.TransportError,
    SupabaseOfflineError,
)

PendingNotification = tuple[SessionEvent, Optional[ProviderIdentity]]


class AuthNotInitializedError(RuntimeError):
    """Raised when auth state is read outside a started ``AuthService``."""


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class AuthService(BaseService):
    """The auth session manager.

    Receives all infrastructure dependencies via ``__init__``.  Call
    :meth:`start` once on the running event loop before reading state and
    :meth:`close` on shutdown.

    Parameters
    ----------
    repo:
        Profile store over the ``users`` relation.
    identity:
        Identity-provider client.
    session:
        Injectable state holder shared with consumers.
    demo_accounts:
        Demo credential registry (inert unless demo mode is enabled).
    logger:
        Structured JSON logger for audit-grade logging.
    default_department:
        Department stored when signup omits one.
    """

    def __init__(
        self,
        repo: UserRepository,
        identity: SupabaseIdentityProvider,
        session: SessionManager,
        demo_accounts: DemoAccountRegistry,
        logger: StructuredLogger,
        default_department: str = DEFAULT_DEPARTMENT,
    ) -> None:
        super().__init__(logger)
        self._repo: UserRepository = repo
        self._identity: SupabaseIdentityProvider = identity
        self._session: SessionManager = session
        self._demo: DemoAccountRegistry = demo_accounts
        self._default_department: str = default_department

        self._started: bool = False
        self._closed: bool = False
        self._unsubscribe: Optional[Unsubscribe] = None
        self._background_tasks: set[asyncio.Task[Any]] = set()

        # Notifications held back while login/signup run.
        self._deferring: int = 0
        self._deferred: list[PendingNotification] = []

    # ==================================================================
    # Lifecycle
    # ==================================================================

    async def start(self) -> None:
        """Subscribe to provider notifications and restore any existing
        session.  ``is_loading`` turns ``False`` once restoration ends.

        Calling ``start`` again is a no-op.
        """
        if self._started:
            return
        self._started = True
        self._closed = False

        try:
            self._unsubscribe = self._identity.on_session_change(self._on_session_change)
        except Exception as exc:
            self._logger.error(
                "Could not subscribe to session changes: %s", exc,
                extra={"event": "SUBSCRIBE_FAILED"},
            )

        try:
            identity = await self._identity.get_current_session()
            if identity is not None:
                await self._resolve_profile(identity)
            else:
                self._logger.info("No existing session to restore.")
        except Exception as exc:
            self._logger.warning(
                "Session restoration failed: %s", exc,
                extra={"event": "RESTORE_FAILED"},
            )
        finally:
            self._session.end_loading()

    async def close(self) -> None:
        """Release the provider subscription and drain background work."""
        if self._unsubscribe is not None:
            try:
                self._unsubscribe()
            except Exception as exc:
                self._logger.warning("Unsubscribe from session changes failed: %s", exc)
            self._unsubscribe = None
        await self.wait_for_background_tasks()
        self._closed = True
        self._started = False

    async def wait_for_background_tasks(self) -> None:
        """Await every detached task (profile resolutions, ``last_login``
        stamps), including tasks spawned while waiting."""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    # ==================================================================
    # Consumer accessor
    # ==================================================================

    def context(self) -> AuthState:
        """Return ``{current_user, is_authenticated, is_loading}``.

        Raises:
            AuthNotInitializedError: If :meth:`start` has not run, or the
                service was closed.
        """
        self._require_started()
        return self._session.snapshot()

    def subscribe(self, listener: StateListener) -> Unsubscribe:
        """Register *listener* for state changes; see ``SessionManager``."""
        self._require_started()
        return self._session.subscribe(listener)

    def _require_started(self) -> None:
        if not self._started or self._closed:
            raise AuthNotInitializedError(
                "Auth state accessed outside an initialised AuthService. "
                "Await AuthService.start() first."
            )

    # ==================================================================
    # Validation helpers
    # ==================================================================

    @staticmethod
    def validate_email(email: str) -> ValidationResult:
        """Validate an email address against a simplified RFC 5322 regex."""
        if not email or not email.strip():
            return ValidationResult(
                is_valid=False,
                error_message="Email address is required.",
            )
        if not _EMAIL_RE.match(email.strip()):
            return ValidationResult(
                is_valid=False,
                error_message="Please enter a valid email address.",
            )
        return ValidationResult(is_valid=True)

    @staticmethod
    def validate_password(password: str) -> ValidationResult:
        if len(password) < _MIN_PASSWORD_LENGTH:
            return ValidationResult(
                is_valid=False,
                error_message=(
                    f"Password must be at least {_MIN_PASSWORD_LENGTH} characters."
                ),
            )
        return ValidationResult(is_valid=True)

    @staticmethod
    def validate_name(name: str) -> ValidationResult:
        """Reject empty names and names containing control characters."""
        stripped = name.strip()
        if not stripped:
            return ValidationResult(is_valid=False, error_message="Name is required.")
        if _CONTROL_CHAR_RE.search(stripped):
            return ValidationResult(
                is_valid=False,
                error_message=(
                    "Name contains invalid characters. "
                    "Only printable characters are allowed."
                ),
            )
        return ValidationResult(is_valid=True)

    @staticmethod
    def normalize_email(email: str) -> str:
        """Normalise an email address: strip whitespace and lowercase."""
        return email.strip().lower()

    @staticmethod
    def _coerce_role(role: Union[UserRole, str]) -> Optional[UserRole]:
        try:
            return UserRole(str(role).strip().lower())
        except ValueError:
            return None

    # ==================================================================
    # Login
    # ==================================================================

    async def login(
        self,
        email: str,
        password: str,
        role: Union[UserRole, str],
    ) -> AuthResult:
        """Authenticate *email* as *role*.

        Precedence:

        1. Demo table (only in demo mode): credential pair matches and a
           profile with this email and role exists.  The provider is
           never contacted.
        2. Identity provider: sign in, resolve the profile by provider
           id, otherwise link an unlinked profile with the same email,
           then require the profile's role to equal *role*.  Any failure
           after a successful sign-in signs the provider session out.

        Returns
        -------
        AuthResult
            ``success=True`` or a classified failure.  ``user`` is the
            session user when the session now holds the resolved profile,
            otherwise ``None`` (e.g. the replayed profile lookup failed).
        """
        requested_role = self._coerce_role(role)
        if requested_role is None:
            return AuthResult.failure(
                AuthErrorCode.VALIDATION_ERROR, f"Unknown role '{role}'.",
            )
        if not email or not email.strip() or not password:
            return AuthResult.failure(
                AuthErrorCode.VALIDATION_ERROR, "Email and password are required.",
            )
        email = self.normalize_email(email)

        self._begin_operation()
        identity: Optional[ProviderIdentity] = None
        profile_id: Optional[str] = None
        result = AuthResult.failure(AuthErrorCode.UNKNOWN_ERROR, "Login did not complete.")
        try:
            demo_result = await self._demo_login(email, password, requested_role)
            if demo_result is not None:
                result = demo_result
            else:
                result, identity, profile_id = await self._provider_login(
                    email, password, requested_role,
                )
        except Exception as exc:
            self._logger.error(
                "Unexpected login error for %s: %s", email, exc,
                exc_info=True,
                extra={"event": "LOGIN_FAILED", "error_code": "unknown"},
            )
            result = AuthResult.failure(
                AuthErrorCode.UNKNOWN_ERROR,
                "An unexpected error occurred. Please try again later.",
            )
        finally:
            await self._finish_operation(
                replay=result.success and identity is not None,
                fallback=identity,
            )
        return self._with_session_user(result, profile_id)

    async def _demo_login(
        self,
        email: str,
        password: str,
        role: UserRole,
    ) -> Optional[AuthResult]:
        """Serve the login from the demo table, or return ``None`` to fall
        through to the identity provider."""
        if not self._demo.matches(email, password):
            return None

        try:
            profile = await self._repo.get_by_email_and_role(email, role)
        except ProfileStoreError as exc:
            self._logger.error(
                "Demo profile lookup failed for %s: %s", email, exc,
                extra={"event": "LOGIN_FAILED", "error_code": AuthErrorCode.PROFILE_STORE_ERROR},
            )
            return AuthResult.failure(
                AuthErrorCode.PROFILE_STORE_ERROR,
                "User profiles are unavailable. Please try again later.",
            )

        if profile is None:
            self._logger.info(
                "Demo credentials matched but no %s profile exists for %s; "
                "trying the identity provider.",
                role,
                email,
            )
            return None

        now = datetime.now(timezone.utc)
        try:
            await self._repo.touch_last_login(profile.id, now)
        except ProfileStoreError as exc:
            self._logger.warning(
                "Could not stamp last_login for demo user %s: %s", profile.id, exc,
            )

        user = SessionUser.from_profile(profile, last_login=now)
        self._session.set_current_user(user)

        self._logger.info(
            "Demo user authenticated: %s (role: %s)",
            user.name,
            user.role,
            extra={"event": "DEMO_LOGIN", "email": user.email, "user_id": user.id},
        )
        log_audit_event(
            logger=self._logger,
            action="DEMO_LOGIN",
            entity_type="UserProfile",
            entity_id=user.id,
            user_id=user.id,
            details={"email": user.email, "role": str(user.role)},
        )
        return AuthResult(success=True, user=user, is_demo_login=True)

    async def _provider_login(
        self,
        email: str,
        password: str,
        role: UserRole,
    ) -> tuple[AuthResult, Optional[ProviderIdentity], Optional[str]]:
        try:
            identity = await self._identity.sign_in_with_password(email, password)
        except Exception as exc:
            return self._classify_provider_error(exc, email, operation="login"), None, None

        try:
            profile = await self._repo.get_by_auth_user_id(identity.user_id)
        except ProfileStoreError as exc:
            self._logger.error(
                "Profile lookup failed for auth user %s: %s", identity.user_id, exc,
                extra={"event": "LOGIN_FAILED", "error_code": AuthErrorCode.PROFILE_STORE_ERROR},
            )
            await self._abort_provider_session(email)
            return AuthResult.failure(
                AuthErrorCode.PROFILE_STORE_ERROR,
                "User profiles are unavailable. Please try again later.",
            ), None, None

        if profile is None:
            link_result = await self._link_unlinked_profile(identity, email)
            if isinstance(link_result, AuthResult):
                await self._abort_provider_session(email)
                return link_result, None, None
            profile = link_result

        if profile.role != role:
            self._logger.warning(
                "Role mismatch for %s: profile is %s, requested %s.",
                email,
                profile.role,
                role,
                extra={"event": "LOGIN_FAILED", "error_code": AuthErrorCode.ROLE_MISMATCH},
            )
            await self._abort_provider_session(email)
            return AuthResult.failure(
                AuthErrorCode.ROLE_MISMATCH,
                f"This account is not registered as {role}.",
            ), None, None

        self._logger.info(
            "User authenticated: %s (role: %s)",
            profile.name,
            profile.role,
            extra={"event": "LOGIN", "email": profile.email, "user_id": profile.id},
        )
        log_audit_event(
            logger=self._logger,
            action="LOGIN",
            entity_type="UserProfile",
            entity_id=profile.id,
            user_id=profile.id,
            details={"email": profile.email, "role": str(profile.role)},
        )
        return AuthResult(success=True), identity, profile.id

    async def _link_unlinked_profile(
        self,
        identity: ProviderIdentity,
        email: str,
    ) -> Union[UserProfile, AuthResult]:
        """Find the pre-seeded profile for this email and bind it to the
        provider account.  Returns the linked profile or a failure."""
        lookup_email = self.normalize_email(identity.email or email)
        try:
            unlinked = await self._repo.get_unlinked_by_email(lookup_email)
        except ProfileStoreError as exc:
            self._logger.error(
                "Unlinked profile lookup failed for %s: %s", lookup_email, exc,
                extra={"event": "LOGIN_FAILED", "error_code": AuthErrorCode.PROFILE_STORE_ERROR},
            )
            return AuthResult.failure(
                AuthErrorCode.PROFILE_STORE_ERROR,
                "User profiles are unavailable. Please try again later.",
            )

        if unlinked is None:
            self._logger.warning(
                "No profile found for auth user %s (%s).", identity.user_id, lookup_email,
                extra={"event": "LOGIN_FAILED", "error_code": AuthErrorCode.PROFILE_NOT_FOUND},
            )
            return AuthResult.failure(
                AuthErrorCode.PROFILE_NOT_FOUND,
                "No user profile exists for this account. Contact your administrator.",
            )

        try:
            linked = await self._repo.link_auth_user(unlinked.id, identity.user_id)
        except ProfileStoreError as exc:
            linked = None
            self._logger.error(
                "Linking profile %s to auth user %s failed: %s",
                unlinked.id,
                identity.user_id,
                exc,
            )

        if linked is None:
            self._logger.error(
                "Profile %s could not be linked; provider account %s stays unlinked.",
                unlinked.id,
                identity.user_id,
                extra={"event": "LOGIN_FAILED", "error_code": AuthErrorCode.LINK_FAILED},
            )
            return AuthResult.failure(
                AuthErrorCode.LINK_FAILED,
                "Your account could not be linked to its profile. Please try again.",
            )

        log_audit_event(
            logger=self._logger,
            action="LINK",
            entity_type="UserProfile",
            entity_id=linked.id,
            user_id=linked.id,
            details={"auth_user_id": identity.user_id, "email": linked.email},
        )
        return linked

    # ==================================================================
    # Signup
    # ==================================================================

    async def signup(
        self,
        email: str,
        password: str,
        name: str,
        role: Union[UserRole, str],
        department: Optional[str] = None,
    ) -> AuthResult:
        """Create a provider account and its linked profile.

        When the profile insert fails the fresh provider session is
        signed out.  The provider account itself is not deleted and
        remains orphaned.

        ``user`` stays ``None`` on success when the provider issued no
        session (e-mail confirmation pending).
        """
        requested_role = self._coerce_role(role)
        if requested_role is None:
            return AuthResult.failure(
                AuthErrorCode.VALIDATION_ERROR, f"Unknown role '{role}'.",
            )
        for check in (
            self.validate_email(email),
            self.validate_password(password),
            self.validate_name(name),
        ):
            if not check.is_valid:
                return AuthResult.failure(
                    AuthErrorCode.VALIDATION_ERROR, check.error_message or "Invalid input.",
                )

        email = self.normalize_email(email)
        new_profile = NewUserProfile(
            email=email,
            name=name.strip(),
            role=requested_role,
            department=(department or "").strip() or self._default_department,
        )

        self._begin_operation()
        profile_id: Optional[str] = None
        result = AuthResult.failure(AuthErrorCode.UNKNOWN_ERROR, "Signup did not complete.")
        try:
            result, profile_id = await self._signup_flow(new_profile, password)
        except Exception as exc:
            self._logger.error(
                "Unexpected signup error for %s: %s", email, exc,
                exc_info=True,
                extra={"event": "SIGNUP_FAILED", "error_code": "unknown"},
            )
            result = AuthResult.failure(
                AuthErrorCode.UNKNOWN_ERROR,
                "Registration could not be completed. Please try again later.",
            )
        finally:
            await self._finish_operation(replay=result.success)
        return self._with_session_user(result, profile_id)

    async def _signup_flow(
        self,
        new_profile: NewUserProfile,
        password: str,
    ) -> tuple[AuthResult, Optional[str]]:
        try:
            identity = await self._identity.sign_up(new_profile.email, password)
        except Exception as exc:
            failure = self._classify_provider_error(exc, new_profile.email, operation="signup")
            return failure, None

        new_profile = new_profile.model_copy(update={"auth_user_id": identity.user_id})
        try:
            profile = await self._repo.insert(new_profile)
        except ProfileStoreError as exc:
            self._logger.error(
                "Profile creation failed for %s; provider account %s is orphaned: %s",
                new_profile.email,
                identity.user_id,
                exc,
                extra={"event": "SIGNUP_FAILED", "error_code": AuthErrorCode.PARTIAL_SIGNUP},
            )
            await self._abort_provider_session(new_profile.email)
            return AuthResult.failure(
                AuthErrorCode.PARTIAL_SIGNUP,
                "Your account was created but its profile could not be saved. "
                "Contact your administrator.",
            ), None

        self._logger.info(
            "User registered: %s (%s, %s).",
            profile.name,
            profile.email,
            profile.role,
            extra={"event": "SIGNUP", "email": profile.email, "user_id": profile.id},
        )
        log_audit_event(
            logger=self._logger,
            action="SIGNUP",
            entity_type="UserProfile",
            entity_id=profile.id,
            user_id=profile.id,
            details={
                "email": profile.email,
                "role": str(profile.role),
                "department": profile.department,
            },
        )
        return AuthResult(success=True), profile.id

    # ==================================================================
    # Logout
    # ==================================================================

    async def logout(self) -> None:
        """End the session.  Never raises; safe to call repeatedly.

        The provider is only asked to sign out when the current profile
        is linked to a provider account, so demo sessions stay local.
        """
        user = self._session.current_user
        if user is not None:
            sign_out = True
            try:
                profile = await self._repo.get_by_id(user.id)
                sign_out = profile is not None and profile.is_linked
            except Exception as exc:
                self._logger.warning(
                    "Link check failed during logout for %s: %s; signing out anyway.",
                    user.email,
                    exc,
                )

            if sign_out:
                try:
                    await self._identity.sign_out()
                except Exception as exc:
                    self._logger.warning(
                        "Provider sign-out failed for %s: %s", user.email, exc,
                    )

        self._session.clear()

        if user is not None:
            self._logger.info(
                "User logged out: %s",
                user.email,
                extra={"event": "LOGOUT", "email": user.email, "user_id": user.id},
            )
            log_audit_event(
                logger=self._logger,
                action="LOGOUT",
                entity_type="UserProfile",
                entity_id=user.id,
                user_id=user.id,
            )

    # ==================================================================
    # Session-change notifications
    # ==================================================================

    def _on_session_change(
        self,
        event: SessionEvent,
        identity: Optional[ProviderIdentity],
    ) -> None:
        """Provider callback; runs synchronously inside provider calls."""
        if self._deferring:
            self._logger.debug("Deferring %s notification until the operation ends.", event)
            self._deferred.append((event, identity))
            return
        self._spawn(self._handle_session_change(event, identity), name=f"session-{event}")

    async def _handle_session_change(
        self,
        event: SessionEvent,
        identity: Optional[ProviderIdentity],
    ) -> None:
        if identity is None:
            if self._session.is_authenticated:
                self._logger.info("Session ended by provider (%s).", event)
            self._session.clear()
            return
        await self._resolve_profile(identity)

    async def _resolve_profile(self, identity: ProviderIdentity) -> Optional[SessionUser]:
        """Publish the profile linked to *identity* as ``current_user``.

        Lookup errors leave the state untouched.  ``last_login`` is
        stamped in a detached task.
        """
        try:
            profile = await self._repo.get_by_auth_user_id(identity.user_id)
        except Exception as exc:
            self._logger.error(
                "Error fetching user profile for auth user %s: %s", identity.user_id, exc,
                extra={"event": "PROFILE_RESOLVE_FAILED"},
            )
            return None

        if profile is None:
            self._logger.warning(
                "No profile linked to auth user %s; session user not set.",
                identity.user_id,
            )
            return None

        user = SessionUser.from_profile(profile)
        self._session.set_current_user(user)
        self._spawn(self._stamp_last_login(profile.id), name=f"last-login-{profile.id}")
        return user

    async def _stamp_last_login(self, profile_id: str) -> None:
        try:
            await self._repo.touch_last_login(profile_id)
        except Exception as exc:
            self._logger.warning("Could not update last_login for %s: %s", profile_id, exc)

    # ==================================================================
    # Operation bookkeeping
    # ==================================================================

    def _begin_operation(self) -> None:
        self._deferring += 1
        self._session.begin_loading()

    async def _finish_operation(
        self,
        replay: bool,
        fallback: Optional[ProviderIdentity] = None,
    ) -> None:
        """Close an operation started with :meth:`_begin_operation`.

        On success the most recent deferred notification is handled
        inline (or *fallback* when the provider sent none); on failure the
        deferred notifications are discarded.
        """
        self._deferring -= 1
        pending: list[PendingNotification] = []
        if self._deferring == 0:
            pending, self._deferred = self._deferred, []

        try:
            if replay:
                if pending:
                    event, identity = pending[-1]
                    await self._handle_session_change(event, identity)
                elif fallback is not None:
                    await self._handle_session_change(SessionEvent.SIGNED_IN, fallback)
            elif pending:
                self._logger.debug(
                    "Discarded %d session notification(s) from a failed operation.",
                    len(pending),
                )
        finally:
            self._session.end_loading()

    def _with_session_user(
        self,
        result: AuthResult,
        profile_id: Optional[str],
    ) -> AuthResult:
        """Attach the session user to a successful *result*, but only when
        it is the profile the operation resolved."""
        if not result.success or result.user is not None or profile_id is None:
            return result
        current = self._session.current_user
        if current is None or current.id != profile_id:
            self._logger.warning(
                "Session user does not match resolved profile %s; result carries no user.",
                profile_id,
            )
            return result
        return result.model_copy(update={"user": current})

    def _spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            self._logger.error("No running event loop; dropped background task %s.", name)
            return
        task = loop.create_task(coro, name=name)
        self._background_tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        self._background_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._logger.error("Background task %s failed: %s", task.get_name(), exc)

    # ==================================================================
    # Error classification
    # ==================================================================

    async def _abort_provider_session(self, email: str) -> None:
        """Best-effort sign-out of a provider session that must not stand."""
        try:
            await self._identity.sign_out()
        except Exception as exc:
            self._logger.warning("Compensating sign-out failed for %s: %s", email, exc)

    def _classify_provider_error(
        self,
        exc: Exception,
        email: str,
        operation: str,
    ) -> AuthResult:
        """Map an identity-provider or network exception to an
        ``AuthResult`` with a human-readable message."""
        event = f"{operation.upper()}_FAILED"

        if isinstance(exc, _NETWORK_ERRORS):
            self._logger.warning(
                "Network error during %s for %s: %s", operation, email, exc,
                extra={"event": event, "error_code": AuthErrorCode.NETWORK_ERROR},
            )
            return AuthResult.failure(
                AuthErrorCode.NETWORK_ERROR,
                "Cannot reach the server. Check your internet connection.",
            )

        code = str(getattr(exc, "code", "") or "").lower()
        error_str = str(exc).lower()
        for code_key, (error_code, human_message) in PROVIDER_ERROR_MAP.items():
            if code_key == code or code_key in error_str:
                self._logger.warning(
                    "Auth error during %s for %s (%s): %s", operation, email, code_key, exc,
                    extra={"event": event, "error_code": code_key},
                )
                return AuthResult.failure(error_code, human_message)

        self._logger.warning(
            "Unknown provider error during %s for %s: %s", operation, email, exc,
            extra={"event": event, "error_code": "unknown"},
        )
        return AuthResult.failure(
            AuthErrorCode.PROVIDER_ERROR,
            "The sign-in service returned an error. Please try again later.",
        )
