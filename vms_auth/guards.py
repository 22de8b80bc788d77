"""
Authentication & Role Guard Decorators.

Factories that produce decorators gating service-layer functions behind
an authenticated session, optionally restricted to a set of roles.
Both plain and ``async`` callables are supported.

Usage::

    from vms_auth.auth import SessionManager
    from vms_auth.guards import require_auth, require_role
    from vms_auth.models.enums import UserRole

    session = SessionManager()
    admin_only = require_role(session, UserRole.ADMIN)

    @admin_only
    async def list_visitors() -> list[str]:
        return ["only reachable by admins"]
"""

from __future__ import annotations

import inspect
from functools import wraps
from typing import Any, Callable, TypeVar

from vms_auth.auth import SessionManager
from vms_auth.models.enums import UserRole

F = TypeVar("F", bound=Callable[..., Any])


class AuthenticationError(RuntimeError):
    """Raised when a guarded function is called without an active session."""


class AuthorizationError(RuntimeError):
    """Raised when the session user's role is not allowed."""


def _guard(check: Callable[[], None]) -> Callable[[F], F]:
    def decorator(func: F) -> F:
        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                check()
                return await func(*args, **kwargs)

            return async_wrapper  # type: ignore[return-value]

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            check()
            return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


def require_auth(session: SessionManager) -> Callable[[F], F]:
    """Return a decorator that enforces authentication via *session*.

    Raises :class:`AuthenticationError` at call time when no user is
    logged in.
    """

    def check() -> None:
        if not session.is_authenticated:
            raise AuthenticationError(
                "Authentication required. Please log in before "
                "performing this action."
            )

    return _guard(check)


def require_role(session: SessionManager, *roles: UserRole) -> Callable[[F], F]:
    """Return a decorator that allows only users holding one of *roles*.

    Raises :class:`AuthenticationError` when nobody is logged in and
    :class:`AuthorizationError` when the user's role is not in *roles*.
    """
    if not roles:
        raise ValueError("require_role needs at least one role")
    allowed = frozenset(roles)

    def check() -> None:
        if not session.is_authenticated:
            raise AuthenticationError(
                "Authentication required. Please log in before "
                "performing this action."
            )
        user = session.get_current_user()
        if user.role not in allowed:
            raise AuthorizationError(
                f"Role '{user.role}' is not allowed to perform this action."
            )

    return _guard(check)
