"""
Authentication & Session State.

Provides an injectable ``SessionManager`` that holds the session user and
the loading flag, and publishes an ``AuthState`` snapshot to subscribers
whenever either changes.

Usage::

    from vms_auth.auth import SessionManager

    session = SessionManager(logger=get_logger("vms_auth.session"))
    unsubscribe = session.subscribe(lambda state: print(state.is_authenticated))
    session.set_current_user(user)
    state = session.snapshot()
    unsubscribe()
"""

from __future__ import annotations

from typing import Callable, Optional

from vms_auth.logger import StructuredLogger
from vms_auth.models.auth_models import AuthState
from vms_auth.models.enums import UserRole
from vms_auth.models.user import SessionUser

StateListener = Callable[[AuthState], None]


class SessionManager:
    """Injectable holder for the current session user.

    Each instance maintains its own state; pass a single
    ``SessionManager`` through the dependency-injection layer so every
    consumer shares it.  Writes happen on the event loop that owns the
    ``AuthService``; reads are safe from any consumer.

    ``is_loading`` starts ``True`` (the first session resolution is
    pending) and is reference counted through :meth:`begin_loading` /
    :meth:`end_loading`.
    """

    def __init__(self, logger: Optional[StructuredLogger] = None) -> None:
        self._logger: Optional[StructuredLogger] = logger
        self._current_user: Optional[SessionUser] = None
        self._pending_loads: int = 1
        self._listeners: list[StateListener] = []
        self._last_published: AuthState = self.snapshot()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def set_current_user(self, user: SessionUser) -> None:
        """Record *user* as the session user."""
        self._current_user = user
        self._publish()

    def get_current_user(self) -> SessionUser:
        """Return the session user.

        Raises:
            RuntimeError: If no user is currently authenticated.
        """
        if self._current_user is None:
            raise RuntimeError(
                "No user is currently authenticated. Login required."
            )
        return self._current_user

    @property
    def current_user(self) -> Optional[SessionUser]:
        return self._current_user

    def clear(self) -> None:
        """Remove the current user, ending the session."""
        self._current_user = None
        self._publish()

    @property
    def is_authenticated(self) -> bool:
        """``True`` when a user is currently logged in."""
        return self._current_user is not None

    def has_role(self, *roles: UserRole) -> bool:
        """``True`` when a user is logged in with one of *roles*."""
        return self._current_user is not None and self._current_user.role in roles

    # ------------------------------------------------------------------
    # Loading flag
    # ------------------------------------------------------------------

    @property
    def is_loading(self) -> bool:
        return self._pending_loads > 0

    def begin_loading(self) -> None:
        self._pending_loads += 1
        self._publish()

    def end_loading(self) -> None:
        if self._pending_loads == 0:
            return
        self._pending_loads -= 1
        self._publish()

    # ------------------------------------------------------------------
    # Publish / subscribe
    # ------------------------------------------------------------------

    def snapshot(self) -> AuthState:
        """Return the consumer-facing ``AuthState``."""
        return AuthState(current_user=self._current_user, is_loading=self.is_loading)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register *listener* and return a function that removes it.

        Listeners are called synchronously with the new snapshot each
        time ``current_user``, ``is_authenticated`` or ``is_loading``
        changes.
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _publish(self) -> None:
        state = self.snapshot()
        if state == self._last_published:
            return
        self._last_published = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as exc:
                if self._logger is not None:
                    self._logger.error(
                        "Auth state listener %r failed: %s", listener, exc, exc_info=True,
                    )
