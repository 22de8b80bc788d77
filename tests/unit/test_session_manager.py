"""
Unit tests for SessionManager state and change publication.
"""

import pytest

from vms_auth.auth import SessionManager
from vms_auth.models.auth_models import AuthState
from vms_auth.models.enums import UserRole
from vms_auth.models.user import SessionUser


def _user(role: UserRole = UserRole.ADMIN) -> SessionUser:
    return SessionUser(
        id="p-1",
        name="System Administrator",
        email="admin@company.com",
        role=role,
        department="IT",
    )


@pytest.mark.unit
class TestSessionState:
    def test_initial_state_is_loading_and_anonymous(self):
        session = SessionManager()

        state = session.snapshot()
        assert state.is_loading is True
        assert state.current_user is None
        assert state.is_authenticated is False

    def test_set_and_clear_user(self):
        session = SessionManager()
        user = _user()

        session.set_current_user(user)
        assert session.is_authenticated
        assert session.get_current_user() == user

        session.clear()
        assert session.current_user is None

    def test_get_current_user_without_session_raises(self):
        with pytest.raises(RuntimeError, match="Login required"):
            SessionManager().get_current_user()

    def test_has_role(self):
        session = SessionManager()
        assert not session.has_role(UserRole.ADMIN)

        session.set_current_user(_user(UserRole.GUARD))

        assert session.has_role(UserRole.GUARD)
        assert session.has_role(UserRole.ADMIN, UserRole.GUARD)
        assert not session.has_role(UserRole.ADMIN)

    def test_loading_is_reference_counted(self):
        session = SessionManager()
        session.begin_loading()

        session.end_loading()
        assert session.is_loading is True

        session.end_loading()
        assert session.is_loading is False

        session.end_loading()
        assert session.is_loading is False


@pytest.mark.unit
class TestSessionSubscribers:
    def test_listener_receives_changes_only(self):
        session = SessionManager()
        states: list[AuthState] = []
        session.subscribe(states.append)

        session.end_loading()
        session.clear()  # no change
        session.set_current_user(_user())

        assert [(s.is_loading, s.is_authenticated) for s in states] == [
            (False, False),
            (False, True),
        ]

    def test_unsubscribe_stops_delivery(self):
        session = SessionManager()
        states: list[AuthState] = []
        unsubscribe = session.subscribe(states.append)

        unsubscribe()
        unsubscribe()
        session.end_loading()

        assert states == []

    def test_failing_listener_does_not_break_others(self, logger):
        session = SessionManager(logger=logger)
        states: list[AuthState] = []

        def broken(state: AuthState) -> None:
            raise ValueError("boom")

        session.subscribe(broken)
        session.subscribe(states.append)

        session.end_loading()

        assert len(states) == 1
