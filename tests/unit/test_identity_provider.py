"""
Unit tests for the Supabase identity-provider adapter.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from vms_auth.database import DatabaseManager, SupabaseOfflineError
from vms_auth.identity_provider import (
    IdentityProviderError,
    SupabaseIdentityProvider,
    identity_from_session,
    identity_from_user,
)
from vms_auth.models.auth_models import ProviderIdentity
from vms_auth.models.enums import SessionEvent


def _user(user_id: str = "auth-1", email: str = "ana@company.com") -> SimpleNamespace:
    return SimpleNamespace(id=user_id, email=email)


@pytest.fixture
def auth_client() -> MagicMock:
    auth = MagicMock(name="auth")
    auth.get_session = AsyncMock(return_value=None)
    auth.sign_in_with_password = AsyncMock(return_value=SimpleNamespace(user=_user()))
    auth.sign_up = AsyncMock(return_value=SimpleNamespace(user=_user("auth-2", "new@company.com")))
    auth.sign_out = AsyncMock(return_value=None)
    return auth


@pytest.fixture
def provider(auth_client, logger) -> SupabaseIdentityProvider:
    client = MagicMock(name="client")
    client.auth = auth_client
    return SupabaseIdentityProvider(DatabaseManager(client, logger), logger)


@pytest.mark.unit
class TestIdentityExtraction:
    def test_from_user(self):
        assert identity_from_user(_user()) == ProviderIdentity(
            user_id="auth-1", email="ana@company.com",
        )

    def test_from_missing_user(self):
        assert identity_from_user(None) is None
        assert identity_from_user(SimpleNamespace(id="", email="x@y.z")) is None

    def test_from_session(self):
        assert identity_from_session(None) is None
        assert identity_from_session(SimpleNamespace(user=_user())).user_id == "auth-1"


@pytest.mark.unit
class TestSupabaseIdentityProvider:
    @pytest.mark.asyncio
    async def test_get_current_session_without_session(self, provider):
        assert await provider.get_current_session() is None

    @pytest.mark.asyncio
    async def test_get_current_session_returns_identity(self, provider, auth_client):
        auth_client.get_session.return_value = SimpleNamespace(user=_user())

        identity = await provider.get_current_session()

        assert identity.user_id == "auth-1"

    @pytest.mark.asyncio
    async def test_sign_in_passes_credentials(self, provider, auth_client):
        identity = await provider.sign_in_with_password("ana@company.com", "s3cret!")

        assert identity.user_id == "auth-1"
        auth_client.sign_in_with_password.assert_awaited_once_with(
            {"email": "ana@company.com", "password": "s3cret!"}
        )

    @pytest.mark.asyncio
    async def test_sign_in_without_user_raises(self, provider, auth_client):
        auth_client.sign_in_with_password.return_value = SimpleNamespace(user=None)

        with pytest.raises(IdentityProviderError):
            await provider.sign_in_with_password("ana@company.com", "s3cret!")

    @pytest.mark.asyncio
    async def test_sign_in_errors_propagate(self, provider, auth_client):
        auth_client.sign_in_with_password.side_effect = ConnectionError("down")

        with pytest.raises(ConnectionError):
            await provider.sign_in_with_password("ana@company.com", "s3cret!")

    @pytest.mark.asyncio
    async def test_sign_up_returns_new_identity(self, provider):
        identity = await provider.sign_up("new@company.com", "s3cret!")

        assert identity == ProviderIdentity(user_id="auth-2", email="new@company.com")

    @pytest.mark.asyncio
    async def test_sign_out(self, provider, auth_client):
        await provider.sign_out()

        auth_client.sign_out.assert_awaited_once()

    def test_on_session_change_translates_events(self, provider, auth_client):
        subscription = MagicMock(name="subscription")
        auth_client.on_auth_state_change.return_value = subscription
        received = []

        unsubscribe = provider.on_session_change(
            lambda event, identity: received.append((event, identity))
        )
        callback = auth_client.on_auth_state_change.call_args.args[0]
        callback("SIGNED_IN", SimpleNamespace(user=_user()))
        callback("SIGNED_OUT", None)
        callback("SOMETHING_NEW", None)

        assert received == [
            (SessionEvent.SIGNED_IN, ProviderIdentity(user_id="auth-1", email="ana@company.com")),
            (SessionEvent.SIGNED_OUT, None),
            (SessionEvent.USER_UPDATED, None),
        ]
        assert unsubscribe is subscription.unsubscribe

    @pytest.mark.asyncio
    async def test_offline_mode_raises_runtime_error(self, logger):
        provider = SupabaseIdentityProvider(DatabaseManager(None, logger), logger)

        with pytest.raises(SupabaseOfflineError, match="offline"):
            await provider.get_current_session()
