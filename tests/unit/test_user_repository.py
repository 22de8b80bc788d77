"""
Unit tests for UserRepository against a mocked async Supabase client.
"""

from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from vms_auth.database import DatabaseManager
from vms_auth.models.enums import UserRole
from vms_auth.models.user import NewUserProfile
from vms_auth.repositories.base_repository import ProfileStoreError
from vms_auth.repositories.user_repository import UserRepository

ROW: dict[str, Any] = {
    "id": "8a6e0804-2bd0-4672-b79d-d97027f9071a",
    "auth_user_id": None,
    "email": "john@company.com",
    "name": "John Employee",
    "role": "employee",
    "department": "Sales",
    "created_at": "2025-07-19T07:21:13+00:00",
    "last_login": None,
}


def _client(data: Any = None, response: Any = "default", error: Exception | None = None):
    """Return (client, query) where every builder call returns ``query``."""
    query = MagicMock(name="query")
    for method in ("select", "eq", "is_", "insert", "update", "maybe_single"):
        getattr(query, method).return_value = query
    if error is not None:
        query.execute = AsyncMock(side_effect=error)
    elif response is None:
        query.execute = AsyncMock(return_value=None)
    else:
        query.execute = AsyncMock(return_value=MagicMock(data=data))
    client = MagicMock(name="client")
    client.table.return_value = query
    return client, query


def _repo(client, logger, table=None) -> UserRepository:
    return UserRepository(DatabaseManager(client, logger), logger, table=table)


@pytest.mark.unit
class TestLookups:
    @pytest.mark.asyncio
    async def test_get_by_auth_user_id_returns_profile(self, logger):
        client, query = _client(data={**ROW, "auth_user_id": "auth-1"})
        repo = _repo(client, logger)

        profile = await repo.get_by_auth_user_id("auth-1")

        assert profile is not None
        assert profile.role == UserRole.EMPLOYEE
        assert profile.is_linked
        client.table.assert_called_with("users")
        query.eq.assert_called_with("auth_user_id", "auth-1")
        query.maybe_single.assert_called_once()

    @pytest.mark.asyncio
    async def test_missing_row_returns_none(self, logger):
        client, _ = _client(response=None)

        assert await _repo(client, logger).get_by_id("nope") is None

    @pytest.mark.asyncio
    async def test_empty_data_returns_none(self, logger):
        client, _ = _client(data=None)

        assert await _repo(client, logger).get_by_email("john@company.com") is None

    @pytest.mark.asyncio
    async def test_email_lookups_are_lowercased(self, logger):
        client, query = _client(data=ROW)

        await _repo(client, logger).get_by_email_and_role(" John@Company.com ", UserRole.EMPLOYEE)

        query.eq.assert_any_call("email", "john@company.com")
        query.eq.assert_any_call("role", "employee")

    @pytest.mark.asyncio
    async def test_unlinked_lookup_filters_null_auth_user(self, logger):
        client, query = _client(data=ROW)

        profile = await _repo(client, logger).get_unlinked_by_email("john@company.com")

        assert profile is not None and not profile.is_linked
        query.is_.assert_called_once_with("auth_user_id", "null")

    @pytest.mark.asyncio
    async def test_query_error_is_wrapped(self, logger):
        boom = ConnectionError("down")
        client, _ = _client(error=boom)

        with pytest.raises(ProfileStoreError) as exc_info:
            await _repo(client, logger).get_by_id("x")

        assert exc_info.value.original_error is boom

    @pytest.mark.asyncio
    async def test_offline_mode_is_a_store_error(self, logger):
        repo = UserRepository(DatabaseManager(None, logger), logger)

        with pytest.raises(ProfileStoreError):
            await repo.get_by_auth_user_id("auth-1")

    @pytest.mark.asyncio
    async def test_custom_table_name(self, logger):
        client, _ = _client(data=ROW)

        await _repo(client, logger, table="staff").get_by_id(ROW["id"])

        client.table.assert_called_with("staff")


@pytest.mark.unit
class TestWrites:
    @pytest.mark.asyncio
    async def test_insert_lowercases_email(self, logger):
        client, query = _client(data=[{**ROW, "auth_user_id": "auth-1"}])
        new = NewUserProfile(
            auth_user_id="auth-1",
            email="John@Company.com",
            name="John Employee",
            role=UserRole.EMPLOYEE,
            department="Sales",
        )

        created = await _repo(client, logger).insert(new)

        payload = query.insert.call_args.args[0]
        assert payload["email"] == "john@company.com"
        assert payload["role"] == "employee"
        assert created.auth_user_id == "auth-1"

    @pytest.mark.asyncio
    async def test_insert_without_returned_row_fails(self, logger):
        client, _ = _client(data=[])
        new = NewUserProfile(email="a@b.co", name="A", role=UserRole.GUARD)

        with pytest.raises(ProfileStoreError):
            await _repo(client, logger).insert(new)

    @pytest.mark.asyncio
    async def test_link_only_updates_unlinked_rows(self, logger):
        client, query = _client(data=[{**ROW, "auth_user_id": "auth-1"}])

        linked = await _repo(client, logger).link_auth_user(ROW["id"], "auth-1")

        assert linked.auth_user_id == "auth-1"
        query.update.assert_called_once_with({"auth_user_id": "auth-1"})
        query.is_.assert_called_once_with("auth_user_id", "null")

    @pytest.mark.asyncio
    async def test_link_returns_none_when_nothing_updated(self, logger):
        client, _ = _client(data=[])

        assert await _repo(client, logger).link_auth_user(ROW["id"], "auth-1") is None

    @pytest.mark.asyncio
    async def test_touch_last_login_sends_iso_stamp(self, logger):
        client, query = _client(data=[ROW])
        when = datetime(2025, 7, 20, 8, 0, tzinfo=timezone.utc)

        stamp = await _repo(client, logger).touch_last_login(ROW["id"], when)

        assert stamp == when
        query.update.assert_called_once_with({"last_login": when.isoformat()})
        query.eq.assert_called_with("id", ROW["id"])

    @pytest.mark.asyncio
    async def test_write_error_is_wrapped(self, logger):
        client, _ = _client(error=RuntimeError("permission denied"))

        with pytest.raises(ProfileStoreError):
            await _repo(client, logger).touch_last_login(ROW["id"])
