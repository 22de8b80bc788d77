"""
Static checks on the users migration: the row-level security must admit
every store call the auth flows make.
"""

import re
from pathlib import Path

import pytest

from vms_auth.seed import DEMO_PROFILES
from vms_auth.services.demo_accounts import DEMO_CREDENTIALS

MIGRATION = (
    Path(__file__).resolve().parents[2] / "supabase" / "migrations" / "0001_create_users.sql"
)


def _normalise(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


@pytest.fixture(scope="module")
def sql() -> str:
    return MIGRATION.read_text(encoding="utf-8")


@pytest.fixture(scope="module")
def policies(sql) -> dict[str, str]:
    return {
        name: _normalise(body)
        for name, body in re.findall(r'CREATE POLICY "([^"]+)"(.*?);', sql, flags=re.DOTALL)
    }


def _for(policies: dict[str, str], command: str) -> dict[str, str]:
    return {name: body for name, body in policies.items() if f"FOR {command} " in body}


@pytest.mark.unit
class TestUsersPolicies:
    def test_signup_can_insert_own_profile(self, policies):
        inserts = _for(policies, "INSERT")

        assert inserts
        assert all("WITH CHECK (auth.uid() = auth_user_id)" in body for body in inserts.values())

    def test_no_policy_queries_users_directly(self, policies):
        for name, body in policies.items():
            assert not re.search(r"FROM (public\.)?users\b", body, flags=re.IGNORECASE), name

    def test_admin_check_runs_as_definer(self, sql, policies):
        function = _normalise(sql[sql.index("FUNCTION public.is_admin()"):])

        assert "SECURITY DEFINER" in function.split("AS $$")[0]
        assert any("public.is_admin()" in body for body in _for(policies, "SELECT").values())

    def test_unlinked_profile_can_be_read_and_claimed_by_email(self, policies):
        reads = _for(policies, "SELECT")
        updates = _for(policies, "UPDATE")

        assert any(
            "auth_user_id IS NULL" in body and "auth.jwt() ->> 'email'" in body
            for body in reads.values()
        )
        assert any(
            "auth.jwt() ->> 'email'" in body and "WITH CHECK (auth_user_id = auth.uid())" in body
            for body in updates.values()
        )

    @pytest.mark.parametrize("command", ["SELECT", "UPDATE"])
    def test_demo_rows_are_reachable_without_a_session(self, policies, command):
        demo = [body for body in _for(policies, command).values() if "anon" in body]

        assert demo
        for email in DEMO_CREDENTIALS:
            assert all(f"'{email}'" in body for body in demo)

    def test_role_and_link_are_guarded_on_update(self, sql):
        assert "BEFORE UPDATE ON users" in sql
        assert "NEW.role IS DISTINCT FROM OLD.role" in sql
        assert "OLD.auth_user_id IS NOT NULL" in sql


@pytest.mark.unit
class TestSeedRows:
    def test_seed_rows_match_demo_profiles(self, sql):
        rows = set(re.findall(r"\('([^']+)', '([^']+)', '(\w+)', '([^']+)'\)", sql))

        assert rows == {
            (profile.email, profile.name, str(profile.role), profile.department)
            for profile in DEMO_PROFILES
        }
