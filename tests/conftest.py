"""
Pytest configuration and shared fixtures.

- Isolates configuration from any local ``.env`` file
- Provides in-memory collaborators (tests/fakes.py) and a wired
  ``AuthService`` with demo accounts enabled
"""

import sys
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
for path in (ROOT_DIR, ROOT_DIR / "tests"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from vms_auth import config as app_config  # noqa: E402

app_config.AppConfig.model_config["env_file"] = None

from fakes import FakeIdentityProvider, InMemoryUserRepository  # noqa: E402
from vms_auth.auth import SessionManager  # noqa: E402
from vms_auth.logger import StructuredLogger  # noqa: E402
from vms_auth.services.auth_service import AuthService  # noqa: E402
from vms_auth.services.demo_accounts import DemoAccountRegistry  # noqa: E402


@pytest.fixture
def logger() -> StructuredLogger:
    return StructuredLogger(name="vms_auth.tests")


@pytest.fixture
def repo() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def identity() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def session(logger: StructuredLogger) -> SessionManager:
    return SessionManager(logger=logger)


@pytest.fixture
def demo_accounts(logger: StructuredLogger) -> DemoAccountRegistry:
    return DemoAccountRegistry(enabled=True, logger=logger)


@pytest.fixture
def service(
    repo: InMemoryUserRepository,
    identity: FakeIdentityProvider,
    session: SessionManager,
    demo_accounts: DemoAccountRegistry,
    logger: StructuredLogger,
) -> AuthService:
    return AuthService(
        repo=repo,  # type: ignore[arg-type]
        identity=identity,  # type: ignore[arg-type]
        session=session,
        demo_accounts=demo_accounts,
        logger=logger,
    )
