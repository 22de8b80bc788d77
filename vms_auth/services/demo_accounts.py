"""
Demo Account Registry.

Plaintext credentials for the three pre-seeded demo profiles.  They are
only honoured when the registry is constructed with ``enabled=True``,
which the composition root does exclusively when ``DEMO_MODE`` is set.
A production build leaves the flag off and this table is inert.
"""

from __future__ import annotations

import hmac
from types import MappingProxyType
from typing import Mapping, Optional

from vms_auth.logger import StructuredLogger
from vms_auth.services.base_service import BaseService

DEMO_CREDENTIALS: Mapping[str, str] = MappingProxyType({
    "admin@company.com": "admin123",
    "john@company.com": "employee123",
    "guard@company.com": "guard123",
})


class DemoAccountRegistry(BaseService):
    """Checks email/password pairs against the demo credential table.

    Parameters
    ----------
    enabled:
        When ``False`` every check fails without inspecting the table.
    logger:
        Structured JSON logger.
    credentials:
        Override of the built-in table (tests).
    """

    def __init__(
        self,
        enabled: bool,
        logger: StructuredLogger,
        credentials: Optional[Mapping[str, str]] = None,
    ) -> None:
        super().__init__(logger)
        self._enabled: bool = enabled
        self._credentials: Mapping[str, str] = (
            credentials if credentials is not None else DEMO_CREDENTIALS
        )
        if enabled:
            self._logger.warning(
                "Demo accounts enabled for %d email(s).", len(self._credentials),
            )

    @property
    def enabled(self) -> bool:
        return self._enabled

    def matches(self, email: str, password: str) -> bool:
        """``True`` when demo mode is on and the pair is in the table."""
        if not self._enabled:
            return False
        expected = self._credentials.get(email.strip().lower())
        if expected is None:
            return False
        return hmac.compare_digest(expected.encode("utf-8"), password.encode("utf-8"))
