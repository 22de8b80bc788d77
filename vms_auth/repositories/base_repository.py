"""
Base Repository.

Provides shared infrastructure for all repositories:
- DatabaseManager reference (async Supabase client)
- Logger reference
- ``ProfileStoreError`` wrapping for every query/write failure
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from supabase import AsyncClient

from vms_auth.database import DatabaseManager
from vms_auth.logger import StructuredLogger


class ProfileStoreError(Exception):
    """Raised when a profile-store query or write fails.

    "No matching row" is never an error; lookups return ``None``.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        self.message: str = message
        self.original_error: Optional[Exception] = original_error
        super().__init__(self.message)


class BaseRepository:
    """Base class for all repositories. Receives dependencies via __init__."""

    TABLE: str = ""

    def __init__(self, db: DatabaseManager, logger: StructuredLogger) -> None:
        self._db = db
        self._logger = logger

    @property
    def supabase(self) -> AsyncClient:
        """Returns the Supabase client for store operations."""
        return self._db.supabase

    async def _maybe_one(
        self, build_query: Callable[[], Any], *, operation_name: str,
    ) -> Optional[dict[str, Any]]:
        """Execute a ``maybe_single()`` query and return the row or ``None``.

        Recent postgrest clients return ``None`` instead of a response
        when no row matches; both shapes are handled.  *build_query* runs
        inside the error boundary so offline mode
        (``SupabaseOfflineError``) surfaces as ``ProfileStoreError`` too.
        """
        try:
            response = await build_query().maybe_single().execute()
        except Exception as exc:
            self._logger.error("Profile store query failed for %s: %s", operation_name, exc)
            raise ProfileStoreError(
                f"{operation_name} failed: {exc}", original_error=exc,
            ) from exc
        if response is None or not response.data:
            return None
        return response.data

    async def _execute(
        self, build_query: Callable[[], Any], *, operation_name: str,
    ) -> list[dict[str, Any]]:
        """Execute a query and return its rows (possibly empty)."""
        try:
            response = await build_query().execute()
        except Exception as exc:
            self._logger.error("Profile store write failed for %s: %s", operation_name, exc)
            raise ProfileStoreError(
                f"{operation_name} failed: {exc}", original_error=exc,
            ) from exc
        return list(response.data or [])
