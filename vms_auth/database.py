"""
Supabase Connection Layer.

Owns the single async Supabase client shared by the profile store
(PostgREST, ``users`` relation) and the identity provider (GoTrue auth).
Query logic lives in the repositories and in
:mod:`vms_auth.identity_provider`; this module only manages the client.

Usage (dependency injection at app startup)::

    from vms_auth.database import DatabaseManager
    from vms_auth.logger import StructuredLogger

    db = await DatabaseManager.connect(
        supabase_url=config.SUPABASE_URL,
        supabase_key=config.SUPABASE_ANON_KEY.get_secret_value(),
        logger=StructuredLogger(name="vms_auth.database"),
    )
    # Inject `db` into repositories / services that need it.
"""

from __future__ import annotations

from typing import Optional

from supabase import AsyncClient, acreate_client

from vms_auth.logger import StructuredLogger


class SupabaseOfflineError(RuntimeError):
    """Raised when the Supabase client is used while running offline."""


class DatabaseManager:
    """Holds the async Supabase client.

    When the client is ``None`` the manager is in offline mode and the
    ``supabase`` property raises ``SupabaseOfflineError``.  Every caller
    already wraps Supabase calls in ``try/except``, so offline mode
    surfaces as an ordinary network failure.

    Parameters
    ----------
    client:
        An initialised ``AsyncClient``, or ``None`` for offline mode.
    logger:
        A ``StructuredLogger`` instance for structured JSON log output.
    """

    def __init__(
        self,
        client: Optional[AsyncClient],
        logger: StructuredLogger,
    ) -> None:
        self._supabase: Optional[AsyncClient] = client
        self._logger: StructuredLogger = logger

    @classmethod
    async def connect(
        cls,
        supabase_url: str,
        supabase_key: str,
        logger: StructuredLogger,
    ) -> "DatabaseManager":
        """Create the async client, degrading to offline mode on bad
        or missing credentials."""
        client: Optional[AsyncClient] = None
        if supabase_url and supabase_key:
            try:
                client = await acreate_client(supabase_url, supabase_key)
                logger.info("Supabase client initialized.")
            except (ValueError, TypeError) as exc:
                logger.warning(
                    "Supabase credential format error: %s. Running in offline mode.",
                    exc,
                )
            except Exception as exc:
                logger.error(
                    "Unexpected Supabase initialization failure: %s. "
                    "Running in offline mode.",
                    exc,
                    exc_info=True,
                )
        else:
            logger.warning(
                "Supabase credentials not configured: running in offline mode."
            )
        return cls(client, logger)

    @property
    def supabase(self) -> AsyncClient:
        """Return the initialised Supabase client.

        Raises
        ------
        SupabaseOfflineError
            If the client was not initialised (offline mode).
        """
        if self._supabase is None:
            raise SupabaseOfflineError(
                "Supabase client is not initialised. "
                "The application is running in offline mode."
            )
        return self._supabase

    @property
    def is_online(self) -> bool:
        """``True`` when the Supabase client is available."""
        return self._supabase is not None
