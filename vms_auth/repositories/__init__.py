"""
Repository Layer Package.

Data-access abstractions over the Supabase profile store.  Services never
touch ``db.supabase.table(...)`` directly.

Usage:
    from vms_auth.repositories.user_repository import UserRepository
"""

from vms_auth.repositories.base_repository import BaseRepository, ProfileStoreError
from vms_auth.repositories.user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "ProfileStoreError",
    "UserRepository",
]
