"""
Demo Profile Seeding.

Inserts the three pre-seeded, unlinked profiles that the demo credential
table and the email-linking login path expect.  Safe to run repeatedly:
profiles are keyed by email and existing rows are left untouched.

The row-level security of the ``users`` relation only lets a signed-in
account insert its own linked profile, so inserting unlinked rows needs a
key that bypasses RLS.  The SQL migration inserts the same rows.
"""

from __future__ import annotations

from vms_auth.logger import StructuredLogger
from vms_auth.models.enums import UserRole
from vms_auth.models.user import NewUserProfile
from vms_auth.repositories.user_repository import UserRepository

DEMO_PROFILES: tuple[NewUserProfile, ...] = (
    NewUserProfile(
        email="admin@company.com",
        name="System Administrator",
        role=UserRole.ADMIN,
        department="IT",
    ),
    NewUserProfile(
        email="john@company.com",
        name="John Employee",
        role=UserRole.EMPLOYEE,
        department="Sales",
    ),
    NewUserProfile(
        email="guard@company.com",
        name="Security Guard",
        role=UserRole.GUARD,
        department="Security",
    ),
)


async def seed_demo_profiles(
    repo: UserRepository,
    logger: StructuredLogger,
    profiles: tuple[NewUserProfile, ...] = DEMO_PROFILES,
) -> int:
    """Insert the missing *profiles* and return how many were created.

    Raises:
        ProfileStoreError: If the store cannot be read or written.
    """
    inserted = 0
    for profile in profiles:
        if await repo.get_by_email(profile.email) is not None:
            logger.debug("Seed profile %s already present.", profile.email)
            continue
        await repo.insert(profile)
        inserted += 1

    logger.info("Seeded %d of %d demo profile(s).", inserted, len(profiles))
    return inserted
