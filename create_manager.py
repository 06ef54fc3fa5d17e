"""
Bootstrap tool: create the first manager login.

Usage:
  python create_manager.py <email> <password> [full name]

Example:
  python create_manager.py ops@guardpost.local aSecurePassword123 "Dana Ortiz"
"""
import asyncio
import sys

from sqlalchemy import select

from guardpost.core.database import AsyncSessionLocal, create_tables
from guardpost.core.security import hash_password
from guardpost.models.profile import Profile


async def main(email: str, password: str, full_name: str | None) -> None:
    if len(password) < 8:
        print("Error: password must be at least 8 characters.")
        sys.exit(1)

    await create_tables()
    async with AsyncSessionLocal() as db:
        existing = await db.execute(select(Profile).where(Profile.email == email))
        if existing.scalar_one_or_none():
            print(f"A profile with email '{email}' already exists.")
            sys.exit(0)

        profile = Profile(
            email=email,
            hashed_password=hash_password(password),
            full_name=full_name,
            role="manager",
        )
        db.add(profile)
        await db.commit()
        await db.refresh(profile)
        print(f"✓ Manager '{email}' created (ID: {profile.id})")


if __name__ == "__main__":
    if len(sys.argv) not in (3, 4):
        print("Usage: python create_manager.py <email> <password> [full name]")
        sys.exit(1)

    asyncio.run(main(sys.argv[1], sys.argv[2], sys.argv[3] if len(sys.argv) == 4 else None))
