"""
Seed Admin User

Creates an admin account that can review enrollments.

Usage:
    ADMIN_EMAIL=admin@example.com ADMIN_PASSWORD=... ADMIN_NAME="Jane Doe" \
        python scripts/seed_admin.py
"""

import asyncio
import os
import sys
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from app.core.database import async_session_maker, engine
from app.core.security import hash_password
from app.modules.users.models import UserRole
from app.modules.users.repository import UserRepository


async def seed_admin() -> int:
    """Create the admin user if it doesn't exist. Returns a process exit code."""
    email = os.getenv("ADMIN_EMAIL", "").strip().lower()
    password = os.getenv("ADMIN_PASSWORD", "")
    full_name = os.getenv("ADMIN_NAME", "Administrator")

    if not email or len(password) < 8:
        print("ADMIN_EMAIL and ADMIN_PASSWORD (8+ characters) must be set")
        return 1

    async with async_session_maker() as db:
        existing_user = await UserRepository.get_by_email(db, email)

        if existing_user:
            print(f"User already exists: {email}")
            print(f"  ID: {existing_user.id}")
            print(f"  Role: {existing_user.role.value}")
            return 0

        admin_user = await UserRepository.create(
            db,
            email=email,
            password_hash=hash_password(password),
            full_name=full_name,
            role=UserRole.ADMIN,
        )
        await db.commit()

        print("Admin created successfully!")
        print(f"  Email: {email}")
        print(f"  Name: {full_name}")
        print(f"  ID: {admin_user.id}")

    await engine.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(seed_admin()))
