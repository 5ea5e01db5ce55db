"""
Admin Bootstrap Script

Public registration only creates client accounts, so the first admin has
to be written straight to the database.
Run from project root: python scripts/create_admin.py --email ... --password ...
"""

import argparse
import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select

from restomatch.core.security import hash_password
from restomatch.database import async_session_maker, engine, init_db
from restomatch.models import User, UserRole, UserStatus


async def create_admin(name: str, email: str, password: str, salary: float) -> int:
    """Create the admin, or promote an existing account with that email."""
    await init_db()

    async with async_session_maker() as session:
        result = await session.execute(select(User).where(User.email == email.lower()))
        user = result.scalar_one_or_none()

        if user:
            user.role = UserRole.ADMIN
            user.status = UserStatus.ACTIVE
            user.salary = user.salary if user.salary is not None else salary
            print(f"Promoted existing user #{user.id} to admin")
        else:
            user = User(
                name=name,
                email=email.lower(),
                password_hash=hash_password(password),
                role=UserRole.ADMIN,
                salary=salary,
            )
            session.add(user)

        await session.commit()

    await engine.dispose()
    return user.id


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create an admin account")
    parser.add_argument("--name", default="Admin", help="Display name")
    parser.add_argument("--email", required=True, help="Login email")
    parser.add_argument("--password", required=True, help="Login password (6+ characters)")
    parser.add_argument("--salary", type=float, default=0.0, help="Monthly salary")
    args = parser.parse_args()

    if len(args.password) < 6:
        print("Password must be at least 6 characters")
        sys.exit(1)

    user_id = asyncio.run(create_admin(args.name, args.email, args.password, args.salary))
    print(f"Admin ready: #{user_id} {args.email}")
