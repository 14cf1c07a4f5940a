"""
Create a login, or reset the password and role of an existing one.

    python -m app.scripts.create_user USERNAME --role ROLE [--password PASSWORD]

Without --password the password is read from the terminal.
"""

from __future__ import annotations

import argparse
import asyncio
import getpass

from sqlalchemy import select

from app.core.logging import logger
from app.core.security import hash_password
from app.db.models.auth import User
from app.db.session import async_session_factory, engine


async def upsert_user(username: str, password: str, role: str) -> bool:
    """Returns True when a new user was created."""
    async with async_session_factory() as db:
        user = (await db.execute(select(User).where(User.username == username))).scalar_one_or_none()
        created = user is None
        if created:
            user = User(username=username, password_hash=hash_password(password), role=role)
            db.add(user)
        else:
            user.password_hash = hash_password(password)
            user.role = role
        await db.commit()
    logger.info(f"{'Created' if created else 'Updated'} user {username} ({role})")
    return created


async def _main(args: argparse.Namespace) -> None:
    password = args.password or getpass.getpass(f"Password for {args.username}: ")
    try:
        await upsert_user(args.username, password, args.role)
    finally:
        await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Create or reset a dashboard login")
    parser.add_argument("username")
    parser.add_argument("--role", required=True, help="admin, ed, edofc, tg, mmg, finance, hr ...")
    parser.add_argument("--password", help="prompted for when omitted")
    asyncio.run(_main(parser.parse_args()))


if __name__ == "__main__":
    main()
