"""Enroll a user and print a session credential.

Usage: uv run python bin/issue-credential.py <username>

Handy for connecting to the live channel from a terminal client:
    websocat "ws://localhost:8000/ws?token=<credential>"
Requires AUTH_CREDENTIAL_SECRET to match the running server.
"""

import asyncio
import sys
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))

from common.auth import IdentityService, IdentitySettings
from common.db import Database, SqliteMessageRepository, SqliteUserRepository
from common.errors import ChatError
from common.store import MessageStore


async def main() -> None:
    if len(sys.argv) != 2:
        print(f"Usage: {sys.argv[0]} <username>")
        sys.exit(1)

    settings = IdentitySettings()  # type: ignore[call-arg]
    db = Database(settings.database_path)
    db.connect()

    try:
        store = MessageStore(SqliteUserRepository(db), SqliteMessageRepository(db))
        identity = IdentityService(store, credential_secret=settings.credential_secret)
        try:
            token = await identity.issue(sys.argv[1])
        except ChatError as e:
            print(f"Error: {e}")
            sys.exit(1)
        print(token)
    finally:
        db.close()


if __name__ == "__main__":
    asyncio.run(main())
