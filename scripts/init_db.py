#!/usr/bin/env python3
"""Create the MVE Cluster Bot positions table.

Only needed for live mode (DRY_RUN=false); dry runs keep positions in memory.
Defaults to DATABASE_URL from the environment or .env.
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from mvebot.config import get_settings
from mvebot.storage.database import Database, PositionTable


async def init_db(database_url: str) -> None:
    db = Database(database_url)
    try:
        await db.create_tables()
    finally:
        await db.close()

    index_names = ", ".join(index.name for index in PositionTable.__table__.indexes)
    print(f"Created table '{PositionTable.__tablename__}' (indexes: {index_names})")
    print(f"Database: {db.engine.url.render_as_string(hide_password=True)}")


def main():
    parser = argparse.ArgumentParser(description="Create the positions table for live mode")
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy URL (postgresql://... is rewritten to asyncpg); defaults to DATABASE_URL",
    )
    args = parser.parse_args()

    asyncio.run(init_db(args.database_url or get_settings().database_url))


if __name__ == "__main__":
    main()
