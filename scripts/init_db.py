#!/usr/bin/env python3
"""Create the choreweek schema in a SQLite database.

Usage:
    uv run python scripts/init_db.py
    uv run python scripts/init_db.py --db-path ./data/choreweek.db
"""

import argparse
import asyncio
import logging

from src.core.db_client import get_db_path, open_client
from src.core.logging import configure_logfire


logger = logging.getLogger(__name__)


async def init_database(db_path: str | None) -> None:
    """Open the database, create missing tables and close it again."""
    client = await open_client(db_path=db_path)
    try:
        logger.info("Schema ready at %s", get_db_path(db_path))
    finally:
        await client.close()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--db-path", default=None, help="SQLite file (defaults to SQLITE_DB_PATH)")
    args = parser.parse_args()
    configure_logfire()

    asyncio.run(init_database(args.db_path))


if __name__ == "__main__":
    main()
