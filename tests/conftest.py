"""Pytest configuration and shared fixtures."""

import logging

import pytest

from src.core.db_client import SQLiteClient
from src.core.schema import init_db


logger = logging.getLogger(__name__)


@pytest.fixture
async def sqlite_db(tmp_path):
    """Provides a connected SQLiteClient with the schema applied, on a temp file."""
    client = SQLiteClient(str(tmp_path / "test.db"))
    await client.connect()
    await init_db(client)
    try:
        yield client
    finally:
        await client.close()
