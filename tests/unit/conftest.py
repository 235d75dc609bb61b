"""Pytest configuration and fixtures for unit tests."""

import pytest

from tests.unit.mocks import FamilyBuilder, InMemoryDBClient, RecordingNotifier


@pytest.fixture
def in_memory_db():
    """Provides a fresh InMemoryDBClient for each test."""
    return InMemoryDBClient()


@pytest.fixture
def notifier():
    """Provides a RecordingNotifier that accepts every call."""
    return RecordingNotifier()


@pytest.fixture
def family(in_memory_db):
    """Provides a FamilyBuilder bound to the in-memory database."""
    return FamilyBuilder(in_memory_db)
