"""Tests for the command line scripts."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from scripts import init_db, show_week


@pytest.mark.unit
class TestScriptEntryPoints:
    """Each script configures Logfire before doing any work."""

    def test_init_db_configures_logfire(self, monkeypatch):
        configure = MagicMock()
        run = AsyncMock()
        monkeypatch.setattr(init_db, "configure_logfire", configure)
        monkeypatch.setattr(init_db, "init_database", run)
        monkeypatch.setattr("sys.argv", ["init_db.py", "--db-path", "x.db"])

        init_db.main()

        configure.assert_called_once_with()
        run.assert_awaited_once_with("x.db")

    def test_show_week_configures_logfire(self, monkeypatch):
        configure = MagicMock()
        run = AsyncMock()
        monkeypatch.setattr(show_week, "configure_logfire", configure)
        monkeypatch.setattr(show_week, "show_week", run)
        monkeypatch.setattr("sys.argv", ["show_week.py", "fam1", "--week", "2024-01-01"])

        show_week.main()

        configure.assert_called_once_with()
        run.assert_awaited_once_with("fam1", "2024-01-01", None, None)
