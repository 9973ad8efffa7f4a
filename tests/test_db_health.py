"""Tests for analytics ledger database health reporting."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from ticket_analytics.db import health as health_module
from ticket_analytics.db.health import ANALYTICS_REQUIRED_TABLES, SQLAlchemyDatabaseHealthService


class _InspectorStub:
    """Inspector stub reporting a fixed set of existing tables."""

    def __init__(self, existing_tables: set[str]):
        self._existing_tables = existing_tables

    def has_table(self, table_name: str) -> bool:
        """Return whether the table exists."""

        return table_name in self._existing_tables


def test_db_health_reports_ok_when_every_table_exists(monkeypatch: pytest.MonkeyPatch) -> None:
    """Report a healthy ledger when all required tables exist."""

    monkeypatch.setattr(health_module, "inspect", lambda engine: _InspectorStub(set(ANALYTICS_REQUIRED_TABLES)))

    health_status = SQLAlchemyDatabaseHealthService(engine=object()).db_check_health()

    assert health_status.status == "ok"


def test_db_health_lists_missing_tables(monkeypatch: pytest.MonkeyPatch) -> None:
    """Report an error status naming every missing table."""

    existing_tables = set(ANALYTICS_REQUIRED_TABLES) - {"myeventlane_refund_log", "commerce_store_field_data"}
    monkeypatch.setattr(health_module, "inspect", lambda engine: _InspectorStub(existing_tables))

    health_status = SQLAlchemyDatabaseHealthService(engine=object()).db_check_health()

    assert health_status.status == "error"
    assert health_status.detail == "missing analytics tables: commerce_store_field_data, myeventlane_refund_log"


def test_db_health_unreachable_database_raises_connection_error(monkeypatch: pytest.MonkeyPatch) -> None:
    """Raise ConnectionError when schema inspection fails."""

    def _failing_inspect(engine):
        raise OperationalError("SELECT 1", {}, Exception("down"))

    monkeypatch.setattr(health_module, "inspect", _failing_inspect)

    with pytest.raises(ConnectionError):
        SQLAlchemyDatabaseHealthService(engine=object()).db_check_health()


def test_db_health_requires_engine() -> None:
    """Reject construction without an engine."""

    with pytest.raises(ValueError):
        SQLAlchemyDatabaseHealthService(engine=None)
