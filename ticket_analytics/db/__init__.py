"""Database layer package for all SQL boundaries."""

from .analytics_ledger import (
    SQLAlchemyAnalyticsLedgerService,
    db_analytics_decimal_to_cents,
    db_analytics_integral_quantity,
)
from .health import SQLAlchemyDatabaseHealthService
from .interfaces import DatabaseHealthPort
from .session import db_create_engine

__all__ = [
    "DatabaseHealthPort",
    "SQLAlchemyAnalyticsLedgerService",
    "SQLAlchemyDatabaseHealthService",
    "db_analytics_decimal_to_cents",
    "db_analytics_integral_quantity",
    "db_create_engine",
]
