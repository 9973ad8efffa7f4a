"""Database health service for analytics ledger connectivity and schema checks."""

from sqlalchemy import Engine, inspect
from sqlalchemy.exc import SQLAlchemyError

from ticket_analytics.domain import HealthStatus

from .interfaces import DatabaseHealthPort

ANALYTICS_REQUIRED_TABLES = (
    "commerce_order",
    "commerce_order_item",
    "commerce_order_item__field_target_event",
    "node__field_event_store",
    "commerce_store_field_data",
    "myeventlane_refund_log",
)


class SQLAlchemyDatabaseHealthService(DatabaseHealthPort):
    """Database health service backed by SQLAlchemy schema inspection.

    A reachable database that lacks any ledger table is reported unhealthy,
    so metrics never run against a partial schema.
    """

    def __init__(self, engine: Engine, required_tables: tuple[str, ...] = ANALYTICS_REQUIRED_TABLES):
        """Initialize database health service.

        Args:
            engine: SQLAlchemy engine used for connectivity checks.
            required_tables: Tables that must exist for analytics reads.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine
        self._required_tables = required_tables

    def db_connection_label(self) -> str:
        """Return the target database URL for diagnostics.

        Returns:
            str: Rendered engine URL string without password.
        """

        return self._engine.url.render_as_string(hide_password=True)

    def db_check_health(self) -> HealthStatus:
        """Verify connectivity and the presence of every analytics ledger table.

        Returns:
            HealthStatus: `ok` when all tables exist, `error` listing missing tables otherwise.

        Raises:
            ConnectionError: Raised when the database cannot be reached.
        """

        try:
            inspector = inspect(self._engine)
            missing_tables = [table for table in self._required_tables if not inspector.has_table(table)]
        except SQLAlchemyError as error:
            raise ConnectionError("database connectivity check failed") from error

        if missing_tables:
            return HealthStatus(status="error", detail=f"missing analytics tables: {', '.join(missing_tables)}")
        return HealthStatus(status="ok", detail="analytics ledger schema verified")
