"""Engine factory for the read-only ledger database.

Analytics never writes to the order or refund ledgers; PostgreSQL connections
are opened as read-only transactions so a stray write fails at the server.
"""

from sqlalchemy import Engine, create_engine


def db_create_engine(database_url: str, read_only: bool = True) -> Engine:
    """Create the SQLAlchemy engine for analytics ledger reads.

    Args:
        database_url: SQLAlchemy database URL.
        read_only: Open PostgreSQL transactions in read-only mode.

    Returns:
        Engine: Configured SQLAlchemy engine.

    Raises:
        ValueError: Raised when the database URL is blank.
    """

    stripped_url = database_url.strip()
    if not stripped_url:
        raise ValueError("database_url must not be blank")

    engine = create_engine(stripped_url, pool_pre_ping=True)
    if read_only and engine.dialect.name == "postgresql":
        engine = engine.execution_options(postgresql_readonly=True)
    return engine
