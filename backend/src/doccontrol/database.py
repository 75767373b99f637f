"""Database session factory and configuration.

Provides database connectivity and session management for the document
control backend. Workflow transitions rely on SAVEPOINTs (activity log writes)
and on conditional UPDATE/DELETE row counts, so SQLite engines get the
pysqlite transaction workaround applied.
"""

from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from .config import get_settings


def make_engine(database_url: str, **kwargs) -> Engine:
    """Create an engine for the given URL.

    Pool settings only apply to PostgreSQL. For SQLite the driver's implicit
    transaction handling is disabled and BEGIN is emitted by SQLAlchemy, which
    makes SAVEPOINT behave the same way it does on PostgreSQL.
    """
    engine_kwargs = {
        "pool_pre_ping": True,  # Verify connections before using
        "echo": False,
    }

    if database_url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    else:
        engine_kwargs["pool_size"] = 5
        engine_kwargs["max_overflow"] = 10

    engine_kwargs.update(kwargs)
    engine = create_engine(database_url, **engine_kwargs)

    if engine.dialect.name == "sqlite":
        _enable_sqlite_transactions(engine)

    return engine


def _enable_sqlite_transactions(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


engine = make_engine(get_settings().DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


def get_db() -> Generator[Session, None, None]:
    """Dependency for FastAPI endpoints.

    Usage:
        @router.get("/documents/{document_id}/logs")
        def list_logs(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
