from __future__ import annotations

from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from otpgate.core.config import settings

# Connection execution option naming the lock wait, in seconds, of a transaction
# that must hold the write lock from its first statement
EXCLUSIVE_LOCK_TIMEOUT = "otpgate_exclusive_lock_timeout"


def build_engine(database_url: str, lock_timeout_seconds: float = 5.0) -> Engine:
    """
    Create an engine whose transactions can hold an exclusive lock on an account.

    On SQLite ``FOR UPDATE`` is a no-op. A connection carrying the
    ``EXCLUSIVE_LOCK_TIMEOUT`` execution option opens its transaction with
    ``BEGIN IMMEDIATE`` and takes the database write lock up front, waiting at
    most that long for it. Every other transaction is a deferred ``BEGIN`` and
    only reads under a shared lock.
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url)

    engine = create_engine(
        database_url,
        connect_args={"check_same_thread": False, "timeout": lock_timeout_seconds},
    )
    default_busy_ms = int(lock_timeout_seconds * 1000)

    @event.listens_for(engine, "connect")
    def _disable_implicit_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin(conn):
        lock_timeout = conn.get_execution_options().get(EXCLUSIVE_LOCK_TIMEOUT)
        if lock_timeout is None:
            conn.exec_driver_sql(f"PRAGMA busy_timeout = {default_busy_ms}")
            conn.exec_driver_sql("BEGIN")
            return
        conn.exec_driver_sql(f"PRAGMA busy_timeout = {int(lock_timeout * 1000)}")
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


DATABASE_URL = settings.database_url

engine = build_engine(DATABASE_URL, settings.lock_timeout_seconds)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
