from __future__ import annotations

import math
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import settings


def _is_sqlite(database_url: str) -> bool:
    return database_url.startswith("sqlite")


def _is_postgres(database_url: str) -> bool:
    return database_url.startswith("postgresql")


def _sqlite_setup(engine: Engine) -> None:
    """
    SQLite needs foreign keys switched on per connection, and the feed's
    haversine expression needs math functions that many SQLite builds lack.

    SQLite ignores SELECT ... FOR UPDATE, so every transaction is opened with
    BEGIN IMMEDIATE instead: the write lock is taken up front and a second
    joiner waits (busy_timeout) until the first one commits.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Hand transaction control to SQLAlchemy; pysqlite would otherwise
        # defer BEGIN until the first INSERT/UPDATE.
        dbapi_connection.isolation_level = None

        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON;")
        cursor.execute("PRAGMA busy_timeout=5000;")
        cursor.close()

        dbapi_connection.create_function("radians", 1, math.radians, deterministic=True)
        dbapi_connection.create_function("sin", 1, math.sin, deterministic=True)
        dbapi_connection.create_function("cos", 1, math.cos, deterministic=True)
        dbapi_connection.create_function("asin", 1, math.asin, deterministic=True)
        dbapi_connection.create_function("sqrt", 1, math.sqrt, deterministic=True)
        dbapi_connection.create_function("power", 2, math.pow, deterministic=True)

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def _postgres_setup(engine: Engine, statement_timeout_ms: int) -> None:
    # Every store call is bounded by a server-side deadline.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute(f"SET statement_timeout = {int(statement_timeout_ms)}")
        cursor.close()
        dbapi_connection.commit()


def build_engine(database_url: str | None = None) -> Engine:
    url = database_url or settings.database_url

    kwargs: dict = {"future": True, "pool_pre_ping": True}
    if _is_sqlite(url):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url or url.rstrip("/").endswith("sqlite:"):
            kwargs["poolclass"] = StaticPool

    engine = create_engine(url, **kwargs)

    if _is_sqlite(url):
        _sqlite_setup(engine)
    if _is_postgres(url) and settings.db_statement_timeout_ms > 0:
        _postgres_setup(engine, settings.db_statement_timeout_ms)

    return engine


engine: Engine = build_engine()

SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
