from __future__ import annotations
from contextlib import contextmanager
from typing import Iterator
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase, Session
from trackplan.config import get_settings


class Base(DeclarativeBase):
    pass


SQLITE_BUSY_TIMEOUT = 30


def _dsn() -> str:
    return get_settings().database_url


def configure_sqlite(e: Engine) -> Engine:
    """Enable foreign keys and working SAVEPOINTs on pysqlite connections.

    pysqlite issues its own BEGIN lazily, which breaks nested transactions; we turn its
    transaction handling off and emit BEGIN ourselves. IMMEDIATE takes the write lock up front:
    two deferred transactions that both read and then write deadlock on lock upgrade, and the
    loser fails with "database is locked" instead of waiting out the busy timeout.
    """
    if e.dialect.name != "sqlite":
        return e

    @event.listens_for(e, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(e, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return e


def _make_engine(url: str) -> Engine:
    kwargs = {"echo": get_settings().db_echo}
    if url.startswith("sqlite"):
        # timeout: seconds a writer waits for the lock before "database is locked"
        kwargs["connect_args"] = {"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT}
    else:
        kwargs["pool_pre_ping"] = True
    return configure_sqlite(create_engine(url, **kwargs))


engine = _make_engine(_dsn())
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

def override_engine(e):  # test helper
    global engine, SessionLocal
    engine = e
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@contextmanager
def session_scope() -> Iterator[Session]:
    """One logical operation = one transaction: commit on success, roll back on any error."""
    session: Session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def healthcheck() -> bool:
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
        return True
