"""
core/database.py -- Engine construction shared by every SQLAlchemy store.

Each store owns its own tables and MetaData (auth/store.py, tickets/store.py)
but builds its engine here, so SQLite connections get the same pragmas and
driver timeout everywhere.

Layer rule: core/ is the kernel. No imports from api/, auth/ or tickets/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine


def _set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL and foreign key enforcement on every new SQLite connection.

    Both PRAGMAs are per-connection; they are not inherited from the pool.
    Without foreign_keys=ON, SQLite ignores ON DELETE CASCADE.
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(db_url: str, timeout: float = 5.0) -> Engine:
    """Create an engine for db_url.

    timeout is handed to the SQLite driver as its busy timeout, so a locked
    database fails the call instead of blocking the request indefinitely.
    """
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        connect_args["timeout"] = timeout
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_sqlite_pragmas)
    return engine


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
