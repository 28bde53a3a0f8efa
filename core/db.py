"""
core/db.py -- Engine construction shared by auth/store.py and catalog/store.py.

SQLite gets check_same_thread=False (FastAPI runs sync handlers in a thread
pool) and WAL journal mode so readers do not block during writes.

Layer rule: core/ is the kernel and imports nothing from the project.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode. Set per-connection because SQLite PRAGMAs are not inherited."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def make_engine(db_url: str) -> Engine:
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    return engine
