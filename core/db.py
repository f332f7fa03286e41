"""
core/db.py -- SQLAlchemy engine construction shared by every store.

Both auth/store.py and inventory/store.py call make_engine() so SQLite gets
the same treatment everywhere: check_same_thread disabled (FastAPI runs sync
handlers in a thread pool), WAL journal mode for file databases, and a
StaticPool for plain in-memory URLs.

Layer rule: core/ is the kernel. No imports from api/, auth/, or inventory/.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

_PLAIN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    WAL (Write-Ahead Logging) allows readers to proceed without blocking
    during writes. Set per-connection because SQLite PRAGMAs are not
    inherited by new connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def make_engine(db_url: str) -> Engine:
    """Return an Engine for db_url.

    Plain in-memory URLs get a StaticPool: every pooled connection would
    otherwise open its own private, empty database. Named shared-memory URIs
    (file:name?mode=memory&cache=shared&uri=true) already share one instance
    and use the default pool.
    """
    kwargs: dict = {}
    is_sqlite = db_url.startswith("sqlite")
    in_memory = db_url in _PLAIN_MEMORY_URLS or "mode=memory" in db_url
    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
        if db_url in _PLAIN_MEMORY_URLS:
            kwargs["poolclass"] = StaticPool
    engine = create_engine(db_url, **kwargs)
    if is_sqlite and not in_memory:
        event.listen(engine, "connect", _set_wal_mode)
    return engine
