from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import MetaData, create_engine, event
from sqlalchemy.orm import declarative_base

from lightpos.constants import StoreDefaults

# Constraint names follow the same pattern on every table so schema diffs stay stable
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

Base = declarative_base(metadata=MetaData(naming_convention=NAMING_CONVENTION))


def sqlite_url(db_path: Path) -> str:
    """Build the SQLAlchemy URL for a single-file SQLite store."""
    return f"sqlite:///{Path(db_path).resolve()}"


def create_store_engine(db_path: Path, echo: bool = False):
    """
    Create the engine for the store at ``db_path``.

    The UI issues one operation at a time, so the default SQLite pool is kept.
    """
    engine = create_engine(
        sqlite_url(db_path),
        echo=echo,
        pool_pre_ping=True,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute(f"PRAGMA busy_timeout={StoreDefaults.BUSY_TIMEOUT_MS}")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


@contextmanager
def unit_of_work(session_factory, transactional: bool = True):
    """
    Open a session for exactly one logical operation.

    With ``transactional`` the body runs inside a transaction that is
    committed on success and rolled back on error. The session is closed on
    every exit path.
    """
    db = session_factory()
    try:
        if transactional:
            with db.begin():
                yield db
        else:
            yield db
    finally:
        db.close()
