"""Database object and transaction helper.

The application entry point constructs one Database per process and hands
it to request handlers through app.state; nothing here is a module-level
client.
"""
import logging
from contextlib import contextmanager, nullcontext
from typing import Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

from pharmahub.core.exceptions import StorageError

logger = logging.getLogger(__name__)


def _on_sqlite_connect(dbapi_connection, connection_record):
    # Let SQLAlchemy emit BEGIN itself so SAVEPOINT/RELEASE behave
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _on_sqlite_begin(conn):
    conn.exec_driver_sql("BEGIN")


class Database:
    """Owns the engine and session factory for one storage backend."""

    def __init__(self, url: str, engine: Optional[Engine] = None):
        self.url = url
        self.engine = engine or self._create_engine(url)
        self.session_factory = sessionmaker(
            autocommit=False, autoflush=False, expire_on_commit=False, bind=self.engine
        )

    @staticmethod
    def _create_engine(url: str) -> Engine:
        if url.startswith("sqlite"):
            connect_args = {"check_same_thread": False}
            if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
                # One shared connection, otherwise every session sees an empty DB
                engine = create_engine(url, connect_args=connect_args, poolclass=StaticPool)
            else:
                engine = create_engine(url, connect_args=connect_args, poolclass=NullPool)
            event.listen(engine, "connect", _on_sqlite_connect)
            event.listen(engine, "begin", _on_sqlite_begin)
            return engine

        # PostgreSQL/MySQL: QueuePool with sensible defaults
        return create_engine(
            url,
            pool_size=5,
            max_overflow=10,
            pool_timeout=30,
            pool_recycle=3600,
            pool_pre_ping=True,
        )

    def session(self) -> Session:
        return self.session_factory()

    def create_all(self):
        from pharmahub.db.base import Base
        import pharmahub.models  # noqa: F401 - register models

        Base.metadata.create_all(bind=self.engine)

    def dispose(self):
        self.engine.dispose()


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """
    Run one business operation as a single transaction.

    Commits on success. Any exception rolls back everything the block
    flushed, so partial effects are never observable. Driver/ORM failures
    surface as StorageError; domain errors propagate unchanged.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Transaction rolled back: {type(exc).__name__}: {exc}")
        raise StorageError() from exc
    except Exception:
        db.rollback()
        raise


def transaction(db: Session, auto_commit: bool = True):
    """atomic() when the call owns the transaction, a no-op when the caller does."""
    return atomic(db) if auto_commit else nullcontext(db)
