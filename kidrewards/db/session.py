from contextlib import contextmanager
from typing import Iterator
import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..core.config import settings
from ..core.exceptions import Internal

logger = logging.getLogger(__name__)


def build_engine(url: str) -> Engine:
    # Required for SQLite (otherwise threading errors under the FastAPI threadpool)
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": 15}

    engine = create_engine(
        url,
        echo=False,             # set to True if you want SQL logs
        future=True,
        connect_args=connect_args
    )
    if url.startswith("sqlite"):
        event.listen(engine, "connect", _configure_sqlite)
    return engine


def _configure_sqlite(dbapi_connection, connection_record):
    # WAL lets readers proceed while a ledger write is in flight; foreign keys
    # make the explicit detach-before-delete policy enforceable.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    future=True
)


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """Commit everything done in the block, or nothing.

    Domain errors roll back and propagate unchanged; storage errors roll back
    and surface as :class:`Internal`.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Unit of work rolled back: {e}", exc_info=True)
        raise Internal() from e
    except Exception:
        db.rollback()
        raise
