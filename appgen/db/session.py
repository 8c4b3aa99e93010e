import threading
from contextlib import nullcontext
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from appgen.core.config import settings


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _build_engine(url: str):
    if not _is_sqlite(url):
        return create_engine(url, pool_pre_ping=True)

    # One connection per session. With a shared-cache memory URI every
    # connection sees the same database, which lives as long as the pool
    # keeps a connection open.
    engine = create_engine(
        url,
        connect_args={"check_same_thread": False},
        poolclass=QueuePool,
        pool_size=10,
        max_overflow=20,
    )

    @event.listens_for(engine, "connect")
    def _sqlite_pragmas(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        # readers skip shared-cache table locks, so polling never blocks on a job's write
        cursor.execute("PRAGMA read_uncommitted = 1")
        cursor.execute("PRAGMA busy_timeout = 5000")
        cursor.close()

    return engine


engine = _build_engine(settings.database_url)

# SQLite takes one writer at a time and a shared cache fails a second writer
# instead of waiting, so writes go through this lock.
_write_lock = threading.RLock() if _is_sqlite(settings.database_url) else nullcontext()


class AppSession(Session):
    """Session whose flushes and commits are serialized on SQLite."""

    def flush(self, objects=None) -> None:
        with _write_lock:
            super().flush(objects)

    def commit(self) -> None:
        with _write_lock:
            super().commit()


SessionLocal = sessionmaker(class_=AppSession, autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
