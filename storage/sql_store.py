"""SQLite SQLAlchemy store wrapper."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from storage.kv_store import StorageError
from storage.schemas import Base, KeyValueRecord


class SQLStore:
    """Durable key/value store backed by a single SQLite table."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.engine = create_engine(f"sqlite+pysqlite:///{self.db_path}", future=True)
        self._session_factory = sessionmaker(bind=self.engine, future=True)

    def create_all(self) -> None:
        """Create all schema tables if missing."""
        Base.metadata.create_all(self.engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Context manager that commits on success and rolls back on error."""
        sess = self._session_factory()
        try:
            yield sess
            sess.commit()
        except Exception:
            sess.rollback()
            raise
        finally:
            sess.close()

    def get(self, key: str) -> str | None:
        with self.session() as sess:
            row = sess.get(KeyValueRecord, key)
            return row.value if row else None

    def set(self, key: str, value: str) -> None:
        try:
            with self.session() as sess:
                row = sess.get(KeyValueRecord, key)
                if row is None:
                    sess.add(KeyValueRecord(key=key, value=value))
                else:
                    row.value = value
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to write {key!r}: {exc}") from exc

    def remove(self, key: str) -> None:
        with self.session() as sess:
            sess.execute(delete(KeyValueRecord).where(KeyValueRecord.key == key))

    def keys(self) -> list[str]:
        with self.session() as sess:
            return list(sess.scalars(select(KeyValueRecord.key).order_by(KeyValueRecord.key)))

    def clear(self) -> None:
        with self.session() as sess:
            sess.execute(delete(KeyValueRecord))
