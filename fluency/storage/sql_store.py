"""
SQLAlchemy storage.

Item records and deadlines live in two tables keyed by (namespace, item_id).
Any SQLAlchemy URL works; the default settings point at a local SQLite file.
"""

from __future__ import annotations

from collections.abc import Generator, Iterable
from contextlib import contextmanager
from datetime import UTC, datetime

from loguru import logger
from sqlalchemy import JSON, DateTime, Float, Integer, String, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from fluency.adaptive.memory_model import ItemRecord


class Base(DeclarativeBase):
    pass


class ItemRecordRow(Base):
    """One learner-facing item's state within a namespace."""

    __tablename__ = "item_records"

    namespace: Mapped[str] = mapped_column(String(128), primary_key=True)
    item_id: Mapped[str] = mapped_column(String(256), primary_key=True)

    ewma: Mapped[float] = mapped_column(Float, nullable=False)
    stability: Mapped[float] = mapped_column(Float, nullable=False)
    last_seen_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    last_correct_at: Mapped[datetime | None] = mapped_column(DateTime)
    seen_count: Mapped[int] = mapped_column(Integer, default=0)
    correct_count: Mapped[int] = mapped_column(Integer, default=0)
    consecutive_correct: Mapped[int] = mapped_column(Integer, default=0)
    recent_times: Mapped[list] = mapped_column(JSON, default=list)

    def __repr__(self) -> str:
        return f"<ItemRecordRow {self.namespace}/{self.item_id} seen={self.seen_count}>"


class ItemDeadlineRow(Base):
    __tablename__ = "item_deadlines"

    namespace: Mapped[str] = mapped_column(String(128), primary_key=True)
    item_id: Mapped[str] = mapped_column(String(256), primary_key=True)
    deadline_ms: Mapped[int] = mapped_column(Integer, nullable=False)


def _to_db_time(value: datetime | None) -> datetime | None:
    # Stored as naive UTC; not every backend keeps offsets
    if value is None:
        return None
    return value.astimezone(UTC).replace(tzinfo=None)


def _from_db_time(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def _row_to_record(row: ItemRecordRow) -> ItemRecord:
    return ItemRecord(
        ewma=row.ewma,
        stability=row.stability,
        last_seen_at=_from_db_time(row.last_seen_at),
        last_correct_at=_from_db_time(row.last_correct_at),
        seen_count=row.seen_count,
        correct_count=row.correct_count,
        consecutive_correct=row.consecutive_correct,
        recent_times=list(row.recent_times or []),
    )


class SqlStorage:
    """
    Database-backed storage adapter.

    Reads go through a small cache that preload() can warm in a single query.
    """

    def __init__(self, database_url: str = "sqlite://", namespace: str = "default", engine: Engine | None = None):
        """
        Initialize storage and create tables if missing.

        Args:
            database_url: SQLAlchemy URL (ignored when engine is given)
            namespace: Namespace isolating one quiz mode's records
            engine: Pre-built engine to share between adapters
        """
        self.engine = engine or create_engine(database_url)
        self.namespace = namespace
        self._session_factory = sessionmaker(bind=self.engine, autoflush=False)
        self._cache: dict[str, ItemRecord | None] = {}
        Base.metadata.create_all(bind=self.engine)
        logger.debug(f"SQL storage ready: {self.engine.url} namespace={namespace}")

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """Provide a transactional scope around a series of operations."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # -------------------------------------------------------------------------
    # StorageAdapter
    # -------------------------------------------------------------------------

    def get(self, item_id: str) -> ItemRecord | None:
        if item_id not in self._cache:
            with self.session_scope() as session:
                row = session.get(ItemRecordRow, (self.namespace, item_id))
                self._cache[item_id] = _row_to_record(row) if row else None
        cached = self._cache[item_id]
        # Hand out a copy so callers cannot edit the cache
        return ItemRecord.from_dict(cached.to_dict()) if cached else None

    def set(self, item_id: str, record: ItemRecord) -> None:
        with self.session_scope() as session:
            row = session.get(ItemRecordRow, (self.namespace, item_id))
            if row is None:
                row = ItemRecordRow(namespace=self.namespace, item_id=item_id)
                session.add(row)
            row.ewma = record.ewma
            row.stability = record.stability
            row.last_seen_at = _to_db_time(record.last_seen_at)
            row.last_correct_at = _to_db_time(record.last_correct_at)
            row.seen_count = record.seen_count
            row.correct_count = record.correct_count
            row.consecutive_correct = record.consecutive_correct
            row.recent_times = list(record.recent_times)
        self._cache[item_id] = ItemRecord.from_dict(record.to_dict())

    def preload(self, item_ids: Iterable[str]) -> None:
        """Load every uncached item in one query."""
        missing = [item_id for item_id in item_ids if item_id not in self._cache]
        if not missing:
            return
        with self.session_scope() as session:
            rows = session.scalars(
                select(ItemRecordRow).where(
                    ItemRecordRow.namespace == self.namespace,
                    ItemRecordRow.item_id.in_(missing),
                )
            ).all()
            found = {row.item_id: _row_to_record(row) for row in rows}
        for item_id in missing:
            self._cache[item_id] = found.get(item_id)

    def get_deadline(self, item_id: str) -> int | None:
        with self.session_scope() as session:
            row = session.get(ItemDeadlineRow, (self.namespace, item_id))
            return row.deadline_ms if row else None

    def set_deadline(self, item_id: str, deadline_ms: int) -> None:
        with self.session_scope() as session:
            row = session.get(ItemDeadlineRow, (self.namespace, item_id))
            if row is None:
                session.add(ItemDeadlineRow(namespace=self.namespace, item_id=item_id, deadline_ms=deadline_ms))
            else:
                row.deadline_ms = deadline_ms

    def item_ids(self) -> list[str]:
        with self.session_scope() as session:
            return list(
                session.scalars(
                    select(ItemRecordRow.item_id)
                    .where(ItemRecordRow.namespace == self.namespace)
                    .order_by(ItemRecordRow.item_id)
                )
            )
