"""
SQL-backed playback store.

Keeps playback records in a single key/value table through SQLAlchemy, so a
local SQLite file or a shared database can hold resume positions.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, String, Text, create_engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from chilltv.playback.store import DEFAULT_MAX_RECORDS, PlaybackConfigStore, PlaybackStoreError

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Declarative base for chilltv tables."""


class PlaybackStateRecord(Base):
    """One raw playback value (a title's config or the recent-titles index)."""

    __tablename__ = "playback_state"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utc_now,
        onupdate=_utc_now,
    )

    def __repr__(self) -> str:
        return f"<PlaybackStateRecord key={self.key}>"


class SqlPlaybackStore(PlaybackConfigStore):
    """Playback store on a SQLAlchemy engine."""

    def __init__(self, database_url: str, max_records: int = DEFAULT_MAX_RECORDS):
        super().__init__(max_records)
        self.database_url = database_url

        engine_kwargs = {}
        if database_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in database_url:
                engine_kwargs["poolclass"] = StaticPool

        self._engine = create_engine(database_url, **engine_kwargs)
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        Base.metadata.create_all(bind=self._engine)
        logger.info(f"Playback store using database {self._engine.url.render_as_string(hide_password=True)}")

    def read(self, key: str) -> Optional[str]:
        try:
            with self._session_factory() as session:
                record = session.scalar(
                    select(PlaybackStateRecord).where(PlaybackStateRecord.key == key)
                )
                return record.value if record else None
        except SQLAlchemyError as e:
            raise PlaybackStoreError(f"Failed to read {key}: {e}") from e

    def write(self, key: str, value: str) -> None:
        try:
            with self._session_factory() as session:
                record = session.get(PlaybackStateRecord, key)
                if record is None:
                    session.add(PlaybackStateRecord(key=key, value=value))
                else:
                    record.value = value
                session.commit()
        except SQLAlchemyError as e:
            raise PlaybackStoreError(f"Failed to write {key}: {e}") from e

    def remove(self, key: str) -> None:
        try:
            with self._session_factory() as session:
                record = session.get(PlaybackStateRecord, key)
                if record is not None:
                    session.delete(record)
                    session.commit()
        except SQLAlchemyError as e:
            raise PlaybackStoreError(f"Failed to delete {key}: {e}") from e

    def close(self) -> None:
        """Dispose of the connection pool."""
        self._engine.dispose()
