"""SQLAlchemy persistence for cached ratings snapshots."""

from __future__ import annotations

import datetime
import logging

from sqlalchemy import Column, DateTime, Integer, String, create_engine, func, insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import declarative_base, sessionmaker

from ..common.types import RatingsSnapshot

Base = declarative_base()

SNAPSHOT_FIELDS = (
    "imdb_rating",
    "imdb_votes",
    "rotten_tomatoes_score",
    "metascore",
    "awards",
    "box_office",
)

logger = logging.getLogger(__name__)


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class Rating(Base):
    """One cached ratings row per IMDb id."""

    __tablename__ = "ratings"

    id = Column(Integer, primary_key=True)
    imdb_id = Column(String, unique=True, nullable=False, index=True)
    imdb_rating = Column(String, nullable=False, default="")
    imdb_votes = Column(String, nullable=False, default="")
    rotten_tomatoes_score = Column(String, nullable=False, default="")
    metascore = Column(String, nullable=False, default="")
    awards = Column(String, nullable=False, default="")
    box_office = Column(String, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utc_now)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=_utc_now, onupdate=_utc_now
    )

    def to_snapshot(self) -> RatingsSnapshot:
        return RatingsSnapshot(
            imdb_id=self.imdb_id,
            **{field: getattr(self, field) or "" for field in SNAPSHOT_FIELDS},
        )


def _insert_ignoring_duplicates(dialect_name: str):
    """Return an ``INSERT ... ON CONFLICT DO NOTHING`` builder for the dialect."""

    if dialect_name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert as dialect_insert
    elif dialect_name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert as dialect_insert
    else:
        return None

    def _build(values: dict[str, object]):
        return (
            dialect_insert(Rating.__table__)
            .values(**values)
            .on_conflict_do_nothing(index_elements=["imdb_id"])
        )

    return _build


class RatingsStore:
    """Read and insert-or-ignore access to the ``ratings`` table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._session_factory = sessionmaker(
            bind=engine, autoflush=False, expire_on_commit=False
        )
        self._insert = _insert_ignoring_duplicates(engine.dialect.name)

    @classmethod
    def from_url(cls, database_url: str) -> "RatingsStore":
        return cls(create_engine(database_url))

    @property
    def engine(self) -> Engine:
        return self._engine

    def create_schema(self) -> None:
        Base.metadata.create_all(self._engine)

    def dispose(self) -> None:
        self._engine.dispose()

    def get(self, imdb_id: str) -> RatingsSnapshot | None:
        """Return the stored snapshot for *imdb_id*, if any."""

        with self._session_factory() as session:
            row = session.execute(
                select(Rating).where(Rating.imdb_id == imdb_id)
            ).scalar_one_or_none()
            return row.to_snapshot() if row is not None else None

    def insert_if_absent(self, snapshot: RatingsSnapshot) -> bool:
        """Insert *snapshot* unless a row for its key exists.

        Returns ``True`` when a new row was written.
        """

        now = _utc_now()
        values: dict[str, object] = {
            "imdb_id": snapshot.imdb_id,
            **{field: getattr(snapshot, field) for field in SNAPSHOT_FIELDS},
            "created_at": now,
            "updated_at": now,
        }
        with self._session_factory() as session:
            if self._insert is not None:
                result = session.execute(self._insert(values))
                session.commit()
                inserted = bool(result.rowcount)
            else:
                try:
                    session.execute(insert(Rating.__table__).values(**values))
                    session.commit()
                    inserted = True
                except IntegrityError:
                    session.rollback()
                    inserted = False
        if not inserted:
            logger.debug("Ratings for %s already stored; insert ignored", snapshot.imdb_id)
        return inserted

    def count(self) -> int:
        with self._session_factory() as session:
            return session.execute(select(func.count(Rating.id))).scalar_one()


__all__ = ["Base", "Rating", "RatingsStore", "SNAPSHOT_FIELDS"]
