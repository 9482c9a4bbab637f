from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime, timezone
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from feed_api.errors import StoreFailure
from feed_api.models import FeedEntryRecord, LastStatusRecord
from feed_api.services.status.types import FeedEntry, FingerprintRecord

FINGERPRINT_ROW_ID = 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_entry(record: FeedEntryRecord) -> FeedEntry:
    return FeedEntry(
        id=record.id,
        title=record.title,
        description=record.description,
        published_at=record.published_at,
    )


class FingerprintStore:
    """Single-row table holding the digest of the last distinct observation."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def get(self) -> FingerprintRecord | None:
        try:
            with Session(self._engine) as session:
                record = session.get(LastStatusRecord, FINGERPRINT_ROW_ID)
        except SQLAlchemyError as exc:
            raise StoreFailure(f"error querying last status: {exc}") from exc

        if record is None:
            return None
        return FingerprintRecord(digest=record.status_hash, updated_at=record.updated_at)

    def save(self, digest: str, *, updated_at: datetime | None = None) -> None:
        try:
            with Session(self._engine) as session, session.begin():
                self.save_in(session, digest, updated_at=updated_at or _utcnow())
        except SQLAlchemyError as exc:
            raise StoreFailure(f"error saving last status: {exc}") from exc

    @staticmethod
    def save_in(session: Session, digest: str, *, updated_at: datetime) -> None:
        record = session.get(LastStatusRecord, FINGERPRINT_ROW_ID)
        if record is None:
            session.add(LastStatusRecord(id=FINGERPRINT_ROW_ID, status_hash=digest, updated_at=updated_at))
            return
        record.status_hash = digest
        record.updated_at = updated_at


class RecentFeed:
    """Lazy view over the newest feed entries; every iteration runs a fresh query."""

    def __init__(self, engine: Engine, limit: int) -> None:
        self._engine = engine
        self._limit = limit

    def __iter__(self) -> Iterator[FeedEntry]:
        stmt = select(FeedEntryRecord).order_by(
            FeedEntryRecord.published_at.desc(),
            FeedEntryRecord.id.desc(),
        )
        if self._limit > 0:
            stmt = stmt.limit(self._limit)

        try:
            with Session(self._engine) as session:
                records = session.scalars(stmt).all()
        except SQLAlchemyError as exc:
            raise StoreFailure(f"error querying feed: {exc}") from exc

        return iter([_to_entry(record) for record in records])


class FeedStore:
    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def append(self, entry: FeedEntry) -> FeedEntry:
        try:
            with Session(self._engine) as session, session.begin():
                record = self.append_in(session, entry)
                session.flush()
                stored = _to_entry(record)
        except SQLAlchemyError as exc:
            raise StoreFailure(f"error inserting feed entry: {exc}") from exc
        return stored

    @staticmethod
    def append_in(session: Session, entry: FeedEntry) -> FeedEntryRecord:
        record = FeedEntryRecord(
            title=entry.title,
            description=entry.description,
            published_at=entry.published_at or _utcnow(),
        )
        session.add(record)
        return record

    def recent(self, limit: int) -> RecentFeed:
        return RecentFeed(self._engine, limit)


class StatusStore(Protocol):
    def current_fingerprint(self) -> FingerprintRecord | None: ...

    def publish(self, digest: str, entry: FeedEntry) -> FeedEntry: ...


class SqlStatusStore:
    """Fingerprint and feed persistence for the observation job.

    ``publish`` writes the new digest and the feed entry in one transaction, so
    a failed insert never leaves the digest advanced without its entry.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self.fingerprints = FingerprintStore(engine)
        self.feed = FeedStore(engine)

    def current_fingerprint(self) -> FingerprintRecord | None:
        return self.fingerprints.get()

    def publish(self, digest: str, entry: FeedEntry) -> FeedEntry:
        try:
            with Session(self._engine) as session, session.begin():
                FingerprintStore.save_in(session, digest, updated_at=_utcnow())
                record = FeedStore.append_in(session, entry)
                session.flush()
                stored = _to_entry(record)
        except SQLAlchemyError as exc:
            raise StoreFailure(f"error publishing status change: {exc}") from exc
        return stored
