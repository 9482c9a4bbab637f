from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from feed_api.errors import StoreFailure
from feed_api.models import FeedEntryRecord, LastStatusRecord
from feed_api.services.status import FeedEntry, FeedStore, FingerprintStore, SqlStatusStore

T0 = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


def _count(engine: Engine, model) -> int:
    with Session(engine) as session:
        return session.scalar(select(func.count()).select_from(model))


def test_fingerprint_store_creates_then_updates_single_row(engine: Engine) -> None:
    store = FingerprintStore(engine)
    assert store.get() is None

    store.save("a" * 64, updated_at=T0)
    store.save("b" * 64, updated_at=T0 + timedelta(minutes=30))

    record = store.get()
    assert record is not None
    assert record.digest == "b" * 64
    assert _count(engine, LastStatusRecord) == 1


def test_feed_append_defaults_published_at(engine: Engine) -> None:
    stored = FeedStore(engine).append(FeedEntry(title="hello", description="<p>hi</p>"))

    assert stored.id is not None
    assert stored.published_at is not None
    assert stored.title == "hello"


def test_recent_returns_newest_first_with_limit(engine: Engine) -> None:
    feed = FeedStore(engine)
    for offset in (0, 2, 1):
        feed.append(
            FeedEntry(
                title=f"entry {offset}",
                description="",
                published_at=T0 + timedelta(hours=offset),
            )
        )

    assert [entry.title for entry in feed.recent(2)] == ["entry 2", "entry 1"]
    assert [entry.title for entry in feed.recent(0)] == ["entry 2", "entry 1", "entry 0"]
    assert [entry.title for entry in feed.recent(-1)] == ["entry 2", "entry 1", "entry 0"]


def test_recent_orders_identical_timestamps_by_insertion(engine: Engine) -> None:
    feed = FeedStore(engine)
    feed.append(FeedEntry(title="first", description="", published_at=T0))
    feed.append(FeedEntry(title="second", description="", published_at=T0))

    assert [entry.title for entry in feed.recent(10)] == ["second", "first"]


def test_recent_is_lazy_and_restartable(engine: Engine) -> None:
    feed = FeedStore(engine)
    view = feed.recent(10)
    feed.append(FeedEntry(title="first", description="", published_at=T0))

    assert [entry.title for entry in view] == ["first"]

    feed.append(FeedEntry(title="second", description="", published_at=T0 + timedelta(minutes=1)))

    assert [entry.title for entry in view] == ["second", "first"]


def test_publish_writes_digest_and_entry_together(engine: Engine) -> None:
    store = SqlStatusStore(engine)

    entry = store.publish("c" * 64, FeedEntry(title="changed", description="", published_at=T0))

    assert entry.id is not None
    assert store.current_fingerprint().digest == "c" * 64
    assert [item.title for item in store.feed.recent(0)] == ["changed"]


def test_publish_rolls_back_digest_when_entry_insert_fails(
    engine: Engine, monkeypatch: pytest.MonkeyPatch
) -> None:
    store = SqlStatusStore(engine)
    store.fingerprints.save("a" * 64, updated_at=T0)

    def broken_append(session: Session, entry: FeedEntry) -> FeedEntryRecord:
        raise OperationalError("INSERT INTO feed_entries", {}, Exception("disk I/O error"))

    monkeypatch.setattr(FeedStore, "append_in", staticmethod(broken_append))

    with pytest.raises(StoreFailure, match="error publishing status change"):
        store.publish("b" * 64, FeedEntry(title="lost", description=""))

    assert store.current_fingerprint().digest == "a" * 64
    assert _count(engine, FeedEntryRecord) == 0


def test_store_errors_are_wrapped(tmp_path) -> None:
    missing_tables = create_engine(f"sqlite+pysqlite:///{tmp_path / 'empty.db'}")

    with pytest.raises(StoreFailure, match="error querying feed"):
        list(FeedStore(missing_tables).recent(5))
    with pytest.raises(StoreFailure, match="error querying last status"):
        FingerprintStore(missing_tables).get()
