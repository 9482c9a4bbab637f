from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
import logging
from threading import Event, Thread
from uuid import uuid4

from sqlalchemy import delete, insert, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from feed_api.errors import LockHeld, StoreFailure
from feed_api.models import ExecutionLockRecord

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExecutionLock:
    """Cross-process mutual exclusion backed by the ``execution_locks`` table.

    The primary key on ``key`` is what guarantees a single holder. With a
    positive lease, a record whose ``expires_at`` has passed is treated as
    absent and reclaimed by the next ``acquire``. A lease of zero means records
    never expire and a crashed holder has to be cleared by hand.
    """

    def __init__(
        self,
        engine: Engine,
        *,
        owner: str | None = None,
        lease_seconds: int = 900,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._engine = engine
        self._owner = owner or f"lock-{uuid4().hex[:12]}"
        self._lease_seconds = max(0, lease_seconds)
        self._clock = clock

    @property
    def owner(self) -> str:
        return self._owner

    def _expiry(self, now: datetime) -> datetime | None:
        if self._lease_seconds == 0:
            return None
        return now + timedelta(seconds=self._lease_seconds)

    def acquire(self, key: str) -> None:
        now = self._clock()
        try:
            with self._engine.begin() as connection:
                reclaimed = connection.execute(
                    delete(ExecutionLockRecord)
                    .where(ExecutionLockRecord.key == key)
                    .where(ExecutionLockRecord.expires_at.is_not(None))
                    .where(ExecutionLockRecord.expires_at <= now)
                )
                if reclaimed.rowcount:
                    logger.warning("reclaimed expired execution lock", extra={"key": key})

                connection.execute(
                    insert(ExecutionLockRecord).values(
                        key=key,
                        owner=self._owner,
                        acquired_at=now,
                        expires_at=self._expiry(now),
                    )
                )
        except IntegrityError as exc:
            raise LockHeld(key) from exc
        except SQLAlchemyError as exc:
            raise StoreFailure(f"error obtaining execution lock for key '{key}': {exc}") from exc

        logger.debug("execution lock acquired", extra={"key": key, "owner": self._owner})

    def extend(self, key: str) -> bool:
        """Push the expiry of our own record forward. Returns False if we no longer hold it."""
        if self._lease_seconds == 0:
            return True

        try:
            with self._engine.begin() as connection:
                result = connection.execute(
                    update(ExecutionLockRecord)
                    .where(ExecutionLockRecord.key == key)
                    .where(ExecutionLockRecord.owner == self._owner)
                    .values(expires_at=self._expiry(self._clock()))
                )
        except SQLAlchemyError as exc:
            raise StoreFailure(f"error extending execution lock for key '{key}': {exc}") from exc

        if result.rowcount != 1:
            logger.warning("execution lock no longer held", extra={"key": key, "owner": self._owner})
            return False
        return True

    def release(self, key: str) -> None:
        try:
            with self._engine.begin() as connection:
                connection.execute(delete(ExecutionLockRecord).where(ExecutionLockRecord.key == key))
        except SQLAlchemyError as exc:
            raise StoreFailure(f"error releasing execution lock for key '{key}': {exc}") from exc

        logger.debug("execution lock released", extra={"key": key, "owner": self._owner})

    def _renew_loop(self, key: str, stop_event: Event) -> None:
        interval = max(1.0, self._lease_seconds / 3)
        while not stop_event.wait(interval):
            try:
                if not self.extend(key):
                    return
            except StoreFailure as exc:
                logger.error("execution lock renewal failed", extra={"key": key, "error": str(exc)})

    @contextmanager
    def held(self, key: str) -> Iterator[None]:
        """Hold ``key`` for the duration of the block, renewing the lease while it runs."""
        self.acquire(key)

        stop_event = Event()
        renewer: Thread | None = None
        if self._lease_seconds > 0:
            renewer = Thread(target=self._renew_loop, args=(key, stop_event), daemon=True)
            renewer.start()

        try:
            yield
        finally:
            stop_event.set()
            if renewer is not None:
                renewer.join()
            try:
                self.release(key)
            except StoreFailure as exc:
                logger.error("execution lock release failed", extra={"key": key, "error": str(exc)})
