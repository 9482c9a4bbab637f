from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
import logging
from time import perf_counter

from feed_api.errors import FetchFailure, LockHeld, StatusFeedError, StructuralMismatch
from feed_api.services.status.feed_items import build_feed_entry
from feed_api.services.status.fetcher import PageFetcher
from feed_api.services.status.fingerprint import fingerprint, has_changed
from feed_api.services.status.lock import ExecutionLock
from feed_api.services.status.parser import (
    DEFAULT_INDICATOR_SELECTOR,
    DEFAULT_SERVICE_SELECTOR,
    parse_observation,
)
from feed_api.services.status.store import StatusStore
from feed_api.services.status.types import Catalog, FeedEntry, Observation

logger = logging.getLogger(__name__)


class JobState(str, Enum):
    IDLE = "idle"
    LOCKING = "locking"
    FETCHING = "fetching"
    PARSING = "parsing"
    FINGERPRINTING = "fingerprinting"
    DECIDING = "deciding"
    PERSISTING = "persisting"
    UNLOCKING = "unlocking"
    FAILED = "failed"


class JobOutcome(str, Enum):
    PUBLISHED = "published"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class JobResult:
    outcome: JobOutcome
    digest: str | None = None
    entry: FeedEntry | None = None
    error: Exception | None = None
    failed_state: JobState | None = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ObservationJob:
    """Observe the status page once and publish a feed entry if its state changed.

    ``run`` is safe to call from a scheduler at any time: every exit path
    releases the execution lock and no per-cycle error escapes.
    """

    def __init__(
        self,
        *,
        catalog: Catalog,
        fetcher: PageFetcher,
        lock: ExecutionLock,
        store: StatusStore,
        status_page_url: str,
        source_name: str,
        lock_key: str = "check-status",
        timeout_seconds: float = 10.0,
        service_selector: str = DEFAULT_SERVICE_SELECTOR,
        indicator_selector: str = DEFAULT_INDICATOR_SELECTOR,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._catalog = catalog
        self._fetcher = fetcher
        self._lock = lock
        self._store = store
        self._status_page_url = status_page_url
        self._source_name = source_name
        self._lock_key = lock_key
        self._timeout_seconds = timeout_seconds
        self._service_selector = service_selector
        self._indicator_selector = indicator_selector
        self._clock = clock
        self.state = JobState.IDLE

    def _enter(self, state: JobState) -> None:
        logger.debug("job state change", extra={"from_state": self.state.value, "to_state": state.value})
        self.state = state

    def run(self) -> JobResult:
        self._enter(JobState.LOCKING)
        try:
            with self._lock.held(self._lock_key):
                result = self._observe()
                self._enter(JobState.UNLOCKING)
        except LockHeld as exc:
            logger.info("another execution holds the lock. skipping this cycle", extra={"key": exc.key})
            self._enter(JobState.IDLE)
            return JobResult(outcome=JobOutcome.SKIPPED, error=exc)
        except Exception as exc:
            return self._fail(exc)

        self._enter(JobState.IDLE)
        return result

    def _fail(self, exc: Exception) -> JobResult:
        failed_state = self.state
        self._enter(JobState.FAILED)
        extra = {"state": failed_state.value, "error": str(exc)}

        if isinstance(exc, StructuralMismatch):
            logger.error(
                "status page no longer matches the catalog",
                extra={**extra, "expected": exc.expected, "found": exc.found},
            )
        elif isinstance(exc, FetchFailure):
            logger.error("error grabbing status page", extra=extra)
        elif isinstance(exc, StatusFeedError):
            logger.error("status check failed", extra=extra)
        else:
            logger.exception("unexpected error during status check", extra=extra)

        self._enter(JobState.IDLE)
        return JobResult(outcome=JobOutcome.FAILED, error=exc, failed_state=failed_state)

    def _capture(self) -> Observation:
        started = perf_counter()

        self._enter(JobState.FETCHING)
        captured_at = self._clock()
        document = self._fetcher.fetch(self._status_page_url)

        self._enter(JobState.PARSING)
        observation = parse_observation(
            document,
            self._catalog,
            captured_at=captured_at,
            service_selector=self._service_selector,
            indicator_selector=self._indicator_selector,
        )

        elapsed = perf_counter() - started
        if elapsed > self._timeout_seconds:
            raise FetchFailure(
                f"fetching and parsing the status page took {elapsed:.1f}s "
                f"(deadline {self._timeout_seconds:.1f}s)"
            )
        return observation

    def _observe(self) -> JobResult:
        observation = self._capture()

        self._enter(JobState.FINGERPRINTING)
        digest = fingerprint(observation)

        self._enter(JobState.DECIDING)
        previous = self._store.current_fingerprint()
        if previous is not None and not has_changed(previous.digest, digest):
            logger.info("no changes detected in status page", extra={"hash": digest})
            return JobResult(outcome=JobOutcome.UNCHANGED, digest=digest)

        if previous is None:
            logger.info("no previous status recorded. writing first feed entry", extra={"hash": digest})
        elif observation.has_errors:
            logger.info("status page has errors. writing to feed", extra={"hash": digest})
        else:
            logger.info("status page is back to normal. writing to feed", extra={"hash": digest})

        self._enter(JobState.PERSISTING)
        entry = self._store.publish(digest, build_feed_entry(observation, source_name=self._source_name))
        return JobResult(outcome=JobOutcome.PUBLISHED, digest=digest, entry=entry)
