from feed_api.services.status.catalog import load_catalog, seed_catalog
from feed_api.services.status.fetcher import StatusPageClient
from feed_api.services.status.fingerprint import fingerprint, has_changed
from feed_api.services.status.job import JobOutcome, JobResult, ObservationJob
from feed_api.services.status.lock import ExecutionLock
from feed_api.services.status.parser import parse_observation
from feed_api.services.status.store import FeedStore, FingerprintStore, SqlStatusStore
from feed_api.services.status.types import Catalog, FeedEntry, Observation, ParsedStatus, Service, StatusKind

__all__ = [
    "Catalog",
    "ExecutionLock",
    "FeedEntry",
    "FeedStore",
    "FingerprintStore",
    "JobOutcome",
    "JobResult",
    "Observation",
    "ObservationJob",
    "ParsedStatus",
    "Service",
    "SqlStatusStore",
    "StatusKind",
    "StatusPageClient",
    "fingerprint",
    "has_changed",
    "load_catalog",
    "parse_observation",
    "seed_catalog",
]
