from dataclasses import dataclass
from functools import lru_cache
import os


def _to_bool(value: str | None, *, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _to_int(value: str | None, *, default: int, minimum: int) -> int:
    if value is None:
        return default
    parsed = int(value)
    return max(minimum, parsed)


@dataclass(frozen=True)
class Settings:
    database_url: str
    db_echo: bool
    db_auto_migrate: bool
    status_page_url: str
    status_source_name: str
    status_service_selector: str
    status_indicator_selector: str
    cron_schedule: str
    fetch_timeout_seconds: float
    lock_key: str
    lock_lease_seconds: int
    feed_limit: int
    worker_id: str
    log_level: str


@lru_cache
def get_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite+pysqlite:///./status-feed.db"),
        db_echo=_to_bool(os.getenv("DB_ECHO"), default=False),
        db_auto_migrate=_to_bool(os.getenv("DB_AUTO_MIGRATE"), default=True),
        status_page_url=os.getenv("STATUS_PAGE_URL", "https://my.shopifystatus.com"),
        status_source_name=os.getenv("STATUS_SOURCE_NAME", "Shopify"),
        status_service_selector=os.getenv("STATUS_SERVICE_SELECTOR", "div.flex-col > p"),
        status_indicator_selector=os.getenv("STATUS_INDICATOR_SELECTOR", "div.flex-col i"),
        cron_schedule=os.getenv("CRON_SCHEDULE", "*/30 * * * *"),
        fetch_timeout_seconds=max(1.0, float(os.getenv("FETCH_TIMEOUT_SECONDS", "10"))),
        lock_key=os.getenv("LOCK_KEY", "check-status"),
        lock_lease_seconds=_to_int(os.getenv("LOCK_LEASE_SECONDS"), default=900, minimum=0),
        feed_limit=_to_int(os.getenv("FEED_LIMIT"), default=10, minimum=0),
        worker_id=os.getenv("WORKER_ID", "worker-1"),
        log_level=os.getenv("LOG_LEVEL", "info").strip().lower(),
    )
