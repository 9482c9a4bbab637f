from __future__ import annotations

import logging
from uuid import uuid4

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from feed_api.config import Settings, get_settings
from feed_api.db import Base, get_engine
from feed_api.errors import StatusFeedError
from feed_api.logging_config import configure_logging
from feed_api.services.status import (
    ExecutionLock,
    ObservationJob,
    SqlStatusStore,
    StatusPageClient,
    load_catalog,
    seed_catalog,
)

logger = logging.getLogger(__name__)

JOB_ID = "check-status"


def _prepare_store(engine: Engine, *, auto_migrate: bool) -> None:
    with engine.connect() as connection:
        connection.execute(text("SELECT 1"))

    if auto_migrate:
        Base.metadata.create_all(bind=engine)
        seed_catalog(engine)


def build_job(settings: Settings, engine: Engine) -> ObservationJob:
    catalog = load_catalog(engine)
    if not catalog.services or not catalog.status_kinds:
        raise StatusFeedError("catalog is empty. seed the services and status_kinds tables first")

    logger.info(
        "catalog loaded",
        extra={"services": len(catalog.services), "status_kinds": len(catalog.status_kinds)},
    )
    return ObservationJob(
        catalog=catalog,
        fetcher=StatusPageClient(timeout_seconds=settings.fetch_timeout_seconds),
        lock=ExecutionLock(
            engine,
            owner=f"{settings.worker_id}-{uuid4().hex[:8]}",
            lease_seconds=settings.lock_lease_seconds,
        ),
        store=SqlStatusStore(engine),
        status_page_url=settings.status_page_url,
        source_name=settings.status_source_name,
        lock_key=settings.lock_key,
        timeout_seconds=settings.fetch_timeout_seconds,
        service_selector=settings.status_service_selector,
        indicator_selector=settings.status_indicator_selector,
    )


def build_scheduler(job: ObservationJob, cron_schedule: str) -> BlockingScheduler:
    scheduler = BlockingScheduler(
        job_defaults={
            "coalesce": True,
            "max_instances": 1,
            "misfire_grace_time": 60,
        },
        timezone="UTC",
    )
    scheduler.add_job(
        job.run,
        trigger=CronTrigger.from_crontab(cron_schedule, timezone="UTC"),
        id=JOB_ID,
        name=JOB_ID,
        replace_existing=True,
    )
    return scheduler


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)

    try:
        engine = get_engine()
        _prepare_store(engine, auto_migrate=settings.db_auto_migrate)
        job = build_job(settings, engine)
        scheduler = build_scheduler(job, settings.cron_schedule)
    except (StatusFeedError, SQLAlchemyError, ValueError) as exc:
        logger.error("worker startup failed", extra={"error": str(exc)})
        raise SystemExit(1) from exc

    job.run()

    logger.info(
        "worker started",
        extra={
            "worker_id": settings.worker_id,
            "schedule": settings.cron_schedule,
            "status_page": settings.status_page_url,
        },
    )
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("worker stopped")


if __name__ == "__main__":
    main()
