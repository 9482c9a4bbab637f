from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from feed_api.errors import StoreFailure
from feed_api.models import ServiceRecord, StatusKindRecord
from feed_api.services.status.types import Catalog, Service, StatusKind

logger = logging.getLogger(__name__)

DEFAULT_STATUS_KINDS: tuple[StatusKind, ...] = (
    StatusKind(name="Operational", token="text-operational", is_error=False),
    StatusKind(name="Degraded Performance", token="text-degraded-performance", is_error=True),
    StatusKind(name="Partial Outage", token="text-partial-outage", is_error=True),
    StatusKind(name="Major Outage", token="text-major-outage", is_error=True),
    StatusKind(name="Maintenance", token="text-under-maintenance", is_error=True),
)

DEFAULT_SERVICES: tuple[Service, ...] = (
    Service(name="Admin"),
    Service(name="Checkout"),
    Service(name="Reports and Dashboards"),
    Service(name="Storefront"),
    Service(name="API & Mobile"),
    Service(name="Third party services"),
    Service(name="Support"),
    Service(name="Point of Sale"),
    Service(name="Oxygen"),
)


def seed_catalog(
    engine: Engine,
    *,
    services: tuple[Service, ...] = DEFAULT_SERVICES,
    status_kinds: tuple[StatusKind, ...] = DEFAULT_STATUS_KINDS,
) -> bool:
    """Insert the catalog rows when the tables are empty. Returns True if anything was written."""
    seeded = False
    with Session(engine) as session:
        if session.scalar(select(func.count()).select_from(StatusKindRecord)) == 0:
            session.add_all(
                StatusKindRecord(name=kind.name, token=kind.token, is_error=kind.is_error)
                for kind in status_kinds
            )
            seeded = True
        if session.scalar(select(func.count()).select_from(ServiceRecord)) == 0:
            session.add_all(ServiceRecord(name=service.name) for service in services)
            seeded = True
        session.commit()

    if seeded:
        logger.info("catalog seeded", extra={"services": len(services), "status_kinds": len(status_kinds)})
    return seeded


def load_catalog(engine: Engine) -> Catalog:
    try:
        with Session(engine) as session:
            services = session.scalars(select(ServiceRecord).order_by(ServiceRecord.id.asc())).all()
            kinds = session.scalars(select(StatusKindRecord).order_by(StatusKindRecord.id.asc())).all()
    except SQLAlchemyError as exc:
        raise StoreFailure(f"error loading catalog: {exc}") from exc

    return Catalog(
        services=tuple(Service(name=record.name) for record in services),
        status_kinds=tuple(
            StatusKind(name=record.name, token=record.token, is_error=record.is_error)
            for record in kinds
        ),
    )
