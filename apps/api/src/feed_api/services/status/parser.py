"""Turn a fetched status page into an Observation.

Service names and status indicators are selected independently and paired
by position: the i-th recognised indicator belongs to the i-th recognised
service. The page must therefore render indicators in the same order as the
service names. Any count drift against the catalog, or a catalog service that
appears twice while another is missing, is reported as a StructuralMismatch
instead of a best-effort result.

Service names are compared exactly after stripping surrounding whitespace from
the element text, so " Admin " on the page matches the catalog name "Admin".
"""

from __future__ import annotations

from datetime import datetime

from bs4 import BeautifulSoup, Tag

from feed_api.errors import StructuralMismatch
from feed_api.services.status.types import Catalog, Observation, ParsedStatus, Service, StatusKind

DEFAULT_SERVICE_SELECTOR = "div.flex-col > p"
DEFAULT_INDICATOR_SELECTOR = "div.flex-col i"


def _match_service(element: Tag, services: tuple[Service, ...]) -> Service | None:
    text = element.get_text().strip()
    for service in services:
        if service.name == text:
            return service
    return None


def _match_status(element: Tag, status_kinds: tuple[StatusKind, ...]) -> StatusKind | None:
    classes = element.get("class") or []
    for kind in status_kinds:
        if kind.token in classes:
            return kind
    return None


def parse_observation(
    document: str | BeautifulSoup,
    catalog: Catalog,
    *,
    captured_at: datetime,
    service_selector: str = DEFAULT_SERVICE_SELECTOR,
    indicator_selector: str = DEFAULT_INDICATOR_SELECTOR,
) -> Observation:
    soup = document if isinstance(document, BeautifulSoup) else BeautifulSoup(document, "html.parser")
    want = len(catalog.services)

    services = [
        service
        for service in (_match_service(element, catalog.services) for element in soup.select(service_selector))
        if service is not None
    ]
    if len(services) != want:
        raise StructuralMismatch(
            f"found {len(services)} services on the page but the catalog has {want}. "
            "the page layout has likely changed",
            expected=want,
            found=len(services),
        )

    distinct = len({service.name for service in services})
    if distinct != want:
        raise StructuralMismatch(
            f"found {distinct} distinct services on the page but the catalog has {want}. "
            "a service is listed more than once",
            expected=want,
            found=distinct,
        )

    statuses = [
        kind
        for kind in (_match_status(element, catalog.status_kinds) for element in soup.select(indicator_selector))
        if kind is not None
    ]
    if len(statuses) != want:
        raise StructuralMismatch(
            f"found {len(statuses)} status indicators on the page but the catalog has {want} services. "
            "the page layout has likely changed",
            expected=want,
            found=len(statuses),
        )

    entries = sorted(
        (ParsedStatus(service=service, status=status) for service, status in zip(services, statuses)),
        key=lambda entry: entry.service.name,
    )
    return Observation(entries=tuple(entries), captured_at=captured_at)
