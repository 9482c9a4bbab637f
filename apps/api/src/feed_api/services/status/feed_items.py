from __future__ import annotations

from html import escape

from feed_api.services.status.types import FeedEntry, Observation, ParsedStatus

OPERATIONAL_TITLE = "All services appear to be operational"


def _status_list(entries: list[ParsedStatus]) -> str:
    items = "".join(
        f"<li>{escape(entry.service.name)} - {escape(entry.status.name)}</li>" for entry in entries
    )
    return f"<ul>{items}</ul>"


def build_error_entry(observation: Observation, *, source_name: str) -> FeedEntry:
    failing = observation.errors()
    description = (
        f"<h2>{escape(source_name)} Reports Issues</h2>"
        f"<p>The {escape(source_name)} status page may be reporting issues. "
        "The following services are experiencing problems:</p>"
        f"{_status_list(failing)}"
    )
    return FeedEntry(
        title=f"{len(failing)} services reporting potential issues",
        description=description,
        published_at=observation.captured_at,
    )


def build_operational_entry(observation: Observation, *, source_name: str) -> FeedEntry:
    description = (
        f"<h2>{escape(source_name)} Is Operational</h2>"
        f"<p>The {escape(source_name)} status page shows that all services appear to be operational.</p>"
        f"{_status_list(list(observation.entries))}"
    )
    return FeedEntry(
        title=OPERATIONAL_TITLE,
        description=description,
        published_at=observation.captured_at,
    )


def build_feed_entry(observation: Observation, *, source_name: str) -> FeedEntry:
    if observation.has_errors:
        return build_error_entry(observation, source_name=source_name)
    return build_operational_entry(observation, source_name=source_name)
