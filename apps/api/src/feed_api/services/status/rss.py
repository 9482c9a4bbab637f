from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone
from email.utils import format_datetime
from xml.etree import ElementTree as ET

from feed_api.services.status.types import FeedEntry

ATOM_NS = "http://www.w3.org/2005/Atom"
GENERATOR = "status-feed"


def _rfc822(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return format_datetime(value.astimezone(timezone.utc))


def render_rss(
    entries: Iterable[FeedEntry],
    *,
    source_name: str,
    link: str,
) -> bytes:
    rss = ET.Element("rss", {"version": "2.0", "xmlns:atom": ATOM_NS})
    channel = ET.SubElement(rss, "channel")
    ET.SubElement(channel, "title").text = f"{source_name} Services Status"
    ET.SubElement(channel, "link").text = link
    ET.SubElement(channel, "description").text = (
        f"Providing the current status of {source_name} services through RSS!"
    )
    ET.SubElement(channel, "language").text = "en"
    ET.SubElement(channel, "generator").text = GENERATOR

    for entry in entries:
        item = ET.SubElement(channel, "item")
        ET.SubElement(item, "title").text = entry.title
        ET.SubElement(item, "link").text = link
        ET.SubElement(item, "description").text = entry.description
        if entry.published_at is not None:
            ET.SubElement(item, "pubDate").text = _rfc822(entry.published_at)

    return ET.tostring(rss, encoding="utf-8", xml_declaration=True)
