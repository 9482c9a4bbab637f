from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class Service:
    name: str


@dataclass(frozen=True)
class StatusKind:
    name: str
    token: str
    is_error: bool


@dataclass(frozen=True)
class Catalog:
    services: tuple[Service, ...]
    status_kinds: tuple[StatusKind, ...]


@dataclass(frozen=True)
class ParsedStatus:
    service: Service
    status: StatusKind


@dataclass(frozen=True)
class Observation:
    entries: tuple[ParsedStatus, ...]
    captured_at: datetime

    @property
    def has_errors(self) -> bool:
        return any(entry.status.is_error for entry in self.entries)

    def errors(self) -> list[ParsedStatus]:
        return [entry for entry in self.entries if entry.status.is_error]


@dataclass(frozen=True)
class FeedEntry:
    title: str
    description: str
    published_at: datetime | None = None
    id: int | None = field(default=None, compare=False)


@dataclass(frozen=True)
class FingerprintRecord:
    digest: str
    updated_at: datetime
