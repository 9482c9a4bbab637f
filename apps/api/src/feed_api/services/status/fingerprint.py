from __future__ import annotations

import hashlib

from feed_api.services.status.types import Observation


def fingerprint(observation: Observation) -> str:
    hasher = hashlib.sha256()
    for entry in observation.entries:
        hasher.update(f"{entry.service.name}:{entry.status.token}".encode("utf-8"))
    return hasher.hexdigest()


def has_changed(previous: str | None, current: str) -> bool:
    return previous != current
