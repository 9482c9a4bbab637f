from __future__ import annotations

from time import perf_counter
from typing import Protocol

import httpx

from feed_api.errors import FetchFailure


class PageFetcher(Protocol):
    def fetch(self, url: str) -> str: ...


class StatusPageClient:
    """GET the status page, bounded by ``timeout_seconds`` for the whole download.

    httpx applies its timeout to each phase (connect, each read) separately, so
    the body is streamed and the elapsed time checked after every chunk. A server
    that trickles bytes is cut off at most one read timeout past the deadline.
    """

    def __init__(self, *, timeout_seconds: float = 10.0) -> None:
        self._timeout_seconds = timeout_seconds

    def fetch(self, url: str) -> str:
        deadline = perf_counter() + self._timeout_seconds
        chunks: list[str] = []
        try:
            with httpx.stream("GET", url, timeout=self._timeout_seconds, follow_redirects=True) as response:
                if response.status_code != 200:
                    raise FetchFailure(f"status page '{url}' returned status code {response.status_code}")

                for chunk in response.iter_text():
                    chunks.append(chunk)
                    if perf_counter() > deadline:
                        raise FetchFailure(
                            f"status page '{url}' did not finish downloading within "
                            f"{self._timeout_seconds:.1f}s"
                        )
        except httpx.HTTPError as exc:
            raise FetchFailure(f"error fetching status page '{url}': {exc}") from exc

        return "".join(chunks)
