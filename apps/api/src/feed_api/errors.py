from __future__ import annotations


class StatusFeedError(RuntimeError):
    pass


class FetchFailure(StatusFeedError):
    """The status page could not be fetched (transport error, non-200, deadline)."""


class StructuralMismatch(StatusFeedError):
    """The parsed page does not line up with the catalog; its layout has likely changed."""

    def __init__(self, message: str, *, expected: int, found: int) -> None:
        super().__init__(message)
        self.expected = expected
        self.found = found


class LockHeld(StatusFeedError):
    def __init__(self, key: str) -> None:
        super().__init__(f"cannot obtain execution lock. key '{key}' already in use")
        self.key = key


class StoreFailure(StatusFeedError):
    pass


class UnsupportedStoreError(StatusFeedError):
    pass
