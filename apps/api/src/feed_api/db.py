from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.orm import DeclarativeBase

from feed_api.config import get_settings
from feed_api.errors import UnsupportedStoreError

SUPPORTED_BACKENDS = {"sqlite", "postgresql"}


class Base(DeclarativeBase):
    pass


def ensure_supported_database_url(database_url: str) -> str:
    """Return the backend name for ``database_url`` or raise UnsupportedStoreError."""
    try:
        backend = make_url(database_url).get_backend_name()
    except ArgumentError as exc:
        raise UnsupportedStoreError(f"invalid database url: {database_url!r}") from exc
    if backend not in SUPPORTED_BACKENDS:
        raise UnsupportedStoreError(
            f"unsupported database backend '{backend}' (supported: {sorted(SUPPORTED_BACKENDS)})"
        )
    return backend


@lru_cache
def get_engine() -> Engine:
    settings = get_settings()
    ensure_supported_database_url(settings.database_url)
    return create_engine(
        settings.database_url,
        echo=settings.db_echo,
        pool_pre_ping=True,
    )
