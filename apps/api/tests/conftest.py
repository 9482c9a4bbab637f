from collections.abc import Callable, Iterator
from html import escape
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from feed_api import models  # noqa: F401
from feed_api.config import get_settings
from feed_api.db import Base, get_engine
from feed_api.main import app
from feed_api.services.status import Catalog, Service, load_catalog, seed_catalog

THREE_SERVICES = (Service(name="Admin"), Service(name="Checkout"), Service(name="Storefront"))


@pytest.fixture(autouse=True)
def reset_api_caches() -> Iterator[None]:
    get_settings.cache_clear()
    get_engine.cache_clear()
    yield
    get_settings.cache_clear()
    get_engine.cache_clear()


@pytest.fixture
def engine(tmp_path: Path) -> Iterator[Engine]:
    sqlite_engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'status-feed-tests.db'}")
    Base.metadata.create_all(bind=sqlite_engine)
    yield sqlite_engine
    sqlite_engine.dispose()


@pytest.fixture
def catalog(engine: Engine) -> Catalog:
    seed_catalog(engine, services=THREE_SERVICES)
    return load_catalog(engine)


@pytest.fixture
def render_page() -> Callable[[list[tuple[str, str]]], str]:
    def render(rows: list[tuple[str, str]]) -> str:
        blocks = "".join(
            f'<div class="flex-col"><p>{escape(name)}</p><i class="fa {token}"></i></div>'
            for name, token in rows
        )
        return (
            "<html><body>"
            '<div class="flex-col"><p>Current status by service</p></div>'
            f"<section>{blocks}</section>"
            "</body></html>"
        )

    return render


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[TestClient]:
    sqlite_db_path = tmp_path / "api-tests.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{sqlite_db_path}")
    monkeypatch.setenv("DB_ECHO", "false")
    monkeypatch.setenv("STATUS_PAGE_URL", "https://status.example.test")
    monkeypatch.setenv("STATUS_SOURCE_NAME", "Example")

    sqlite_engine = get_engine()
    Base.metadata.create_all(bind=sqlite_engine)

    with TestClient(app) as test_client:
        yield test_client

    sqlite_engine.dispose()
