from sqlalchemy.engine import Engine

from feed_api.services.status import Service, load_catalog, seed_catalog
from feed_api.services.status.catalog import DEFAULT_SERVICES, DEFAULT_STATUS_KINDS


def test_seed_catalog_defaults_and_is_idempotent(engine: Engine) -> None:
    assert seed_catalog(engine) is True
    assert seed_catalog(engine) is False

    catalog = load_catalog(engine)

    assert catalog.services == DEFAULT_SERVICES
    assert catalog.status_kinds == DEFAULT_STATUS_KINDS
    assert [kind.name for kind in catalog.status_kinds if not kind.is_error] == ["Operational"]


def test_load_catalog_preserves_seed_order(engine: Engine) -> None:
    services = (Service(name="Zeta"), Service(name="Alpha"))
    seed_catalog(engine, services=services)

    assert load_catalog(engine).services == services


def test_load_catalog_on_empty_tables(engine: Engine) -> None:
    catalog = load_catalog(engine)

    assert catalog.services == ()
    assert catalog.status_kinds == ()
