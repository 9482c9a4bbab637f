from collections.abc import Iterator

import pytest

from feed_api.config import get_settings
from feed_api.db import get_engine


@pytest.fixture(autouse=True)
def reset_worker_caches() -> Iterator[None]:
    get_settings.cache_clear()
    get_engine.cache_clear()
    yield
    get_settings.cache_clear()
    get_engine.cache_clear()
