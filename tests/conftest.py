"""Root conftest — shared test configuration."""

import os

import pytest

# Never reach a real MySQL server from tests
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SERVER_SECRET", "test-secret")

from mediaserve_common.config import get_settings  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
