"""Shared fixtures for Reader Lite tests."""

from collections.abc import Iterator

import pytest

from readerlite.config import get_settings


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Iterator[None]:
    """Make every test read settings from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
