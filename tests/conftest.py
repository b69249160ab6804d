"""Shared test fixtures."""

from __future__ import annotations

from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def no_api_throttling():
    """Lift the API rate limits so mocked calls do not sleep."""
    with patch("yc_storage_operator.utils.rate_limit._S3_RATE_LIMIT_PER_SECOND", 1_000_000.0), \
            patch("yc_storage_operator.utils.rate_limit._K8S_RATE_LIMIT_PER_SECOND", 1_000_000.0):
        yield


@pytest.fixture(autouse=True)
def clear_cache():
    """Start every test with an empty object cache."""
    from yc_storage_operator.utils.cache import invalidate_cache

    invalidate_cache()
    yield
    invalidate_cache()
