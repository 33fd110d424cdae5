"""Shared fixtures for Faculty Scout tests."""

import random
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
import yaml

from scout.config import DEFAULT_CONFIG, _deep_merge
from scout.utils.cache import TTLCache
from scout.utils.fetch import PageFetcher


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    """A config file with zero politeness delays and no retries."""
    overlay = {
        "sources": {
            "scholar": {"request_delay_min": 0.0, "request_delay_max": 0.0},
        },
    }
    config_file = tmp_path / "config_test.yaml"
    with open(config_file, "w") as f:
        yaml.safe_dump(_deep_merge(DEFAULT_CONFIG, overlay), f, sort_keys=False)
    return config_file


@pytest.fixture
def fetcher() -> PageFetcher:
    """A fetcher whose fetch/fetch_json are AsyncMocks set per test."""
    page_fetcher = PageFetcher(sleep=AsyncMock(), rng=random.Random(0))
    page_fetcher.fetch = AsyncMock()
    page_fetcher.fetch_json = AsyncMock()
    return page_fetcher


class FakeClock:
    """Manually advanced clock for cache expiry tests."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> TTLCache:
    return TTLCache(ttl=1800, clock=clock)
