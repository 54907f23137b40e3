from __future__ import annotations

from datetime import datetime

import pytest

from saferoute.config.settings import Settings, get_settings
from saferoute.core.errors import StoreUnavailable


class FakeStore:
    """In-memory stand-in for the report repository; records every query it serves."""

    def __init__(self):
        self.counts: dict[str, int] = {}
        self.category_counts: list = []
        self.summaries: list = []
        self.fail = False
        self.calls: list[tuple[str, object]] = []

    def _check(self) -> None:
        if self.fail:
            raise StoreUnavailable("store offline")

    def counts_by_tile(self, tile_ids, *, since: datetime) -> dict[str, int]:
        tile_ids = list(tile_ids)
        self.calls.append(("counts_by_tile", tile_ids))
        self._check()
        return {t: self.counts[t] for t in tile_ids if t in self.counts}

    def category_counts_in_bbox(self, bbox, *, since: datetime, tile_size_m: float):
        self.calls.append(("category_counts_in_bbox", (bbox, tile_size_m)))
        self._check()
        return list(self.category_counts)

    def tile_summaries(self, *, since: datetime):
        self.calls.append(("tile_summaries", since))
        self._check()
        return list(self.summaries)


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def fresh_settings_cache():
    # get_settings() is lru_cached; env-driven tests need a clean slate on both sides.
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
