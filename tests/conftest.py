from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

import pytest

from eventfeed.models import NewsItem

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def make_item() -> Callable[..., NewsItem]:
    def _factory(**overrides) -> NewsItem:
        data = {
            "source": overrides.get("source", "Example"),
            "title": overrides.get("title", "Sample Title"),
            "link": overrides.get("link", "https://example.com/a"),
            "published": overrides.get("published", BASE_TIME),
            "is_alert": overrides.get("is_alert", False),
            "monitor_color": overrides.get("monitor_color", None),
            "tier": overrides.get("tier", 2),
        }
        return NewsItem(**data)

    return _factory


@pytest.fixture
def tier_lookup() -> Callable[[str], int]:
    tiers = {"Reuters": 1, "AP": 1, "BBC": 2}

    def _lookup(source: str) -> int:
        return tiers.get(source, 4)

    return _lookup
