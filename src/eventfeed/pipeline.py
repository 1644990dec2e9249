from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Sequence

from .baseline import BaselineStore
from .cluster import SIMILARITY_THRESHOLD
from .deviation import assess_key
from .models import ClusteredEvent, Deviation, NewsItem, TierLookup, as_utc, utc_now
from .summarize import cluster_news
from .velocity import enrich_with_velocity

log = logging.getLogger(__name__)


@dataclass(slots=True)
class PipelineResult:
    events: list[ClusteredEvent]
    item_count: int

    @property
    def alert_count(self) -> int:
        return sum(1 for event in self.events if event.is_alert)


def run_pipeline(
    items: Sequence[NewsItem],
    tier_lookup: TierLookup,
    *,
    similarity_threshold: float = SIMILARITY_THRESHOLD,
) -> PipelineResult:
    if not items:
        log.info("No items to cluster")
        return PipelineResult(events=[], item_count=0)
    events = cluster_news(items, tier_lookup, similarity_threshold=similarity_threshold)
    enriched = enrich_with_velocity(events)
    log.info("Built %s events from %s items", len(enriched), len(items))
    return PipelineResult(events=enriched, item_count=len(items))


def monitor_keys(
    store: BaselineStore,
    counts: Mapping[str, int],
    now: datetime | None = None,
) -> dict[str, Deviation]:
    """Feed the current count of every key into its baseline and classify it."""
    now = as_utc(now or utc_now())
    results: dict[str, Deviation] = {}
    for key, count in counts.items():
        _, deviation = assess_key(store, key, count, now)
        if deviation.level != "normal":
            log.info("Key %s is %s (z=%s, %+d%%)", key, deviation.level, deviation.z_score, deviation.percent_change)
        results[key] = deviation
    return results
