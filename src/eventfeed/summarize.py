from __future__ import annotations

import re
from typing import Sequence

from .cluster import SIMILARITY_THRESHOLD, cluster_items
from .models import Cluster, ClusteredEvent, NewsItem, SourceRef, TierLookup, as_utc

MAX_TOP_SOURCES = 3
ID_TITLE_CHARS = 20

_NON_WORD = re.compile(r"\W", re.ASCII)


def cluster_news(
    items: Sequence[NewsItem],
    tier_lookup: TierLookup,
    *,
    similarity_threshold: float = SIMILARITY_THRESHOLD,
) -> list[ClusteredEvent]:
    clusters = cluster_items(items, tier_lookup, similarity_threshold=similarity_threshold)
    return build_events(clusters)


def build_events(clusters: Sequence[Cluster]) -> list[ClusteredEvent]:
    """Summarize every cluster, most recently active event first."""
    events = [summarize_cluster(cluster) for cluster in clusters]
    return sorted(events, key=lambda event: event.last_updated, reverse=True)


def summarize_cluster(cluster: Cluster) -> ClusteredEvent:
    ranked = rank_items(cluster.items)
    primary = ranked[0]
    published = [as_utc(item.published) for item in cluster.items]
    top_sources = tuple(
        SourceRef(name=item.source, tier=_tier(item), url=item.link)
        for item in ranked[:MAX_TOP_SOURCES]
    )
    monitor_color = next((item.monitor_color for item in cluster.items if item.monitor_color), None)
    return ClusteredEvent(
        id=cluster_id(cluster.items),
        primary_title=primary.title,
        primary_source=primary.source,
        primary_link=primary.link,
        source_count=len(cluster.items),
        top_sources=top_sources,
        all_items=tuple(cluster.items),
        first_seen=min(published),
        last_updated=max(published),
        is_alert=any(item.is_alert for item in cluster.items),
        monitor_color=monitor_color,
    )


def rank_items(items: Sequence[NewsItem]) -> list[NewsItem]:
    """Most authoritative tier first; within a tier, most recent first."""
    return sorted(items, key=lambda item: (_tier(item), -item.published_ms))


def cluster_id(items: Sequence[NewsItem]) -> str:
    earliest = min(items, key=lambda item: item.published_ms)
    title_part = _NON_WORD.sub("", earliest.title[:ID_TITLE_CHARS])
    return f"{earliest.published_ms}-{title_part}"


def _tier(item: NewsItem) -> int:
    if item.tier is None:
        raise ValueError(f"Item {item.title!r} has no resolved tier")
    return item.tier
