from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Sequence

from .models import Cluster, NewsItem, TierLookup
from .tokenize import tokenize

log = logging.getLogger(__name__)

SIMILARITY_THRESHOLD = 0.5


class ClusteringError(ValueError):
    pass


def cluster_items(
    items: Sequence[NewsItem],
    tier_lookup: TierLookup,
    *,
    similarity_threshold: float = SIMILARITY_THRESHOLD,
) -> list[Cluster]:
    """Partition items into clusters of reports about the same event.

    Each unassigned item, in input order, seeds a new cluster and pulls in
    every later unassigned item whose title is similar enough to the seed.
    Members are only compared with the seed, so two members of one cluster
    need not be similar to each other.
    """
    if not items:
        return []

    tiered = [_with_tier(item, tier_lookup) for item in items]
    token_cache: dict[str, set[str]] = {}
    for item in tiered:
        if item.title not in token_cache:
            token_cache[item.title] = tokenize(item.title)

    clusters: list[Cluster] = []
    assigned = [False] * len(tiered)
    for i, seed in enumerate(tiered):
        if assigned[i]:
            continue
        assigned[i] = True
        members = [seed]
        seed_tokens = token_cache[seed.title]
        for j in range(i + 1, len(tiered)):
            if assigned[j]:
                continue
            other = tiered[j]
            if jaccard_similarity(seed_tokens, token_cache[other.title]) >= similarity_threshold:
                members.append(other)
                assigned[j] = True
        clusters.append(Cluster(items=members))

    log.debug("Clustered %s items into %s clusters", len(tiered), len(clusters))
    return clusters


def jaccard_similarity(a: set[str], b: set[str]) -> float:
    if not a and not b:
        return 0.0
    return len(a & b) / len(a | b)


def _with_tier(item: NewsItem, tier_lookup: TierLookup) -> NewsItem:
    if not isinstance(item.title, str):
        raise ClusteringError(f"Item from {item.source!r} has no usable title")
    if not isinstance(item.published, datetime):
        raise ClusteringError(f"Item {item.title!r} has no publish time")
    if item.tier is not None:
        return item
    return replace(item, tier=tier_lookup(item.source))
