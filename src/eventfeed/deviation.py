from __future__ import annotations

import math
from datetime import datetime

from .baseline import BaselineStore
from .models import NO_DEVIATION, BaselineEntry, Deviation, DeviationLevel, round_half_up

MIN_OBSERVATIONS = 3
SPIKE_Z = 2.5
ELEVATED_Z = 1.5
QUIET_Z = -2.0


def calculate_deviation(current_count: int, entry: BaselineEntry | None) -> Deviation:
    """Classify a count against a key's rolling baseline.

    Spread is measured around the 7-day average rather than the mean of all
    retained counts. Sparse histories are never flagged.
    """
    if entry is None or len(entry.observations) < MIN_OBSERVATIONS:
        return NO_DEVIATION

    avg = entry.avg_7d
    counts = entry.counts
    variance = sum((count - avg) ** 2 for count in counts) / len(counts)
    std_dev = math.sqrt(variance) or 1.0

    z_score = (current_count - avg) / std_dev
    percent_change = (current_count - avg) / avg * 100 if avg > 0 else 0.0
    return Deviation(
        z_score=round_half_up(z_score, 2),
        percent_change=int(round_half_up(percent_change)),
        level=deviation_level(z_score),
    )


def deviation_level(z_score: float) -> DeviationLevel:
    if z_score > SPIKE_Z:
        return "spike"
    if z_score > ELEVATED_Z:
        return "elevated"
    if z_score < QUIET_Z:
        return "quiet"
    return "normal"


def assess_key(
    store: BaselineStore, key: str, current_count: int, now: datetime | None = None
) -> tuple[BaselineEntry, Deviation]:
    """Record a count for ``key`` and compare it with the history that preceded it."""
    previous, updated = store.observe(key, current_count, now)
    return updated, calculate_deviation(current_count, previous)
