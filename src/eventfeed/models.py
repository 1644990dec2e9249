from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Literal

VelocityLevel = Literal["normal", "elevated", "spike"]
Trend = Literal["rising", "stable", "falling"]
Sentiment = Literal["positive", "neutral", "negative"]
DeviationLevel = Literal["normal", "elevated", "spike", "quiet"]

TierLookup = Callable[[str], int]


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def to_epoch_ms(dt: datetime) -> int:
    return int(math.floor(as_utc(dt).timestamp() * 1000))


def from_epoch_ms(value: int | float) -> datetime:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like a calculator does: halves go towards positive infinity."""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


@dataclass(slots=True, frozen=True)
class NewsItem:
    """A single report from one source, as handed over by feed ingestion."""

    source: str
    title: str
    link: str
    published: datetime
    is_alert: bool = False
    monitor_color: str | None = None
    tier: int | None = None

    @property
    def published_ms(self) -> int:
        return to_epoch_ms(self.published)


@dataclass(slots=True)
class Cluster:
    items: list[NewsItem]

    @property
    def seed(self) -> NewsItem:
        return self.items[0]

    def __len__(self) -> int:
        return len(self.items)


@dataclass(slots=True, frozen=True)
class SourceRef:
    name: str
    tier: int
    url: str


@dataclass(slots=True, frozen=True)
class VelocityMetrics:
    sources_per_hour: float
    level: VelocityLevel
    trend: Trend
    sentiment: Sentiment
    sentiment_score: int

    def to_dict(self) -> dict[str, object]:
        return {
            "sourcesPerHour": self.sources_per_hour,
            "level": self.level,
            "trend": self.trend,
            "sentiment": self.sentiment,
            "sentimentScore": self.sentiment_score,
        }


@dataclass(slots=True, frozen=True)
class ClusteredEvent:
    id: str
    primary_title: str
    primary_source: str
    primary_link: str
    source_count: int
    top_sources: tuple[SourceRef, ...]
    all_items: tuple[NewsItem, ...]
    first_seen: datetime
    last_updated: datetime
    is_alert: bool = False
    monitor_color: str | None = None
    velocity: VelocityMetrics | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "primaryTitle": self.primary_title,
            "primarySource": self.primary_source,
            "primaryLink": self.primary_link,
            "sourceCount": self.source_count,
            "topSources": [
                {"name": ref.name, "tier": ref.tier, "url": ref.url} for ref in self.top_sources
            ],
            "firstSeen": self.first_seen.isoformat(),
            "lastUpdated": self.last_updated.isoformat(),
            "isAlert": self.is_alert,
            "monitorColor": self.monitor_color,
            "velocity": self.velocity.to_dict() if self.velocity else None,
        }


@dataclass(slots=True, frozen=True)
class Observation:
    count: int
    timestamp: datetime


@dataclass(slots=True, frozen=True)
class BaselineEntry:
    """Rolling history of observed counts for one monitored key."""

    key: str
    observations: tuple[Observation, ...]
    avg_7d: float
    avg_30d: float
    last_updated: datetime

    @property
    def counts(self) -> list[int]:
        return [obs.count for obs in self.observations]

    @property
    def timestamps(self) -> list[datetime]:
        return [obs.timestamp for obs in self.observations]

    def to_record(self) -> dict[str, object]:
        return {
            "key": self.key,
            "counts": self.counts,
            "timestamps": [to_epoch_ms(ts) for ts in self.timestamps],
            "avg7d": self.avg_7d,
            "avg30d": self.avg_30d,
            "lastUpdated": to_epoch_ms(self.last_updated),
        }

    @classmethod
    def from_record(cls, record: dict[str, object]) -> "BaselineEntry":
        counts = list(record["counts"])  # type: ignore[call-overload]
        timestamps = list(record["timestamps"])  # type: ignore[call-overload]
        if len(counts) != len(timestamps):
            raise ValueError(
                f"Baseline {record.get('key')!r} has {len(counts)} counts but {len(timestamps)} timestamps"
            )
        observations = tuple(
            Observation(count=int(count), timestamp=from_epoch_ms(ts))
            for count, ts in zip(counts, timestamps)
        )
        return cls(
            key=str(record["key"]),
            observations=observations,
            avg_7d=float(record["avg7d"]),  # type: ignore[arg-type]
            avg_30d=float(record["avg30d"]),  # type: ignore[arg-type]
            last_updated=from_epoch_ms(record["lastUpdated"]),  # type: ignore[arg-type]
        )


@dataclass(slots=True, frozen=True)
class Deviation:
    z_score: float
    percent_change: int
    level: DeviationLevel

    def to_dict(self) -> dict[str, object]:
        return {"zScore": self.z_score, "percentChange": self.percent_change, "level": self.level}


NO_DEVIATION = Deviation(z_score=0.0, percent_change=0, level="normal")
