from __future__ import annotations

import re
from dataclasses import replace
from datetime import timedelta
from typing import Sequence

from .models import ClusteredEvent, Sentiment, Trend, VelocityLevel, VelocityMetrics, as_utc, round_half_up

ELEVATED_THRESHOLD = 3.0
SPIKE_THRESHOLD = 6.0
MIN_SPAN_HOURS = 0.25
TREND_RATIO = 1.5

NEGATIVE_WORDS = frozenset(
    {
        "war", "attack", "killed", "death", "dead", "crisis", "crash", "collapse",
        "threat", "danger", "escalate", "escalation", "conflict", "strike", "bomb",
        "explosion", "casualties", "disaster", "emergency", "catastrophe", "fail",
        "failure", "reject", "rejected", "sanctions", "invasion", "missile", "nuclear",
        "terror", "terrorist", "hostage", "assassination", "coup", "protest", "riot",
        "warns", "warning", "fears", "concern", "worried", "plunge", "plummet", "surge",
        "flee", "evacuate", "shutdown", "layoff", "layoffs", "cuts", "slump", "recession",
    }
)

POSITIVE_WORDS = frozenset(
    {
        "peace", "deal", "agreement", "breakthrough", "success", "win", "gains",
        "recovery", "growth", "rise", "surge", "boost", "rally", "soar", "jump",
        "ceasefire", "treaty", "alliance", "partnership", "cooperation", "progress",
        "release", "released", "freed", "rescue", "saved", "approved", "passes",
        "record", "milestone", "historic", "landmark", "celebrates", "victory",
    }
)

_WORD_SPLIT = re.compile(r"\W+", re.ASCII)


def analyze_sentiment(text: str) -> tuple[Sentiment, int]:
    score = 0
    for word in _WORD_SPLIT.split(text.lower()):
        if word in NEGATIVE_WORDS:
            score -= 1
        if word in POSITIVE_WORDS:
            score += 1
    sentiment: Sentiment = "neutral"
    if score < -1:
        sentiment = "negative"
    elif score > 1:
        sentiment = "positive"
    return sentiment, score


def velocity_level(sources_per_hour: float) -> VelocityLevel:
    if sources_per_hour >= SPIKE_THRESHOLD:
        return "spike"
    if sources_per_hour >= ELEVATED_THRESHOLD:
        return "elevated"
    return "normal"


def calculate_velocity(event: ClusteredEvent) -> VelocityMetrics:
    items = event.all_items
    if len(items) <= 1:
        sentiment, score = analyze_sentiment(event.primary_title)
        return VelocityMetrics(
            sources_per_hour=0.0,
            level="normal",
            trend="stable",
            sentiment=sentiment,
            sentiment_score=score,
        )

    span = event.last_updated - event.first_seen
    span_hours = max(span / timedelta(hours=1), MIN_SPAN_HOURS)
    sources_per_hour = len(items) / span_hours

    midpoint = event.first_seen + span / 2
    recent = sum(1 for item in items if as_utc(item.published) > midpoint)
    older = len(items) - recent
    trend: Trend = "stable"
    if recent > older * TREND_RATIO:
        trend = "rising"
    elif older > recent * TREND_RATIO:
        trend = "falling"

    sentiment, score = analyze_sentiment(" ".join(item.title for item in items))
    return VelocityMetrics(
        sources_per_hour=round_half_up(sources_per_hour, 1),
        level=velocity_level(sources_per_hour),
        trend=trend,
        sentiment=sentiment,
        sentiment_score=score,
    )


def enrich_with_velocity(events: Sequence[ClusteredEvent]) -> list[ClusteredEvent]:
    """Return copies of the events with velocity metrics attached."""
    return [replace(event, velocity=calculate_velocity(event)) for event in events]
