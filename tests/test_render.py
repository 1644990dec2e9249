from __future__ import annotations

from datetime import datetime, timedelta, timezone

from rich.console import Console

import eventfeed.render as render
from conftest import BASE_TIME
from eventfeed.models import BaselineEntry, Cluster, Deviation, Observation
from eventfeed.summarize import summarize_cluster
from eventfeed.velocity import enrich_with_velocity


def test_format_timestamp_with_value():
    dt = datetime(2024, 1, 1, 15, 30, tzinfo=timezone.utc)
    assert render.format_timestamp(dt) == "2024-01-01 15:30 UTC"


def test_format_timestamp_none():
    assert render.format_timestamp(None) == "(no timestamp)"


def test_set_color_updates_console():
    render.set_color(True)
    assert render.console.no_color is False
    render.set_color(False)
    assert render.console.no_color is True


def test_print_events_respects_limit(capsys, make_item, monkeypatch):
    monkeypatch.setattr(render, "console", Console(no_color=True, width=200))
    events = enrich_with_velocity(
        [
            summarize_cluster(Cluster(items=[make_item(title=f"Story {i}", published=BASE_TIME + timedelta(hours=i))]))
            for i in range(5)
        ]
    )
    render.print_events(events, limit=2)
    out = capsys.readouterr().out
    assert "Story 0" in out and "Story 1" in out and "Story 2" not in out


def test_print_deviation_shows_direction(capsys):
    render.set_color(False)
    render.print_deviation("topic", 40, Deviation(z_score=30.0, percent_change=300, level="spike"))
    out = capsys.readouterr().out
    assert "↑+300%" in out
    assert "spike" in out


def test_print_baselines(capsys):
    render.set_color(False)
    entry = BaselineEntry(
        key="topic",
        observations=(Observation(count=3, timestamp=BASE_TIME),),
        avg_7d=3.0,
        avg_30d=3.0,
        last_updated=BASE_TIME,
    )
    render.print_baselines([entry])
    assert "topic" in capsys.readouterr().out
