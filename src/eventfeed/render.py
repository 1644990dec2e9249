from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence

from rich.console import Console
from rich.table import Table

from .models import BaselineEntry, ClusteredEvent, Deviation

console = Console(no_color=True)
MAX_SOURCES_PER_EVENT = 3


def set_color(enabled: bool) -> None:
    global console
    console = Console(no_color=not enabled)


def format_timestamp(dt: datetime | None) -> str:
    if not dt:
        return "(no timestamp)"
    utc_dt = dt.astimezone(timezone.utc)
    return utc_dt.strftime("%Y-%m-%d %H:%M UTC")


def print_events(events: Sequence[ClusteredEvent], *, limit: int | None = None) -> None:
    if not events:
        console.print("No events in this batch.")
        return
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Event")
    table.add_column("Sources", justify="right")
    table.add_column("Velocity")
    table.add_column("Tone")
    table.add_column("Last update")
    for event in events[:limit]:
        headline = f"[red]ALERT[/red] {event.primary_title}" if event.is_alert else event.primary_title
        sources = ", ".join(ref.name for ref in event.top_sources[:MAX_SOURCES_PER_EVENT])
        velocity = "-"
        tone = "-"
        if event.velocity:
            velocity = f"{event.velocity.sources_per_hour}/h {event.velocity.level} ({event.velocity.trend})"
            tone = f"{event.velocity.sentiment} ({event.velocity.sentiment_score:+d})"
        table.add_row(
            f"{headline}\n{sources}",
            str(event.source_count),
            velocity,
            tone,
            format_timestamp(event.last_updated),
        )
    console.print(table)


def print_deviation(key: str, count: int, deviation: Deviation) -> None:
    if deviation.level == "normal":
        console.print(f"{key}: {count} (normal)", highlight=False)
        return
    arrow = "↑" if deviation.z_score > 0 else "↓"
    sign = "+" if deviation.percent_change > 0 else ""
    console.print(
        f"{key}: {count} [bold]{deviation.level}[/bold] {arrow}{sign}{deviation.percent_change}% "
        f"(z-score {deviation.z_score} vs 7-day avg)",
        highlight=False,
    )


def print_baselines(entries: Sequence[BaselineEntry]) -> None:
    if not entries:
        console.print("No baselines recorded yet.")
        return
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Key")
    table.add_column("Observations", justify="right")
    table.add_column("7d avg", justify="right")
    table.add_column("30d avg", justify="right")
    table.add_column("Last update")
    for entry in entries:
        table.add_row(
            entry.key,
            str(len(entry.observations)),
            f"{entry.avg_7d:.1f}",
            f"{entry.avg_30d:.1f}",
            format_timestamp(entry.last_updated),
        )
    console.print(table)
