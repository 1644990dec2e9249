from __future__ import annotations

import json
import logging
import time
from pathlib import Path

import typer

from .baseline import BaselineStore, StorageError
from .cluster import ClusteringError
from .config import AppConfig, load_config
from .deviation import assess_key
from .items import ItemLoadError, load_items
from .pipeline import run_pipeline
from .render import format_timestamp, print_baselines, print_deviation, print_events, set_color

app = typer.Typer(help="Event clustering and volume anomaly CLI")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def _setup(config_path: Path) -> tuple[AppConfig, Path]:
    if not config_path.exists():
        return AppConfig(), Path(".")
    result = load_config(config_path)
    return result.config, result.path.parent


def _open_store(config: AppConfig, base_dir: Path) -> BaselineStore:
    try:
        return BaselineStore(config.ensure_state_dir(base_dir))
    except (OSError, StorageError) as exc:
        typer.echo(f"Storage error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


@app.command()
def cluster(
    items_path: Path = typer.Argument(..., help="JSON or JSON-lines file of news items"),
    config_path: Path = typer.Option(Path("eventfeed.yaml"), "--config", help="Path to config YAML"),
    threshold: float | None = typer.Option(None, help="Title similarity threshold (0-1)"),
    limit: int | None = typer.Option(None, help="Show at most this many events"),
    as_json: bool = typer.Option(False, "--json", help="Emit events as JSON"),
    color: bool = typer.Option(False, "--color/--no-color", help="Enable ANSI colors in output"),
) -> None:
    config, _ = _setup(config_path)
    set_color(color)
    start = time.perf_counter()
    try:
        items = load_items(items_path)
        result = run_pipeline(
            items,
            config.tier_lookup(),
            similarity_threshold=config.settings.similarity_threshold if threshold is None else threshold,
        )
    except (ItemLoadError, ClusteringError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    if as_json:
        typer.echo(json.dumps([event.to_dict() for event in result.events[:limit]], indent=2))
        return
    print_events(result.events, limit=limit)
    typer.echo(
        f"{result.item_count} items -> {len(result.events)} events "
        f"in {time.perf_counter() - start:.2f}s"
    )


@app.command()
def observe(
    key: str = typer.Argument(..., help="Topic or source key"),
    count: int = typer.Argument(..., help="Current count for the key"),
    config_path: Path = typer.Option(Path("eventfeed.yaml"), "--config", help="Path to config YAML"),
    as_json: bool = typer.Option(False, "--json", help="Emit deviation as JSON"),
) -> None:
    config, base_dir = _setup(config_path)
    store = _open_store(config, base_dir)
    try:
        entry, deviation = assess_key(store, key, count)
    except StorageError as exc:
        typer.echo(f"Storage error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    if as_json:
        typer.echo(json.dumps({"key": key, "count": count, **deviation.to_dict(), "baseline": entry.to_record()}))
        return
    print_deviation(key, count, deviation)


@app.command()
def baselines(
    config_path: Path = typer.Option(Path("eventfeed.yaml"), "--config", help="Path to config YAML"),
) -> None:
    config, base_dir = _setup(config_path)
    store = _open_store(config, base_dir)
    try:
        entries = store.list_all()
    except StorageError as exc:
        typer.echo(f"Storage error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    print_baselines(entries)


@app.command()
def snapshot(
    config_path: Path = typer.Option(Path("eventfeed.yaml"), "--config", help="Path to config YAML"),
) -> None:
    config, base_dir = _setup(config_path)
    store = _open_store(config, base_dir)
    try:
        taken = store.save_snapshot()
    except StorageError as exc:
        typer.echo(f"Storage error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(f"Snapshot saved at {format_timestamp(taken)}")
