from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from .models import NewsItem, as_utc

log = logging.getLogger(__name__)


class ItemLoadError(RuntimeError):
    pass


class ItemRecord(BaseModel):
    """One news item as written by the feed ingestion step."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    source: str
    title: str
    link: str
    published: datetime = Field(validation_alias=AliasChoices("pubDate", "published"))
    is_alert: bool = Field(default=False, validation_alias=AliasChoices("isAlert", "is_alert"))
    monitor_color: str | None = Field(
        default=None, validation_alias=AliasChoices("monitorColor", "monitor_color")
    )
    tier: int | None = None

    def to_item(self) -> NewsItem:
        return NewsItem(
            source=self.source,
            title=self.title.strip(),
            link=self.link.strip(),
            published=as_utc(self.published),
            is_alert=self.is_alert,
            monitor_color=self.monitor_color or None,
            tier=self.tier,
        )


def load_items(path: str | Path) -> list[NewsItem]:
    """Read a batch of items from a JSON array or a JSON-lines file."""
    item_path = Path(path)
    try:
        text = item_path.read_text()
    except OSError as exc:
        raise ItemLoadError(f"Cannot read items file {item_path}: {exc}") from exc
    records = _parse_records(text, item_path)
    items: list[NewsItem] = []
    for index, record in enumerate(records):
        try:
            items.append(ItemRecord.model_validate(record).to_item())
        except ValidationError as exc:
            raise ItemLoadError(f"Invalid item #{index} in {item_path}: {exc}") from exc
    log.debug("Loaded %s items from %s", len(items), item_path)
    return items


def _parse_records(text: str, item_path: Path) -> list[Any]:
    stripped = text.strip()
    if not stripped:
        return []
    if stripped.startswith("["):
        try:
            data = json.loads(stripped)
        except json.JSONDecodeError as exc:
            raise ItemLoadError(f"Malformed JSON in {item_path}: {exc}") from exc
        return list(data)
    records: list[Any] = []
    for line_no, line in enumerate(stripped.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            records.append(json.loads(line))
        except json.JSONDecodeError as exc:
            raise ItemLoadError(f"Malformed JSON on line {line_no} of {item_path}: {exc}") from exc
    return records
