from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from .models import BaselineEntry, Observation, as_utc, from_epoch_ms, to_epoch_ms, utc_now

log = logging.getLogger(__name__)

SCHEMA_VERSION = 1
STATE_FILE = "baselines.json"
SHORT_WINDOW = timedelta(days=7)
LONG_WINDOW = timedelta(days=30)


class StorageError(RuntimeError):
    pass


class BaselineStore:
    """Durable per-key rolling history of observed counts.

    State lives in a single JSON document holding the ``baselines`` store and
    the ``snapshots`` store. Each update is a read-modify-write under a lock
    owned by its key, so concurrent observations for one key are applied one
    after another while different keys do not wait on each other.
    """

    def __init__(self, state_dir: Path):
        self.state_dir = Path(state_dir)
        try:
            self.state_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot create state directory {self.state_dir}: {exc}") from exc
        self.path = self.state_dir / STATE_FILE
        self._io_lock = threading.Lock()
        self._locks_guard = threading.Lock()
        self._key_locks: dict[str, threading.Lock] = {}
        self._data = self._load()

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {"version": SCHEMA_VERSION, "baselines": {}, "snapshots": {}}
        try:
            data = json.loads(self.path.read_text())
        except (OSError, json.JSONDecodeError) as exc:
            raise StorageError(f"Cannot read baseline state {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StorageError(f"Baseline state {self.path} is not a JSON object")
        version = data.get("version")
        if version != SCHEMA_VERSION:
            raise StorageError(
                f"Baseline state {self.path} has schema version {version}, expected {SCHEMA_VERSION}"
            )
        data.setdefault("baselines", {})
        data.setdefault("snapshots", {})
        return data

    def _save(self) -> None:
        # Caller holds self._io_lock.
        payload = json.dumps(self._data, indent=2, sort_keys=True)
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self.state_dir, prefix=".baselines-", suffix=".tmp")
        except OSError as exc:
            raise StorageError(f"Cannot write baseline state {self.path}: {exc}") from exc
        try:
            with os.fdopen(fd, "w") as handle:
                handle.write(payload)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise StorageError(f"Cannot write baseline state {self.path}: {exc}") from exc

    def _lock_for(self, key: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = self._key_locks[key] = threading.Lock()
            return lock

    def get(self, key: str) -> BaselineEntry | None:
        with self._io_lock:
            record = self._data["baselines"].get(key)
        if record is None:
            return None
        return _decode(record)

    def update(self, key: str, current_count: int, now: datetime | None = None) -> BaselineEntry:
        _, updated = self.observe(key, current_count, now)
        return updated

    def observe(
        self, key: str, current_count: int, now: datetime | None = None
    ) -> tuple[BaselineEntry | None, BaselineEntry]:
        """Record one observation and return the entry before and after it."""
        # Stored timestamps have millisecond precision.
        now = from_epoch_ms(to_epoch_ms(now or utc_now()))
        with self._lock_for(key):
            previous = self.get(key)
            updated = apply_observation(previous, key, current_count, now)
            with self._io_lock:
                self._data["baselines"][key] = updated.to_record()
                try:
                    self._save()
                except StorageError:
                    if previous is None:
                        del self._data["baselines"][key]
                    else:
                        self._data["baselines"][key] = previous.to_record()
                    raise
        log.debug(
            "Baseline %s: %s observations, avg7d=%.2f avg30d=%.2f",
            key,
            len(updated.observations),
            updated.avg_7d,
            updated.avg_30d,
        )
        return previous, updated

    def list_all(self) -> list[BaselineEntry]:
        with self._io_lock:
            records = dict(self._data["baselines"])
        return [_decode(records[key]) for key in sorted(records)]

    def save_snapshot(self, now: datetime | None = None) -> datetime:
        """Capture every baseline as it stands into the snapshots store."""
        now = as_utc(now or utc_now())
        stamp = to_epoch_ms(now)
        with self._io_lock:
            snapshots = self._data["snapshots"]
            previous = snapshots.get(str(stamp))
            snapshots[str(stamp)] = {
                "timestamp": stamp,
                "baselines": {key: dict(record) for key, record in self._data["baselines"].items()},
            }
            try:
                self._save()
            except StorageError:
                if previous is None:
                    del snapshots[str(stamp)]
                else:
                    snapshots[str(stamp)] = previous
                raise
        return from_epoch_ms(stamp)

    def list_snapshots(self) -> list[datetime]:
        with self._io_lock:
            stamps = list(self._data["snapshots"])
        return [from_epoch_ms(int(stamp)) for stamp in sorted(stamps, key=int)]


def apply_observation(
    entry: BaselineEntry | None, key: str, current_count: int, now: datetime
) -> BaselineEntry:
    if entry is None:
        return BaselineEntry(
            key=key,
            observations=(Observation(count=current_count, timestamp=now),),
            avg_7d=float(current_count),
            avg_30d=float(current_count),
            last_updated=now,
        )

    appended = (*entry.observations, Observation(count=current_count, timestamp=now))
    long_cutoff = now - LONG_WINDOW
    retained = tuple(obs for obs in appended if obs.timestamp > long_cutoff)
    if len(retained) < len(appended):
        log.debug("Baseline %s: pruned %s observations", key, len(appended) - len(retained))

    short_cutoff = now - SHORT_WINDOW
    recent = [obs.count for obs in retained if obs.timestamp > short_cutoff]
    return BaselineEntry(
        key=key,
        observations=retained,
        avg_7d=_mean(recent, fallback=current_count),
        avg_30d=_mean([obs.count for obs in retained], fallback=current_count),
        last_updated=now,
    )


def _mean(values: list[int], *, fallback: int) -> float:
    if not values:
        return float(fallback)
    return sum(values) / len(values)


def _decode(record: dict[str, Any]) -> BaselineEntry:
    try:
        return BaselineEntry.from_record(record)
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise StorageError(f"Corrupt baseline record: {exc}") from exc
