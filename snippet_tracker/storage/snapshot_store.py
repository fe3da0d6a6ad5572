"""Snapshot stores.

A snapshot is the body a region had at the end of the previous processing
pass, keyed by ``(file_path, region_id)``. The tracker compares the current
body against it and replaces it after every pass.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from snippet_tracker.core.constants import DEFAULT_STALENESS_DAYS, SECONDS_PER_DAY

_store_log = logging.getLogger("snippet_tracker.storage")

METADATA_VERSION = 1


class SnapshotStore(ABC):
    """Owner of the per-file snapshot maps."""

    @abstractmethod
    def get(self, file_path: str, region_id: str) -> str | None:
        raise NotImplementedError

    @abstractmethod
    def set(self, file_path: str, region_id: str, body: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, file_path: str, region_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def ids(self, file_path: str) -> set[str]:
        raise NotImplementedError

    @abstractmethod
    def forget(self, file_path: str) -> None:
        """Drop every snapshot of ``file_path``."""
        raise NotImplementedError

    def release(self, file_path: str) -> None:
        """Called when the host closes a document."""

    def flush(self, file_path: str, observed_ids: Iterable[str]) -> None:
        """Called at the end of a pass with the ids seen in that pass."""

    def evict(self, now: float | None = None) -> int:
        """Drop stale snapshots; returns the number removed."""
        return 0


class InMemorySnapshotStore(SnapshotStore):
    """Transient store: snapshots live until the document is closed."""

    def __init__(self) -> None:
        self._snapshots: dict[str, dict[str, str]] = {}

    def get(self, file_path: str, region_id: str) -> str | None:
        return self._snapshots.get(file_path, {}).get(region_id)

    def set(self, file_path: str, region_id: str, body: str) -> None:
        self._snapshots.setdefault(file_path, {})[region_id] = body

    def delete(self, file_path: str, region_id: str) -> None:
        self._snapshots.get(file_path, {}).pop(region_id, None)

    def ids(self, file_path: str) -> set[str]:
        return set(self._snapshots.get(file_path, {}))

    def forget(self, file_path: str) -> None:
        self._snapshots.pop(file_path, None)

    def release(self, file_path: str) -> None:
        self.forget(file_path)


class JsonSnapshotStore(SnapshotStore):
    """Persistent store backed by a JSON metadata file.

    File layout::

        {"version": 1,
         "files": {"src/app.ts": {"a1b2c3": {"content": "...", "last_seen": 1700000000.0}}}}

    Entries not observed for ``staleness_days`` are evicted on the next flush.
    An unreadable or corrupt file is treated as empty.
    """

    def __init__(
        self,
        metadata_path: str | Path,
        root: str | Path | None = None,
        staleness_days: float = DEFAULT_STALENESS_DAYS,
    ) -> None:
        self.metadata_path = Path(metadata_path)
        self.root = Path(root).resolve() if root is not None else None
        self.staleness_seconds = staleness_days * SECONDS_PER_DAY
        self._files: dict[str, dict[str, dict[str, Any]]] | None = None

    def _key(self, file_path: str) -> str:
        path = Path(file_path).resolve()
        if self.root is not None:
            try:
                return path.relative_to(self.root).as_posix()
            except ValueError:
                pass
        return str(path)

    def _load(self) -> dict[str, dict[str, dict[str, Any]]]:
        if self._files is not None:
            return self._files

        self._files = {}
        if not self.metadata_path.exists():
            return self._files
        try:
            data = json.loads(self.metadata_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            _store_log.warning("Ignoring unreadable metadata file %s: %s", self.metadata_path, e)
            return self._files

        files = data.get("files") if isinstance(data, dict) else None
        if not isinstance(files, dict):
            _store_log.warning("Ignoring malformed metadata file %s", self.metadata_path)
            return self._files

        for file_key, entries in files.items():
            if not isinstance(entries, dict):
                continue
            valid = {
                region_id: entry
                for region_id, entry in entries.items()
                if isinstance(entry, dict) and isinstance(entry.get("content"), str)
            }
            if valid:
                self._files[file_key] = valid
        return self._files

    def get(self, file_path: str, region_id: str) -> str | None:
        entry = self._load().get(self._key(file_path), {}).get(region_id)
        return entry["content"] if entry is not None else None

    def set(self, file_path: str, region_id: str, body: str) -> None:
        entries = self._load().setdefault(self._key(file_path), {})
        entries[region_id] = {"content": body, "last_seen": time.time()}

    def delete(self, file_path: str, region_id: str) -> None:
        key = self._key(file_path)
        entries = self._load().get(key)
        if entries is None:
            return
        entries.pop(region_id, None)
        if not entries:
            del self._load()[key]

    def ids(self, file_path: str) -> set[str]:
        return set(self._load().get(self._key(file_path), {}))

    def forget(self, file_path: str) -> None:
        self._load().pop(self._key(file_path), None)

    def flush(self, file_path: str, observed_ids: Iterable[str]) -> None:
        now = time.time()
        entries = self._load().get(self._key(file_path), {})
        for region_id in observed_ids:
            if region_id in entries:
                entries[region_id]["last_seen"] = now
        self.evict(now)
        self.save()

    def evict(self, now: float | None = None) -> int:
        now = time.time() if now is None else now
        removed = 0
        files = self._load()
        for file_key in list(files):
            entries = files[file_key]
            for region_id in list(entries):
                last_seen = entries[region_id].get("last_seen")
                if not isinstance(last_seen, (int, float)) or now - last_seen > self.staleness_seconds:
                    del entries[region_id]
                    removed += 1
            if not entries:
                del files[file_key]
        if removed:
            _store_log.debug("Evicted %d stale snapshot(s)", removed)
        return removed

    def save(self) -> bool:
        """Write the metadata file atomically. Failures are logged, not raised."""
        payload = {"version": METADATA_VERSION, "files": self._load()}
        tmp_name: str | None = None
        try:
            self.metadata_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.metadata_path.parent, prefix=".metadata-", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, sort_keys=True)
            os.replace(tmp_name, self.metadata_path)
            tmp_name = None
        except (OSError, TypeError, ValueError) as e:
            _store_log.warning("Failed to write metadata file %s: %s", self.metadata_path, e)
            return False
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError as e:
                    _store_log.debug("Could not remove temporary file %s: %s", tmp_name, e)
        return True
