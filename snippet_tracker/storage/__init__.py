"""Snapshot stores holding the last-known body of every tracked region."""

from snippet_tracker.storage.snapshot_store import (
    InMemorySnapshotStore,
    JsonSnapshotStore,
    SnapshotStore,
)

__all__ = ["SnapshotStore", "InMemorySnapshotStore", "JsonSnapshotStore"]
