#!/usr/bin/env python3
"""
tracker_backend.py — snippet-tracker backend for the VS Code extension.

This process is spawned by the TypeScript extension and communicates over
JSON-over-newline on stdin/stdout.

Architecture:
  • Extension sends {"type":"configure", "settings": {...}, "workspaceRoot": ..., "persist": ...}
  • On document open:  {"type":"open", "nonce":..., "path":..., "text":...}
      → {"type":"opened", "nonce":..., "path":..., "supported":..., "snapshots":...}
  • On document save:  {"type":"save", "nonce":..., "path":..., "text":...}
    The pass may round-trip marker edits:
      {"type":"apply_edits", "nonce":..., "path":..., "edits":[...]}
    and expects:
      {"type":"edits_applied", "nonce":..., "success": true|false}
    followed by {"type":"save_document", "path":...} when edits were applied.
    When the pass finishes:
      {"type":"processed", "nonce":..., "path":..., "applied":..., "edits":..., "records":[...]}
  • On document close: {"type":"close", "nonce":..., "path":...} → {"type":"closed", ...}

This process also watches for parent death and self-terminates.
"""

from __future__ import annotations

import json
import logging
import os
import signal
import sys
import threading
import time
from pathlib import Path
from typing import Any

from snippet_tracker.core.config import TrackerConfig
from snippet_tracker.core.tracker import SnippetTracker
from snippet_tracker.documents import TextDocument
from snippet_tracker.editor_document import EditorDocument
from snippet_tracker.storage.snapshot_store import (
    InMemorySnapshotStore,
    JsonSnapshotStore,
    SnapshotStore,
)

_backend_log = logging.getLogger("snippet_tracker.backend")

# ── Parent PID watcher ───────────────────────────────────────────────
_PARENT_PID = os.getppid()


def _watch_parent(interval: float = 2.0) -> None:
    """Kill self if parent process dies (orphan protection)."""
    while True:
        time.sleep(interval)
        if os.getppid() != _PARENT_PID:
            os._exit(0)


# ── JSON-over-newline IO ─────────────────────────────────────────────

_stdout_lock = threading.Lock()


def send_msg(msg: dict[str, Any]) -> None:
    """Write a JSON message to stdout (to the extension host).

    Thread-safe: save passes run on worker threads while the stdin reader
    answers pings, so writes are serialised to keep JSON lines intact.
    """
    line = json.dumps(msg, default=str) + "\n"
    with _stdout_lock:
        sys.stdout.write(line)
        sys.stdout.flush()


def send_error(nonce: str | None, error: str) -> None:
    send_msg({"type": "error", "nonce": nonce, "error": error})


# ── Response registry for apply_edits round-trips ───────────────────
_pending_edits: dict[str, tuple[threading.Event, dict[str, Any]]] = {}
_pending_lock = threading.Lock()


def register_edit_response(nonce: str, event: threading.Event, container: dict[str, Any]) -> None:
    """Register a pending edit request so the stdin reader can resolve it."""
    with _pending_lock:
        _pending_edits[nonce] = (event, container)


def unregister_edit_response(nonce: str) -> None:
    """Forget a pending edit request whose wait timed out."""
    with _pending_lock:
        _pending_edits.pop(nonce, None)


def resolve_edit_response(nonce: str, payload: dict[str, Any]) -> None:
    """Called by stdin reader when an edits_applied message arrives."""
    with _pending_lock:
        entry = _pending_edits.pop(nonce, None)
    if entry is None:
        _backend_log.warning("Ignoring edit confirmation for unknown request %s", nonce)
        return
    event, container = entry
    container.update(payload)
    event.set()


# ── Backend state ────────────────────────────────────────────────────


class BackendState:
    """Singleton holding configuration and the tracker instance."""

    def __init__(self) -> None:
        self.configured = False
        self.config = TrackerConfig()
        self.tracker: SnippetTracker | None = None
        self.edit_timeout: float = 30.0
        self._path_locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def configure(self, msg: dict[str, Any]) -> None:
        """Process a 'configure' message from the extension."""
        self.config = TrackerConfig.from_dict(msg.get("settings") or {})
        self.edit_timeout = float(msg.get("editTimeout", 30.0))

        store: SnapshotStore
        workspace_root = msg.get("workspaceRoot")
        if msg.get("persist") and workspace_root:
            metadata_path = Path(self.config.metadata_path)
            if not metadata_path.is_absolute():
                metadata_path = Path(workspace_root) / metadata_path
            store = JsonSnapshotStore(
                metadata_path, root=workspace_root, staleness_days=self.config.staleness_days
            )
        else:
            store = InMemorySnapshotStore()

        self.tracker = SnippetTracker(config=self.config, store=store)
        self.configured = True
        send_msg(
            {
                "type": "configured",
                "persistent": isinstance(store, JsonSnapshotStore),
                "config": self.config.to_dict(),
            }
        )

    def lock_for(self, path: str) -> threading.Lock:
        """One pass at a time per document."""
        with self._locks_guard:
            return self._path_locks.setdefault(path, threading.Lock())


STATE = BackendState()

# ── Command handlers ─────────────────────────────────────────────────


def handle_configure(msg: dict[str, Any]) -> None:
    try:
        STATE.configure(msg)
    except ValueError as e:
        send_error(msg.get("nonce"), f"Invalid configuration: {e}")


def handle_open(msg: dict[str, Any]) -> None:
    nonce = msg.get("nonce", "")
    path = msg.get("path", "")

    if not STATE.configured or STATE.tracker is None:
        send_error(nonce, "Backend not configured. Send a 'configure' message first.")
        return

    tracker = STATE.tracker
    supported = tracker.is_supported(path)
    snapshots = 0
    if supported:
        with STATE.lock_for(path):
            snapshots = tracker.open_document(TextDocument(path, msg.get("text", "")))
    send_msg(
        {
            "type": "opened",
            "nonce": nonce,
            "path": path,
            "supported": supported,
            "snapshots": snapshots,
        }
    )


def handle_save(msg: dict[str, Any]) -> None:
    """Run a processing pass for a saved document and report the outcome."""
    nonce = msg.get("nonce", "")
    path = msg.get("path", "")

    if not STATE.configured or STATE.tracker is None:
        send_error(nonce, "Backend not configured. Send a 'configure' message first.")
        return

    tracker = STATE.tracker
    if not tracker.is_supported(path):
        send_msg({"type": "processed", "nonce": nonce, "path": path, "skipped": True})
        return

    try:
        document = EditorDocument(
            path,
            msg.get("text", ""),
            send_fn=send_msg,
            register_response_fn=register_edit_response,
            timeout=STATE.edit_timeout,
            unregister_response_fn=unregister_edit_response,
        )
        with STATE.lock_for(path):
            result = tracker.process(document)
        send_msg(
            {
                "type": "processed",
                "nonce": nonce,
                "path": path,
                "applied": result.applied,
                "edits": len(result.edits),
                "records": [record.to_dict() for record in result.records],
            }
        )
    except Exception as e:
        _backend_log.exception("Processing failed for %s", path)
        send_error(nonce, f"{type(e).__name__}: {e}")


def handle_close(msg: dict[str, Any]) -> None:
    nonce = msg.get("nonce", "")
    path = msg.get("path", "")
    if STATE.tracker is not None:
        with STATE.lock_for(path):
            STATE.tracker.close_document(path)
    send_msg({"type": "closed", "nonce": nonce, "path": path})


def handle_ping(msg: dict[str, Any]) -> None:
    nonce = msg.get("nonce", "")
    send_msg({"type": "pong", "nonce": nonce})


def handle_shutdown(_msg: dict[str, Any]) -> None:
    """Graceful shutdown."""
    sys.exit(0)


HANDLERS: dict[str, Any] = {
    "configure": handle_configure,
    "open": handle_open,
    "save": handle_save,
    "close": handle_close,
    "ping": handle_ping,
    "shutdown": handle_shutdown,
}


# ── Stdin reader ─────────────────────────────────────────────────────


def dispatch(msg: dict[str, Any]) -> threading.Thread | None:
    """Route one message; returns the worker thread for save passes."""
    msg_type = msg.get("type", "")

    # Edit confirmations are routed to pending apply_edits requests
    if msg_type == "edits_applied":
        resolve_edit_response(msg.get("nonce", ""), msg)
        return None

    handler = HANDLERS.get(msg_type)
    if handler is None:
        send_error(msg.get("nonce"), f"Unknown message type: {msg_type}")
        return None

    # A save pass blocks on edits_applied, so it must not block the reader
    if msg_type == "save":
        worker = threading.Thread(target=handler, args=(msg,), daemon=True)
        worker.start()
        return worker

    handler(msg)
    return None


def stdin_reader() -> None:
    """Read JSON messages from stdin."""
    for raw_line in sys.stdin:
        line = raw_line.strip()
        if not line:
            continue
        try:
            msg = json.loads(line)
        except json.JSONDecodeError:
            continue
        if isinstance(msg, dict):
            dispatch(msg)

    # stdin closed → parent died
    sys.exit(0)


# ── Main ─────────────────────────────────────────────────────────────


def main() -> None:
    # Ignore SIGINT — let the parent handle it
    signal.signal(signal.SIGINT, signal.SIG_IGN)
    logging.basicConfig(level=logging.WARNING, stream=sys.stderr)
    threading.Thread(target=_watch_parent, daemon=True).start()

    send_msg({"type": "ready"})
    stdin_reader()


if __name__ == "__main__":
    main()
