"""
EditorDocument — a Document whose edits are applied by the editor extension
over the JSON-over-newline stdio bridge.

The tracker runs in tracker_backend.py (spawned by the extension). Marker
edits must go through the editor so they land in its buffer and undo stack,
so ``apply_edits`` sends an ``apply_edits`` message over stdout and blocks
until the extension answers on stdin.

Protocol (stdout → extension):
    {"type": "apply_edits", "nonce": "<uuid>", "path": "<file>",
     "edits": [{"line": 12, "replacement": "// #region ..."}, {"line": 3, "replacement": null}]}
    {"type": "save_document", "path": "<file>"}

Protocol (stdin ← extension):
    {"type": "edits_applied", "nonce": "<uuid>", "success": true}
"""

from __future__ import annotations

import threading
import uuid
from collections.abc import Callable
from typing import Any

from snippet_tracker.core.parser import split_lines
from snippet_tracker.core.planner import apply_line_edits
from snippet_tracker.core.types import LineEdit
from snippet_tracker.documents import Document

DEFAULT_EDIT_TIMEOUT = 30.0


class EditorDocument(Document):
    """Snapshot of an editor buffer taken when the save notification arrived."""

    def __init__(
        self,
        path: str,
        text: str,
        send_fn: Callable[[dict[str, Any]], None],
        register_response_fn: Callable[[str, threading.Event, dict[str, Any]], None],
        timeout: float = DEFAULT_EDIT_TIMEOUT,
        unregister_response_fn: Callable[[str], None] | None = None,
    ) -> None:
        self.path = path
        self.text = text
        self._send = send_fn
        self._register = register_response_fn
        self._unregister = unregister_response_fn
        self.timeout = timeout

    def get_text(self) -> str:
        return self.text

    def apply_edits(self, edits: list[LineEdit]) -> bool:
        """Ask the extension to apply ``edits``; a timeout counts as a rejection."""
        nonce = uuid.uuid4().hex
        event = threading.Event()
        container: dict[str, Any] = {}
        self._register(nonce, event, container)

        self._send(
            {
                "type": "apply_edits",
                "nonce": nonce,
                "path": self.path,
                "edits": [edit.to_dict() for edit in edits],
            }
        )

        if not event.wait(timeout=self.timeout):
            # A confirmation arriving after this point must not resolve anything.
            if self._unregister is not None:
                self._unregister(nonce)
            return False
        if container.get("success") is not True:
            return False

        self.text = "\n".join(apply_line_edits(split_lines(self.text), edits))
        return True

    def save(self) -> None:
        self._send({"type": "save_document", "path": self.path})
