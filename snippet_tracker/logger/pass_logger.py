"""
Logger for processing passes.

Writes one JSON object per pass to a JSON-lines file so marker changes can be
audited after the fact. Each entry carries the full PassResult plus a per-action
tally and the regions whose markers the pass touched.
"""

import json
import os
import uuid
from collections import Counter
from datetime import datetime
from typing import Any

from snippet_tracker.core.types import PassResult


class PassLogger:
    """Logger that writes one PassResult per line to a JSON-lines file."""

    def __init__(self, log_dir: str, file_name: str = "snippet_tracker", only_changes: bool = False):
        self.log_dir = log_dir
        self.only_changes = only_changes
        os.makedirs(log_dir, exist_ok=True)

        timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        run_id = str(uuid.uuid4())[:8]
        self.log_file_path = os.path.join(log_dir, f"{file_name}_{timestamp}_{run_id}.jsonl")

        self._pass_count = 0
        self._files: set[str] = set()

    def log(self, result: PassResult) -> bool:
        """Log a PassResult to the file. Returns False when the pass was skipped."""
        marker_changes = [record for record in result.records if record.action != "noop"]
        if self.only_changes and not marker_changes:
            return False

        self._pass_count += 1
        self._files.add(result.file_path)

        entry: dict[str, Any] = {
            "pass": self._pass_count,
            "timestamp": datetime.now().isoformat(),
            **result.to_dict(),
            "actions": dict(Counter(record.action for record in result.records)),
            "marker_changes": [
                {
                    "region_id": record.region_id,
                    "action": record.action,
                    "cumulative_percent": record.cumulative_percent,
                }
                for record in marker_changes
            ],
        }

        with open(self.log_file_path, "a", encoding="utf-8") as f:
            json.dump(entry, f)
            f.write("\n")
        return True

    @property
    def pass_count(self) -> int:
        return self._pass_count

    @property
    def files_seen(self) -> list[str]:
        return sorted(self._files)
