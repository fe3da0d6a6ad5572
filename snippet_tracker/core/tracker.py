"""Processing passes over one document at a time.

A pass re-parses the document, compares every region with its snapshot from
the previous pass, decides the marker action, applies the resulting line
edits and finally records the post-edit bodies as the new snapshots. Because
the snapshots are taken from the committed text, the follow-up pass triggered
by saving the edits sees no change and produces no edits.
"""

import logging
from pathlib import Path

from snippet_tracker.core.config import TrackerConfig
from snippet_tracker.core.decision import decide
from snippet_tracker.core.estimator import accumulate, estimate_modification
from snippet_tracker.core.ids import assign_ids
from snippet_tracker.core.parser import parse_regions, split_lines
from snippet_tracker.core.planner import plan_edits
from snippet_tracker.core.types import AnnotatedRegion, ModificationRecord, PassResult
from snippet_tracker.documents import Document
from snippet_tracker.logger.pass_logger import PassLogger
from snippet_tracker.storage.snapshot_store import InMemorySnapshotStore, SnapshotStore

_tracker_log = logging.getLogger("snippet_tracker.tracker")


class SnippetTracker:
    """Keeps the provenance markers of documents consistent with their edits."""

    def __init__(
        self,
        config: TrackerConfig | None = None,
        store: SnapshotStore | None = None,
        pass_logger: PassLogger | None = None,
    ) -> None:
        self.config = config or TrackerConfig()
        self.store = store if store is not None else InMemorySnapshotStore()
        if pass_logger is None and self.config.log_dir:
            pass_logger = PassLogger(self.config.log_dir, only_changes=self.config.log_only_changes)
        self.pass_logger = pass_logger

    def is_supported(self, path: str | Path) -> bool:
        return Path(path).suffix.lower() in self.config.supported_extensions

    def open_document(self, document: Document) -> int:
        """Snapshot regions of a freshly opened document that have no snapshot yet.

        Returns the number of snapshots created.
        """
        regions = parse_regions(document.get_text())
        region_ids = assign_ids(regions, self.config.id_strategy)
        known = self.store.ids(document.path)
        created = 0
        for region, region_id in zip(regions, region_ids, strict=True):
            # Random ids are not reproducible, so only marker ids can be keyed.
            if region.id is None and self.config.id_strategy == "random":
                continue
            if region_id in known:
                continue
            self.store.set(document.path, region_id, region.body)
            known.add(region_id)
            created += 1
        _tracker_log.debug("Captured %d snapshot(s) for %s", created, document.path)
        return created

    def close_document(self, path: str) -> None:
        self.store.release(path)

    def evaluate(self, file_path: str, region: AnnotatedRegion, region_id: str) -> ModificationRecord:
        """Compute the change, cumulative percentage and action for one region."""
        snapshot = self.store.get(file_path, region_id)
        change = estimate_modification(snapshot, region.body) if snapshot is not None else 0
        cumulative = accumulate(region.previous_percent, change)
        action = decide(
            region.kind,
            cumulative,
            declared_percent=region.declared_percent,
            has_id=region.id is not None,
            config=self.config,
        )
        return ModificationRecord(
            region_id=region_id,
            kind=region.kind,
            previous_percent=region.previous_percent,
            change_percent=change,
            cumulative_percent=cumulative,
            action=action,
        )

    def process(self, document: Document) -> PassResult:
        """Run one processing pass over ``document`` (typically on save)."""
        file_path = document.path
        text = document.get_text()
        regions = parse_regions(text)
        region_ids = assign_ids(regions, self.config.id_strategy)
        records = [
            self.evaluate(file_path, region, region_id)
            for region, region_id in zip(regions, region_ids, strict=True)
        ]
        edits = plan_edits(regions, records, split_lines(text))
        result = PassResult(file_path=file_path, records=records, edits=edits)

        for record in records:
            _tracker_log.debug(
                "%s id:%s change=%d%% cumulative=%d%% action=%s",
                file_path,
                record.region_id,
                record.change_percent,
                record.cumulative_percent,
                record.action,
            )

        if edits and not document.apply_edits(edits):
            _tracker_log.warning(
                "Edits rejected for %s; keeping previous snapshots", file_path
            )
            result.applied = False
            self._log_pass(result)
            return result

        # Stripping a nested region merges its lines into the enclosing body,
        # so snapshots are taken from the text as it reads after the edits.
        committed: dict[str, str] = {}
        if edits:
            committed = {
                region.id: region.body
                for region in parse_regions(document.get_text())
                if region.id is not None
            }
        for region, record in zip(regions, records, strict=True):
            if record.action == "strip":
                self.store.delete(file_path, record.region_id)
            else:
                body = committed.get(record.region_id, region.body)
                self.store.set(file_path, record.region_id, body)
        self.store.flush(
            file_path, [record.region_id for record in records if record.action != "strip"]
        )
        self._log_pass(result)

        if edits:
            _tracker_log.info("Updated %d marker line(s) in %s", len(edits), file_path)
            document.save()
        return result

    def _log_pass(self, result: PassResult) -> None:
        if self.pass_logger is not None and result.records:
            self.pass_logger.log(result)
