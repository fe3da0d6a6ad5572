"""End-to-end processing passes over in-memory documents."""

from __future__ import annotations

import json
from pathlib import Path

from snippet_tracker.core.config import TrackerConfig
from snippet_tracker.core.ids import content_id
from snippet_tracker.core.parser import parse_regions
from snippet_tracker.core.tracker import SnippetTracker
from snippet_tracker.documents import TextDocument
from snippet_tracker.logger.pass_logger import PassLogger

PATH = "src/app.ts"


def _edit_body(document: TextDocument, old: str, new: str) -> None:
    assert old in document.text
    document.text = document.text.replace(old, new, 1)


def _save(tracker: SnippetTracker, document: TextDocument) -> None:
    """Process like the editor does: a pass that edits triggers a follow-up save pass."""
    result = tracker.process(document)
    if result.changed:
        follow_up = tracker.process(document)
        assert follow_up.edits == []


class TestEndToEnd:
    def test_generated_block_lifecycle(self) -> None:
        document = TextDocument(
            PATH, "// #region @ai_generated id:a1b2c3\nconst x = 1\n// #endregion\n"
        )
        tracker = SnippetTracker()
        tracker.open_document(document)

        for _ in range(2):
            result = tracker.process(document)
            assert result.edits == []
            assert [r.action for r in result.records] == ["noop"]
        assert document.text.startswith("// #region @ai_generated id:a1b2c3\n")

        _edit_body(document, "const x = 1", "const x = 2; const y = 3")
        result = tracker.process(document)

        assert result.records[0].change_percent == 100
        assert result.records[0].action == "strip"
        assert document.text == "const x = 2; const y = 3\n"
        assert tracker.store.get(PATH, "a1b2c3") is None
        assert document.save_count == 1

    def test_retag_then_accumulate(self) -> None:
        body = "\n".join(f"line{i}()" for i in range(10))
        document = TextDocument(PATH, f"// #region @ai_generated id:a1b2c3\n{body}\n// #endregion")
        tracker = SnippetTracker()
        tracker.open_document(document)

        # 4 of 10 lines replaced: (4 + 4) / 20 = 40%
        for i in range(4):
            _edit_body(document, f"line{i}()", f"changed{i}()")
        _save(tracker, document)

        assert document.text.startswith("// #region @ai_modified(40%) id:a1b2c3\n")

        # another 5 of 10 lines: change 50%, cumulative 40 + 60 * 0.5 = 70 -> strip
        for i in range(4, 9):
            _edit_body(document, f"line{i}()", f"again{i}()")
        result = tracker.process(document)

        assert result.records[0].previous_percent == 40
        assert result.records[0].change_percent == 50
        assert result.records[0].cumulative_percent == 70
        assert result.records[0].action == "strip"
        assert "#region" not in document.text

    def test_small_edit_keeps_generated_and_assigns_id(self) -> None:
        body = "\n".join(f"line{i}()" for i in range(20))
        document = TextDocument(PATH, f"// #region @ai_generated\n{body}\n// #endregion")
        tracker = SnippetTracker()
        tracker.open_document(document)
        expected_id = content_id(body)

        _edit_body(document, "line0()", "first()")  # (1 + 1) / 40 = 5%
        result = tracker.process(document)

        assert result.records[0].change_percent == 0  # no snapshot under the new content id
        assert result.records[0].action == "ensure_id"
        assert parse_regions(document.text)[0].id is not None
        assert parse_regions(document.text)[0].id != expected_id

    def test_unedited_file_gets_reproducible_ids(self) -> None:
        text = "// #region @ai_generated\nconst x = 1\n// #endregion"
        first = TextDocument(PATH, text)
        second = TextDocument(PATH, text)

        SnippetTracker().process(first)
        SnippetTracker().process(second)

        assert first.text == second.text
        assert f"id:{content_id('const x = 1')}" in first.text

    def test_reprocessing_without_edits_is_idempotent(self) -> None:
        text = "\n".join(
            [
                "// #region @ai_modified(30%) id:abc123",
                "a()",
                "// #region @ai_generated id:def456",
                "b()",
                "// #endregion",
                "// #endregion",
            ]
        )
        document = TextDocument(PATH, text)
        tracker = SnippetTracker()
        tracker.open_document(document)

        for _ in range(3):
            result = tracker.process(document)
            assert result.edits == []
            assert all(r.change_percent == 0 for r in result.records)
            assert all(r.action == "noop" for r in result.records)
        assert document.text == text
        assert document.save_count == 0

    def test_cosmetic_edit_counts_as_no_change(self) -> None:
        document = TextDocument(PATH, "// #region @ai_modified(20%) id:abc123\nfoo()\n// #endregion")
        tracker = SnippetTracker()
        tracker.open_document(document)

        _edit_body(document, "foo()", "  foo() // explained\n\n/* more */")
        result = tracker.process(document)

        assert result.records[0].change_percent == 0
        assert result.edits == []

    def test_percentage_never_decreases(self) -> None:
        lines = [f"step{i}()" for i in range(12)]
        text = "// #region @ai_generated id:a1b2c3\n" + "\n".join(lines) + "\n// #endregion"
        document = TextDocument(PATH, text)
        tracker = SnippetTracker()
        tracker.open_document(document)

        seen = [0]
        for i in range(6):
            # two of twelve lines per save: (2 + 2) / 24 = 17%
            _edit_body(document, f"step{2 * i}()", f"edit{2 * i}()")
            _edit_body(document, f"step{2 * i + 1}()", f"edit{2 * i + 1}()")
            result = tracker.process(document)
            record = result.records[0]
            assert 0 <= record.cumulative_percent <= 100
            assert record.cumulative_percent >= record.previous_percent
            if result.changed:
                assert tracker.process(document).edits == []
            seen.append(parse_regions(document.text)[0].previous_percent)

        assert seen == [0, 17, 31, 43, 53, 61, 68]

    def test_rejected_edit_keeps_previous_snapshot(self) -> None:
        document = TextDocument(PATH, "// #region @ai_generated id:a1b2c3\nconst x = 1\n// #endregion")
        tracker = SnippetTracker()
        tracker.open_document(document)

        _edit_body(document, "const x = 1", "const z = 9")
        document.read_only = True
        result = tracker.process(document)

        assert result.applied is False
        assert result.records[0].action == "strip"
        assert tracker.store.get(PATH, "a1b2c3") == "const x = 1"
        assert "#region" in document.text

        document.read_only = False
        result = tracker.process(document)

        assert result.applied is True
        assert result.records[0].change_percent == 100
        assert document.text == "const z = 9"

    def test_stripping_inner_region_does_not_retag_outer_region(self) -> None:
        text = "\n".join(
            [
                "// #region @ai_generated id:111111",
                "a()",
                "b()",
                "c()",
                "// #region @ai_generated id:222222",
                "x()",
                "// #endregion",
                "d()",
                "// #endregion",
            ]
        )
        document = TextDocument(PATH, text)
        tracker = SnippetTracker()
        tracker.open_document(document)

        _edit_body(document, "x()", "y()")
        result = tracker.process(document)
        actions = {r.region_id: r.action for r in result.records}

        assert actions == {"222222": "strip", "111111": "noop"}
        assert tracker.store.get(PATH, "111111") == "a()\nb()\nc()\ny()\nd()"

        follow_up = tracker.process(document)

        assert follow_up.edits == []
        assert [r.action for r in follow_up.records] == ["noop"]
        assert follow_up.records[0].change_percent == 0
        assert document.text.startswith("// #region @ai_generated id:111111\n")

    def test_open_does_not_overwrite_existing_snapshot(self) -> None:
        tracker = SnippetTracker()
        tracker.store.set(PATH, "a1b2c3", "old()")
        document = TextDocument(PATH, "// #region @ai_generated id:a1b2c3\nnew()\n// #endregion")

        assert tracker.open_document(document) == 0
        assert tracker.store.get(PATH, "a1b2c3") == "old()"

    def test_close_drops_in_memory_snapshots(self) -> None:
        tracker = SnippetTracker()
        document = TextDocument(PATH, "// #region @ai_generated id:a1b2c3\nx()\n// #endregion")
        tracker.open_document(document)

        tracker.close_document(PATH)

        assert tracker.store.ids(PATH) == set()

    def test_random_strategy_skips_id_less_regions_on_open(self) -> None:
        tracker = SnippetTracker(TrackerConfig(id_strategy="random"))
        document = TextDocument(PATH, "// #region @ai_generated\nx()\n// #endregion")

        assert tracker.open_document(document) == 0

    def test_is_supported(self) -> None:
        tracker = SnippetTracker()

        assert tracker.is_supported("a/b.ts")
        assert tracker.is_supported("Comp.VUE")
        assert not tracker.is_supported("script.py")


class TestPassLogging:
    def test_passes_are_logged_as_json_lines(self, tmp_path: Path) -> None:
        logger = PassLogger(str(tmp_path), file_name="test")
        tracker = SnippetTracker(pass_logger=logger)
        document = TextDocument(PATH, "// #region @ai_generated\nx()\n// #endregion")

        tracker.process(document)
        tracker.process(document)

        entries = [json.loads(line) for line in Path(logger.log_file_path).read_text().splitlines()]
        assert logger.pass_count == 2
        assert [entry["pass"] for entry in entries] == [1, 2]
        assert entries[0]["records"][0]["action"] == "ensure_id"
        assert entries[1]["records"][0]["action"] == "noop"
        assert entries[0]["file_path"] == PATH

    def test_log_dir_in_config_creates_logger(self, tmp_path: Path) -> None:
        tracker = SnippetTracker(TrackerConfig(log_dir=str(tmp_path / "logs")))

        assert tracker.pass_logger is not None
        assert (tmp_path / "logs").is_dir()

    def test_entries_tally_actions_and_marker_changes(self, tmp_path: Path) -> None:
        logger = PassLogger(str(tmp_path), file_name="test")
        tracker = SnippetTracker(pass_logger=logger)
        document = TextDocument(
            PATH,
            "\n".join(
                [
                    "// #region @ai_generated",
                    "x()",
                    "// #endregion",
                    "// #region @ai_generated id:a1b2c3",
                    "y()",
                    "// #endregion",
                ]
            ),
        )

        tracker.process(document)

        entry = json.loads(Path(logger.log_file_path).read_text().splitlines()[0])
        assert entry["actions"] == {"ensure_id": 1, "noop": 1}
        assert entry["marker_changes"] == [
            {"region_id": content_id("x()"), "action": "ensure_id", "cumulative_percent": 0}
        ]
        assert logger.files_seen == [PATH]

    def test_only_changes_skips_noop_passes(self, tmp_path: Path) -> None:
        tracker = SnippetTracker(
            TrackerConfig(log_dir=str(tmp_path / "logs"), log_only_changes=True)
        )
        document = TextDocument(PATH, "// #region @ai_generated\nx()\n// #endregion")

        tracker.process(document)
        tracker.process(document)

        assert tracker.pass_logger is not None
        assert tracker.pass_logger.only_changes is True
        assert tracker.pass_logger.pass_count == 1
        lines = Path(tracker.pass_logger.log_file_path).read_text().splitlines()
        assert [json.loads(line)["actions"] for line in lines] == [{"ensure_id": 1}]
