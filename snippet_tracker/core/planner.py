"""Edit planner: turns per-region decisions into single-line document edits."""

from snippet_tracker.core.decision import render_start_marker
from snippet_tracker.core.types import AnnotatedRegion, LineEdit, ModificationRecord


def plan_edits(
    regions: list[AnnotatedRegion],
    records: list[ModificationRecord],
    lines: list[str],
) -> list[LineEdit]:
    """
    Plan the minimal set of line edits for one pass.

    Args:
        regions: Parsed regions, aligned index-by-index with ``records``
        records: Decisions for each region
        lines: Document lines the regions were parsed from

    Returns:
        Edits sorted by line in strictly descending order. Each edit targets a
        distinct marker line of the original document, so applying them in
        this order never shifts a line that is still to be edited.
    """
    edits: dict[int, LineEdit] = {}

    for region, record in zip(regions, records, strict=True):
        if record.action == "strip":
            edits[region.start_line] = LineEdit(region.start_line)
            edits[region.end_line] = LineEdit(region.end_line)
            continue

        marker = render_start_marker(region, record.region_id, record.action, record.cumulative_percent)
        if marker is None:
            continue
        replacement = marker + region.line_ending
        if lines[region.start_line] == replacement:
            continue
        edits[region.start_line] = LineEdit(region.start_line, replacement)

    return [edits[line] for line in sorted(edits, reverse=True)]


def apply_line_edits(lines: list[str], edits: list[LineEdit]) -> list[str]:
    """Return a copy of ``lines`` with ``edits`` applied in descending line order."""
    result = list(lines)
    for edit in sorted(edits, key=lambda e: e.line, reverse=True):
        if not 0 <= edit.line < len(result):
            raise IndexError(f"Edit line {edit.line} out of range (0..{len(result) - 1})")
        if edit.is_delete:
            del result[edit.line]
        else:
            result[edit.line] = edit.replacement
    return result
