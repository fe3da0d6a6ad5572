"""Line-oriented diff built on difflib.SequenceMatcher."""

from difflib import SequenceMatcher

from snippet_tracker.core.types import DiffPart, DiffKind


def _append(parts: list[DiffPart], kind: DiffKind, lines: list[str]) -> None:
    if not lines:
        return
    if parts and parts[-1].kind == kind:
        parts[-1].lines.extend(lines)
    else:
        parts.append(DiffPart(kind=kind, lines=list(lines)))


def diff_lines(old_lines: list[str], new_lines: list[str]) -> list[DiffPart]:
    """
    Diff two line sequences into an ordered edit script.

    Replacements are reported as a removed run followed by an added run.
    Adjacent runs of the same kind are merged.
    """
    matcher = SequenceMatcher(None, old_lines, new_lines, autojunk=False)
    parts: list[DiffPart] = []
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            _append(parts, "unchanged", old_lines[i1:i2])
        else:
            # "replace", "delete" and "insert" all reduce to removed then added.
            _append(parts, "removed", old_lines[i1:i2])
            _append(parts, "added", new_lines[j1:j2])
    return parts


def count_lines_by_kind(parts: list[DiffPart]) -> dict[DiffKind, int]:
    counts: dict[DiffKind, int] = {"added": 0, "removed": 0, "unchanged": 0}
    for part in parts:
        counts[part.kind] += part.count
    return counts
