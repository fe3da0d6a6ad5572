"""Region marker grammar.

Start markers carry the region kind, an optional declared percentage and an
optional id; the end marker carries nothing. All markers are line-anchored
``//`` comments and may be indented.
"""

import re
from dataclasses import dataclass

from snippet_tracker.core.constants import ID_LENGTH
from snippet_tracker.core.types import RegionKind

_ID_PATTERN = rf"(?:\s+id:(?P<id>[a-f0-9]{{{ID_LENGTH}}}))?"
# Trailing text after whitespace is ignored; an id of another length is not an id.
_MARKER_END = r"(?=\s|$)"

AI_GENERATED_RE = re.compile(rf"^(?P<indent>[ \t]*)// #region @ai_generated{_ID_PATTERN}{_MARKER_END}")
AI_MODIFIED_RE = re.compile(
    rf"^(?P<indent>[ \t]*)// #region @ai_modified\((?P<percent>\d+)%\){_ID_PATTERN}{_MARKER_END}"
)
AI_REGION_END_RE = re.compile(r"^\s*// #endregion\b")


@dataclass(frozen=True)
class StartMarker:
    kind: RegionKind
    indent: str
    id: str | None = None
    percent: int | None = None


def match_start_marker(line: str) -> StartMarker | None:
    """Return the parsed start marker on ``line``, or None."""
    match = AI_GENERATED_RE.match(line)
    if match:
        return StartMarker(kind="generated", indent=match.group("indent"), id=match.group("id"))
    match = AI_MODIFIED_RE.match(line)
    if match:
        return StartMarker(
            kind="modified",
            indent=match.group("indent"),
            id=match.group("id"),
            percent=int(match.group("percent")),
        )
    return None


def is_end_marker(line: str) -> bool:
    return AI_REGION_END_RE.match(line) is not None


def render_generated_marker(region_id: str, indent: str = "") -> str:
    return f"{indent}// #region @ai_generated id:{region_id}"


def render_modified_marker(percent: int, region_id: str, indent: str = "") -> str:
    return f"{indent}// #region @ai_modified({percent}%) id:{region_id}"


def render_end_marker(indent: str = "") -> str:
    return f"{indent}// #endregion"
