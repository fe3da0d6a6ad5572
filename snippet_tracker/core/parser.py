"""
Region parser.

Extracts annotated regions from a document in a single top-to-bottom pass,
keeping a stack of open regions so that regions may nest.
"""

from dataclasses import dataclass, field

from snippet_tracker.core.markers import is_end_marker, match_start_marker
from snippet_tracker.core.types import AnnotatedRegion, RegionKind


@dataclass
class _OpenRegion:
    kind: RegionKind
    start_line: int
    indent: str
    line_ending: str
    id: str | None = None
    declared_percent: int | None = None
    body_lines: list[str] = field(default_factory=list)

    def close(self, end_line: int) -> AnnotatedRegion:
        return AnnotatedRegion(
            id=self.id,
            kind=self.kind,
            start_line=self.start_line,
            end_line=end_line,
            body="\n".join(self.body_lines),
            declared_percent=self.declared_percent,
            indent=self.indent,
            line_ending=self.line_ending,
        )


def split_lines(text: str) -> list[str]:
    """Split on ``\\n`` only; a ``\\r`` of CRLF text stays on its line."""
    return text.split("\n")


def _strip_cr(line: str) -> tuple[str, str]:
    if line.endswith("\r"):
        return line[:-1], "\r"
    return line, ""


def parse_regions(text: str) -> list[AnnotatedRegion]:
    """
    Parse all closed regions in ``text``.

    Regions are returned in the order their end markers appear, so an inner
    region precedes the region that contains it. An end marker with no open
    region is ignored, and regions still open at end of input are dropped.
    Body lines belong only to the innermost open region.
    """
    regions: list[AnnotatedRegion] = []
    stack: list[_OpenRegion] = []

    for index, raw_line in enumerate(split_lines(text)):
        line, line_ending = _strip_cr(raw_line)

        marker = match_start_marker(line)
        if marker is not None:
            stack.append(
                _OpenRegion(
                    kind=marker.kind,
                    start_line=index,
                    indent=marker.indent,
                    line_ending=line_ending,
                    id=marker.id,
                    declared_percent=marker.percent,
                )
            )
            continue

        if is_end_marker(line):
            if stack:
                regions.append(stack.pop().close(index))
            continue

        if stack:
            stack[-1].body_lines.append(line)

    return regions
