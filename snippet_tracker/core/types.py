from dataclasses import asdict, dataclass
from typing import Any, Literal

RegionKind = Literal["generated", "modified"]
Action = Literal["noop", "retag", "strip", "ensure_id"]
DiffKind = Literal["added", "removed", "unchanged"]
IdStrategy = Literal["content", "random"]


########################################################
########   Types for annotated regions   #########
########################################################
@dataclass
class AnnotatedRegion:
    """One marked span of a document, bounded by a start and an end marker line."""

    id: str | None
    kind: RegionKind
    start_line: int
    end_line: int
    body: str
    declared_percent: int | None = None
    indent: str = ""
    line_ending: str = ""

    @property
    def previous_percent(self) -> int:
        """Percentage recorded in the marker (0 for generated regions)."""
        if self.kind == "modified" and self.declared_percent is not None:
            return self.declared_percent
        return 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class DiffPart:
    """A run of consecutive lines sharing one diff classification."""

    kind: DiffKind
    lines: list[str]

    @property
    def count(self) -> int:
        return len(self.lines)


########################################################
########   Types for processing passes   #########
########################################################
@dataclass
class ModificationRecord:
    region_id: str
    kind: RegionKind
    previous_percent: int
    change_percent: int
    cumulative_percent: int
    action: Action

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class LineEdit:
    """Replace (``replacement`` set) or delete (``replacement`` None) one line."""

    line: int
    replacement: str | None = None

    @property
    def is_delete(self) -> bool:
        return self.replacement is None

    def to_dict(self) -> dict[str, Any]:
        return {"line": self.line, "replacement": self.replacement}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LineEdit":
        return cls(line=int(data["line"]), replacement=data.get("replacement"))


@dataclass
class PassResult:
    file_path: str
    records: list[ModificationRecord]
    edits: list[LineEdit]
    applied: bool = True

    @property
    def changed(self) -> bool:
        return self.applied and bool(self.edits)

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_path": self.file_path,
            "records": [record.to_dict() for record in self.records],
            "edits": [edit.to_dict() for edit in self.edits],
            "applied": self.applied,
        }
