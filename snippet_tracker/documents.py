"""Document access used by the tracker: in-memory text and files on disk."""

from abc import ABC, abstractmethod
from pathlib import Path

from snippet_tracker.core.parser import split_lines
from snippet_tracker.core.planner import apply_line_edits
from snippet_tracker.core.types import LineEdit


class Document(ABC):
    """A text document the tracker can read, edit line-wise and save."""

    path: str

    @abstractmethod
    def get_text(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def apply_edits(self, edits: list[LineEdit]) -> bool:
        """Apply single-line edits; returns False when the edit is rejected."""
        raise NotImplementedError

    @abstractmethod
    def save(self) -> None:
        raise NotImplementedError

    @property
    def line_count(self) -> int:
        return len(split_lines(self.get_text()))


class TextDocument(Document):
    """In-memory document. ``read_only`` documents reject every edit."""

    def __init__(self, path: str, text: str, read_only: bool = False) -> None:
        self.path = path
        self.text = text
        self.read_only = read_only
        self.save_count = 0

    def get_text(self) -> str:
        return self.text

    def apply_edits(self, edits: list[LineEdit]) -> bool:
        if self.read_only:
            return False
        try:
            lines = apply_line_edits(split_lines(self.text), edits)
        except IndexError:
            return False
        self.text = "\n".join(lines)
        return True

    def save(self) -> None:
        self.save_count += 1


class FileDocument(TextDocument):
    """UTF-8 file on disk; edits stay in memory until ``save()``."""

    def __init__(self, path: str | Path) -> None:
        file_path = Path(path)
        # newline="" keeps CRLF line endings intact.
        with open(file_path, encoding="utf-8", newline="") as f:
            text = f.read()
        super().__init__(str(file_path), text)
        self._dirty = False

    def apply_edits(self, edits: list[LineEdit]) -> bool:
        applied = super().apply_edits(edits)
        if applied and edits:
            self._dirty = True
        return applied

    def save(self) -> None:
        if not self._dirty:
            return
        with open(self.path, "w", encoding="utf-8", newline="") as f:
            f.write(self.text)
        self._dirty = False
        self.save_count += 1
