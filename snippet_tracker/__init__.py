"""snippet-tracker: keep AI provenance markers in sync with human edits."""

from snippet_tracker.core.config import TrackerConfig
from snippet_tracker.core.tracker import SnippetTracker

__all__ = ["SnippetTracker", "TrackerConfig"]
