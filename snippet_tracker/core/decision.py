"""Annotation decision engine.

Maps a region's kind and its newly computed cumulative percentage to the
single action that keeps its marker consistent:

    generated  >= remove            -> strip
    generated  [retag, remove)      -> retag as modified(cumulative)
    generated  < retag              -> ensure_id (noop when the id is present)
    modified   >= remove            -> strip
    modified   != declared          -> retag as modified(cumulative)
    modified   == declared          -> ensure_id (noop when the id is present)
"""

from snippet_tracker.core.config import TrackerConfig
from snippet_tracker.core.markers import render_generated_marker, render_modified_marker
from snippet_tracker.core.types import Action, AnnotatedRegion, RegionKind


def decide(
    kind: RegionKind,
    cumulative_percent: int,
    declared_percent: int | None = None,
    has_id: bool = True,
    config: TrackerConfig | None = None,
) -> Action:
    config = config or TrackerConfig()

    if cumulative_percent >= config.modification_threshold:
        return "strip"

    if kind == "generated":
        if cumulative_percent >= config.retag_threshold:
            return "retag"
    elif cumulative_percent > 0 and cumulative_percent != (declared_percent or 0):
        return "retag"

    return "noop" if has_id else "ensure_id"


def render_start_marker(
    region: AnnotatedRegion, region_id: str, action: Action, cumulative_percent: int
) -> str | None:
    """Return the start-marker text the action calls for, or None when it is left alone."""
    if action == "retag":
        return render_modified_marker(cumulative_percent, region_id, region.indent)
    if action == "ensure_id":
        if region.kind == "modified":
            return render_modified_marker(region.previous_percent, region_id, region.indent)
        return render_generated_marker(region_id, region.indent)
    return None
