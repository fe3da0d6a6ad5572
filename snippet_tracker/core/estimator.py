"""Change estimation for a single comparison and cumulative accumulation across saves."""

import math

from snippet_tracker.core.canonicalize import canonical_lines
from snippet_tracker.core.line_diff import count_lines_by_kind, diff_lines


def round_half_up(value: float) -> int:
    """Round halves away from zero for non-negative values (2.5 -> 3, not 2)."""
    return int(math.floor(value + 0.5))


def clamp_percent(value: float) -> float:
    return min(100.0, max(0.0, value))


def estimate_modification(old_body: str, new_body: str) -> int:
    """
    Estimate how much of ``old_body`` was changed into ``new_body``.

    Args:
        old_body: Snapshot body from the previous pass
        new_body: Current body

    Returns:
        Change percentage in [0, 100]. Replacing every line of the old content
        with the same number of different lines reads as 100.
    """
    old_lines = canonical_lines(old_body)
    new_lines = canonical_lines(new_body)

    if old_lines == new_lines:
        return 0
    if not old_lines:
        return 100

    counts = count_lines_by_kind(diff_lines(old_lines, new_lines))
    total_original = counts["unchanged"] + counts["removed"]
    if total_original == 0:
        return 100

    change_ratio = (counts["added"] + counts["removed"]) / (2 * total_original)
    return round_half_up(clamp_percent(change_ratio * 100))


def accumulate(previous_percent: int, change_percent: int) -> int:
    """
    Fold a new single-comparison change into the recorded percentage.

    Only the not-yet-modified share ``100 - previous_percent`` can be eroded
    further, so the result never decreases and never exceeds 100.
    """
    previous = clamp_percent(previous_percent)
    change = clamp_percent(change_percent)
    effective = (100 - previous) * change / 100
    return round_half_up(min(100.0, previous + effective))
