"""Qualification criteria: each returns (passed, explanation)."""

from datetime import date
from typing import Optional

from campaign_attribution.models.records import Snapshot
from campaign_attribution.stages import DEFAULT_LADDER, StageLadder


def apply_snapshot_rule(snapshot: Optional[Snapshot], first_touch: date) -> tuple[bool, str]:
    """An opportunity with no snapshot at all cannot be credited."""
    if snapshot is None:
        return False, "Excluded: no snapshot for opportunity"
    return True, f"Current snapshot dated {snapshot.snapshot_date}"


def apply_entered_pipeline_rule(snapshot: Optional[Snapshot], first_touch: date) -> tuple[bool, str]:
    """Current snapshot must show the opportunity past qualification."""
    if snapshot is None or snapshot.entered_pipeline is None:
        return False, "Excluded: never entered pipeline"
    return True, f"Entered pipeline {snapshot.entered_pipeline}"


def apply_close_date_rule(
    snapshot: Optional[Snapshot],
    first_touch: date,
    ladder: StageLadder = DEFAULT_LADDER,
) -> tuple[bool, str]:
    """
    Close date: open deals pass; closed deals pass only when they closed
    strictly after the opportunity's first touch within the group.
    A deal reopened into an open stage is open, whatever close date it still carries.
    """
    if snapshot is None:
        return False, "Excluded: no snapshot for opportunity"
    if snapshot.close_date is None:
        return True, "Open (no close date)"
    if ladder.is_open(snapshot.stage):
        return True, f"Reopened: stage {ladder.canonical(snapshot.stage)}, stale close date {snapshot.close_date} ignored"
    if snapshot.close_date > first_touch:
        return True, f"Closed {snapshot.close_date}, after first touch {first_touch}"
    return False, f"Excluded: closed {snapshot.close_date}, on or before first touch {first_touch}"
