"""Qualification filter: which opportunities a campaign group may take credit for."""

import logging
from datetime import date
from functools import partial
from typing import Callable, Iterable, Optional

from campaign_attribution.history import History
from campaign_attribution.models.metrics import QualificationResult
from campaign_attribution.models.records import Snapshot
from campaign_attribution.stages import DEFAULT_LADDER, StageLadder

from .rules import apply_close_date_rule, apply_entered_pipeline_rule, apply_snapshot_rule

logger = logging.getLogger(__name__)

RuleFn = Callable[[Optional[Snapshot], date], tuple[bool, str]]


class QualificationFilter:
    """
    Deduplicates the opportunities touched by a campaign group and keeps those
    whose current snapshot entered pipeline and did not close before the
    opportunity's own first touch within the group.
    """

    def __init__(self, history: History, ladder: Optional[StageLadder] = None):
        self.history = history
        self.ladder = ladder or DEFAULT_LADDER
        self._rules: list[tuple[str, RuleFn]] = [
            ("snapshot", apply_snapshot_rule),
            ("entered_pipeline", apply_entered_pipeline_rule),
            ("close_date", partial(apply_close_date_rule, ladder=self.ladder)),
        ]

    def first_touch_dates(self, campaign_ids: Iterable[str]) -> dict[str, date]:
        """Earliest touch date per opportunity, counting only touches from the group."""
        first: dict[str, date] = {}
        for touch in self.history.touches_for_campaigns(campaign_ids):
            touched_on = self.history.touch_date(touch)
            prior = first.get(touch.opportunity_id)
            if prior is None or touched_on < prior:
                first[touch.opportunity_id] = touched_on
        return first

    def explain(self, campaign_ids: Iterable[str]) -> list[QualificationResult]:
        """Apply every criterion to each touched opportunity and return the full trail."""
        results: list[QualificationResult] = []
        for opp_id, first_touch in sorted(self.first_touch_dates(campaign_ids).items()):
            snapshot = self.history.current_snapshot(opp_id)
            explanations: list[str] = []
            excluded_by: Optional[str] = None
            for rule_id, rule_fn in self._rules:
                passed, explanation = rule_fn(snapshot, first_touch)
                explanations.append(explanation)
                if not passed and excluded_by is None:
                    excluded_by = rule_id
            results.append(
                QualificationResult(
                    opportunity_id=opp_id,
                    passed=excluded_by is None,
                    first_touch_date=first_touch,
                    explanations=explanations,
                    excluded_by_rule=excluded_by,
                )
            )
        return results

    def qualify(self, campaign_ids: Iterable[str]) -> frozenset[str]:
        """Deduplicated set of opportunity ids creditable to the group."""
        qualified = frozenset(r.opportunity_id for r in self.explain(campaign_ids) if r.passed)
        logger.debug("Qualified %d opportunities", len(qualified))
        return qualified

    def qualified_snapshots(self, campaign_ids: Iterable[str]) -> dict[str, Snapshot]:
        """Current snapshot of each qualifying opportunity, keyed by opportunity id."""
        out: dict[str, Snapshot] = {}
        for opp_id in sorted(self.qualify(campaign_ids)):
            snapshot = self.history.current_snapshot(opp_id)
            if snapshot is not None:
                out[opp_id] = snapshot
        return out
