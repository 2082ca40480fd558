"""Segmentation and insight generation: attendee buckets, target accounts, reallocation."""

import logging
from typing import Iterable, NamedTuple, Optional

from campaign_attribution.history import History
from campaign_attribution.models.metrics import (
    AccountSideMetrics,
    AttendeeEffectiveness,
    AttendeeSegment,
    BestPerformingType,
    CampaignTypeMetrics,
    CampaignTypeReport,
    EngagementRecommendation,
    ExecutiveSummary,
    MatrixCell,
    MatrixRow,
    OptimalAttendeeRange,
    ReallocationAnalysis,
    SegmentationMatrix,
    TargetAccountComparison,
)
from campaign_attribution.models.records import Touch
from campaign_attribution.models.settings import AnalysisSettings
from campaign_attribution.ratios import safe_percentage, safe_ratio
from campaign_attribution.stages import StageLadder

logger = logging.getLogger(__name__)


class _Outcome(NamedTuple):
    """Current-state totals for a set of distinct opportunities."""

    customers: int
    total_value: float
    pipeline_value: float
    closed_won_value: float
    won: int
    lost: int

    @property
    def win_rate(self) -> float:
        return safe_ratio(self.won, self.won + self.lost)

    @property
    def average_deal_size(self) -> float:
        return safe_ratio(self.total_value, self.customers)


class InsightGenerator:
    """Cross-tabulates touched opportunities by attendee count and target-account flag."""

    def __init__(self, history: History, settings: Optional[AnalysisSettings] = None):
        self.history = history
        self.settings = settings or AnalysisSettings()
        self.ladder = StageLadder.from_settings(self.settings)

    def _outcome(self, opportunity_ids: Iterable[str]) -> _Outcome:
        customers = won = lost = 0
        total_value = pipeline_value = won_value = 0.0
        for opp_id in set(opportunity_ids):
            snapshot = self.history.current_snapshot(opp_id)
            if snapshot is None:
                continue
            customers += 1
            total_value += snapshot.value
            if self.ladder.is_closed_lost(snapshot.stage):
                lost += 1
                continue
            pipeline_value += snapshot.value
            if self.ladder.is_closed_won(snapshot.stage):
                won += 1
                won_value += snapshot.value
        return _Outcome(customers, total_value, pipeline_value, won_value, won, lost)

    def _campaign_cost(self, touches: Iterable[Touch]) -> float:
        """Cost of the distinct campaigns behind these touches, each counted once."""
        campaign_ids = {t.campaign_id for t in touches}
        return sum(self.history.campaign(cid).nominal_cost for cid in campaign_ids)

    def _attended_touches(self) -> list[Touch]:
        return [t for t in self.history.touches if t.attendees is not None and t.attendees > 0]

    def attendee_effectiveness(self) -> AttendeeEffectiveness:
        """Win rate, deal size and per-attendee economics for each attendee-count range."""
        touches = self._attended_touches()
        segments: list[AttendeeSegment] = []
        for attendee_range in self.settings.attendee_ranges:
            bucket = [t for t in touches if attendee_range.contains(t.attendees)]
            outcome = self._outcome(t.opportunity_id for t in bucket)
            attendees = sum(t.attendees for t in bucket)
            cost = self._campaign_cost(bucket)
            segments.append(
                AttendeeSegment(
                    attendee_range=attendee_range.label,
                    customer_count=outcome.customers,
                    total_attendees=attendees,
                    total_cost=cost,
                    total_pipeline_value=outcome.pipeline_value,
                    average_deal_size=outcome.average_deal_size,
                    win_rate=outcome.win_rate,
                    cost_per_attendee=safe_ratio(cost, attendees),
                    pipeline_per_attendee=safe_ratio(outcome.pipeline_value, attendees),
                )
            )

        populated = [s for s in segments if s.customer_count > 0]
        optimal = None
        if populated:
            best = max(populated, key=lambda s: s.pipeline_per_attendee)
            optimal = OptimalAttendeeRange(
                attendee_range=best.attendee_range,
                efficiency=best.pipeline_per_attendee,
                recommendation=(
                    f"Optimal attendee count is {best.attendee_range} with "
                    f"${round(best.pipeline_per_attendee):,} pipeline per attendee"
                ),
            )
        return AttendeeEffectiveness(segments=segments, optimal_range=optimal)

    def _account_side(self, opportunity_ids: list[str]) -> AccountSideMetrics:
        outcome = self._outcome(opportunity_ids)
        touches = [t for opp_id in set(opportunity_ids) for t in self.history.touches_for_opportunity(opp_id)]
        attendees = sum(t.attendees or 0 for t in touches)
        cost = self._campaign_cost(touches)
        return AccountSideMetrics(
            customer_count=outcome.customers,
            total_cost=cost,
            pipeline_value=outcome.pipeline_value,
            average_deal_size=outcome.average_deal_size,
            win_rate=outcome.win_rate,
            total_attendees=attendees,
            average_attendees=safe_ratio(attendees, outcome.customers),
            cost_per_attendee=safe_ratio(cost, attendees),
            pipeline_per_attendee=safe_ratio(outcome.pipeline_value, attendees),
        )

    def target_accounts(self) -> TargetAccountComparison:
        """Target vs non-target accounts; opportunities with an unset flag are left out."""
        target: list[str] = []
        non_target: list[str] = []
        for opp_id in self.history.touched_opportunity_ids():
            opp = self.history.opportunity(opp_id)
            if opp is None or opp.target_account is None:
                continue
            (target if opp.target_account else non_target).append(opp_id)

        target_side = self._account_side(target)
        other_side = self._account_side(non_target)
        return TargetAccountComparison(
            target=target_side,
            non_target=other_side,
            deal_size_multiplier=safe_ratio(target_side.average_deal_size, other_side.average_deal_size),
            win_rate_advantage=target_side.win_rate - other_side.win_rate,
            attendee_efficiency=safe_ratio(target_side.pipeline_per_attendee, other_side.pipeline_per_attendee),
        )

    def _matrix_cell(self, touches: list[Touch]) -> MatrixCell:
        outcome = self._outcome(t.opportunity_id for t in touches)
        return MatrixCell(
            customer_count=outcome.customers,
            win_rate=outcome.win_rate,
            average_deal_size=outcome.average_deal_size,
            roi=safe_percentage(outcome.closed_won_value, self._campaign_cost(touches)),
        )

    def strategic_matrix(self) -> SegmentationMatrix:
        """Attendee range x account type, with the best-ROI range recommended per account type."""
        flagged: list[tuple[Touch, bool]] = []
        for touch in self._attended_touches():
            opp = self.history.opportunity(touch.opportunity_id)
            if opp is not None and opp.target_account is not None:
                flagged.append((touch, opp.target_account))

        rows: list[MatrixRow] = []
        for attendee_range in self.settings.matrix_ranges:
            in_range = [(t, is_target) for t, is_target in flagged if attendee_range.contains(t.attendees)]
            rows.append(
                MatrixRow(
                    attendee_range=attendee_range.label,
                    target=self._matrix_cell([t for t, is_target in in_range if is_target]),
                    non_target=self._matrix_cell([t for t, is_target in in_range if not is_target]),
                )
            )
        return SegmentationMatrix(rows=rows, recommendations=_engagement_recommendations(rows))


def _engagement_recommendations(rows: list[MatrixRow]) -> list[EngagementRecommendation]:
    recommendations: list[EngagementRecommendation] = []
    for account_type, title, pick in (
        ("target", "Target", lambda r: r.target),
        ("non-target", "Non-target", lambda r: r.non_target),
    ):
        populated = [r for r in rows if pick(r).customer_count > 0]
        if not populated:
            continue
        best = max(populated, key=lambda r: pick(r).roi)
        roi = pick(best).roi
        recommendations.append(
            EngagementRecommendation(
                account_type=account_type,
                optimal_attendee_range=best.attendee_range,
                reasoning=f"{title} accounts show highest ROI ({roi:.1f}%) with {best.attendee_range} attendees",
                expected_roi=roi,
            )
        )
    return recommendations


def reallocation_analysis(
    rows: list[CampaignTypeMetrics],
    settings: Optional[AnalysisSettings] = None,
) -> ReallocationAnalysis:
    """
    Budget moving out of types that take a large cost share yet return below-average ROI.
    Average ROI is the unweighted mean across types.
    """
    settings = settings or AnalysisSettings()
    if not rows:
        return ReallocationAnalysis()

    total_cost = sum(r.total_cost for r in rows)
    average_roi = sum(r.roi for r in rows) / len(rows)
    inefficient = [
        r
        for r in rows
        if safe_ratio(r.total_cost, total_cost) > settings.reallocation_cost_share and r.roi < average_roi
    ]
    amount = sum(r.total_cost for r in inefficient)
    best = max(rows, key=lambda r: r.roi)
    if inefficient:
        logger.info(
            "Reallocation candidates: %s (%.2f) -> %s",
            ", ".join(r.campaign_type for r in inefficient),
            amount,
            best.campaign_type,
        )
    return ReallocationAnalysis(
        average_roi=average_roi,
        inefficient_types=[r.campaign_type for r in inefficient],
        reallocation_amount=amount,
        reallocation_percentage=safe_percentage(amount, total_cost),
        potential_gain=amount * (best.roi / 100),
        recommended_target=best.campaign_type,
    )


def executive_summary(report: CampaignTypeReport) -> ExecutiveSummary:
    """Headline numbers; pipeline and closed-won come from the deduplicated total row."""
    total = report.total
    best_row = max(report.types, key=lambda r: r.roi) if report.types else None
    best = (
        BestPerformingType(name=best_row.campaign_type, roi=best_row.roi, closed_won_value=best_row.closed_won_value)
        if best_row
        else None
    )
    if best is None:
        text = "No campaigns in the selected period."
    else:
        text = (
            f"{best.name} campaigns show the strongest ROI at {best.roi:.1f}%. "
            f"Total marketing investment of ${total.total_cost / 1_000_000:.1f}M generated "
            f"${total.closed_won_value / 1_000_000:.1f}M in closed won revenue."
        )
    return ExecutiveSummary(
        total_investment=total.total_cost,
        total_pipeline=total.pipeline_value,
        total_closed_won=total.closed_won_value,
        overall_roi=total.roi,
        best_performing_type=best,
        summary=text,
    )
