"""Unit tests for attendee segmentation, target accounts and reallocation."""

from datetime import date

import pytest

from campaign_attribution.campaign_types import CampaignTypeAggregator
from campaign_attribution.history import History
from campaign_attribution.insights import InsightGenerator, executive_summary, reallocation_analysis
from campaign_attribution.models.metrics import CampaignTypeMetrics, CampaignTypeReport
from campaign_attribution.models.records import Campaign, Opportunity, Snapshot, Touch


def _make_campaign(
    campaign_id: str,
    campaign_type: str = "Webinar",
    cost: float | None = 1000.0,
    start: date = date(2024, 1, 1),
) -> Campaign:
    return Campaign(id=campaign_id, name=campaign_id, type=campaign_type, cost=cost, start_date=start)


def _make_snapshot(opp_id: str, on: date, stage: str | None, value: float | None = None, **kwargs) -> Snapshot:
    return Snapshot(opportunity_id=opp_id, snapshot_date=on, stage=stage, year1_value=value, **kwargs)


def _make_history(*, campaigns: list[Campaign], touches: list[Touch], snapshots: list[Snapshot]) -> History:
    """History whose opportunities are every id the touches and snapshots reference."""
    ids = sorted({t.opportunity_id for t in touches} | {s.opportunity_id for s in snapshots})
    opportunities = [Opportunity(id=i, external_id=f"sf-{i}", name=i) for i in ids]
    return History(campaigns=campaigns, opportunities=opportunities, touches=touches, snapshots=snapshots)


def _row(campaign_type: str, cost: float, roi: float) -> CampaignTypeMetrics:
    return CampaignTypeMetrics(campaign_type=campaign_type, total_cost=cost, roi=roi)


class TestAttendeeEffectiveness:
    """Tests for attendee-range segments."""

    def test_segments(self, history: History) -> None:
        segments = {s.attendee_range: s for s in InsightGenerator(history).attendee_effectiveness().segments}
        assert list(segments) == ["1-2", "3-5", "6-10", "11+"]
        small = segments["1-2"]
        assert small.customer_count == 2
        assert small.total_attendees == 3
        assert small.total_cost == 5000.0
        assert small.total_pipeline_value == 10000.0
        assert small.average_deal_size == 8500.0
        assert small.win_rate == 0.0
        assert small.pipeline_per_attendee == pytest.approx(10000 / 3)
        mid = segments["3-5"]
        assert mid.customer_count == 2
        assert mid.win_rate == 1.0
        assert mid.cost_per_attendee == pytest.approx(2000 / 7)

    def test_optimal_range(self, history: History) -> None:
        optimal = InsightGenerator(history).attendee_effectiveness().optimal_range
        assert optimal.attendee_range == "1-2"
        assert optimal.recommendation == "Optimal attendee count is 1-2 with $3,333 pipeline per attendee"

    def test_no_attendees_no_optimal(self) -> None:
        history = _make_history(
            campaigns=[_make_campaign("C1")],
            touches=[Touch(campaign_id="C1", opportunity_id="O1")],
            snapshots=[_make_snapshot("O1", date(2024, 1, 1), "Discovery", 10.0)],
        )
        result = InsightGenerator(history).attendee_effectiveness()
        assert all(s.customer_count == 0 for s in result.segments)
        assert all(s.pipeline_per_attendee == 0.0 for s in result.segments)
        assert result.optimal_range is None


class TestTargetAccounts:
    """Tests for target vs non-target comparison."""

    def test_comparison(self, history: History) -> None:
        comparison = InsightGenerator(history).target_accounts()
        assert comparison.target.customer_count == 2
        assert comparison.target.total_attendees == 19
        assert comparison.target.average_deal_size == 8500.0
        assert comparison.non_target.customer_count == 1
        assert comparison.non_target.win_rate == 1.0
        assert comparison.deal_size_multiplier == pytest.approx(1.7)
        assert comparison.win_rate_advantage == pytest.approx(-1.0)
        assert comparison.attendee_efficiency == pytest.approx((10000 / 19) / (5000 / 3))

    def test_side_costs(self, history: History) -> None:
        """Each side carries the cost of the distinct campaigns that touched it."""
        comparison = InsightGenerator(history).target_accounts()
        assert comparison.target.total_cost == 7000.0
        assert comparison.target.cost_per_attendee == pytest.approx(7000 / 19)
        assert comparison.non_target.total_cost == 2500.0
        assert comparison.non_target.cost_per_attendee == pytest.approx(2500 / 3)

    def test_side_without_attendees(self) -> None:
        """Cost is still reported when no touch recorded attendees; per-attendee ratios are 0."""
        history = History(
            campaigns=[_make_campaign("C1", cost=1000.0)],
            opportunities=[Opportunity(id="O1", external_id="x", target_account=True)],
            touches=[Touch(campaign_id="C1", opportunity_id="O1")],
            snapshots=[_make_snapshot("O1", date(2024, 1, 1), "Discovery", 10.0)],
        )
        target = InsightGenerator(history).target_accounts().target
        assert target.total_cost == 1000.0
        assert target.total_attendees == 0
        assert target.cost_per_attendee == 0.0
        assert target.pipeline_per_attendee == 0.0

    def test_unflagged_accounts_excluded(self, history: History) -> None:
        """O4 and O5 have no target flag and appear on neither side."""
        comparison = InsightGenerator(history).target_accounts()
        assert comparison.target.customer_count + comparison.non_target.customer_count == 3

    def test_missing_side_gives_zero_ratios(self) -> None:
        history = _make_history(
            campaigns=[_make_campaign("C1")],
            touches=[Touch(campaign_id="C1", opportunity_id="O1", attendees=2)],
            snapshots=[_make_snapshot("O1", date(2024, 1, 1), "Discovery", 10.0)],
        )
        comparison = InsightGenerator(history).target_accounts()
        assert comparison.deal_size_multiplier == 0.0
        assert comparison.attendee_efficiency == 0.0


class TestStrategicMatrix:
    """Tests for the attendee range x account type matrix."""

    def test_matrix_cells(self, history: History) -> None:
        rows = {r.attendee_range: r for r in InsightGenerator(history).strategic_matrix().rows}
        assert list(rows) == ["1-2", "3-5", "6+"]
        assert rows["1-2"].target.customer_count == 2
        assert rows["1-2"].non_target.customer_count == 0
        assert rows["3-5"].non_target.roi == pytest.approx(250.0)
        assert rows["6+"].target.customer_count == 1

    def test_recommendations(self, history: History) -> None:
        recs = {r.account_type: r for r in InsightGenerator(history).strategic_matrix().recommendations}
        assert recs["non-target"].optimal_attendee_range == "3-5"
        assert recs["non-target"].reasoning == "Non-target accounts show highest ROI (250.0%) with 3-5 attendees"
        assert recs["target"].expected_roi == 0.0

    def test_no_flagged_accounts_no_recommendations(self) -> None:
        history = _make_history(
            campaigns=[_make_campaign("C1")],
            touches=[Touch(campaign_id="C1", opportunity_id="O1", attendees=4)],
            snapshots=[_make_snapshot("O1", date(2024, 1, 1), "Discovery", 10.0)],
        )
        assert InsightGenerator(history).strategic_matrix().recommendations == []


class TestReallocation:
    """Tests for budget reallocation."""

    def test_scenario(self, history: History) -> None:
        rows = CampaignTypeAggregator(history).aggregate()
        result = reallocation_analysis(rows)
        assert result.average_roi == pytest.approx((5000 / 3500 * 100) / 2)
        assert result.inefficient_types == ["Event"]
        assert result.reallocation_amount == 4000.0
        assert result.reallocation_percentage == pytest.approx(4000 / 7500 * 100)
        assert result.potential_gain == pytest.approx(4000 * 5000 / 3500)
        assert result.recommended_target == "Webinar"

    def test_small_cost_share_not_flagged(self) -> None:
        rows = [_row("Big", 9500.0, 300.0), _row("Tiny", 500.0, 10.0)]
        assert reallocation_analysis(rows).inefficient_types == []

    def test_empty(self) -> None:
        result = reallocation_analysis([])
        assert result.inefficient_types == []
        assert result.recommended_target is None

    def test_zero_total_cost(self) -> None:
        result = reallocation_analysis([_row("A", 0.0, 0.0), _row("B", 0.0, 0.0)])
        assert result.reallocation_percentage == 0.0
        assert result.inefficient_types == []


class TestExecutiveSummary:
    def test_summary_uses_deduplicated_total(self, history: History) -> None:
        summary = executive_summary(CampaignTypeAggregator(history).report())
        assert summary.total_investment == 7500.0
        assert summary.total_pipeline == 15000.0
        assert summary.total_closed_won == 5000.0
        assert summary.best_performing_type.name == "Webinar"
        assert summary.summary.startswith("Webinar campaigns show the strongest ROI at 142.9%")

    def test_no_campaigns(self) -> None:
        report = CampaignTypeReport(total=CampaignTypeMetrics(campaign_type="All Campaigns"))
        summary = executive_summary(report)
        assert summary.best_performing_type is None
        assert summary.summary == "No campaigns in the selected period."
