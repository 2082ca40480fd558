"""Campaign type aggregator: cost, pipeline, closed-won, win rate, ROI and efficiency per type."""

import logging
from typing import Optional

from campaign_attribution.history import History
from campaign_attribution.models.metrics import CampaignTypeMetrics, CampaignTypeReport
from campaign_attribution.models.records import Campaign
from campaign_attribution.models.settings import AnalysisSettings
from campaign_attribution.qualification import QualificationFilter
from campaign_attribution.ratios import safe_percentage, safe_ratio
from campaign_attribution.stages import StageLadder

logger = logging.getLogger(__name__)


def performance_tier(roi: float, thresholds: dict[str, float]) -> str:
    """Highest tier whose ROI threshold is met; 'poor' below every threshold."""
    for tier, minimum in sorted(thresholds.items(), key=lambda item: item[1], reverse=True):
        if roi >= minimum:
            return tier
    return "poor"


class CampaignTypeAggregator:
    """
    Rolls qualifying opportunities up per campaign type.
    Each type is one qualification group; the grand total is a separate group over
    every campaign, so it is not the sum of the type rows.
    """

    def __init__(self, history: History, settings: Optional[AnalysisSettings] = None):
        self.history = history
        self.settings = settings or AnalysisSettings()
        self.ladder = StageLadder.from_settings(self.settings)
        self.qualifier = QualificationFilter(history, self.ladder)

    def aggregate(self, campaigns_by_type: Optional[dict[str, list[Campaign]]] = None) -> list[CampaignTypeMetrics]:
        """One row per type, sorted by pipeline value descending."""
        groups = campaigns_by_type if campaigns_by_type is not None else self.history.campaigns_by_type()
        rows = [self.metrics_for(campaign_type, campaigns) for campaign_type, campaigns in groups.items()]
        rows.sort(key=lambda r: (-r.pipeline_value, r.campaign_type))
        logger.debug("Aggregated %d campaign types", len(rows))
        return rows

    def totals(self, campaigns: Optional[list[Campaign]] = None) -> CampaignTypeMetrics:
        """Deduplicated grand total across all campaigns."""
        group = campaigns if campaigns is not None else self.history.campaigns
        return self.metrics_for(self.settings.total_label, group)

    def report(self) -> CampaignTypeReport:
        types = self.aggregate()
        total = self.totals()
        return CampaignTypeReport(
            types=types,
            total=total,
            duplicated_customers=sum(r.total_customers for r in types) - total.total_customers,
        )

    def metrics_for(self, label: str, campaigns: list[Campaign]) -> CampaignTypeMetrics:
        """Metrics for one campaign group; each campaign's cost counted once."""
        unique = {c.id: c for c in campaigns}
        total_cost = sum(c.nominal_cost for c in unique.values())
        qualified = self.qualifier.qualified_snapshots(unique)

        pipeline_value = 0.0
        open_value = 0.0
        won_value = 0.0
        won = lost = still_open = 0
        for snapshot in qualified.values():
            if self.ladder.is_closed_lost(snapshot.stage):
                lost += 1
                continue
            pipeline_value += snapshot.value
            if self.ladder.is_closed_won(snapshot.stage):
                won += 1
                won_value += snapshot.value
            else:
                still_open += 1
                open_value += snapshot.value

        total_attendees = sum(
            t.attendees or 0
            for t in self.history.touches_for_campaigns(unique)
            if t.opportunity_id in qualified
        )
        target_customers = 0
        for opp_id in qualified:
            opp = self.history.opportunity(opp_id)
            if opp is not None and opp.target_account:
                target_customers += 1

        customers = len(qualified)
        roi = safe_percentage(won_value, total_cost)
        return CampaignTypeMetrics(
            campaign_type=label,
            total_campaigns=len(unique),
            total_cost=total_cost,
            total_customers=customers,
            pipeline_value=pipeline_value,
            open_pipeline_value=open_value,
            closed_won_value=won_value,
            closed_won_count=won,
            closed_lost_count=lost,
            open_count=still_open,
            win_rate=safe_ratio(won, won + lost),
            close_rate=safe_ratio(won, won + lost + still_open),
            roi=roi,
            cost_efficiency=safe_ratio(pipeline_value, total_cost),
            total_attendees=total_attendees,
            attendee_efficiency=safe_ratio(pipeline_value, total_attendees),
            target_account_customers=target_customers,
            target_account_percentage=safe_percentage(target_customers, customers),
            average_cost_per_campaign=safe_ratio(total_cost, len(unique)),
            average_customers_per_campaign=safe_ratio(customers, len(unique)),
            performance_tier=performance_tier(roi, self.settings.tier_thresholds),
        )
