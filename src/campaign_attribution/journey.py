"""
Customer journey attributor: touches per customer and what they cost.

This is a raw-engagement view. Every touch counts, qualified or not, and each
customer carries the *full* nominal cost of every campaign that touched it.
Costs are not split across co-touched customers, so totals here describe
per-touch economics rather than a per-customer acquisition cost.
"""

import logging
from collections import Counter
from typing import Iterable, Optional

from campaign_attribution.history import History
from campaign_attribution.models.metrics import (
    CustomerJourney,
    CustomerJourneyReport,
    CustomerJourneySummary,
    OptimalTouchCount,
    TouchBucket,
    TouchCostBucket,
)
from campaign_attribution.models.settings import AnalysisSettings
from campaign_attribution.ratios import safe_percentage, safe_ratio
from campaign_attribution.stages import StageLadder

logger = logging.getLogger(__name__)


class CustomerJourneyAttributor:
    """Builds per-customer journeys and the touch-count efficiency curve."""

    def __init__(self, history: History, settings: Optional[AnalysisSettings] = None):
        self.history = history
        self.settings = settings or AnalysisSettings()
        self.ladder = StageLadder.from_settings(self.settings)

    def customer(self, opportunity_id: str) -> CustomerJourney:
        """Journey of one opportunity across every campaign that touched it."""
        touches = self.history.touches_for_opportunity(opportunity_id)
        campaigns = {t.campaign_id: self.history.campaign(t.campaign_id) for t in touches}
        touch_dates = [self.history.touch_date(t) for t in touches]
        first_touch = min(touch_dates) if touch_dates else None
        opp = self.history.opportunity(opportunity_id)
        snapshot = self.history.current_snapshot(opportunity_id)

        journey = CustomerJourney(
            opportunity_id=opportunity_id,
            customer_name=opp.display_name if opp else "",
            total_touches=len(campaigns),
            total_notional_cost=sum(c.nominal_cost for c in campaigns.values()),
            campaign_types=sorted({c.type for c in campaigns.values()}),
            first_touch_date=first_touch,
            last_touch_date=max(touch_dates) if touch_dates else None,
        )
        if snapshot is None:
            return journey

        journey.current_stage = self.ladder.canonical(snapshot.stage)
        journey.entered_pipeline = snapshot.entered_pipeline
        journey.is_closed_won = self.ladder.is_closed_won(snapshot.stage)
        if not self.ladder.is_closed_lost(snapshot.stage):
            journey.pipeline_value = snapshot.value
        if journey.is_closed_won:
            journey.closed_won_value = snapshot.value
        if first_touch is not None:
            if snapshot.entered_pipeline is not None:
                days = (snapshot.entered_pipeline - first_touch).days
                journey.days_from_first_touch_to_pipeline = days if days >= 0 else None
            if journey.is_closed_won and snapshot.close_date is not None:
                days = (snapshot.close_date - first_touch).days
                journey.days_from_first_touch_to_close = days if days >= 0 else None
        return journey

    def journey(self, opportunity_ids: Optional[Iterable[str]] = None) -> CustomerJourneyReport:
        """Journeys for the given opportunities (default: every touched one) plus summary."""
        ids = self.history.touched_opportunity_ids() if opportunity_ids is None else sorted(set(opportunity_ids))
        customers = [self.customer(opp_id) for opp_id in ids]
        customers = [c for c in customers if c.total_touches > 0]
        customers.sort(key=lambda c: (-c.total_touches, c.opportunity_id))
        logger.debug("Built %d customer journeys", len(customers))
        return CustomerJourneyReport(customers=customers, summary=self.summarize(customers))

    def summarize(self, customers: list[CustomerJourney]) -> CustomerJourneySummary:
        total = len(customers)
        if total == 0:
            return CustomerJourneySummary()

        counts = Counter(c.total_touches for c in customers)
        # Zero-customer touch counts never appear: buckets come from observed counts only
        distribution = [
            TouchBucket(touch_count=n, customer_count=counts[n], percentage=safe_percentage(counts[n], total))
            for n in sorted(counts)
        ]

        cac_by_touch: list[TouchCostBucket] = []
        for n in sorted(counts):
            bucket = [c for c in customers if c.total_touches == n]
            cost = sum(c.total_notional_cost for c in bucket)
            pipeline = sum(c.pipeline_value for c in bucket)
            cac_by_touch.append(
                TouchCostBucket(
                    touch_count=n,
                    customers=len(bucket),
                    cumulative_cost=cost,
                    pipeline_value=pipeline,
                    closed_won_value=sum(c.closed_won_value for c in bucket),
                    efficiency=safe_ratio(pipeline, cost),
                )
            )

        in_pipeline = [c for c in customers if c.entered_pipeline is not None]
        days_to_pipeline = [
            c.days_from_first_touch_to_pipeline for c in customers if c.days_from_first_touch_to_pipeline is not None
        ]
        return CustomerJourneySummary(
            total_customers=total,
            average_touches_per_customer=safe_ratio(sum(c.total_touches for c in customers), total),
            multi_touch_percentage=safe_percentage(sum(1 for c in customers if c.total_touches > 1), total),
            pipeline_conversion_rate=safe_percentage(len(in_pipeline), total),
            close_conversion_rate=safe_percentage(sum(1 for c in customers if c.is_closed_won), total),
            average_days_to_pipeline=safe_ratio(sum(days_to_pipeline), len(days_to_pipeline)),
            touch_distribution=distribution,
            cac_by_touch=cac_by_touch,
            optimal_touch_count=optimal_touch_count(cac_by_touch),
        )


def optimal_touch_count(buckets: list[TouchCostBucket]) -> Optional[OptimalTouchCount]:
    """Bucket with the highest efficiency; ties go to the fewest touches."""
    if not buckets:
        return None
    best = max(buckets, key=lambda b: (b.efficiency, -b.touch_count))
    noun = "touch" if best.touch_count == 1 else "touches"
    return OptimalTouchCount(
        touches=best.touch_count,
        efficiency=best.efficiency,
        recommendation=(
            f"Customers reached with {best.touch_count} {noun} return "
            f"${best.efficiency:,.2f} of pipeline per $1 of campaign spend; "
            f"plan journeys around {best.touch_count} {noun}"
        ),
    )
