"""
Per-campaign influence: how much of a campaign's credit it shares with other campaigns.

Each campaign is its own qualification group. A qualifying customer is "shared"
when any other loaded campaign also touched it, so summing customers across
campaigns double-counts exactly the shared ones.
"""

import logging
from typing import Iterable, Optional

from campaign_attribution.history import History
from campaign_attribution.models.metrics import CampaignInfluence
from campaign_attribution.models.settings import AnalysisSettings
from campaign_attribution.qualification import QualificationFilter
from campaign_attribution.ratios import safe_percentage, safe_ratio
from campaign_attribution.stages import StageLadder

logger = logging.getLogger(__name__)

SHARED_WEIGHT = 0.5


class CampaignInfluenceAnalyzer:
    """Compares campaigns one by one, separating exclusive from shared customers."""

    def __init__(self, history: History, settings: Optional[AnalysisSettings] = None):
        self.history = history
        self.settings = settings or AnalysisSettings()
        self.ladder = StageLadder.from_settings(self.settings)
        self.qualifier = QualificationFilter(history, self.ladder)

    def _campaign_count(self, opportunity_id: str) -> int:
        return len({t.campaign_id for t in self.history.touches_for_opportunity(opportunity_id)})

    def campaign(self, campaign_id: str) -> CampaignInfluence:
        """Influence record for one loaded campaign. Raises UnknownCampaignError otherwise."""
        campaign = self.history.campaign(campaign_id)
        qualified = self.qualifier.qualified_snapshots([campaign_id])
        shared = {opp_id for opp_id in qualified if self._campaign_count(opp_id) > 1}
        unique = set(qualified) - shared

        won = {opp_id for opp_id, s in qualified.items() if self.ladder.is_closed_won(s.stage)}
        lost = sum(1 for s in qualified.values() if self.ladder.is_closed_lost(s.stage))
        pipeline_value = sum(s.value for s in qualified.values() if not self.ladder.is_closed_lost(s.stage))
        won_value = sum(qualified[opp_id].value for opp_id in won)
        cost = campaign.nominal_cost

        return CampaignInfluence(
            campaign_id=campaign.id,
            campaign_name=campaign.name,
            campaign_type=campaign.type,
            total_cost=cost,
            total_customers=len(qualified),
            unique_opportunities=len(unique),
            shared_opportunities=len(shared),
            influence_rate=safe_percentage(len(shared), len(qualified)),
            influence_score=len(unique) + SHARED_WEIGHT * len(shared),
            pipeline_value=pipeline_value,
            closed_won_count=len(won),
            closed_won_value=won_value,
            win_rate=safe_ratio(len(won), len(won) + lost),
            cac=safe_ratio(cost, len(won)),
            roi=safe_percentage(won_value, cost),
            pipeline_efficiency=safe_ratio(pipeline_value, cost),
            single_touch_close_rate=safe_percentage(len(unique & won), len(unique)),
            multi_touch_close_rate=safe_percentage(len(shared & won), len(shared)),
        )

    def compare(self, campaign_ids: Optional[Iterable[str]] = None) -> list[CampaignInfluence]:
        """Influence records sorted by influence score descending (default: every loaded campaign)."""
        ids = [c.id for c in self.history.campaigns] if campaign_ids is None else list(dict.fromkeys(campaign_ids))
        rows = [self.campaign(campaign_id) for campaign_id in ids]
        rows.sort(key=lambda r: (-r.influence_score, r.campaign_id))
        logger.debug("Compared %d campaigns", len(rows))
        return rows
