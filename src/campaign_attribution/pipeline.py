"""Pipeline orchestration: load history once → every aggregate."""

from datetime import timedelta
from typing import Iterable, Optional

from campaign_attribution.cache import ResultCache
from campaign_attribution.campaign_types import CampaignTypeAggregator
from campaign_attribution.history import History
from campaign_attribution.influence import CampaignInfluenceAnalyzer
from campaign_attribution.insights import InsightGenerator, executive_summary, reallocation_analysis
from campaign_attribution.journey import CustomerJourneyAttributor
from campaign_attribution.models.metrics import AttributionReport, CampaignTypeReport, QualificationResult
from campaign_attribution.models.records import Campaign
from campaign_attribution.models.settings import AnalysisSettings
from campaign_attribution.movement import MovementDetector
from campaign_attribution.qualification import QualificationFilter
from campaign_attribution.sources.base import HistorySource

DEFAULT_CACHE_TTL = timedelta(minutes=10)


def build_report(history: History, settings: Optional[AnalysisSettings] = None) -> AttributionReport:
    """Compute every aggregate from an already materialised history. Pure and repeatable."""
    settings = settings or AnalysisSettings()
    campaign_types = CampaignTypeAggregator(history, settings).report()
    insights = InsightGenerator(history, settings)
    return AttributionReport(
        campaign_types=campaign_types,
        campaign_influence=CampaignInfluenceAnalyzer(history, settings).compare(),
        movement=MovementDetector(history, settings).report(),
        customer_journey=CustomerJourneyAttributor(history, settings).journey(),
        attendee_effectiveness=insights.attendee_effectiveness(),
        target_accounts=insights.target_accounts(),
        strategic_matrix=insights.strategic_matrix(),
        reallocation=reallocation_analysis(campaign_types.types, settings),
        executive_summary=executive_summary(campaign_types),
    )


def run_report(
    source: HistorySource,
    *,
    settings: Optional[AnalysisSettings] = None,
    campaigns: Optional[list[Campaign]] = None,
    campaign_type: Optional[str] = None,
    cache: Optional[ResultCache] = None,
    cache_key: Optional[str] = None,
    cache_ttl: timedelta = DEFAULT_CACHE_TTL,
) -> AttributionReport:
    """
    Load history (all-or-nothing) and build the full report.
    Restrict `campaigns` to apply a period filter. When both cache and cache_key
    are given, a fresh cached report is returned instead of recomputing.
    """

    def compute() -> AttributionReport:
        history = History.load(source, campaigns=campaigns, campaign_type=campaign_type)
        return build_report(history, settings)

    if cache is not None and cache_key is not None:
        return cache.get_or_compute(cache_key, compute, cache_ttl)
    return compute()


def run_campaign_types(
    source: HistorySource,
    *,
    settings: Optional[AnalysisSettings] = None,
    campaigns: Optional[list[Campaign]] = None,
) -> CampaignTypeReport:
    """Campaign type rollup only."""
    history = History.load(source, campaigns=campaigns)
    return CampaignTypeAggregator(history, settings).report()


def run_qualification(
    source: HistorySource,
    campaign_ids: Iterable[str],
    *,
    campaigns: Optional[list[Campaign]] = None,
) -> list[QualificationResult]:
    """
    Explanation trail for one campaign group.
    Raises UnknownCampaignError for ids that are not among the loaded campaigns.
    """
    history = History.load(source, campaigns=campaigns)
    group = list(dict.fromkeys(campaign_ids))
    for campaign_id in group:
        history.campaign(campaign_id)
    return QualificationFilter(history).explain(group)
