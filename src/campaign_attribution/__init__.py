"""Campaign attribution, deduplication and aggregation engine."""

from campaign_attribution.errors import AttributionError, DataUnavailable, UnknownCampaignError
from campaign_attribution.history import History
from campaign_attribution.pipeline import run_campaign_types, run_qualification, run_report

__all__ = [
    "AttributionError",
    "DataUnavailable",
    "History",
    "UnknownCampaignError",
    "run_campaign_types",
    "run_qualification",
    "run_report",
]
