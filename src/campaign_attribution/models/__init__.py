"""Data models for history records, aggregate outputs and settings."""

from campaign_attribution.models.metrics import (
    AttributionReport,
    CampaignTypeMetrics,
    CampaignTypeReport,
    CustomerJourneyReport,
    CustomerJourneySummary,
    MovementReport,
    QualificationResult,
    ReallocationAnalysis,
    SegmentationMatrix,
)
from campaign_attribution.models.records import Campaign, Opportunity, Snapshot, Touch
from campaign_attribution.models.settings import AnalysisSettings, AttendeeRange

__all__ = [
    "AnalysisSettings",
    "AttendeeRange",
    "AttributionReport",
    "Campaign",
    "CampaignTypeMetrics",
    "CampaignTypeReport",
    "CustomerJourneyReport",
    "CustomerJourneySummary",
    "MovementReport",
    "Opportunity",
    "QualificationResult",
    "ReallocationAnalysis",
    "SegmentationMatrix",
    "Snapshot",
    "Touch",
]
