"""Aggregate records returned to callers (HTTP layer, report generator)."""

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, Field


class QualificationResult(BaseModel):
    """Outcome of qualifying one opportunity against a campaign group."""

    opportunity_id: str
    passed: bool = Field(..., description="All qualification criteria passed")
    first_touch_date: Optional[date] = None
    explanations: list[str] = Field(default_factory=list)
    excluded_by_rule: Optional[str] = Field(
        default=None,
        description="First criterion that excluded (snapshot|entered_pipeline|close_date)",
    )


class CampaignTypeMetrics(BaseModel):
    """Rollup of one campaign type (or the deduplicated grand total)."""

    campaign_type: str
    total_campaigns: int = 0
    total_cost: float = 0.0
    total_customers: int = Field(default=0, description="Qualifying opportunity count")
    pipeline_value: float = Field(default=0.0, description="Qualifying value excluding Closed Lost")
    open_pipeline_value: float = Field(default=0.0, description="Excludes Closed Won and Closed Lost")
    closed_won_value: float = 0.0
    closed_won_count: int = 0
    closed_lost_count: int = 0
    open_count: int = 0
    win_rate: float = Field(default=0.0, description="won / (won + lost), 0..1")
    close_rate: float = Field(default=0.0, description="won / (won + lost + open), 0..1")
    roi: float = Field(default=0.0, description="closed_won_value / total_cost * 100")
    cost_efficiency: float = 0.0
    total_attendees: int = 0
    attendee_efficiency: float = 0.0
    target_account_customers: int = 0
    target_account_percentage: float = 0.0
    average_cost_per_campaign: float = 0.0
    average_customers_per_campaign: float = 0.0
    performance_tier: str = "poor"


class CampaignTypeReport(BaseModel):
    """Per-type rows sorted by pipeline value, plus the deduplicated total row."""

    types: list[CampaignTypeMetrics] = Field(default_factory=list)
    total: CampaignTypeMetrics
    duplicated_customers: int = Field(
        default=0,
        description="Type-row customers beyond the deduplicated total: credit claimed by more than one type",
    )


class CampaignInfluence(BaseModel):
    """One campaign's qualifying customers and how many it shares with other campaigns."""

    campaign_id: str
    campaign_name: str = ""
    campaign_type: str
    total_cost: float = 0.0
    total_customers: int = 0
    unique_opportunities: int = Field(default=0, description="Customers touched by no other loaded campaign")
    shared_opportunities: int = Field(default=0, description="Customers also touched by another loaded campaign")
    influence_rate: float = Field(default=0.0, description="shared / customers * 100")
    influence_score: float = Field(default=0.0, description="unique + 0.5 * shared")
    pipeline_value: float = 0.0
    closed_won_count: int = 0
    closed_won_value: float = 0.0
    win_rate: float = Field(default=0.0, description="won / (won + lost), 0..1")
    cac: float = Field(default=0.0, description="cost / closed-won count")
    roi: float = 0.0
    pipeline_efficiency: float = 0.0
    single_touch_close_rate: float = Field(default=0.0, description="% of unique customers now Closed Won")
    multi_touch_close_rate: float = Field(default=0.0, description="% of shared customers now Closed Won")


class NewPipelineMetrics(BaseModel):
    """Opportunities that entered pipeline within the window after a campaign of this type."""

    campaign_type: str
    window_days: int
    total_campaigns: int = 0
    total_cost: float = 0.0
    new_opportunities: int = 0
    new_pipeline_value: float = 0.0
    active_count: int = 0
    active_value: float = 0.0
    closed_won_count: int = 0
    closed_won_value: float = 0.0
    closed_lost_excluded: int = 0
    pipeline_per_cost: float = 0.0


class StageAdvanceMetrics(BaseModel):
    """Forward stage movements observed within the window after a campaign of this type."""

    campaign_type: str
    window_days: int
    total_campaigns: int = 0
    total_cost: float = 0.0
    positive_movements: int = 0
    advanced_value: float = 0.0
    reached_closed_won: int = 0
    reached_closed_won_value: float = 0.0
    value_per_cost: float = 0.0


class MovementReport(BaseModel):
    """Both movement variants keyed by campaign type."""

    window_days: int
    new_pipeline: list[NewPipelineMetrics] = Field(default_factory=list)
    stage_advances: list[StageAdvanceMetrics] = Field(default_factory=list)


class StageTransition(BaseModel):
    """Observed change between consecutive snapshots of the campaign's opportunities."""

    from_stage: str
    to_stage: str
    count: int = 0
    opportunity_ids: list[str] = Field(default_factory=list)


class CustomerJourney(BaseModel):
    """Raw engagement of one opportunity across every campaign that touched it."""

    opportunity_id: str
    customer_name: str = ""
    total_touches: int = Field(default=0, description="Distinct campaigns touching the opportunity")
    total_notional_cost: float = Field(
        default=0.0,
        description="Sum of full campaign costs; per-touch economics, not a per-customer CAC split",
    )
    campaign_types: list[str] = Field(default_factory=list)
    first_touch_date: Optional[date] = None
    last_touch_date: Optional[date] = None
    current_stage: Optional[str] = None
    pipeline_value: float = 0.0
    closed_won_value: float = 0.0
    is_closed_won: bool = False
    entered_pipeline: Optional[date] = None
    days_from_first_touch_to_pipeline: Optional[int] = None
    days_from_first_touch_to_close: Optional[int] = None


class TouchBucket(BaseModel):
    touch_count: int
    customer_count: int
    percentage: float


class TouchCostBucket(BaseModel):
    """Customers with exactly `touch_count` touches and their cumulative economics."""

    touch_count: int
    customers: int
    cumulative_cost: float
    pipeline_value: float
    closed_won_value: float
    efficiency: float = Field(..., description="pipeline_value / cumulative_cost, 0 when cost is 0")


class OptimalTouchCount(BaseModel):
    touches: int
    efficiency: float
    recommendation: str


class CustomerJourneySummary(BaseModel):
    total_customers: int = 0
    average_touches_per_customer: float = 0.0
    multi_touch_percentage: float = 0.0
    pipeline_conversion_rate: float = 0.0
    close_conversion_rate: float = 0.0
    average_days_to_pipeline: float = 0.0
    touch_distribution: list[TouchBucket] = Field(default_factory=list)
    cac_by_touch: list[TouchCostBucket] = Field(default_factory=list)
    optimal_touch_count: Optional[OptimalTouchCount] = None


class CustomerJourneyReport(BaseModel):
    customers: list[CustomerJourney] = Field(default_factory=list)
    summary: CustomerJourneySummary = Field(default_factory=CustomerJourneySummary)


class AttendeeSegment(BaseModel):
    attendee_range: str
    customer_count: int = 0
    total_attendees: int = 0
    total_cost: float = 0.0
    total_pipeline_value: float = 0.0
    average_deal_size: float = 0.0
    win_rate: float = 0.0
    cost_per_attendee: float = 0.0
    pipeline_per_attendee: float = 0.0


class OptimalAttendeeRange(BaseModel):
    attendee_range: str
    efficiency: float
    recommendation: str


class AttendeeEffectiveness(BaseModel):
    segments: list[AttendeeSegment] = Field(default_factory=list)
    optimal_range: Optional[OptimalAttendeeRange] = None


class AccountSideMetrics(BaseModel):
    customer_count: int = 0
    total_cost: float = Field(default=0.0, description="Distinct campaigns touching this side, each counted once")
    pipeline_value: float = 0.0
    average_deal_size: float = 0.0
    win_rate: float = 0.0
    total_attendees: int = 0
    average_attendees: float = 0.0
    cost_per_attendee: float = 0.0
    pipeline_per_attendee: float = 0.0


class TargetAccountComparison(BaseModel):
    target: AccountSideMetrics = Field(default_factory=AccountSideMetrics)
    non_target: AccountSideMetrics = Field(default_factory=AccountSideMetrics)
    deal_size_multiplier: float = 0.0
    win_rate_advantage: float = 0.0
    attendee_efficiency: float = 0.0


class MatrixCell(BaseModel):
    customer_count: int = 0
    win_rate: float = 0.0
    average_deal_size: float = 0.0
    roi: float = 0.0


class MatrixRow(BaseModel):
    attendee_range: str
    target: MatrixCell = Field(default_factory=MatrixCell)
    non_target: MatrixCell = Field(default_factory=MatrixCell)


class EngagementRecommendation(BaseModel):
    account_type: Literal["target", "non-target"]
    optimal_attendee_range: str
    reasoning: str
    expected_roi: float


class SegmentationMatrix(BaseModel):
    rows: list[MatrixRow] = Field(default_factory=list)
    recommendations: list[EngagementRecommendation] = Field(default_factory=list)


class ReallocationAnalysis(BaseModel):
    average_roi: float = 0.0
    inefficient_types: list[str] = Field(default_factory=list)
    reallocation_amount: float = 0.0
    reallocation_percentage: float = 0.0
    potential_gain: float = 0.0
    recommended_target: Optional[str] = None


class BestPerformingType(BaseModel):
    name: str
    roi: float
    closed_won_value: float


class ExecutiveSummary(BaseModel):
    total_investment: float = 0.0
    total_pipeline: float = 0.0
    total_closed_won: float = 0.0
    overall_roi: float = 0.0
    best_performing_type: Optional[BestPerformingType] = None
    summary: str = ""


class AttributionReport(BaseModel):
    """Every aggregate computed from one materialised history."""

    campaign_types: CampaignTypeReport
    campaign_influence: list[CampaignInfluence] = Field(default_factory=list)
    movement: MovementReport
    customer_journey: CustomerJourneyReport
    attendee_effectiveness: AttendeeEffectiveness
    target_accounts: TargetAccountComparison
    strategic_matrix: SegmentationMatrix
    reallocation: ReallocationAnalysis
    executive_summary: ExecutiveSummary
