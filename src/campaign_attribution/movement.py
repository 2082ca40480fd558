"""
Movement detector: what moved within N days of a campaign.

Two independent views per campaign type:
- new pipeline: touched opportunities whose current snapshot entered pipeline
  inside [start, start + window]
- stage advance: touched opportunities whose stage moved up the ladder between a
  baseline snapshot and the latest snapshot on or before start + window

An opportunity is counted at most once per campaign type.
"""

import logging
from datetime import date, timedelta
from typing import Optional

from campaign_attribution.history import History
from campaign_attribution.models.metrics import (
    MovementReport,
    NewPipelineMetrics,
    StageAdvanceMetrics,
    StageTransition,
)
from campaign_attribution.models.records import Campaign, Snapshot
from campaign_attribution.models.settings import AnalysisSettings
from campaign_attribution.ratios import safe_ratio
from campaign_attribution.stages import StageLadder

logger = logging.getLogger(__name__)


class MovementDetector:
    """Time-windowed movement detection built on snapshot pairs."""

    def __init__(
        self,
        history: History,
        settings: Optional[AnalysisSettings] = None,
        *,
        window_days: Optional[int] = None,
    ):
        self.history = history
        self.settings = settings or AnalysisSettings()
        self.window_days = self.settings.movement_window_days if window_days is None else window_days
        self.ladder = StageLadder.from_settings(self.settings)

    def _window(self, campaign: Campaign) -> tuple[date, date]:
        return campaign.start_date, campaign.start_date + timedelta(days=self.window_days)

    def _touched(self, campaign: Campaign) -> list[str]:
        return sorted({t.opportunity_id for t in self.history.touches_for_campaigns([campaign.id])})

    def new_pipeline_entries(self, campaign: Campaign) -> list[Snapshot]:
        """Current snapshots of touched opportunities that entered pipeline inside the window."""
        start, end = self._window(campaign)
        entries: list[Snapshot] = []
        for opp_id in self._touched(campaign):
            snapshot = self.history.current_snapshot(opp_id)
            if snapshot is None or snapshot.entered_pipeline is None:
                continue
            if start <= snapshot.entered_pipeline <= end:
                entries.append(snapshot)
        return entries

    def stage_pair(self, opportunity_id: str, campaign: Campaign) -> Optional[tuple[Snapshot, Snapshot]]:
        """
        (before, after) pair for one opportunity. `after` is the latest snapshot on or
        before start + window and must not predate the start. `before` is the state as
        of the campaign start when that precedes `after`, else the earliest snapshot
        preceding `after`.
        """
        start, end = self._window(campaign)
        after = self.history.snapshot_as_of(opportunity_id, end)
        if after is None or after.snapshot_date < start:
            return None
        before = self.history.snapshot_as_of(opportunity_id, start)
        if before is None or before.snapshot_date >= after.snapshot_date:
            earlier = [s for s in self.history.snapshot_history(opportunity_id) if s.snapshot_date < after.snapshot_date]
            if not earlier:
                return None
            before = earlier[0]
        return before, after

    def stage_advances(self, campaign: Campaign) -> list[tuple[Snapshot, Snapshot]]:
        """Pairs with a positive ordinal movement for this campaign's touched opportunities."""
        advances: list[tuple[Snapshot, Snapshot]] = []
        for opp_id in self._touched(campaign):
            pair = self.stage_pair(opp_id, campaign)
            if pair is None:
                continue
            before, after = pair
            if self.ladder.is_advance(before.stage, after.stage):
                advances.append(pair)
        return advances

    def new_pipeline_by_type(self) -> list[NewPipelineMetrics]:
        rows: list[NewPipelineMetrics] = []
        for campaign_type, campaigns in self.history.campaigns_by_type().items():
            total_cost = sum(c.nominal_cost for c in campaigns)
            seen: set[str] = set()
            row = NewPipelineMetrics(
                campaign_type=campaign_type,
                window_days=self.window_days,
                total_campaigns=len(campaigns),
                total_cost=total_cost,
            )
            for campaign in campaigns:
                for snapshot in self.new_pipeline_entries(campaign):
                    if snapshot.opportunity_id in seen:
                        continue
                    seen.add(snapshot.opportunity_id)
                    if self.ladder.is_closed_lost(snapshot.stage):
                        row.closed_lost_excluded += 1
                    elif self.ladder.is_closed_won(snapshot.stage):
                        row.closed_won_count += 1
                        row.closed_won_value += snapshot.value
                    else:
                        row.active_count += 1
                        row.active_value += snapshot.value
            row.new_opportunities = row.active_count + row.closed_won_count
            row.new_pipeline_value = row.active_value + row.closed_won_value
            row.pipeline_per_cost = safe_ratio(row.new_pipeline_value, total_cost)
            rows.append(row)
        rows.sort(key=lambda r: (-r.new_pipeline_value, r.campaign_type))
        return rows

    def stage_advances_by_type(self) -> list[StageAdvanceMetrics]:
        rows: list[StageAdvanceMetrics] = []
        for campaign_type, campaigns in self.history.campaigns_by_type().items():
            total_cost = sum(c.nominal_cost for c in campaigns)
            seen: set[str] = set()
            row = StageAdvanceMetrics(
                campaign_type=campaign_type,
                window_days=self.window_days,
                total_campaigns=len(campaigns),
                total_cost=total_cost,
            )
            for campaign in campaigns:
                for _, after in self.stage_advances(campaign):
                    if after.opportunity_id in seen:
                        continue
                    seen.add(after.opportunity_id)
                    row.positive_movements += 1
                    row.advanced_value += after.value
                    if self.ladder.is_closed_won(after.stage):
                        row.reached_closed_won += 1
                        row.reached_closed_won_value += after.value
            row.value_per_cost = safe_ratio(row.advanced_value, total_cost)
            rows.append(row)
        rows.sort(key=lambda r: (-r.advanced_value, r.campaign_type))
        return rows

    def report(self) -> MovementReport:
        return MovementReport(
            window_days=self.window_days,
            new_pipeline=self.new_pipeline_by_type(),
            stage_advances=self.stage_advances_by_type(),
        )

    def stage_transitions(self, campaign_id: str, window_days: Optional[int] = None) -> list[StageTransition]:
        """
        Every consecutive-snapshot stage change on or after the campaign start,
        limited to start + window_days when given. Descriptive: no ladder rule applied.
        """
        campaign = self.history.campaign(campaign_id)
        start = campaign.start_date
        end = start + timedelta(days=window_days) if window_days is not None else None
        grouped: dict[tuple[str, str], StageTransition] = {}
        for opp_id in self._touched(campaign):
            observed = [
                s
                for s in self.history.snapshot_history(opp_id)
                if s.snapshot_date >= start and (end is None or s.snapshot_date <= end) and s.stage
            ]
            for prev, curr in zip(observed, observed[1:]):
                from_stage = self.ladder.canonical(prev.stage)
                to_stage = self.ladder.canonical(curr.stage)
                if from_stage is None or to_stage is None or from_stage == to_stage:
                    continue
                key = (from_stage, to_stage)
                if key not in grouped:
                    grouped[key] = StageTransition(from_stage=from_stage, to_stage=to_stage)
                grouped[key].count += 1
                grouped[key].opportunity_ids.append(opp_id)
        transitions = sorted(grouped.values(), key=lambda t: (-t.count, t.from_stage, t.to_stage))
        logger.debug("Campaign %s: %d distinct stage transitions", campaign_id, len(transitions))
        return transitions
