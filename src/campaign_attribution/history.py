"""Materialised, validated view of the collaborator feeds for one aggregation call."""

import logging
from datetime import date
from typing import Callable, Iterable, Optional, TypeVar

from campaign_attribution.errors import AttributionError, DataUnavailable, UnknownCampaignError
from campaign_attribution.models.records import Campaign, Opportunity, Snapshot, Touch
from campaign_attribution.sources.base import HistorySource

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _read(operation: str, fn: Callable[..., T], *args) -> T:
    """Run one collaborator read, converting any failure into DataUnavailable."""
    try:
        return fn(*args)
    except AttributionError:
        raise
    except Exception as e:
        logger.warning("Collaborator read failed (%s): %s", operation, e)
        raise DataUnavailable(operation, e) from e


class History:
    """
    Immutable in-memory history: campaigns, touches, opportunities and snapshots.
    Records referencing unknown campaigns or opportunities are skipped on construction.
    """

    def __init__(
        self,
        *,
        campaigns: Iterable[Campaign],
        opportunities: Iterable[Opportunity],
        touches: Iterable[Touch],
        snapshots: Iterable[Snapshot],
    ):
        self._campaigns: dict[str, Campaign] = {}
        for campaign in campaigns:
            if campaign.id in self._campaigns:
                logger.warning("Duplicate campaign id %s; keeping first", campaign.id)
                continue
            self._campaigns[campaign.id] = campaign

        self._opportunities: dict[str, Opportunity] = {o.id: o for o in opportunities}

        self._touches: list[Touch] = []
        self._touches_by_campaign: dict[str, list[Touch]] = {}
        self._touches_by_opportunity: dict[str, list[Touch]] = {}
        skipped = 0
        for touch in touches:
            if touch.campaign_id not in self._campaigns or touch.opportunity_id not in self._opportunities:
                skipped += 1
                continue
            self._touches.append(touch)
            self._touches_by_campaign.setdefault(touch.campaign_id, []).append(touch)
            self._touches_by_opportunity.setdefault(touch.opportunity_id, []).append(touch)
        if skipped:
            logger.warning("Skipped %d touches referencing unknown campaigns or opportunities", skipped)

        self._snapshots: dict[str, list[Snapshot]] = {}
        skipped = 0
        for snap in snapshots:
            if snap.opportunity_id not in self._opportunities:
                skipped += 1
                continue
            self._snapshots.setdefault(snap.opportunity_id, []).append(snap)
        for history in self._snapshots.values():
            history.sort(key=lambda s: s.snapshot_date)
        if skipped:
            logger.warning("Skipped %d snapshots referencing unknown opportunities", skipped)

    @classmethod
    def load(
        cls,
        source: HistorySource,
        *,
        campaigns: Optional[list[Campaign]] = None,
        campaign_type: Optional[str] = None,
    ) -> "History":
        """
        Bulk-read everything one aggregation needs. All-or-nothing: any collaborator
        failure raises DataUnavailable and no history is returned.
        Pass `campaigns` to apply a caller-side period filter; `campaign_type` then
        narrows that list.
        """
        if campaigns is None:
            campaigns = _read("campaigns", source.get_campaigns, campaign_type)
        elif campaign_type is not None:
            campaigns = [c for c in campaigns if c.type == campaign_type]
        campaign_ids = {c.id for c in campaigns}
        touches = _read("touches", source.get_touches, campaign_ids) if campaign_ids else []
        opportunities = _read("opportunities", source.get_opportunities)
        known = {o.id for o in opportunities}
        touched = sorted({t.opportunity_id for t in touches if t.opportunity_id in known})
        snapshots: list[Snapshot] = []
        for opp_id in touched:
            snapshots.extend(_read(f"snapshot history of {opp_id}", source.get_snapshot_history, opp_id))
        logger.debug(
            "Loaded history: %d campaigns, %d touches, %d opportunities touched, %d snapshots",
            len(campaigns),
            len(touches),
            len(touched),
            len(snapshots),
        )
        return cls(campaigns=campaigns, opportunities=opportunities, touches=touches, snapshots=snapshots)

    @property
    def campaigns(self) -> list[Campaign]:
        return list(self._campaigns.values())

    @property
    def touches(self) -> list[Touch]:
        return list(self._touches)

    def campaign(self, campaign_id: str) -> Campaign:
        try:
            return self._campaigns[campaign_id]
        except KeyError:
            raise UnknownCampaignError(campaign_id) from None

    def has_campaign(self, campaign_id: str) -> bool:
        return campaign_id in self._campaigns

    def opportunity(self, opportunity_id: str) -> Optional[Opportunity]:
        return self._opportunities.get(opportunity_id)

    def campaigns_by_type(self) -> dict[str, list[Campaign]]:
        """Campaigns grouped by type, in first-seen order."""
        groups: dict[str, list[Campaign]] = {}
        for campaign in self._campaigns.values():
            groups.setdefault(campaign.type, []).append(campaign)
        return groups

    def touches_for_campaigns(self, campaign_ids: Iterable[str]) -> list[Touch]:
        out: list[Touch] = []
        for campaign_id in dict.fromkeys(campaign_ids):
            out.extend(self._touches_by_campaign.get(campaign_id, []))
        return out

    def touches_for_opportunity(self, opportunity_id: str) -> list[Touch]:
        return list(self._touches_by_opportunity.get(opportunity_id, []))

    def touched_opportunity_ids(self) -> list[str]:
        return sorted(self._touches_by_opportunity)

    def touch_date(self, touch: Touch) -> date:
        """When the touch happened; falls back to the campaign start date."""
        return touch.touch_date or self._campaigns[touch.campaign_id].start_date

    def snapshot_history(self, opportunity_id: str) -> list[Snapshot]:
        return list(self._snapshots.get(opportunity_id, []))

    def current_snapshot(self, opportunity_id: str) -> Optional[Snapshot]:
        """Snapshot with the maximum snapshot date (last supplied on ties)."""
        history = self._snapshots.get(opportunity_id)
        return history[-1] if history else None

    def snapshot_as_of(self, opportunity_id: str, as_of: date) -> Optional[Snapshot]:
        """Snapshot with the maximum snapshot date <= as_of."""
        latest: Optional[Snapshot] = None
        for snap in self._snapshots.get(opportunity_id, []):
            if snap.snapshot_date > as_of:
                break
            latest = snap
        return latest
