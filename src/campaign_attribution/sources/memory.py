"""In-memory history source, buildable from a JSON export."""

import json
from pathlib import Path
from typing import Any, Optional

from campaign_attribution.models.records import Campaign, Opportunity, Snapshot, Touch

from .base import HistorySource


class InMemoryHistory(HistorySource):
    """
    History source over plain record lists.
    Snapshots are kept per opportunity in ascending date order; ties keep input order.
    """

    def __init__(
        self,
        *,
        opportunities: Optional[list[Opportunity]] = None,
        snapshots: Optional[list[Snapshot]] = None,
        campaigns: Optional[list[Campaign]] = None,
        touches: Optional[list[Touch]] = None,
    ):
        self._opportunities = list(opportunities or [])
        self._campaigns = list(campaigns or [])
        self._touches = list(touches or [])
        self._snapshots: dict[str, list[Snapshot]] = {}
        for snap in snapshots or []:
            self._snapshots.setdefault(snap.opportunity_id, []).append(snap)
        for history in self._snapshots.values():
            history.sort(key=lambda s: s.snapshot_date)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InMemoryHistory":
        """Build from {"opportunities", "snapshots", "campaigns", "touches"} lists of mappings."""
        return cls(
            opportunities=[Opportunity.model_validate(o) for o in data.get("opportunities", [])],
            snapshots=[Snapshot.model_validate(s) for s in data.get("snapshots", [])],
            campaigns=[Campaign.model_validate(c) for c in data.get("campaigns", [])],
            touches=[Touch.model_validate(t) for t in data.get("touches", [])],
        )

    @classmethod
    def from_json(cls, path: str | Path) -> "InMemoryHistory":
        """Load from a JSON file with the same layout as from_dict."""
        return cls.from_dict(json.loads(Path(path).read_text(encoding="utf-8")))

    def get_campaigns(self, campaign_type: Optional[str] = None) -> list[Campaign]:
        if campaign_type is None:
            return list(self._campaigns)
        return [c for c in self._campaigns if c.type == campaign_type]

    def get_touches(self, campaign_ids: Optional[set[str]] = None) -> list[Touch]:
        if campaign_ids is None:
            return list(self._touches)
        return [t for t in self._touches if t.campaign_id in campaign_ids]

    def get_opportunities(self) -> list[Opportunity]:
        return list(self._opportunities)

    def get_snapshot_history(self, opportunity_id: str) -> list[Snapshot]:
        return list(self._snapshots.get(opportunity_id, []))
