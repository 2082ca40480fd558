"""Abstract base class for snapshot/touch collaborators."""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from campaign_attribution.models.records import Campaign, Opportunity, Snapshot, Touch


class HistorySource(ABC):
    """
    Read-only interface onto the snapshot and touch stores.
    Implementations return fully typed records; the engine never writes back.
    """

    @abstractmethod
    def get_campaigns(self, campaign_type: Optional[str] = None) -> list[Campaign]:
        """
        All campaigns, optionally restricted to one type.
        """
        pass

    @abstractmethod
    def get_touches(self, campaign_ids: Optional[set[str]] = None) -> list[Touch]:
        """
        Campaign-to-opportunity associations, optionally restricted to some campaigns.
        """
        pass

    @abstractmethod
    def get_opportunities(self) -> list[Opportunity]:
        """
        Every known opportunity identity.
        """
        pass

    @abstractmethod
    def get_snapshot_history(self, opportunity_id: str) -> list[Snapshot]:
        """
        Snapshots of one opportunity ordered by snapshot date ascending.
        """
        pass

    def get_latest_snapshot(self, opportunity_id: str, as_of: Optional[date] = None) -> Optional[Snapshot]:
        """
        Snapshot with the greatest snapshot date (<= as_of when given).
        Default implementation scans the history. Override for stores with indexed lookups.
        """
        latest: Optional[Snapshot] = None
        for snap in self.get_snapshot_history(opportunity_id):
            if as_of is not None and snap.snapshot_date > as_of:
                continue
            if latest is None or snap.snapshot_date >= latest.snapshot_date:
                latest = snap
        return latest
