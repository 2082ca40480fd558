"""Collaborator interfaces supplying snapshots, touches and campaigns."""

from campaign_attribution.sources.base import HistorySource
from campaign_attribution.sources.memory import InMemoryHistory

__all__ = ["HistorySource", "InMemoryHistory"]
