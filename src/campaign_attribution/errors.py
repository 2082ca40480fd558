"""
Exceptions raised by the attribution engine.

Hierarchy:
    AttributionError
    ├── DataUnavailable
    └── UnknownCampaignError
"""

from typing import Any, Optional


class AttributionError(Exception):
    """Base exception for attribution engine errors."""

    def __init__(self, message: str, code: str = "ATTRIBUTION_ERROR", details: Optional[dict[str, Any]] = None):
        self.code = code
        self.details = details or {}
        super().__init__(f"[{code}] {message}")


class DataUnavailable(AttributionError):
    """A collaborator read failed; nothing was aggregated."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        reason = f": {cause}" if cause is not None else ""
        super().__init__(
            f"Could not read {operation}{reason}",
            code="DATA_UNAVAILABLE",
            details={"operation": operation},
        )


class UnknownCampaignError(AttributionError):
    """A per-campaign operation was asked about a campaign that is not loaded."""

    def __init__(self, campaign_id: str):
        self.campaign_id = campaign_id
        super().__init__(
            f"Campaign not found: {campaign_id}",
            code="UNKNOWN_CAMPAIGN",
            details={"campaign_id": campaign_id},
        )
