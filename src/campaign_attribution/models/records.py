"""Input records supplied by the snapshot and touch collaborators."""

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Opportunity(BaseModel):
    """Sales opportunity identity. Business state lives in its snapshots."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Opaque internal identifier")
    external_id: str = Field(..., description="Identifier in the CRM export, e.g. Salesforce opportunity id")
    name: str = ""
    client_name: Optional[str] = None
    target_account: Optional[bool] = None

    @property
    def display_name(self) -> str:
        """Client name when known, otherwise the opportunity name."""
        return (self.client_name or self.name).strip()


class Snapshot(BaseModel):
    """Immutable point-in-time observation of one opportunity."""

    model_config = ConfigDict(frozen=True)

    opportunity_id: str
    snapshot_date: date
    stage: Optional[str] = None
    year1_value: Optional[float] = None
    entered_pipeline: Optional[date] = None  # None: not yet past qualification
    close_date: Optional[date] = None  # None: still open

    @property
    def value(self) -> float:
        return self.year1_value or 0.0


class Campaign(BaseModel):
    """Marketing campaign. `type` is the grouping key for every rollup."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    type: str
    cost: Optional[float] = None
    start_date: date
    status: str = "active"

    @property
    def nominal_cost(self) -> float:
        return self.cost or 0.0


class Touch(BaseModel):
    """One campaign's contact with one opportunity."""

    model_config = ConfigDict(frozen=True)

    campaign_id: str
    opportunity_id: str
    touch_date: Optional[date] = None
    attendees: Optional[int] = None
