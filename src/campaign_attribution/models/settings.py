"""Analysis settings: windows, segment ranges, thresholds and the stage ladder."""

from pathlib import Path
from typing import Optional

try:
    import yaml
except ModuleNotFoundError as e:
    raise ModuleNotFoundError(
        "PyYAML is required for settings loading. Run: poetry install"
    ) from e
from pydantic import BaseModel, Field, model_validator

DEFAULT_STAGE_ORDER: list[str] = [
    "Validation/Introduction",
    "Discovery",
    "Developing Champions",
    "ROI Analysis/Pricing",
    "Negotiation/Commit",
    "Closed Won",
]

# Variants seen in CRM exports -> canonical ladder label (keys compared lowercased)
DEFAULT_STAGE_ALIASES: dict[str, str] = {
    "validation": "Validation/Introduction",
    "introduction": "Validation/Introduction",
    "discover": "Discovery",
    "develop": "Developing Champions",
    "roi analysis": "ROI Analysis/Pricing",
    "pricing": "ROI Analysis/Pricing",
    "negotiation/review": "Negotiation/Commit",
    "negotiation": "Negotiation/Commit",
    "decision": "Negotiation/Commit",
}


class AttendeeRange(BaseModel):
    """Inclusive attendee-count bucket; max_attendees=None means open-ended."""

    label: str
    min_attendees: int = Field(..., ge=0)
    max_attendees: Optional[int] = None

    @model_validator(mode="after")
    def _check_bounds(self) -> "AttendeeRange":
        if self.max_attendees is not None and self.max_attendees < self.min_attendees:
            raise ValueError(f"Range {self.label}: max_attendees below min_attendees")
        return self

    def contains(self, attendees: int) -> bool:
        if attendees < self.min_attendees:
            return False
        return self.max_attendees is None or attendees <= self.max_attendees


def _ranges(*bounds: tuple[str, int, Optional[int]]) -> list[AttendeeRange]:
    return [AttendeeRange(label=label, min_attendees=lo, max_attendees=hi) for label, lo, hi in bounds]


class AnalysisSettings(BaseModel):
    """Tunable constants for every aggregation. Defaults match the reporting conventions."""

    movement_window_days: int = Field(default=30, ge=0, description="Days after campaign start")
    attendee_ranges: list[AttendeeRange] = Field(
        default_factory=lambda: _ranges(("1-2", 1, 2), ("3-5", 3, 5), ("6-10", 6, 10), ("11+", 11, None))
    )
    matrix_ranges: list[AttendeeRange] = Field(
        default_factory=lambda: _ranges(("1-2", 1, 2), ("3-5", 3, 5), ("6+", 6, None))
    )
    reallocation_cost_share: float = Field(
        default=0.10,
        ge=0,
        le=1,
        description="Cost share above which a below-average type is flagged",
    )
    tier_thresholds: dict[str, float] = Field(
        default_factory=lambda: {"excellent": 500.0, "good": 200.0, "moderate": 100.0}
    )
    stage_order: list[str] = Field(default_factory=lambda: list(DEFAULT_STAGE_ORDER))
    stage_aliases: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_STAGE_ALIASES))
    total_label: str = "All Campaigns"

    @classmethod
    def from_yaml(cls, path: str | Path) -> "AnalysisSettings":
        """Load settings from YAML. Supports nested (movement/segments/reallocation/stages) or flat structure."""
        data = yaml.safe_load(Path(path).read_text()) or {}
        movement = data.get("movement", {})
        segments = data.get("segments", {})
        realloc = data.get("reallocation", {})
        stages = data.get("stages", {})

        def _get(key: str, nested: dict, top: dict, default=None):
            return nested.get(key, top.get(key, default))

        flat: dict = {}
        window = _get("window_days", movement, data)
        if window is None:
            window = _get("movement_window_days", movement, data)
        if window is not None:
            flat["movement_window_days"] = window
        for key in ("attendee_ranges", "matrix_ranges"):
            raw = _get(key, segments, data)
            if raw is not None:
                flat[key] = [_parse_range(r) for r in raw]
        share = _get("cost_share", realloc, data)
        if share is None:
            share = _get("reallocation_cost_share", realloc, data)
        if share is not None:
            flat["reallocation_cost_share"] = share
        tiers = _get("tier_thresholds", realloc, data)
        if tiers is not None:
            flat["tier_thresholds"] = tiers
        order = _get("order", stages, {}) or data.get("stage_order")
        if order:
            flat["stage_order"] = order
        aliases = _get("aliases", stages, {}) or data.get("stage_aliases")
        if aliases:
            flat["stage_aliases"] = {**DEFAULT_STAGE_ALIASES, **aliases}
        if data.get("total_label"):
            flat["total_label"] = data["total_label"]
        return cls.model_validate(flat)


def _parse_range(raw) -> dict:
    """Accept '3-5', '11+' or a mapping with label/min_attendees/max_attendees."""
    if isinstance(raw, dict):
        return raw
    text = str(raw).strip()
    if text.endswith("+"):
        return {"label": text, "min_attendees": int(text[:-1]), "max_attendees": None}
    lo, _, hi = text.partition("-")
    return {"label": text, "min_attendees": int(lo), "max_attendees": int(hi or lo)}
