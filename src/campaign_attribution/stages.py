"""Stage ladder: canonical stage labels and their ordinal ranks."""

from typing import Optional

from campaign_attribution.models.settings import AnalysisSettings

CLOSED_WON = "Closed Won"
CLOSED_LOST = "Closed Lost"


def _normalize_for_match(stage: Optional[str]) -> str:
    """Lowercase, collapse whitespace; empty string if None."""
    return " ".join((stage or "").lower().split())


class StageLadder:
    """
    Maps free-form stage labels onto the ordinal sales ladder.
    Closed Lost is terminal and has no rank; unknown labels have no rank either.
    """

    def __init__(self, order: list[str], aliases: Optional[dict[str, str]] = None):
        self._order = list(order)
        self._canonical: dict[str, str] = {_normalize_for_match(s): s for s in self._order}
        self._canonical[_normalize_for_match(CLOSED_LOST)] = CLOSED_LOST
        for alias, target in (aliases or {}).items():
            self._canonical.setdefault(_normalize_for_match(alias), target)
        self._rank: dict[str, int] = {s: i for i, s in enumerate(self._order)}

    @classmethod
    def from_settings(cls, settings: AnalysisSettings) -> "StageLadder":
        return cls(settings.stage_order, settings.stage_aliases)

    @property
    def order(self) -> list[str]:
        return list(self._order)

    def canonical(self, stage: Optional[str]) -> Optional[str]:
        """Canonical label for a known stage, the stripped label otherwise, None for blank."""
        key = _normalize_for_match(stage)
        if not key:
            return None
        if key in self._canonical:
            return self._canonical[key]
        # CRM variants such as "Closed Won - Renewal" still close the deal
        if "closed won" in key:
            return CLOSED_WON
        if "closed lost" in key:
            return CLOSED_LOST
        return (stage or "").strip()

    def rank(self, stage: Optional[str]) -> Optional[int]:
        canonical = self.canonical(stage)
        if canonical is None:
            return None
        return self._rank.get(canonical)

    def is_closed_won(self, stage: Optional[str]) -> bool:
        return self.canonical(stage) == CLOSED_WON

    def is_closed_lost(self, stage: Optional[str]) -> bool:
        return self.canonical(stage) == CLOSED_LOST

    def is_open(self, stage: Optional[str]) -> bool:
        return not (self.is_closed_won(stage) or self.is_closed_lost(stage))

    def is_advance(self, before: Optional[str], after: Optional[str]) -> bool:
        """
        Positive movement: stages differ and after ranks strictly above before.
        Any stage without a rank (Closed Lost, unknown) never counts.
        """
        if self.canonical(before) == self.canonical(after):
            return False
        before_rank = self.rank(before)
        after_rank = self.rank(after)
        if before_rank is None or after_rank is None:
            return False
        return after_rank > before_rank


DEFAULT_LADDER = StageLadder.from_settings(AnalysisSettings())
