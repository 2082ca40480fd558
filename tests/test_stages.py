"""Unit tests for StageLadder."""

import pytest

from campaign_attribution.stages import CLOSED_LOST, CLOSED_WON, DEFAULT_LADDER, StageLadder


class TestStageLadder:
    """Tests for canonical labels and ordinal ranks."""

    def test_rank_follows_ladder_order(self) -> None:
        assert DEFAULT_LADDER.rank("Validation/Introduction") == 0
        assert DEFAULT_LADDER.rank("Discovery") == 1
        assert DEFAULT_LADDER.rank(CLOSED_WON) == 5

    @pytest.mark.parametrize(
        "label,expected",
        [
            ("validation", "Validation/Introduction"),
            ("  DISCOVER ", "Discovery"),
            ("ROI  Analysis", "ROI Analysis/Pricing"),
            ("Negotiation/Review", "Negotiation/Commit"),
            ("closed won", CLOSED_WON),
        ],
    )
    def test_aliases_map_to_canonical(self, label: str, expected: str) -> None:
        assert DEFAULT_LADDER.canonical(label) == expected

    def test_closed_lost_and_unknown_have_no_rank(self) -> None:
        assert DEFAULT_LADDER.rank(CLOSED_LOST) is None
        assert DEFAULT_LADDER.rank("Parked") is None
        assert DEFAULT_LADDER.canonical("Parked") == "Parked"
        assert DEFAULT_LADDER.canonical("  ") is None

    def test_is_advance(self) -> None:
        assert DEFAULT_LADDER.is_advance("Discovery", "Negotiation/Commit")
        assert DEFAULT_LADDER.is_advance("Negotiation/Commit", "Closed Won")
        assert not DEFAULT_LADDER.is_advance("Negotiation/Commit", "Discovery")
        assert not DEFAULT_LADDER.is_advance("Discovery", "discover")

    def test_closed_lost_never_advances(self) -> None:
        """Closed Lost is terminal in both directions."""
        assert not DEFAULT_LADDER.is_advance("Discovery", CLOSED_LOST)
        assert not DEFAULT_LADDER.is_advance(CLOSED_LOST, "Closed Won")

    def test_open_and_closed(self) -> None:
        assert DEFAULT_LADDER.is_open("Discovery")
        assert not DEFAULT_LADDER.is_open("Closed Won")
        assert DEFAULT_LADDER.is_closed_lost("closed lost")

    def test_custom_order(self) -> None:
        ladder = StageLadder(["Lead", "Deal", CLOSED_WON], {"prospect": "Lead"})
        assert ladder.rank("prospect") == 0
        assert ladder.is_advance("Lead", "Deal")
        assert ladder.order == ["Lead", "Deal", CLOSED_WON]

    @pytest.mark.parametrize(
        "label,expected",
        [
            ("Closed Won - Renewal", CLOSED_WON),
            ("Closed Won (Expansion)", CLOSED_WON),
            ("Closed Lost - No Decision", CLOSED_LOST),
        ],
    )
    def test_terminal_variants_match_by_contains(self, label: str, expected: str) -> None:
        """CRM suffixes on the terminal stages still close the deal."""
        assert DEFAULT_LADDER.canonical(label) == expected
        assert not DEFAULT_LADDER.is_open(label)

    def test_terminal_variant_ranks_as_closed_won(self) -> None:
        assert DEFAULT_LADDER.rank("Closed Won - Renewal") == 5
        assert DEFAULT_LADDER.is_advance("Negotiation/Commit", "Closed Won - Renewal")
