"""Pytest fixtures for campaign-attribution tests.

Shared scenario: three Webinar campaigns ($1,000 + $2,000 + $500) and one Event
campaign ($4,000). O1 is touched by two Webinars and the Event; O2 by two Webinars;
O3 (Closed Lost) and O5 (no snapshot) by the Event; O4 closed before its only touch.
"""

from datetime import date

import pytest

from campaign_attribution.history import History
from campaign_attribution.models.records import Campaign, Opportunity, Snapshot, Touch
from campaign_attribution.sources import InMemoryHistory


def _make_campaign(
    campaign_id: str,
    campaign_type: str = "Webinar",
    cost: float | None = 1000.0,
    start: date = date(2024, 1, 1),
) -> Campaign:
    return Campaign(id=campaign_id, name=campaign_id, type=campaign_type, cost=cost, start_date=start)


def _make_snapshot(opp_id: str, on: date, stage: str | None, value: float | None = None, **kwargs) -> Snapshot:
    return Snapshot(opportunity_id=opp_id, snapshot_date=on, stage=stage, year1_value=value, **kwargs)


@pytest.fixture
def scenario_campaigns() -> list[Campaign]:
    return [
        _make_campaign("W1", "Webinar", 1000.0, date(2024, 1, 10)),
        _make_campaign("W2", "Webinar", 2000.0, date(2024, 2, 1)),
        _make_campaign("W3", "Webinar", 500.0, date(2024, 3, 1)),
        _make_campaign("E1", "Event", 4000.0, date(2024, 1, 15)),
    ]


@pytest.fixture
def scenario_opportunities() -> list[Opportunity]:
    return [
        Opportunity(id="O1", external_id="006A", name="Acme renewal", client_name="Acme", target_account=True),
        Opportunity(id="O2", external_id="006B", name="Globex pilot", client_name="Globex", target_account=False),
        Opportunity(id="O3", external_id="006C", name="Initech", target_account=True),
        Opportunity(id="O4", external_id="006D", name="Umbrella"),
        Opportunity(id="O5", external_id="006E", name="Hooli"),
    ]


@pytest.fixture
def scenario_touches() -> list[Touch]:
    return [
        Touch(campaign_id="W1", opportunity_id="O1", attendees=2),
        Touch(campaign_id="W2", opportunity_id="O1", attendees=4),
        Touch(campaign_id="E1", opportunity_id="O1", attendees=12),
        Touch(campaign_id="W2", opportunity_id="O2", attendees=3),
        Touch(campaign_id="W3", opportunity_id="O2"),
        Touch(campaign_id="E1", opportunity_id="O3", attendees=1),
        Touch(campaign_id="W3", opportunity_id="O4", attendees=7),
        Touch(campaign_id="E1", opportunity_id="O5"),
    ]


@pytest.fixture
def scenario_snapshots() -> list[Snapshot]:
    return [
        _make_snapshot("O1", date(2023, 12, 1), "Validation", 10000.0),
        _make_snapshot("O1", date(2024, 1, 25), "Discovery", 10000.0, entered_pipeline=date(2024, 1, 20)),
        _make_snapshot("O2", date(2024, 1, 5), "Discovery", 5000.0),
        _make_snapshot("O2", date(2024, 2, 10), "Negotiation/Commit", 5000.0, entered_pipeline=date(2024, 2, 5)),
        _make_snapshot(
            "O2",
            date(2024, 3, 20),
            "Closed Won",
            5000.0,
            entered_pipeline=date(2024, 2, 5),
            close_date=date(2024, 3, 15),
        ),
        _make_snapshot("O3", date(2024, 1, 1), "Discovery", 7000.0, entered_pipeline=date(2024, 1, 1)),
        _make_snapshot(
            "O3",
            date(2024, 2, 12),
            "Closed Lost",
            7000.0,
            entered_pipeline=date(2024, 1, 1),
            close_date=date(2024, 2, 10),
        ),
        _make_snapshot(
            "O4",
            date(2024, 2, 20),
            "Closed Won",
            3000.0,
            entered_pipeline=date(2024, 1, 5),
            close_date=date(2024, 2, 20),
        ),
    ]


@pytest.fixture
def scenario_source(
    scenario_campaigns: list[Campaign],
    scenario_opportunities: list[Opportunity],
    scenario_touches: list[Touch],
    scenario_snapshots: list[Snapshot],
) -> InMemoryHistory:
    return InMemoryHistory(
        opportunities=scenario_opportunities,
        snapshots=scenario_snapshots,
        campaigns=scenario_campaigns,
        touches=scenario_touches,
    )


@pytest.fixture
def scenario_payload(
    scenario_campaigns: list[Campaign],
    scenario_opportunities: list[Opportunity],
    scenario_touches: list[Touch],
    scenario_snapshots: list[Snapshot],
) -> dict:
    """Scenario as the JSON-ready layout accepted by InMemoryHistory.from_dict."""
    return {
        "opportunities": [o.model_dump(mode="json") for o in scenario_opportunities],
        "snapshots": [s.model_dump(mode="json") for s in scenario_snapshots],
        "campaigns": [c.model_dump(mode="json") for c in scenario_campaigns],
        "touches": [t.model_dump(mode="json") for t in scenario_touches],
    }


@pytest.fixture
def history(scenario_source: InMemoryHistory) -> History:
    return History.load(scenario_source)
