"""Main CLI entry point."""

import argparse
import json
import logging
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Optional

SECTIONS = {
    "campaign-types": "campaign_types",
    "influence": "campaign_influence",
    "movement": "movement",
    "journey": "customer_journey",
    "attendees": "attendee_effectiveness",
    "target-accounts": "target_accounts",
    "matrix": "strategic_matrix",
    "reallocation": "reallocation",
    "summary": "executive_summary",
}


def main() -> None:
    """Parse args and dispatch to subcommands."""
    parser = argparse.ArgumentParser(
        prog="campaign-attribution",
        description="Campaign attribution and pipeline analytics over opportunity snapshots",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log skipped records and counts")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # report
    report_parser = subparsers.add_parser("report", help="Compute campaign attribution report")
    report_parser.add_argument(
        "--data",
        type=Path,
        required=True,
        help="History JSON with opportunities, snapshots, campaigns and touches",
    )
    report_parser.add_argument(
        "--settings",
        type=Path,
        default=None,
        help="Path to settings YAML (default: built-in settings)",
    )
    report_parser.add_argument(
        "--section",
        choices=["all", *SECTIONS],
        default="all",
        help="Only output one section of the report",
    )
    report_parser.add_argument("--type", dest="campaign_type", default=None, help="Only campaigns of this type")
    report_parser.add_argument(
        "--since",
        type=str,
        default=None,
        help="Only campaigns starting on/after this date (YYYY-MM-DD)",
    )
    report_parser.add_argument(
        "--until",
        type=str,
        default=None,
        help="Only campaigns starting on/before this date (YYYY-MM-DD)",
    )
    report_parser.add_argument(
        "--window",
        type=int,
        default=None,
        help="Movement window in days (overrides settings)",
    )
    report_parser.add_argument("--output", type=Path, default=None, help="Write JSON to file (default: stdout)")

    # qualify
    qualify_parser = subparsers.add_parser("qualify", help="Explain qualification for a campaign group")
    qualify_parser.add_argument("--data", type=Path, required=True, help="History JSON")
    qualify_parser.add_argument(
        "--campaign",
        action="append",
        required=True,
        help="Campaign id in the group (repeatable)",
    )
    qualify_parser.add_argument(
        "--passed-only",
        action="store_true",
        help="Only list qualifying opportunities",
    )
    qualify_parser.add_argument("--output", type=Path, default=None, help="Write JSON to file")

    # transitions
    transitions_parser = subparsers.add_parser("transitions", help="Stage changes after one campaign")
    transitions_parser.add_argument("--data", type=Path, required=True, help="History JSON")
    transitions_parser.add_argument("--campaign", required=True, help="Campaign id")
    transitions_parser.add_argument("--window", type=int, default=None, help="Days after campaign start")

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "report":
        _run_report(args)
    elif args.command == "qualify":
        _run_qualify(args)
    elif args.command == "transitions":
        _run_transitions(args)
    else:
        parser.print_help()


def _parse_day(value: Optional[str], flag: str) -> Optional[date]:
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise SystemExit(f"Invalid {flag} format. Use YYYY-MM-DD.")


def _write(output: str, path: Optional[Path], summary: str) -> None:
    if path:
        path.write_text(output, encoding="utf-8")
        print(f"{summary} (wrote to {path})")
    else:
        print(output)


def _run_report(args: argparse.Namespace) -> None:
    """Run report command."""
    from campaign_attribution.errors import DataUnavailable
    from campaign_attribution.models.settings import AnalysisSettings
    from campaign_attribution.pipeline import run_report
    from campaign_attribution.sources import InMemoryHistory

    settings = AnalysisSettings.from_yaml(args.settings) if args.settings else AnalysisSettings()
    if args.window is not None:
        settings = settings.model_copy(update={"movement_window_days": args.window})
    since = _parse_day(args.since, "--since")
    until = _parse_day(args.until, "--until")

    source = InMemoryHistory.from_json(args.data)
    campaigns = [
        c
        for c in source.get_campaigns(args.campaign_type)
        if (since is None or c.start_date >= since) and (until is None or c.start_date <= until)
    ]
    if not campaigns:
        print("No campaigns match the selected type/period.", file=sys.stderr)
        raise SystemExit(1)

    try:
        report = run_report(source, settings=settings, campaigns=campaigns)
    except DataUnavailable as e:
        print(f"Data unavailable: {e}", file=sys.stderr)
        raise SystemExit(1)

    data = report.model_dump(mode="json")
    if args.section != "all":
        data = data[SECTIONS[args.section]]
    output = json.dumps(data, indent=2, default=str)
    _write(output, args.output, f"Report over {len(campaigns)} campaigns")


def _run_qualify(args: argparse.Namespace) -> None:
    """Run qualify command."""
    from campaign_attribution.errors import DataUnavailable, UnknownCampaignError
    from campaign_attribution.pipeline import run_qualification
    from campaign_attribution.sources import InMemoryHistory

    source = InMemoryHistory.from_json(args.data)
    try:
        results = run_qualification(source, args.campaign)
    except DataUnavailable as e:
        print(f"Data unavailable: {e}", file=sys.stderr)
        raise SystemExit(1)
    except UnknownCampaignError as e:
        raise SystemExit(str(e))

    passed = [r for r in results if r.passed]
    shown = passed if args.passed_only else results
    output = json.dumps([r.model_dump(mode="json") for r in shown], indent=2, default=str)
    _write(output, args.output, f"Qualified: {len(passed)} of {len(results)} touched opportunities")


def _run_transitions(args: argparse.Namespace) -> None:
    """Run transitions command."""
    from campaign_attribution.errors import DataUnavailable, UnknownCampaignError
    from campaign_attribution.history import History
    from campaign_attribution.movement import MovementDetector
    from campaign_attribution.sources import InMemoryHistory

    try:
        history = History.load(InMemoryHistory.from_json(args.data))
        transitions = MovementDetector(history).stage_transitions(args.campaign, window_days=args.window)
    except DataUnavailable as e:
        print(f"Data unavailable: {e}", file=sys.stderr)
        raise SystemExit(1)
    except UnknownCampaignError as e:
        raise SystemExit(str(e))
    for t in transitions:
        print(f"  {t.from_stage} -> {t.to_stage}: {t.count}")
    if not transitions:
        print("No stage changes observed.")


if __name__ == "__main__":
    main()
