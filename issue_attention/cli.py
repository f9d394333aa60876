from __future__ import annotations

import argparse
import json
import logging
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

from .attention import WorkItem, evaluate_items
from .business_days import (
    calculate_business_days_between,
    calculate_business_hours_between,
    has_business_days_elapsed,
    parse_timestamp,
)
from .display import (
    console,
    display_attention_table,
    display_business_time,
    display_status_info,
    display_threshold_check,
)
from .holidays import load_holiday_file
from .output import write_csv, write_json
from .settings import AttentionSettings, list_settings, load_settings
from .status import StatusLockedError, change_issue_status, resolve_issue_status_info
from .status_store import ActivityStatusStore
from .types import IssueAttentionError

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_LOCKED = 2


def _read_json(path: str):
    return json.loads(Path(path).read_text(encoding="utf-8"))


def _target_project(args: argparse.Namespace, settings: AttentionSettings) -> str | None:
    return args.project or settings.target_project


def _holidays(args: argparse.Namespace, settings: AttentionSettings) -> frozenset[str]:
    if getattr(args, "holidays", None):
        return load_holiday_file(args.holidays)
    return settings.holiday_set


def _cmd_hours(args: argparse.Namespace, settings: AttentionSettings) -> int:
    holidays = _holidays(args, settings)
    time_zone = args.time_zone or settings.time_zone
    hours = calculate_business_hours_between(args.start, args.end, holidays, time_zone)
    days = calculate_business_days_between(args.start, args.end, holidays, time_zone)
    display_business_time(args.start, args.end, hours, days)
    if hours is None:
        return EXIT_ERROR
    if args.min_days is not None:
        elapsed = has_business_days_elapsed(args.start, args.end, args.min_days, holidays, time_zone)
        display_threshold_check(args.min_days, elapsed)
    return EXIT_OK


def _cmd_settings(args: argparse.Namespace, settings: AttentionSettings) -> int:
    names = list_settings()
    if not names:
        console.print("[dim]No saved settings.[/dim]")
    for name in names:
        marker = "*" if name == settings.name else " "
        console.print(f"{marker} {name}")
    return EXIT_OK


def _cmd_status(args: argparse.Namespace, settings: AttentionSettings) -> int:
    raw = _read_json(args.payload)
    if args.events:
        events = _read_json(args.events)
    else:
        events = ActivityStatusStore(args.store).history(args.issue_id)
    info = resolve_issue_status_info(raw, _target_project(args, settings), events)
    display_status_info(args.issue_id, info)
    return EXIT_OK


def _cmd_set_status(args: argparse.Namespace, settings: AttentionSettings) -> int:
    store = ActivityStatusStore(args.store)
    raw = _read_json(args.payload)
    target = _target_project(args, settings)
    info = resolve_issue_status_info(raw, target, store.history(args.issue_id))
    try:
        change_issue_status(store, args.issue_id, args.status, info)
    except StatusLockedError as error:
        console.print(f"[yellow]Locked:[/yellow] {error}")
        return EXIT_LOCKED

    updated = resolve_issue_status_info(raw, target, store.history(args.issue_id))
    display_status_info(args.issue_id, updated)
    return EXIT_OK


def _cmd_classify(args: argparse.Namespace, settings: AttentionSettings) -> int:
    records = _read_json(args.items)
    if not isinstance(records, list):
        raise ValueError("Items file must hold a JSON list")
    items = [WorkItem.from_dict(record) for record in records]

    if args.store:
        store = ActivityStatusStore(args.store)
        stored = store.histories([item.id for item in items])
        items = [
            item if item.activity_events or item.id not in stored
            else replace(item, activity_events=stored[item.id])
            for item in items
        ]

    now = parse_timestamp(args.now) if args.now else datetime.now(timezone.utc)
    if now is None:
        raise ValueError(f"Invalid --now value: {args.now}")

    reports = evaluate_items(
        items, now, _holidays(args, settings), settings.thresholds, _target_project(args, settings)
    )
    if args.only_flagged:
        reports = [r for r in reports if r.flags.requires_attention]

    display_attention_table(reports, title=f"Attention as of {now:%Y-%m-%d %H:%M} UTC")

    if args.json_out:
        write_json(args.json_out, reports)
        console.print(f"\nJSON report written to: [cyan]{args.json_out}[/cyan]")
    if args.csv_out:
        write_csv(args.csv_out, reports)
        console.print(f"\nCSV report written to: [cyan]{args.csv_out}[/cyan]")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Derive issue status and attention flags for mirrored GitHub issues,"
            " pull requests and discussions."
        )
    )
    parser.add_argument(
        "--settings",
        default=None,
        help="Settings name (from ~/.issue_attention/settings) or JSON file path.",
    )
    parser.add_argument("--project", default=None, help="Target project name; overrides settings.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    hours = sub.add_parser("hours", help="Business hours and days between two timestamps.")
    hours.add_argument("start")
    hours.add_argument("end")
    hours.add_argument("--holidays", default=None, help="Holiday file (JSON list or one date per line).")
    hours.add_argument("--time-zone", default=None, help="IANA zone whose midnights split days.")
    hours.add_argument(
        "--min-days", type=int, default=None, help="Also report whether this many business days elapsed."
    )
    hours.set_defaults(handler=_cmd_hours)

    saved = sub.add_parser("settings", help="List saved settings.")
    saved.set_defaults(handler=_cmd_settings)

    status = sub.add_parser("status", help="Show the reconciled status of an issue.")
    status.add_argument("payload", help="Raw mirrored issue payload (JSON).")
    status.add_argument("--issue-id", default="issue")
    status.add_argument("--events", default=None, help="Activity events JSON list; defaults to the store.")
    status.add_argument("--store", default=None, help="Status history file.")
    status.set_defaults(handler=_cmd_status)

    set_status = sub.add_parser("set-status", help="Record a manual status change.")
    set_status.add_argument("issue_id")
    set_status.add_argument("status")
    set_status.add_argument("--payload", required=True, help="Raw mirrored issue payload (JSON).")
    set_status.add_argument("--store", default=None, help="Status history file.")
    set_status.set_defaults(handler=_cmd_set_status)

    classify = sub.add_parser("classify", help="Classify attention for a list of work items.")
    classify.add_argument("items", help="JSON list of work items.")
    classify.add_argument("--now", default=None, help="Evaluation time (ISO-8601); defaults to now.")
    classify.add_argument("--holidays", default=None, help="Holiday file overriding settings.")
    classify.add_argument("--store", default=None, help="Status history file for items without events.")
    classify.add_argument("--only-flagged", action="store_true", help="Only show items needing attention.")
    classify.add_argument("--json-out", default=None, help="Write the full report as JSON.")
    classify.add_argument("--csv-out", default=None, help="Write the report as CSV.")
    classify.set_defaults(handler=_cmd_classify)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings(args.settings)
        return args.handler(args, settings)
    except (IssueAttentionError, ValueError, OSError) as error:
        console.print(f"[red]Error:[/red] {error}")
        return EXIT_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
