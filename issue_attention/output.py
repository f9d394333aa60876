from __future__ import annotations

import csv
import json
from pathlib import Path

from .attention import FLAG_KINDS, AttentionReport

CSV_FIELDS = (
    "id", "kind", "number", "title", "url", "state", "display_status",
    "age_days", "inactivity_days", "in_progress_days", "review_wait_days",
    "mention_wait_days", "attention",
)


def write_json(path: str | Path, reports: list[AttentionReport]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps([r.to_dict() for r in reports], indent=2, sort_keys=True) + "\n", encoding="utf-8")


def _csv_row(report: AttentionReport) -> dict:
    row = report.to_dict()
    ages = row.pop("ages")
    status = row.pop("status")
    row.pop("flags")
    row.update(ages)
    row["display_status"] = status["displayStatus"] if status else ""
    row["attention"] = " | ".join(row["attention"])
    return row


def write_csv(path: str | Path, reports: list[AttentionReport]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    fieldnames = list(CSV_FIELDS) + list(FLAG_KINDS)
    with p.open("w", encoding="utf-8", newline="") as f:
        w = csv.DictWriter(f, fieldnames=fieldnames, extrasaction="ignore")
        w.writeheader()
        for report in reports:
            row = _csv_row(report)
            for name in FLAG_KINDS:
                row[name] = getattr(report.flags, name)
            w.writerow(row)
