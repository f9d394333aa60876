"""Persistent activity status history: append-only transitions per issue."""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path

from .business_days import parse_timestamp
from .config import MANUAL_STATUSES
from .types import ActivityStatusEvent, IssueAttentionError

logger = logging.getLogger(__name__)

DEFAULT_PATH = os.path.expanduser("~/.issue_attention/status_history.json")


class StatusStoreError(IssueAttentionError):
    pass


class ActivityStatusStore:
    """Load / append / clear a JSON file of status transitions keyed by issue id."""

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path or DEFAULT_PATH)
        self.rows: dict[str, list[dict[str, str]]] = {}
        self._load()

    # ── Persistence ─────────────────────────────────────────────

    def _load(self):
        if not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as error:
            raise StatusStoreError(f"Corrupt status history file {self.path}: {error}") from error
        if not isinstance(data, dict):
            raise StatusStoreError(f"Status history file {self.path} must hold a JSON object")
        for issue_id, rows in data.items():
            if isinstance(rows, list):
                self.rows[issue_id] = [r for r in rows if isinstance(r, dict)]

    def save(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self.rows, indent=2), encoding="utf-8")

    # ── Write operations ────────────────────────────────────────

    def record(
        self,
        issue_id: str,
        status: str,
        occurred_at: datetime | None = None,
    ) -> ActivityStatusEvent:
        """Append one transition; ``occurred_at`` defaults to now."""
        if status not in MANUAL_STATUSES:
            raise StatusStoreError(f"Cannot record status {status!r}")
        moment = parse_timestamp(occurred_at) if occurred_at is not None else datetime.now(timezone.utc)
        if moment is None:
            raise StatusStoreError(f"Invalid occurred_at: {occurred_at!r}")

        event = ActivityStatusEvent(status=status, occurred_at=moment)
        self.rows.setdefault(issue_id, []).append(event.to_dict())
        self.save()
        return event

    def clear(self, issue_id: str) -> int:
        """Delete every transition for the issue; returns the number removed."""
        removed = len(self.rows.pop(issue_id, []))
        if removed:
            self.save()
        return removed

    # ── Query operations ────────────────────────────────────────

    def history(self, issue_id: str) -> tuple[ActivityStatusEvent, ...]:
        """Transitions for one issue, oldest first."""
        events = []
        for row in self.rows.get(issue_id, []):
            status = row.get("status")
            occurred_at = parse_timestamp(row.get("occurredAt"))
            if status not in MANUAL_STATUSES or occurred_at is None:
                logger.debug("Skipping unreadable status row for %s: %r", issue_id, row)
                continue
            events.append(ActivityStatusEvent(status=status, occurred_at=occurred_at))
        return tuple(sorted(events, key=lambda e: e.occurred_at))

    def latest(self, issue_id: str) -> ActivityStatusEvent | None:
        events = self.history(issue_id)
        return events[-1] if events else None

    def histories(self, issue_ids: list[str]) -> dict[str, tuple[ActivityStatusEvent, ...]]:
        return {issue_id: self.history(issue_id) for issue_id in issue_ids if issue_id in self.rows}

    def issue_ids(self) -> list[str]:
        return sorted(self.rows)
