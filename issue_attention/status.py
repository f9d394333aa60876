"""Issue status reconciliation between the project board and the activity log.

Two timelines describe an issue's status:
- the project board history mirrored into the raw payload (``todo_project``)
- the activity history recorded through explicit status changes (``activity``)

The board wins outright while it shows substantive progress; otherwise the
more recent timeline wins.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from datetime import datetime
from functools import reduce
from typing import Any, Callable, Iterable, Mapping, Protocol

from .business_days import parse_timestamp
from .config import (
    ISSUE_PROJECT_STATUSES,
    LOCKED_PROJECT_STATUSES,
    MANUAL_STATUSES,
    PROJECT_STATUS_HISTORY_KEY,
)
from .types import (
    ActivityStatusEvent,
    IssueAttentionError,
    IssueProjectStatus,
    IssueStatusInfo,
    ProjectStatusEntry,
    StatusSource,
    WorkTimestamps,
)

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_NAME_SEPARATORS = re.compile(r"[\s_\-]+")

DONE_WORDS = frozenset({"done", "completed", "complete", "finished", "closed"})

# First matching predicate wins.
STATUS_RULES: tuple[tuple[Callable[[str], bool], IssueProjectStatus], ...] = (
    (lambda s: s in ("", "no", "no_status"), "no_status"),
    (lambda s: s in ("todo", "to_do"), "todo"),
    (lambda s: "progress" in s or s == "doing", "in_progress"),
    (lambda s: s in DONE_WORDS, "done"),
    (lambda s: s.startswith("pending") or s.startswith("waiting"), "pending"),
    (lambda s: s.startswith("cancel"), "canceled"),
)


class StatusChangeError(IssueAttentionError):
    pass


class StatusLockedError(StatusChangeError):
    """The project board owns the status; manual changes are a conflict."""

    def __init__(self, issue_id: str, todo_status: IssueProjectStatus | None):
        self.issue_id = issue_id
        self.todo_status = todo_status
        super().__init__(
            f"Status of {issue_id} is managed by the project board ({todo_status})."
        )


class InvalidStatusError(StatusChangeError, ValueError):
    pass


class StatusHistoryWriter(Protocol):
    def record(self, issue_id: str, status: str, occurred_at: datetime | None = None) -> ActivityStatusEvent: ...

    def clear(self, issue_id: str) -> int: ...


def normalize_project_status(value: str | None) -> str:
    if not value:
        return ""
    return _NON_ALNUM.sub("_", value.strip().lower()).strip("_")


def map_issue_project_status(value: str | None) -> IssueProjectStatus:
    """Map a free-text board status to a canonical status."""
    normalized = normalize_project_status(value)
    for predicate, status in STATUS_RULES:
        if predicate(normalized):
            return status
    return "no_status"


def normalize_project_name(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    collapsed = _NAME_SEPARATORS.sub(" ", value.strip().lower()).strip()
    return collapsed or None


def match_project(project_title: Any, target_project: str | None) -> bool:
    target = normalize_project_name(target_project)
    if target is None:
        return False
    return normalize_project_name(project_title) == target


def extract_project_status_entries(
    raw: Any,
    target_project: str | None,
) -> tuple[ProjectStatusEntry, ...]:
    """Board history entries for the target project, oldest first.

    Entries sharing a timestamp collapse to the last one seen.
    """
    if not isinstance(raw, Mapping):
        return ()
    history = raw.get(PROJECT_STATUS_HISTORY_KEY)
    if not isinstance(history, list):
        return ()

    by_time: dict[datetime, ProjectStatusEntry] = {}
    for record in history:
        if not isinstance(record, Mapping):
            continue
        title = record.get("projectTitle")
        if not match_project(title, target_project):
            continue

        status = record.get("status")
        status = status.strip() if isinstance(status, str) else ""
        occurred_at = parse_timestamp(record.get("occurredAt"))
        if not status or occurred_at is None:
            logger.debug("Skipping malformed project status entry: %r", record)
            continue

        by_time[occurred_at] = ProjectStatusEntry(
            project_title=title, status=status, occurred_at=occurred_at
        )

    return tuple(by_time[key] for key in sorted(by_time))


def _coerce_activity_event(event: Any) -> ActivityStatusEvent | None:
    if isinstance(event, ActivityStatusEvent):
        status, occurred_at = event.status, parse_timestamp(event.occurred_at)
    elif isinstance(event, Mapping):
        status = event.get("status")
        occurred_at = parse_timestamp(event.get("occurredAt", event.get("occurred_at")))
    else:
        return None
    if status not in ISSUE_PROJECT_STATUSES or occurred_at is None:
        return None
    return ActivityStatusEvent(status=status, occurred_at=occurred_at)


def normalize_activity_events(events: Iterable[Any] | None) -> tuple[ActivityStatusEvent, ...]:
    """Valid activity events, oldest first; malformed rows are dropped."""
    if not events:
        return ()
    valid = []
    for event in events:
        coerced = _coerce_activity_event(event)
        if coerced is None:
            logger.debug("Skipping malformed activity status event: %r", event)
            continue
        valid.append(coerced)
    return tuple(sorted(valid, key=lambda e: e.occurred_at))


def _pick_display(
    todo_status: IssueProjectStatus | None,
    todo_status_at: datetime | None,
    activity_status: IssueProjectStatus | None,
    activity_status_at: datetime | None,
    locked: bool,
) -> tuple[IssueProjectStatus, StatusSource]:
    if locked and todo_status is not None:
        return todo_status, "todo_project"
    if todo_status is not None and activity_status is not None:
        if activity_status_at >= todo_status_at:
            return activity_status, "activity"
        return todo_status, "todo_project"
    if activity_status is not None:
        return activity_status, "activity"
    if todo_status is not None:
        return todo_status, "todo_project"
    return "no_status", "none"


def _pick_timeline(
    source: StatusSource,
    project_entries: tuple[ProjectStatusEntry, ...],
    activity_events: tuple[ActivityStatusEvent, ...],
) -> StatusSource:
    if source == "activity" and activity_events:
        return "activity"
    if project_entries:
        return "todo_project"
    if activity_events:
        return "activity"
    return "none"


def resolve_issue_status_info(
    raw: Any,
    target_project: str | None,
    activity_events: Iterable[Any] | None,
) -> IssueStatusInfo:
    """Reconcile both timelines into the issue's current status."""
    project_entries = extract_project_status_entries(raw, target_project)
    events = normalize_activity_events(activity_events)

    todo_status = todo_status_at = None
    if project_entries:
        latest_entry = project_entries[-1]
        todo_status = map_issue_project_status(latest_entry.status)
        todo_status_at = latest_entry.occurred_at

    activity_status = activity_status_at = None
    if events:
        activity_status = events[-1].status
        activity_status_at = events[-1].occurred_at

    locked = todo_status in LOCKED_PROJECT_STATUSES
    display_status, source = _pick_display(
        todo_status, todo_status_at, activity_status, activity_status_at, locked
    )

    info = IssueStatusInfo(
        todo_status=todo_status,
        todo_status_at=todo_status_at,
        activity_status=activity_status,
        activity_status_at=activity_status_at,
        display_status=display_status,
        source=source,
        locked=locked,
        timeline_source=_pick_timeline(source, project_entries, events),
        project_entries=project_entries,
        activity_events=events,
    )
    work = resolve_work_timestamps(info)
    return replace(info, started_at=work.started_at, completed_at=work.completed_at)


def advance_work_timestamps(
    state: WorkTimestamps,
    step: tuple[IssueProjectStatus, datetime],
) -> WorkTimestamps:
    status, occurred_at = step
    if status == "in_progress":
        return WorkTimestamps(started_at=occurred_at, completed_at=None)
    if status in ("done", "canceled"):
        if state.started_at is not None and state.completed_at is None:
            return WorkTimestamps(started_at=state.started_at, completed_at=occurred_at)
        return state
    if status in ("todo", "no_status"):
        return WorkTimestamps()
    return state


def timeline_steps(info: IssueStatusInfo) -> list[tuple[IssueProjectStatus, datetime]]:
    if info.timeline_source == "activity":
        return [(event.status, event.occurred_at) for event in info.activity_events]
    if info.timeline_source == "todo_project":
        return [
            (map_issue_project_status(entry.status), entry.occurred_at)
            for entry in info.project_entries
        ]
    return []


def resolve_work_timestamps(info: IssueStatusInfo | None) -> WorkTimestamps:
    """Replay the chosen timeline to find when work started and completed."""
    if info is None:
        return WorkTimestamps()
    return reduce(advance_work_timestamps, timeline_steps(info), WorkTimestamps())


def change_issue_status(
    store: StatusHistoryWriter,
    issue_id: str,
    status: str,
    info: IssueStatusInfo,
    occurred_at: datetime | None = None,
) -> ActivityStatusEvent | None:
    """Record a manual status change for an issue.

    ``no_status`` removes the whole activity history. Returns the recorded
    event, or None when the history was cleared.
    """
    if status not in MANUAL_STATUSES:
        raise InvalidStatusError(f"Invalid status value: {status!r}")
    if info.locked:
        raise StatusLockedError(issue_id, info.todo_status)

    if status == "no_status":
        removed = store.clear(issue_id)
        logger.info("Cleared %d activity status rows for %s", removed, issue_id)
        return None

    event = store.record(issue_id, status, occurred_at)
    logger.info("Recorded status %s for %s", status, issue_id)
    return event
