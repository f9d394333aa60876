from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

IssueProjectStatus = Literal[
    "no_status", "todo", "in_progress", "done", "pending", "canceled",
]
StatusSource = Literal["todo_project", "activity", "none"]
ItemKind = Literal["issue", "pull_request", "discussion"]


class IssueAttentionError(Exception):
    pass


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class ProjectStatusEntry:
    project_title: str
    status: str
    occurred_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "projectTitle": self.project_title,
            "status": self.status,
            "occurredAt": _iso(self.occurred_at),
        }


@dataclass(frozen=True)
class ActivityStatusEvent:
    status: IssueProjectStatus
    occurred_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status, "occurredAt": _iso(self.occurred_at)}


@dataclass(frozen=True)
class WorkTimestamps:
    started_at: datetime | None = None
    completed_at: datetime | None = None


@dataclass(frozen=True)
class IssueStatusInfo:
    todo_status: IssueProjectStatus | None
    todo_status_at: datetime | None
    activity_status: IssueProjectStatus | None
    activity_status_at: datetime | None
    display_status: IssueProjectStatus
    source: StatusSource
    locked: bool
    timeline_source: StatusSource
    project_entries: tuple[ProjectStatusEntry, ...] = ()
    activity_events: tuple[ActivityStatusEvent, ...] = ()
    started_at: datetime | None = None
    completed_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "todoStatus": self.todo_status,
            "todoStatusAt": _iso(self.todo_status_at),
            "activityStatus": self.activity_status,
            "activityStatusAt": _iso(self.activity_status_at),
            "displayStatus": self.display_status,
            "source": self.source,
            "locked": self.locked,
            "timelineSource": self.timeline_source,
            "startedAt": _iso(self.started_at),
            "completedAt": _iso(self.completed_at),
        }
