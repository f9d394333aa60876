"""Attention flags from business-day ages and configured thresholds."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime
from typing import Any, Iterable, Mapping

from .business_days import DateInput, difference_in_business_days_or_none, parse_timestamp
from .config import (
    DEFAULT_BACKLOG_ISSUE_DAYS,
    DEFAULT_IDLE_PR_DAYS,
    DEFAULT_REVIEW_REQUEST_DAYS,
    DEFAULT_STALE_PR_DAYS,
    DEFAULT_STALLED_ISSUE_DAYS,
    DEFAULT_UNANSWERED_MENTION_DAYS,
    UNANSWERED_MENTION_MIN_DAYS,
)
from .holidays import EMPTY_HOLIDAY_SET
from .status import resolve_issue_status_info
from .types import IssueAttentionError, IssueStatusInfo, ItemKind

logger = logging.getLogger(__name__)

ITEM_KINDS = ("issue", "pull_request", "discussion")

THRESHOLD_ALIASES = {
    "unansweredMentionDays": "unanswered_mention_days",
    "reviewRequestDays": "review_request_days",
    "stalePrDays": "stale_pr_days",
    "idlePrDays": "idle_pr_days",
    "backlogIssueDays": "backlog_issue_days",
    "stalledIssueDays": "stalled_issue_days",
}

# Flag attribute -> attention filter value
FLAG_KINDS = {
    "backlog_issue": "issue_backlog",
    "stalled_issue": "issue_stalled",
    "stale_pr": "pr_stale",
    "idle_pr": "pr_inactive",
    "review_request": "review_requests_pending",
    "unanswered_mention": "unanswered_mentions",
}


class ThresholdError(IssueAttentionError, ValueError):
    pass


def to_positive_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ThresholdError(f"{name} must be a positive integer, got {value!r}")
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or value <= 0:
        raise ThresholdError(f"{name} must be a positive integer, got {value!r}")
    return value


@dataclass(frozen=True)
class Thresholds:
    """Business-day thresholds, one per attention kind."""

    unanswered_mention_days: int = DEFAULT_UNANSWERED_MENTION_DAYS
    review_request_days: int = DEFAULT_REVIEW_REQUEST_DAYS
    stale_pr_days: int = DEFAULT_STALE_PR_DAYS
    idle_pr_days: int = DEFAULT_IDLE_PR_DAYS
    backlog_issue_days: int = DEFAULT_BACKLOG_ISSUE_DAYS
    stalled_issue_days: int = DEFAULT_STALLED_ISSUE_DAYS

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ThresholdError(f"{f.name} must be a positive integer, got {value!r}")

    @property
    def effective_unanswered_mention_days(self) -> int:
        return max(self.unanswered_mention_days, UNANSWERED_MENTION_MIN_DAYS)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "Thresholds":
        """Build from snake_case or camelCase keys; absent keys keep defaults."""
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        values: dict[str, int] = {}
        for key, value in data.items():
            name = THRESHOLD_ALIASES.get(key, key)
            if name not in known:
                raise ThresholdError(f"Unknown threshold: {key}")
            values[name] = to_positive_int(name, value)
        return cls(**values)

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def _timestamps(values: Iterable[Any] | None, key: str) -> tuple[datetime, ...]:
    result = []
    for value in values or ():
        if isinstance(value, Mapping):
            value = value.get(key)
        parsed = parse_timestamp(value)
        if parsed is not None:
            result.append(parsed)
    return tuple(sorted(result))


@dataclass(frozen=True)
class WorkItem:
    """Read-side view of a mirrored issue, pull request or discussion."""

    id: str
    kind: ItemKind
    state: str = "open"
    created_at: datetime | None = None
    updated_at: datetime | None = None
    closed_at: datetime | None = None
    number: int | None = None
    title: str = ""
    url: str = ""
    raw: Mapping[str, Any] = field(default_factory=dict)
    activity_events: tuple[Any, ...] = ()
    review_requested_at: tuple[datetime, ...] = ()
    mentioned_at: tuple[datetime, ...] = ()

    @property
    def is_open(self) -> bool:
        return self.state.lower() == "open" or self.closed_at is None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "WorkItem":
        kind = data.get("kind") or data.get("type") or "issue"
        if kind not in ITEM_KINDS:
            raise ValueError(f"Unknown item kind: {kind!r}")
        item_id = data.get("id")
        if not item_id:
            raise ValueError("Work item requires an id")
        return cls(
            id=str(item_id),
            kind=kind,
            state=str(data.get("state") or "open"),
            created_at=parse_timestamp(data.get("createdAt")),
            updated_at=parse_timestamp(data.get("updatedAt")),
            closed_at=parse_timestamp(data.get("closedAt")),
            number=data.get("number"),
            title=str(data.get("title") or ""),
            url=str(data.get("url") or ""),
            raw=data.get("raw") or {},
            activity_events=tuple(data.get("activityEvents") or ()),
            review_requested_at=_timestamps(data.get("reviewRequests"), "requestedAt"),
            mentioned_at=_timestamps(data.get("unansweredMentions"), "mentionedAt"),
        )


@dataclass(frozen=True)
class AttentionAges:
    """Business-day ages; None when the source timestamp is missing."""

    age_days: int | None = None
    inactivity_days: int | None = None
    in_progress_days: int | None = None
    review_wait_days: int | None = None
    mention_wait_days: int | None = None


@dataclass(frozen=True)
class AttentionFlags:
    backlog_issue: bool = False
    stalled_issue: bool = False
    stale_pr: bool = False
    idle_pr: bool = False
    review_request: bool = False
    unanswered_mention: bool = False

    def kinds(self) -> list[str]:
        return [kind for name, kind in FLAG_KINDS.items() if getattr(self, name)]

    @property
    def requires_attention(self) -> bool:
        return bool(self.kinds())


@dataclass(frozen=True)
class AttentionReport:
    item: WorkItem
    ages: AttentionAges
    flags: AttentionFlags
    status: IssueStatusInfo | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.item.id,
            "kind": self.item.kind,
            "number": self.item.number,
            "title": self.item.title,
            "url": self.item.url,
            "state": self.item.state,
            "ages": asdict(self.ages),
            "flags": asdict(self.flags),
            "attention": self.flags.kinds(),
            "status": self.status.to_dict() if self.status else None,
        }


def _reached(age: int | None, threshold: int) -> bool:
    return age is not None and age >= threshold


def compute_attention_ages(
    item: WorkItem,
    now: DateInput,
    holidays: frozenset[str] | set[str] = EMPTY_HOLIDAY_SET,
    status_info: IssueStatusInfo | None = None,
) -> AttentionAges:
    def days_since(value):
        return difference_in_business_days_or_none(value, now, holidays)

    started_at = status_info.started_at if status_info else None
    # The oldest pending request or mention decides how long someone has waited.
    oldest_review = item.review_requested_at[0] if item.review_requested_at else None
    oldest_mention = item.mentioned_at[0] if item.mentioned_at else None

    return AttentionAges(
        age_days=days_since(item.created_at),
        inactivity_days=days_since(item.updated_at),
        in_progress_days=days_since(started_at),
        review_wait_days=days_since(oldest_review),
        mention_wait_days=days_since(oldest_mention),
    )


def classify_attention(
    item: WorkItem,
    ages: AttentionAges,
    thresholds: Thresholds,
    status_info: IssueStatusInfo | None = None,
) -> AttentionFlags:
    """Independent, inclusive threshold checks; flags may overlap."""
    is_open = item.is_open
    is_issue = item.kind == "issue"
    is_pr = item.kind == "pull_request"
    started = status_info is not None and status_info.started_at is not None

    return AttentionFlags(
        backlog_issue=(
            is_issue and is_open and not started
            and _reached(ages.age_days, thresholds.backlog_issue_days)
        ),
        stalled_issue=(
            is_issue and is_open and started
            and _reached(ages.in_progress_days, thresholds.stalled_issue_days)
        ),
        stale_pr=is_pr and is_open and _reached(ages.age_days, thresholds.stale_pr_days),
        idle_pr=is_pr and is_open and _reached(ages.inactivity_days, thresholds.idle_pr_days),
        review_request=(
            is_pr and is_open
            and _reached(ages.review_wait_days, thresholds.review_request_days)
        ),
        unanswered_mention=_reached(
            ages.mention_wait_days, thresholds.effective_unanswered_mention_days
        ),
    )


def evaluate_item(
    item: WorkItem,
    now: DateInput,
    holidays: frozenset[str] | set[str] = EMPTY_HOLIDAY_SET,
    thresholds: Thresholds | None = None,
    target_project: str | None = None,
) -> AttentionReport:
    thresholds = thresholds or Thresholds()
    status_info = None
    if item.kind == "issue":
        status_info = resolve_issue_status_info(item.raw, target_project, item.activity_events)

    ages = compute_attention_ages(item, now, holidays, status_info)
    flags = classify_attention(item, ages, thresholds, status_info)
    if flags.requires_attention:
        logger.debug("Item %s needs attention: %s", item.id, ", ".join(flags.kinds()))
    return AttentionReport(item=item, ages=ages, flags=flags, status=status_info)


def evaluate_items(
    items: Iterable[WorkItem],
    now: DateInput,
    holidays: frozenset[str] | set[str] = EMPTY_HOLIDAY_SET,
    thresholds: Thresholds | None = None,
    target_project: str | None = None,
) -> list[AttentionReport]:
    return [evaluate_item(item, now, holidays, thresholds, target_project) for item in items]
