"""Configuration constants for issue attention."""

# Statuses an issue can carry, in display order
ISSUE_PROJECT_STATUSES = (
    "no_status", "todo", "in_progress", "done", "pending", "canceled",
)

# Statuses a person may set through the status-change action
MANUAL_STATUSES = ("no_status", "todo", "in_progress", "done", "pending")

# A project board showing any of these overrides the activity history
LOCKED_PROJECT_STATUSES = frozenset({"in_progress", "done", "pending"})

# Raw payload key holding the mirrored project board history
PROJECT_STATUS_HISTORY_KEY = "projectStatusHistory"

# ── Attention thresholds (business days) ─────────────────────
DEFAULT_UNANSWERED_MENTION_DAYS = 5
DEFAULT_REVIEW_REQUEST_DAYS = 5
DEFAULT_STALE_PR_DAYS = 20
DEFAULT_IDLE_PR_DAYS = 10
DEFAULT_BACKLOG_ISSUE_DAYS = 40
DEFAULT_STALLED_ISSUE_DAYS = 20

# Mentions younger than this never count as unanswered
UNANSWERED_MENTION_MIN_DAYS = 5

HOURS_PER_DAY = 24

# ── Local state ──────────────────────────────────────────────
ENV_TARGET_PROJECT = "ISSUE_ATTENTION_TARGET_PROJECT"
ENV_TIME_ZONE = "ISSUE_ATTENTION_TIME_ZONE"
