"""Business-day and business-hour arithmetic.

Elapsed time is walked one calendar day at a time. Each segment is measured
in absolute time and only counts when its calendar day is a business day
(not Saturday, Sunday or a holiday). Days default to UTC days; passing a
time zone moves the day boundaries to local midnights without changing how
segment lengths are measured, so DST transitions never add or drop hours.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .config import HOURS_PER_DAY
from .holidays import EMPTY_HOLIDAY_SET, format_date_key
from .types import IssueAttentionError

logger = logging.getLogger(__name__)

DateInput = Union[datetime, date, str, None]

SATURDAY = 5
SUNDAY = 6
SECONDS_PER_HOUR = 3600


class InvalidTimestampError(IssueAttentionError, ValueError):
    pass


class InvalidTimeZoneError(IssueAttentionError, ValueError):
    pass


def parse_timestamp(value: DateInput) -> datetime | None:
    """Return an aware UTC datetime, or None when the value is unusable.

    Naive datetimes and date-only values are taken as UTC.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time())
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text[-1:] in ("Z", "z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def resolve_time_zone(time_zone: str | tzinfo | None) -> tzinfo:
    if time_zone is None:
        return timezone.utc
    if isinstance(time_zone, tzinfo):
        return time_zone
    try:
        return ZoneInfo(time_zone)
    except (ZoneInfoNotFoundError, ValueError) as error:
        raise InvalidTimeZoneError(f"Unknown time zone: {time_zone}") from error


def _local_date(moment: datetime, zone: tzinfo) -> date:
    return moment.astimezone(zone).date()


def _is_business_date(day: date, holidays: frozenset[str] | set[str]) -> bool:
    if day.weekday() in (SATURDAY, SUNDAY):
        return False
    return format_date_key(day) not in holidays


def is_business_day(
    value: date | datetime,
    holidays: frozenset[str] | set[str] = EMPTY_HOLIDAY_SET,
    time_zone: str | tzinfo | None = None,
) -> bool:
    if isinstance(value, datetime):
        moment = parse_timestamp(value)
        value = _local_date(moment, resolve_time_zone(time_zone))
    return _is_business_date(value, holidays)


def _next_midnight(moment: datetime, zone: tzinfo) -> datetime:
    next_day = _local_date(moment, zone) + timedelta(days=1)
    return datetime.combine(next_day, time(), tzinfo=zone).astimezone(timezone.utc)


def _business_seconds(
    start: datetime,
    end: datetime,
    holidays: frozenset[str] | set[str],
    zone: tzinfo,
    limit: float | None = None,
) -> float:
    total = 0.0
    cursor = start
    while cursor < end:
        segment_end = min(_next_midnight(cursor, zone), end)
        if _is_business_date(_local_date(cursor, zone), holidays):
            # Both ends are UTC, so this is absolute elapsed time.
            total += (segment_end - cursor).total_seconds()
            if limit is not None and total >= limit:
                break
        cursor = segment_end
    return total


def calculate_business_hours_between(
    start_input: DateInput,
    end_input: DateInput,
    holidays: frozenset[str] | set[str] = EMPTY_HOLIDAY_SET,
    time_zone: str | tzinfo | None = None,
) -> int | None:
    """Whole business hours between two timestamps.

    None when either endpoint is missing or unparseable, 0 when
    ``end <= start``.
    """
    start = parse_timestamp(start_input)
    end = parse_timestamp(end_input)
    if start is None or end is None:
        return None
    if end <= start:
        return 0

    seconds = _business_seconds(start, end, holidays, resolve_time_zone(time_zone))
    return int(seconds // SECONDS_PER_HOUR)


def calculate_business_days_between(
    start_input: DateInput,
    end_input: DateInput,
    holidays: frozenset[str] | set[str] = EMPTY_HOLIDAY_SET,
    time_zone: str | tzinfo | None = None,
) -> int | None:
    hours = calculate_business_hours_between(start_input, end_input, holidays, time_zone)
    if hours is None:
        return None
    return hours // HOURS_PER_DAY


def difference_in_business_days(
    value: DateInput,
    now: DateInput,
    holidays: frozenset[str] | set[str] = EMPTY_HOLIDAY_SET,
    time_zone: str | tzinfo | None = None,
) -> int:
    """Business days from ``value`` until ``now``; raises on bad input."""
    days = calculate_business_days_between(value, now, holidays, time_zone)
    if days is None:
        raise InvalidTimestampError(f"Cannot compute business days from {value!r} to {now!r}")
    return days


def difference_in_business_days_or_none(
    value: DateInput,
    now: DateInput,
    holidays: frozenset[str] | set[str] = EMPTY_HOLIDAY_SET,
    time_zone: str | tzinfo | None = None,
) -> int | None:
    days = calculate_business_days_between(value, now, holidays, time_zone)
    if days is None and value is not None:
        logger.debug("Ignoring unparseable timestamp %r", value)
    return days


def has_business_days_elapsed(
    start_input: DateInput,
    now: DateInput,
    business_days: int,
    holidays: frozenset[str] | set[str] = EMPTY_HOLIDAY_SET,
    time_zone: str | tzinfo | None = None,
) -> bool:
    """True once at least ``business_days`` full business days have passed.

    Stops walking as soon as the threshold is reached.
    """
    if business_days <= 0:
        return True
    start = parse_timestamp(start_input)
    end = parse_timestamp(now)
    if start is None or end is None or end <= start:
        return False

    threshold = business_days * HOURS_PER_DAY * SECONDS_PER_HOUR
    seconds = _business_seconds(
        start, end, holidays, resolve_time_zone(time_zone), limit=threshold
    )
    return seconds >= threshold
