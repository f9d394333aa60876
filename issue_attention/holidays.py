"""Holiday date normalization and holiday sets."""

from __future__ import annotations

import json
import logging
import re
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)

EMPTY_HOLIDAY_SET: frozenset[str] = frozenset()

_UTC_SUFFIX = r"(?:\s+UTC)?"

ISO_DATE_PATTERN = re.compile(rf"^(\d{{4}})-(\d{{1,2}})-(\d{{1,2}}){_UTC_SUFFIX}$", re.IGNORECASE)
ISO_DATETIME_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}", re.IGNORECASE)
MONTH_NAME_PATTERN = re.compile(
    rf"^([A-Za-z]+)\.?\s+(\d{{1,2}}),?\s+(\d{{4}}){_UTC_SUFFIX}$", re.IGNORECASE
)
SLASH_YMD_PATTERN = re.compile(rf"^(\d{{4}})/(\d{{1,2}})/(\d{{1,2}}){_UTC_SUFFIX}$", re.IGNORECASE)
SLASH_MDY_PATTERN = re.compile(rf"^(\d{{1,2}})/(\d{{1,2}})/(\d{{4}}){_UTC_SUFFIX}$", re.IGNORECASE)

MONTHS = {
    "january": 1, "february": 2, "march": 3, "april": 4,
    "may": 5, "june": 6, "july": 7, "august": 8,
    "september": 9, "october": 10, "november": 11, "december": 12,
}
MONTH_ALIASES = {name[:3]: number for name, number in MONTHS.items()}
MONTH_ALIASES["sept"] = 9


def format_date_key(value: date | datetime) -> str:
    """Canonical ``YYYY-MM-DD`` key; datetimes are taken in UTC."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        value = value.date()
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def _to_key(year: int, month: int, day: int) -> str | None:
    try:
        return format_date_key(date(year, month, day))
    except ValueError:
        return None


def _month_number(name: str) -> int | None:
    name = name.lower()
    return MONTHS.get(name) or MONTH_ALIASES.get(name)


def _iso_datetime_key(text: str) -> str | None:
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return format_date_key(parsed)


def normalize_holiday_date(raw) -> str | None:
    """Normalize a configured holiday string to ``YYYY-MM-DD``.

    Accepted forms:
    - ``2024-05-01`` (or an ISO datetime, reduced to its UTC date)
    - ``May 1, 2024 UTC`` / ``May 1, 2024``
    - ``2024/05/01 UTC``
    - ``05/01/2024 UTC``

    Returns None for blank, malformed or impossible dates.
    """
    if not isinstance(raw, str):
        return None
    text = raw.strip()
    if not text:
        return None

    match = ISO_DATE_PATTERN.match(text)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return _to_key(year, month, day)

    if ISO_DATETIME_PATTERN.match(text):
        return _iso_datetime_key(text)

    match = MONTH_NAME_PATTERN.match(text)
    if match:
        month = _month_number(match.group(1))
        if month is None:
            return None
        return _to_key(int(match.group(3)), month, int(match.group(2)))

    match = SLASH_YMD_PATTERN.match(text)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return _to_key(year, month, day)

    match = SLASH_MDY_PATTERN.match(text)
    if match:
        month, day, year = (int(part) for part in match.groups())
        return _to_key(year, month, day)

    return None


def build_holiday_set(raw_list: Iterable | None) -> frozenset[str]:
    """Normalize, drop unparseable entries and deduplicate."""
    if raw_list is None or isinstance(raw_list, (str, bytes)):
        return EMPTY_HOLIDAY_SET
    try:
        entries = list(raw_list)
    except TypeError:
        return EMPTY_HOLIDAY_SET

    keys = set()
    for entry in entries:
        key = normalize_holiday_date(entry)
        if key is None:
            logger.debug("Dropping unparseable holiday entry: %r", entry)
            continue
        keys.add(key)
    return frozenset(keys)


def load_holiday_file(path: str | Path) -> frozenset[str]:
    """Load holidays from a JSON list or a one-date-per-line text file."""
    p = Path(path)
    if not p.exists():
        logger.warning("Holiday file %s not found; using no holidays.", p)
        return EMPTY_HOLIDAY_SET

    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() == ".json":
        return build_holiday_set(json.loads(text))

    lines = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        lines.append(line)
    return build_holiday_set(lines)
