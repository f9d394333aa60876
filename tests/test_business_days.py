from __future__ import annotations

import unittest
from datetime import date, datetime, timedelta, timezone

from issue_attention.business_days import (
    InvalidTimeZoneError,
    InvalidTimestampError,
    calculate_business_days_between,
    calculate_business_hours_between,
    difference_in_business_days,
    difference_in_business_days_or_none,
    has_business_days_elapsed,
    is_business_day,
    parse_timestamp,
)
from issue_attention.holidays import build_holiday_set


class ParseTimestampTest(unittest.TestCase):
    def test_zulu_suffix(self) -> None:
        self.assertEqual(
            parse_timestamp("2024-05-01T12:00:00Z"),
            datetime(2024, 5, 1, 12, tzinfo=timezone.utc),
        )

    def test_offset_converted_to_utc(self) -> None:
        self.assertEqual(
            parse_timestamp("2024-05-01T08:00:00-04:00"),
            datetime(2024, 5, 1, 12, tzinfo=timezone.utc),
        )

    def test_naive_and_date_values_are_utc(self) -> None:
        self.assertEqual(parse_timestamp(datetime(2024, 5, 1)).tzinfo, timezone.utc)
        self.assertEqual(parse_timestamp(date(2024, 5, 1)), datetime(2024, 5, 1, tzinfo=timezone.utc))

    def test_unusable_values(self) -> None:
        for value in (None, "", "  ", "yesterday", 12345):
            self.assertIsNone(parse_timestamp(value))


class BusinessDayTest(unittest.TestCase):
    def test_weekends_and_holidays(self) -> None:
        holidays = build_holiday_set(["2024-05-01"])
        self.assertTrue(is_business_day(date(2024, 4, 30), holidays))
        self.assertFalse(is_business_day(date(2024, 5, 1), holidays))
        self.assertFalse(is_business_day(date(2024, 5, 4), holidays))
        self.assertFalse(is_business_day(date(2024, 5, 5), holidays))

    def test_datetime_uses_time_zone_date(self) -> None:
        # Saturday 02:00 UTC is still Friday evening in New York.
        moment = datetime(2024, 5, 4, 2, tzinfo=timezone.utc)
        self.assertFalse(is_business_day(moment))
        self.assertTrue(is_business_day(moment, time_zone="America/New_York"))


class BusinessHoursTest(unittest.TestCase):
    def test_skips_weekends_and_holidays(self) -> None:
        holidays = build_holiday_set(["2024-05-01"])
        start = "2024-04-29T00:00:00.000Z"  # Monday
        end = "2024-05-03T00:00:00.000Z"  # Friday
        # Monday, Tuesday and Thursday count; Wednesday is a holiday.
        self.assertEqual(calculate_business_hours_between(start, end, holidays), 72)

        weekend_only = calculate_business_hours_between(
            "2024-05-04T00:00:00.000Z", "2024-05-06T12:00:00.000Z", holidays
        )
        self.assertEqual(weekend_only, 12)

    def test_null_and_reversed_inputs(self) -> None:
        start = "2024-04-29T00:00:00Z"
        end = "2024-05-03T00:00:00Z"
        self.assertIsNone(calculate_business_hours_between(None, end))
        self.assertIsNone(calculate_business_hours_between(start, None))
        self.assertIsNone(calculate_business_hours_between("garbage", end))
        self.assertEqual(calculate_business_hours_between(end, start), 0)
        self.assertEqual(calculate_business_hours_between(start, start), 0)

    def test_partial_hours_are_floored(self) -> None:
        self.assertEqual(
            calculate_business_hours_between("2024-05-06T09:00:00Z", "2024-05-06T11:59:00Z"), 2
        )

    def test_spring_forward_week(self) -> None:
        self.assertEqual(
            calculate_business_hours_between("2024-03-08T15:00:00Z", "2024-03-11T18:00:00Z"), 27
        )

    def test_fall_back_week(self) -> None:
        self.assertEqual(
            calculate_business_hours_between("2024-11-01T15:00:00Z", "2024-11-04T18:00:00Z"), 27
        )

    def test_local_days_measure_absolute_time(self) -> None:
        # Fri 15:00 -> Mon 18:00 New York time across both DST changes.
        spring = calculate_business_hours_between(
            "2024-03-08T15:00:00-05:00", "2024-03-11T18:00:00-04:00", time_zone="America/New_York"
        )
        fall = calculate_business_hours_between(
            "2024-11-01T15:00:00-04:00", "2024-11-04T18:00:00-05:00", time_zone="America/New_York"
        )
        self.assertEqual(spring, 27)
        self.assertEqual(fall, 27)


class BusinessDaysTest(unittest.TestCase):
    def test_days_follow_hours(self) -> None:
        now = datetime(2024, 5, 6, tzinfo=timezone.utc)  # Monday
        self.assertEqual(calculate_business_days_between("2024-04-30T00:00:00Z", now), 4)
        self.assertEqual(difference_in_business_days("2024-04-30T00:00:00Z", now), 4)
        self.assertEqual(difference_in_business_days_or_none("2024-04-30T00:00:00Z", now), 4)

    def test_or_none_variant(self) -> None:
        now = datetime(2024, 5, 6, tzinfo=timezone.utc)
        self.assertIsNone(difference_in_business_days_or_none(None, now))
        self.assertIsNone(difference_in_business_days_or_none("nope", now))

    def test_strict_variant_raises(self) -> None:
        now = datetime(2024, 5, 6, tzinfo=timezone.utc)
        with self.assertRaises(InvalidTimestampError):
            difference_in_business_days(None, now)
        with self.assertRaises(ValueError):
            difference_in_business_days("nope", now)

    def test_monotonic_within_business_week(self) -> None:
        start = datetime(2024, 5, 6, 8, tzinfo=timezone.utc)  # Monday
        previous = 0
        for hours in range(0, 24 * 5, 5):
            days = calculate_business_days_between(start, start + timedelta(hours=hours))
            self.assertGreaterEqual(days, previous)
            previous = days

    def test_has_business_days_elapsed(self) -> None:
        start = "2024-04-29T00:00:00Z"
        self.assertTrue(has_business_days_elapsed(start, "2024-05-06T00:00:00Z", 5))
        self.assertFalse(has_business_days_elapsed(start, "2024-05-03T00:00:00Z", 5))
        self.assertTrue(has_business_days_elapsed(start, "2024-05-03T00:00:00Z", 0))
        self.assertFalse(has_business_days_elapsed(None, "2024-05-03T00:00:00Z", 1))

    def test_unknown_time_zone_raises(self) -> None:
        with self.assertRaises(InvalidTimeZoneError):
            calculate_business_hours_between("2024-05-06T00:00:00Z", "2024-05-07T00:00:00Z", time_zone="Mars/Base")
        with self.assertRaises(ValueError):
            is_business_day(datetime(2024, 5, 6, tzinfo=timezone.utc), frozenset(), "Mars/Base")


if __name__ == "__main__":
    unittest.main()
