#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""Steppers for recurrences whose interval varies from one occurrence to the next.

Each stepper returns a number of days and must be used with ``unit="day"``. Only the
calendar date of the current point is looked at, so the steppers work for dates,
naive and aware datetimes alike.

    >>> recurrence = Recurrence(start=datetime.date(2024, 1, 31), step=every_month(day_of_month=31))
    >>> take(recurrence, 3)
    [datetime.date(2024, 1, 31), datetime.date(2024, 2, 29), datetime.date(2024, 3, 31)]
"""

import datetime

from dateutil.relativedelta import relativedelta

from calendar_recurrence.aliases import Point, Stepper

FRIDAY = 4


def _calendar_date(point: Point) -> datetime.date:
    if isinstance(point, datetime.datetime):
        return point.date()
    return point


def _days_until(point: Point, delta: relativedelta) -> int:
    day = _calendar_date(point)
    return (day + delta - day).days


def every_month(months: int = 1, day_of_month: int | None = None) -> Stepper:
    """Advance by `months` calendar months.

    Parameters
    ----------
    day_of_month
        Pin occurrences to this day of the month, or to the last day of months that
        are shorter. If not set, the day of the current point is used, so a series
        starting on the 31st drifts to the 28th/29th after February.
    """
    if months < 1:
        raise ValueError(f"Expected a positive number of months, got {months}")

    def stepper(current: Point) -> int:
        return _days_until(current, relativedelta(months=months, day=day_of_month))

    return stepper


def every_year(years: int = 1) -> Stepper:
    """Advance by `years` years. February 29th moves to the 28th in common years."""
    if years < 1:
        raise ValueError(f"Expected a positive number of years, got {years}")

    def stepper(current: Point) -> int:
        return _days_until(current, relativedelta(years=years))

    return stepper


def weekdays_only() -> Stepper:
    """Advance to the next day from Monday to Friday."""

    def stepper(current: Point) -> int:
        weekday = _calendar_date(current).weekday()
        if weekday >= FRIDAY:
            return 7 - weekday
        return 1

    return stepper
