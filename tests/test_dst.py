#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""Recurrences in Europe/Berlin across the 2018 DST transitions.

Clocks went forward from 02:00 to 03:00 on 2018-03-25 and back from 03:00 to 02:00
on 2018-10-28.
"""
import datetime

import pytest
from dateutil import tz

from calendar_recurrence import points
from calendar_recurrence.config import RecurrenceSettings, set_settings
from calendar_recurrence.exceptions import GapResolutionError, ZoneResolutionError
from calendar_recurrence.points import TimeUnit
from calendar_recurrence.rule import Recurrence, Until, take
from tests.utils import utc, wall


class ExpiringZone(datetime.tzinfo):
    """Knows its offset up to the end of 2018 only."""

    def utcoffset(self, dt):
        if dt is not None and dt.year >= 2019:
            return None
        return datetime.timedelta(hours=1)

    def dst(self, dt):
        return datetime.timedelta(0)

    def tzname(self, dt):
        return "EXP"

    def __repr__(self):
        return "Expiring"


class BrokenZone(ExpiringZone):
    def utcoffset(self, dt):
        if dt is not None and dt.year >= 2019:
            raise ValueError("no data after 2018")
        return datetime.timedelta(hours=1)


@pytest.mark.parametrize(
    "start",
    [datetime.datetime(2018, 3, 22, 9), datetime.datetime(2018, 10, 26, 9)],
    ids=["spring-forward", "fall-back"],
)
def test_daily_wall_clock_is_stable(berlin, start: datetime.datetime):
    recurrence = Recurrence(start=start.replace(tzinfo=berlin))
    for point in take(recurrence, 6):
        assert (point.hour, point.minute, point.second) == (9, 0, 0)
        assert point.tzinfo is berlin


def test_day_lengths_across_transitions(berlin):
    spring = take(Recurrence(start=datetime.datetime(2018, 3, 24, 9, tzinfo=berlin)), 3)
    fall = take(Recurrence(start=datetime.datetime(2018, 10, 27, 9, tzinfo=berlin)), 3)
    assert utc(spring[1]) - utc(spring[0]) == datetime.timedelta(hours=23)
    assert utc(spring[2]) - utc(spring[1]) == datetime.timedelta(hours=24)
    assert utc(fall[1]) - utc(fall[0]) == datetime.timedelta(hours=25)


def test_daily_step_into_gap_skips_the_day(berlin):
    recurrence = Recurrence(start=datetime.datetime(2018, 3, 24, 2, 30, tzinfo=berlin))
    assert [wall(p) for p in take(recurrence, 3)] == [
        datetime.datetime(2018, 3, 24, 2, 30),
        datetime.datetime(2018, 3, 26, 2, 30),
        datetime.datetime(2018, 3, 27, 2, 30),
    ]


def test_hourly_step_into_gap(berlin):
    recurrence = Recurrence(
        start=datetime.datetime(2018, 3, 25, 1, 30, tzinfo=berlin), unit=TimeUnit.HOUR
    )
    result = take(recurrence, 3)
    assert [wall(p) for p in result] == [
        datetime.datetime(2018, 3, 25, 1, 30),
        datetime.datetime(2018, 3, 25, 3, 30),
        datetime.datetime(2018, 3, 25, 4, 30),
    ]
    assert [utc(p) for p in result] == [
        datetime.datetime(2018, 3, 25, 0, 30, tzinfo=datetime.timezone.utc),
        datetime.datetime(2018, 3, 25, 1, 30, tzinfo=datetime.timezone.utc),
        datetime.datetime(2018, 3, 25, 2, 30, tzinfo=datetime.timezone.utc),
    ]


@pytest.mark.parametrize(
    "unit, step, after_gap",
    [
        (TimeUnit.MINUTE, 1, datetime.datetime(2018, 3, 25, 3, 0)),
        (TimeUnit.MINUTE, 7, datetime.datetime(2018, 3, 25, 3, 3)),
        (TimeUnit.SECOND, 1, datetime.datetime(2018, 3, 25, 3, 0)),
        (TimeUnit.MILLISECOND, 250, datetime.datetime(2018, 3, 25, 3, 0)),
    ],
    ids=["1min", "7min", "1s", "250ms"],
)
def test_small_steps_leave_the_gap_on_the_step_grid(
    berlin, unit: TimeUnit, step: int, after_gap: datetime.datetime
):
    last_before_gap = datetime.datetime(2018, 3, 25, 2, 0) - unit.delta(step)
    start = last_before_gap.replace(tzinfo=berlin)
    result = take(Recurrence(start=start, unit=unit, step=step), 2)
    assert wall(result[1]) == after_gap
    assert tz.datetime_exists(result[1])


def test_never_yields_a_time_in_the_gap(berlin):
    recurrence = Recurrence(
        start=datetime.datetime(2018, 3, 25, 0, 0, tzinfo=berlin),
        unit=TimeUnit.MINUTE,
        step=13,
        stop=Until(datetime.datetime(2018, 3, 25, 6, 0, tzinfo=berlin)),
    )
    result = list(recurrence)
    assert all(tz.datetime_exists(p) for p in result)
    assert not any(2 <= p.hour < 3 for p in result)
    assert all(utc(a) < utc(b) for a, b in zip(result, result[1:]))


def test_daily_step_into_ambiguous_time_uses_first_occurrence(berlin):
    recurrence = Recurrence(start=datetime.datetime(2018, 10, 27, 2, 30, tzinfo=berlin))
    for _ in range(2):
        result = take(recurrence, 3)
        assert [wall(p) for p in result] == [
            datetime.datetime(2018, 10, 27, 2, 30),
            datetime.datetime(2018, 10, 28, 2, 30),
            datetime.datetime(2018, 10, 29, 2, 30),
        ]
        assert result[1].fold == 0
        assert result[1].utcoffset() == datetime.timedelta(hours=2)
        assert result[2].utcoffset() == datetime.timedelta(hours=1)


def test_hourly_step_into_ambiguous_time(berlin):
    recurrence = Recurrence(
        start=datetime.datetime(2018, 10, 28, 1, 30, tzinfo=berlin), unit="hour"
    )
    assert [utc(p) for p in take(recurrence, 3)] == [
        datetime.datetime(2018, 10, 27, 23, 30, tzinfo=datetime.timezone.utc),
        datetime.datetime(2018, 10, 28, 0, 30, tzinfo=datetime.timezone.utc),
        datetime.datetime(2018, 10, 28, 2, 30, tzinfo=datetime.timezone.utc),
    ]


def test_monotonic_across_a_year(berlin):
    recurrence = Recurrence(
        start=datetime.datetime(2018, 1, 1, 2, 30, tzinfo=berlin), unit="hour", step=5
    )
    result = take(recurrence, 2000)
    assert all(utc(a) < utc(b) for a, b in zip(result, result[1:]))


def test_until_bound_in_another_zone(berlin):
    recurrence = Recurrence(
        start=datetime.datetime(2018, 3, 24, 9, tzinfo=berlin),
        stop=Until(datetime.datetime(2018, 3, 26, 7, tzinfo=tz.UTC)),
    )
    assert [p.day for p in recurrence] == [24, 25, 26]


def test_count_is_an_elapsed_time_estimate_across_dst(berlin):
    recurrence = Recurrence(
        start=datetime.datetime(2018, 3, 24, 9, tzinfo=berlin),
        stop=Until(datetime.datetime(2018, 3, 26, 9, tzinfo=berlin)),
    )
    # 47 elapsed hours are one whole day
    assert recurrence.count() == 2
    assert len(list(recurrence)) == 3


def test_zone_without_offset():
    start = datetime.datetime(2018, 12, 31, 12, tzinfo=ExpiringZone())
    iterator = iter(Recurrence(start=start))
    assert next(iterator) == start
    with pytest.raises(ZoneResolutionError) as e:
        next(iterator)
    assert e.value.value == datetime.datetime(2019, 1, 1, 12)
    assert e.value.zone == "Expiring"
    assert "Expiring" in str(e.value)


def test_zone_raising_on_offset():
    start = datetime.datetime(2018, 12, 31, 12, tzinfo=BrokenZone())
    with pytest.raises(ZoneResolutionError) as e:
        take(Recurrence(start=start, unit="hour", step=12), 2)
    assert isinstance(e.value.__cause__, ValueError)


def test_gap_retries_are_capped(berlin, monkeypatch):
    set_settings(RecurrenceSettings(max_gap_retries=3))
    monkeypatch.setattr(points.tz, "datetime_exists", lambda dt, tz=None: False)
    start = datetime.datetime(2018, 6, 1, 9, tzinfo=berlin)
    with pytest.raises(GapResolutionError) as e:
        take(Recurrence(start=start), 2)
    assert e.value.value == datetime.datetime(2018, 6, 6, 9)


def test_zoneinfo_zones(berlin):
    zoneinfo = pytest.importorskip("zoneinfo")
    try:
        zone = zoneinfo.ZoneInfo("Europe/Berlin")
    except zoneinfo.ZoneInfoNotFoundError:
        pytest.skip("No IANA time zone database available")
    recurrence = Recurrence(start=datetime.datetime(2018, 3, 24, 2, 30, tzinfo=zone))
    reference = Recurrence(start=datetime.datetime(2018, 3, 24, 2, 30, tzinfo=berlin))
    assert [utc(p) for p in take(recurrence, 5)] == [utc(p) for p in take(reference, 5)]


def test_stepping_from_the_later_occurrence_keeps_moving_forward(berlin):
    start = datetime.datetime(2018, 10, 28, 2, 30, fold=1, tzinfo=berlin)
    recurrence = Recurrence(start=start, unit=TimeUnit.MINUTE, step=15)
    assert [utc(p) for p in take(recurrence, 3)] == [
        datetime.datetime(2018, 10, 28, 1, 30, tzinfo=datetime.timezone.utc),
        datetime.datetime(2018, 10, 28, 1, 45, tzinfo=datetime.timezone.utc),
        datetime.datetime(2018, 10, 28, 2, 0, tzinfo=datetime.timezone.utc),
    ]
