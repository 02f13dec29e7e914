#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""Unit aware arithmetic over the three kinds of points a recurrence can start from:
plain dates, naive datetimes and time zone aware datetimes.

Every kind supports the same three operations: an inclusive `continues` test, `add`
and `diff`. The engine in `calendar_recurrence.rule` only ever talks to points through
these operations, via `arithmetic_for`.
"""

import datetime
import logging
from abc import ABC, abstractmethod
from enum import StrEnum, auto

from dateutil import tz

from calendar_recurrence.aliases import Point, ZoneName
from calendar_recurrence.config import get_settings
from calendar_recurrence.constants import MICROSECONDS_PER_DAY
from calendar_recurrence.exceptions import (
    GapResolutionError,
    UnrepresentableUnitError,
    UnsupportedPointError,
    ZoneResolutionError,
)

logger = logging.getLogger(__name__)

_ONE_MICROSECOND = datetime.timedelta(microseconds=1)


class PointKind(StrEnum):
    DATE = auto()
    NAIVE = auto()
    ZONED = auto()

    @classmethod
    def of(cls, value: Point) -> "PointKind":
        """Classify `value`. Datetimes are checked first since they are also dates."""
        if isinstance(value, datetime.datetime):
            if value.tzinfo is None or value.utcoffset() is None:
                return cls.NAIVE
            return cls.ZONED
        if isinstance(value, datetime.date):
            return cls.DATE
        raise UnsupportedPointError(
            f"Expected a date or datetime, got {type(value).__name__}: {value!r}"
        )


class TimeUnit(StrEnum):
    """Granularity of a recurrence step. The values double as `timedelta` keywords."""

    WEEK = auto()
    DAY = auto()
    HOUR = auto()
    MINUTE = auto()
    SECOND = auto()
    MILLISECOND = auto()
    MICROSECOND = auto()

    def delta(self, amount: int) -> datetime.timedelta:
        return datetime.timedelta(**{f"{self.value}s": amount})

    @property
    def microseconds(self) -> int:
        return self.delta(1) // _ONE_MICROSECOND

    @property
    def is_sub_day(self) -> bool:
        return self.microseconds < MICROSECONDS_PER_DAY


def whole_units(delta: datetime.timedelta, unit: TimeUnit) -> int:
    """Express `delta` in whole `unit`s, truncating toward zero."""
    elapsed = delta // _ONE_MICROSECOND
    quotient = abs(elapsed) // unit.microseconds
    return quotient if elapsed >= 0 else -quotient


def _instant(value: datetime.datetime) -> datetime.datetime:
    return value.astimezone(datetime.timezone.utc)


def _zone_name(zone: datetime.tzinfo) -> ZoneName:
    return getattr(zone, "key", None) or str(zone)


def is_fixed_offset(zone: datetime.tzinfo) -> bool:
    return isinstance(zone, (datetime.timezone, tz.tzutc, tz.tzoffset))


class PointArithmetic(ABC):
    kind: PointKind

    def continues(self, current: Point, boundary: Point) -> bool:
        """True if `current` is at or before `boundary`."""
        return current <= boundary

    @abstractmethod
    def add(self, point: Point, amount: int, unit: TimeUnit) -> Point:
        pass

    @abstractmethod
    def diff(self, a: Point, b: Point, unit: TimeUnit) -> int:
        """Signed difference ``a - b`` in whole `unit`s."""
        pass


class DateArithmetic(PointArithmetic):
    kind = PointKind.DATE

    @staticmethod
    def _check_unit(unit: TimeUnit) -> TimeUnit:
        if unit.is_sub_day:
            raise UnrepresentableUnitError(
                f"Cannot use unit '{unit}' with a date: dates have no time of day."
            )
        return unit

    def add(self, point: datetime.date, amount: int, unit: TimeUnit) -> datetime.date:
        return point + self._check_unit(unit).delta(amount)

    def diff(self, a: datetime.date, b: datetime.date, unit: TimeUnit) -> int:
        return whole_units(a - b, self._check_unit(unit))


class NaiveArithmetic(PointArithmetic):
    kind = PointKind.NAIVE

    def add(
        self, point: datetime.datetime, amount: int, unit: TimeUnit
    ) -> datetime.datetime:
        return point + unit.delta(amount)

    def diff(self, a: datetime.datetime, b: datetime.datetime, unit: TimeUnit) -> int:
        return whole_units(a - b, unit)


class ZonedArithmetic(PointArithmetic):
    """Arithmetic for time zone aware datetimes.

    Comparisons and differences are made between instants (ie in UTC), never between
    wall clock readings. Python compares two datetimes sharing a `tzinfo` by their
    wall clock and ignores `fold`, which would misorder the two occurrences of an
    ambiguous local time.

    Addition in a zone with a fixed offset is plain elapsed time arithmetic. In any
    other zone the wall clock is kept stable: the step is applied to the local
    time and the result is attached back to the zone, so that a daily recurrence at
    9:00 stays at 9:00 across a 23 or 25 hour day. Attaching a local time can have
    three outcomes:

        1. the local time exists exactly once and is returned as is.
        2. the local time is ambiguous (clocks were set back). The earlier of the two
        instants, ``fold=0``, is returned, unless the step started from the later
        instant of the same ambiguous hour, in which case the later one is used so
        that the recurrence keeps moving forward.
        3. the local time falls in a gap (clocks were set forward). The step is applied
        again to the local time until it lands on an existing time. At most
        `RecurrenceSettings.max_gap_retries` gaps are crossed in a row.
    """

    kind = PointKind.ZONED

    def continues(self, current: datetime.datetime, boundary: datetime.datetime) -> bool:
        return _instant(current) <= _instant(boundary)

    def add(
        self, point: datetime.datetime, amount: int, unit: TimeUnit
    ) -> datetime.datetime:
        delta = unit.delta(amount)
        zone = point.tzinfo
        if is_fixed_offset(zone):
            return (_instant(point) + delta).astimezone(zone)
        local = point.replace(tzinfo=None, fold=0)
        result = self._attach(local + delta, delta, zone)
        # stepping from the second occurrence of an ambiguous time must not go back
        if _instant(result) <= _instant(point) and tz.datetime_ambiguous(result):
            result = tz.enfold(result, fold=1)
        return result

    def diff(self, a: datetime.datetime, b: datetime.datetime, unit: TimeUnit) -> int:
        return whole_units(_instant(a) - _instant(b), unit)

    @staticmethod
    def _localize(local: datetime.datetime, zone: datetime.tzinfo) -> datetime.datetime:
        candidate = local.replace(tzinfo=zone, fold=0)
        try:
            offset = candidate.utcoffset()
        except (ValueError, NotImplementedError) as e:
            raise ZoneResolutionError(
                f"Could not convert {local.isoformat()} to a datetime in time zone "
                f"{_zone_name(zone)}: {e}",
                value=local,
                zone=_zone_name(zone),
            ) from e
        if offset is None:
            raise ZoneResolutionError(
                f"Could not convert {local.isoformat()} to a datetime in time zone "
                f"{_zone_name(zone)}: the zone reports no UTC offset",
                value=local,
                zone=_zone_name(zone),
            )
        return candidate

    def _attach(
        self, local: datetime.datetime, delta: datetime.timedelta, zone: datetime.tzinfo
    ) -> datetime.datetime:
        max_retries = get_settings().max_gap_retries
        for _ in range(max_retries + 1):
            candidate = self._localize(local, zone)
            if tz.datetime_exists(candidate):
                if tz.datetime_ambiguous(candidate):
                    logger.debug(
                        f"{local.isoformat()} is ambiguous in {_zone_name(zone)}, "
                        f"using the first occurrence"
                    )
                return candidate
            steps = _steps_out_of_gap(candidate, delta)
            logger.debug(
                f"{local.isoformat()} does not exist in {_zone_name(zone)}, "
                f"advancing {steps} more step(s) of {delta}"
            )
            local = local + steps * delta
        raise GapResolutionError(
            f"Could not leave the DST gap in time zone {_zone_name(zone)} after "
            f"{max_retries} attempts with steps of {delta}, last local time tried: "
            f"{local.isoformat()}",
            value=local,
            zone=_zone_name(zone),
        )


def _steps_out_of_gap(candidate: datetime.datetime, delta: datetime.timedelta) -> int:
    """The fewest extra applications of `delta` that move the non-existent `candidate`
    out of its gap.

    Gives the same result as re-applying `delta` one step at a time, without looping
    over every step when `delta` is much smaller than the gap (eg minutes in an hour
    long gap). `resolve_imaginary` shifts `candidate` forward by the length of the gap,
    which bounds the search.
    """
    zone = candidate.tzinfo
    local = candidate.replace(tzinfo=None)
    shifted = tz.resolve_imaginary(candidate).replace(tzinfo=None)
    upper = max(1, -(-(shifted - local) // delta))
    if not tz.datetime_exists((local + upper * delta).replace(tzinfo=zone)):
        return upper
    lower = 1
    while lower < upper:
        middle = (lower + upper) // 2
        if tz.datetime_exists((local + middle * delta).replace(tzinfo=zone)):
            upper = middle
        else:
            lower = middle + 1
    return lower


_ARITHMETIC: dict[PointKind, PointArithmetic] = {
    PointKind.DATE: DateArithmetic(),
    PointKind.NAIVE: NaiveArithmetic(),
    PointKind.ZONED: ZonedArithmetic(),
}


def arithmetic_for(point: Point) -> PointArithmetic:
    return _ARITHMETIC[PointKind.of(point)]


def continues(current: Point, boundary: Point) -> bool:
    return arithmetic_for(current).continues(current, boundary)


def add(point: Point, amount: int, unit: TimeUnit = TimeUnit.DAY) -> Point:
    return arithmetic_for(point).add(point, amount, unit)


def diff(a: Point, b: Point, unit: TimeUnit = TimeUnit.DAY) -> int:
    return arithmetic_for(a).diff(a, b, unit)
