#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""Recurrence rules and the lazy sequence of points they describe."""

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from itertools import islice

from calendar_recurrence.aliases import Point, Stepper
from calendar_recurrence.config import get_settings
from calendar_recurrence.constants import DEFAULT_STEP
from calendar_recurrence.exceptions import (
    InvalidStepError,
    RecurrenceConfigurationError,
    UnrepresentableUnitError,
    VariantMismatchError,
)
from calendar_recurrence.points import (
    PointArithmetic,
    PointKind,
    TimeUnit,
    arithmetic_for,
    is_fixed_offset,
)

logger = logging.getLogger(__name__)


class Never:
    """The recurrence goes on forever."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NEVER"


NEVER = Never()


@dataclass(frozen=True)
class Until:
    """The recurrence stops after the last point at or before `point`."""

    point: Point


@dataclass(frozen=True)
class Count:
    """The recurrence stops after exactly `n` points."""

    n: int

    def __post_init__(self):
        if isinstance(self.n, bool) or not isinstance(self.n, int) or self.n < 0:
            raise RecurrenceConfigurationError(
                f"The count of occurrences must be a non-negative integer, got {self.n!r}"
            )


Stop = Never | Until | Count


def _coerce_stop(stop) -> Stop:
    """Accept the stop policies and the shorthands ``"never"``, ``("until", point)``
    and ``("count", n)``."""
    if isinstance(stop, (Never, Until, Count)):
        return stop
    if isinstance(stop, str) and stop == "never":
        return NEVER
    if isinstance(stop, tuple) and len(stop) == 2:
        kind, value = stop
        if kind == "until":
            return Until(value)
        if kind == "count":
            return Count(value)
    raise RecurrenceConfigurationError(f"Unknown stop policy: {stop!r}")


def _coerce_unit(unit: TimeUnit | str) -> TimeUnit:
    try:
        return TimeUnit(unit)
    except ValueError as e:
        raise RecurrenceConfigurationError(
            f"Unknown time unit {unit!r}, expected one of {[u.value for u in TimeUnit]}"
        ) from e


def _round_half_away(numerator: int, denominator: int) -> int:
    """Round ``numerator / denominator`` to the nearest integer, halves away from zero.
    `denominator` is positive."""
    rounded = (2 * abs(numerator) + denominator) // (2 * denominator)
    return rounded if numerator >= 0 else -rounded


@dataclass(frozen=True)
class Recurrence:
    """A recurring sequence of dates or datetimes.

    Iterating over a recurrence lazily yields `start` and every point obtained by
    repeatedly advancing by `step` `unit`s, until `stop` says otherwise. Each call to
    `iter` starts over from `start`, so the same recurrence can be consumed any
    number of times.

    Parameters
    ----------
    start
        The first point of the recurrence. A `datetime.date`, a naive
        `datetime.datetime` or a time zone aware one. For aware datetimes in zones
        observing DST, the wall clock time is kept across offset changes.
    step
        How many `unit`s to advance by. Either a positive integer, or a function
        computing a positive integer from the current point (see
        `calendar_recurrence.steppers`).
    stop
        `NEVER` (the default), `Until(point)` for an inclusive upper bound of the
        same kind as `start` or `Count(n)` for exactly `n` occurrences.
    unit
        The unit `step` is expressed in. Dates only accept `day` and `week`.

    Examples
    --------
        >>> take(Recurrence(start=datetime.date(2018, 1, 1)), 3)
        [datetime.date(2018, 1, 1), datetime.date(2018, 1, 2), datetime.date(2018, 1, 3)]
    """

    start: Point
    step: int | Stepper = DEFAULT_STEP
    stop: Stop = field(default=NEVER)
    unit: TimeUnit = TimeUnit.DAY

    def __post_init__(self):
        if self.start is None:
            raise RecurrenceConfigurationError("A recurrence needs a start.")
        kind = PointKind.of(self.start)
        object.__setattr__(self, "stop", _coerce_stop(self.stop))
        object.__setattr__(self, "unit", _coerce_unit(self.unit))
        if isinstance(self.step, bool) or not (
            isinstance(self.step, int) or callable(self.step)
        ):
            raise RecurrenceConfigurationError(
                f"The step must be a positive integer or a function, got {self.step!r}"
            )
        if isinstance(self.step, int) and self.step < 1:
            raise RecurrenceConfigurationError(
                f"The step must be a positive integer, got {self.step}"
            )
        if kind is PointKind.DATE and self.unit.is_sub_day:
            raise UnrepresentableUnitError(
                f"Cannot use unit '{self.unit}' with a date: dates have no time of day."
            )
        if isinstance(self.stop, Until):
            bound_kind = PointKind.of(self.stop.point)
            if bound_kind is not kind:
                raise VariantMismatchError(
                    f"The recurrence starts at a {kind} point but stops at a "
                    f"{bound_kind} point: {self.start!r} vs {self.stop.point!r}"
                )

    @property
    def is_finite(self) -> bool:
        return not isinstance(self.stop, Never)

    def __iter__(self) -> Iterator[Point]:
        arithmetic = arithmetic_for(self.start)
        current, occurrence = self.start, 1
        while self._continues(arithmetic, current, occurrence):
            yield current
            current = arithmetic.add(current, self._step_amount(current), self.unit)
            occurrence += 1

    def _continues(
        self, arithmetic: PointArithmetic, current: Point, occurrence: int
    ) -> bool:
        if isinstance(self.stop, Count):
            return occurrence <= self.stop.n
        if isinstance(self.stop, Until):
            return arithmetic.continues(current, self.stop.point)
        return True

    def _step_amount(self, current: Point) -> int:
        if not callable(self.step):
            return self.step
        amount = self.step(current)
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 1:
            raise InvalidStepError(
                f"The stepper returned {amount!r} at {current!r}, expected a positive integer"
            )
        return amount

    def count(self) -> int | None:
        """The number of points in the recurrence, without iterating over it.

        Returns `None` when the size cannot be computed in closed form: for recurrences
        that never stop and for those bounded by `Until` whose step is a function.

        Notes
        -----
        For `Until` the size is estimated as the number of steps between `start` and
        the bound, rounded to the nearest integer. Between aware datetimes the
        difference is elapsed time, so the estimate may be off by one when the
        recurrence crosses a DST transition.
        """
        if isinstance(self.stop, Count):
            return self.stop.n
        if isinstance(self.stop, Until) and not callable(self.step):
            arithmetic = arithmetic_for(self.start)
            span = arithmetic.diff(self.stop.point, self.start, self.unit)
            if arithmetic.kind is PointKind.ZONED and not is_fixed_offset(
                self.start.tzinfo
            ):
                logger.debug(
                    f"Estimating the size of a recurrence in {self.start.tzinfo} from "
                    f"elapsed time, the result is approximate across DST transitions"
                )
            return _round_half_away(span + 1, self.step)
        return None

    def __length_hint__(self) -> int:
        size = self.count()
        if size is None:
            return NotImplemented
        return max(size, 0)


def new(
    start: Point | None = None,
    step: int | Stepper = DEFAULT_STEP,
    stop: Stop | str | tuple = NEVER,
    unit: TimeUnit | str = TimeUnit.DAY,
) -> Recurrence:
    """Create a recurrence. Only `start` is required."""
    return Recurrence(start=start, step=step, stop=stop, unit=unit)


def count(recurrence: Recurrence) -> int | None:
    """See `Recurrence.count`."""
    return recurrence.count()


def take(recurrence: Recurrence, n: int) -> list[Point]:
    """Return the first `n` points of `recurrence`, or fewer if it stops earlier."""
    return list(islice(recurrence, n))


def schedule(recurrence: Recurrence, limit: int | None = None) -> list[Point]:
    """Materialise a recurrence.

    Parameters
    ----------
    limit
        At most this many points are returned. If not set, finite recurrences are
        returned in full while recurrences that never stop are cut at
        `RecurrenceSettings.max_unbounded_occurrences`.
    """
    if limit is not None:
        return take(recurrence, limit)
    if not recurrence.is_finite:
        return take(recurrence, get_settings().max_unbounded_occurrences)
    return list(recurrence)
