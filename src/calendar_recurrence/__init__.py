#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
from importlib.metadata import PackageNotFoundError, version  # pragma: no cover

from calendar_recurrence.exceptions import (
    GapResolutionError,
    InvalidStepError,
    RecurrenceConfigurationError,
    RecurrenceError,
    UnrepresentableUnitError,
    UnsupportedPointError,
    VariantMismatchError,
    ZoneResolutionError,
)
from calendar_recurrence.points import PointKind, TimeUnit
from calendar_recurrence.rule import (
    NEVER,
    Count,
    Never,
    Recurrence,
    Until,
    count,
    new,
    schedule,
    take,
)

try:
    dist_name = "calendar-recurrence"
    __version__ = version(dist_name)
except PackageNotFoundError:  # pragma: no cover
    __version__ = "unknown"
finally:
    del version, PackageNotFoundError

__all__ = [
    "NEVER",
    "Count",
    "GapResolutionError",
    "InvalidStepError",
    "Never",
    "PointKind",
    "Recurrence",
    "RecurrenceConfigurationError",
    "RecurrenceError",
    "TimeUnit",
    "UnrepresentableUnitError",
    "UnsupportedPointError",
    "Until",
    "VariantMismatchError",
    "ZoneResolutionError",
    "count",
    "new",
    "schedule",
    "take",
]
