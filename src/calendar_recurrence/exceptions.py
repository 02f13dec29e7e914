#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
class RecurrenceError(Exception):
    pass


class RecurrenceConfigurationError(RecurrenceError, ValueError):
    pass


class VariantMismatchError(RecurrenceConfigurationError):
    pass


class InvalidStepError(RecurrenceError, ValueError):
    pass


class UnsupportedPointError(RecurrenceError, TypeError):
    pass


class UnrepresentableUnitError(RecurrenceError, ValueError):
    pass


class ZoneResolutionError(RecurrenceError):
    """Raised when a local time cannot be attached to its time zone."""

    def __init__(self, message: str, value=None, zone: str | None = None):
        super().__init__(message)
        self.value = value
        self.zone = zone


class GapResolutionError(ZoneResolutionError):
    pass
