#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import datetime
from typing import Callable

# a plain date, a naive datetime or a time zone aware datetime
Point = datetime.date | datetime.datetime
# computes the number of units to advance by from the current point
Stepper = Callable[[Point], int]
# the name of a time zone, as reported by `tzinfo.tzname` or an IANA key
ZoneName = str
