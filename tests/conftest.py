#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import datetime

import pytest
from dateutil import tz

from calendar_recurrence.config import set_settings


@pytest.fixture(autouse=True)
def default_settings():
    set_settings(None)
    yield
    set_settings(None)


@pytest.fixture()
def berlin() -> datetime.tzinfo:
    zone = tz.gettz("Europe/Berlin")
    assert zone is not None
    return zone

