#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
PACKAGE_NAME = "calendar_recurrence"
CONFIGS_PACKAGE = f"{PACKAGE_NAME}.configs"
DEFAULT_CONFIG_NAME = "recurrence.yaml"
DEFAULT_STEP = 1
DEFAULT_MAX_GAP_RETRIES = 48
"""Upper bound on re-applying a step to escape a DST gap."""
MAX_UNBOUNDED_OCCURRENCES = 23
"""How many occurrences of a never ending recurrence `schedule` returns by default."""
MICROSECONDS_PER_DAY = 86_400_000_000
