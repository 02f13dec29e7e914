#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""Runtime settings for the recurrence engine.

Defaults ship in `configs/recurrence.yaml`. They can be overridden from a user
YAML file and/or a dotlist (eg ``["max_gap_retries=12"]``), which are merged with
`OmegaConf` and validated by `RecurrenceSettings`.
"""

import logging
from importlib.resources import files
from pathlib import Path

from omegaconf import DictConfig, OmegaConf
from pydantic import BaseModel, ConfigDict, field_validator

from calendar_recurrence.constants import (
    CONFIGS_PACKAGE,
    DEFAULT_CONFIG_NAME,
    DEFAULT_MAX_GAP_RETRIES,
    MAX_UNBOUNDED_OCCURRENCES,
)

logger = logging.getLogger(__name__)


class RecurrenceSettings(BaseModel):
    """
    max_gap_retries
        How many DST gaps in a row a step may land in before giving up.
    max_unbounded_occurrences
        Number of occurrences `schedule` returns for recurrences
        that never stop, unless a limit is given explicitly.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_gap_retries: int = DEFAULT_MAX_GAP_RETRIES
    max_unbounded_occurrences: int = MAX_UNBOUNDED_OCCURRENCES

    @field_validator("max_gap_retries", "max_unbounded_occurrences")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Expected a positive integer, got {v}")
        return v


def _packaged_defaults() -> DictConfig:
    return OmegaConf.create(
        files(CONFIGS_PACKAGE).joinpath(DEFAULT_CONFIG_NAME).read_text(encoding="utf-8")
    )


def load_settings(
    path: Path | str | None = None, overrides: list[str] | None = None
) -> RecurrenceSettings:
    """Load the packaged defaults, merge `path` and `overrides` on top and validate.

    Parameters
    ----------
    path
        A YAML file whose keys override the packaged defaults.
    overrides
        `OmegaConf` dotlist entries, applied last.
    """
    cfg = _packaged_defaults()
    if path is not None:
        logger.debug(f"Loading recurrence settings from {path}")
        cfg = OmegaConf.merge(cfg, OmegaConf.load(path))
    if overrides:
        cfg = OmegaConf.merge(cfg, OmegaConf.from_dotlist(overrides))
    return RecurrenceSettings(**OmegaConf.to_container(cfg, resolve=True))


_settings: RecurrenceSettings | None = None


def get_settings() -> RecurrenceSettings:
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def set_settings(settings: RecurrenceSettings | None) -> None:
    """Replace the process-wide settings. Passing `None` reloads the defaults on next use."""
    global _settings
    _settings = settings
