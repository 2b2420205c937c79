"""
Engine configuration.

Settings come from environment variables, optionally read from a .env file:

    KOTOBA_AUTO_UNLOCK          true/false (default: true)
    KOTOBA_SRS_INTERVALS_HOURS  six comma-separated hour counts
                                (default: 2,12,24,72,168,336)
    KOTOBA_PROGRESS_DB          path to progress.db (default: ~/.kotoba/progress.db)
    KOTOBA_CATALOG_PATH         path to a YAML/JSON word catalog
    KOTOBA_STUDENT_ID           student identifier (default: "default")
"""

import os
from datetime import timedelta
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, ValidationError, field_validator

from kotoba.errors import ConfigurationError
from kotoba.schemas.base import CamelModel


DEFAULT_PROGRESS_DIR = Path.home() / ".kotoba"
DEFAULT_PROGRESS_DB = DEFAULT_PROGRESS_DIR / "progress.db"

# Review spacing per SRS tier 0..5, in hours
DEFAULT_INTERVAL_HOURS = [2, 12, 24, 72, 168, 336]

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class EngineSettings(CamelModel):
    auto_unlock: bool = True
    srs_intervals_hours: list[float] = Field(
        default_factory=lambda: list(DEFAULT_INTERVAL_HOURS)
    )
    progress_db: Path = DEFAULT_PROGRESS_DB
    catalog_path: Optional[Path] = None
    student_id: str = "default"

    @field_validator("srs_intervals_hours")
    @classmethod
    def intervals_valid(cls, v):
        if len(v) != 6:
            raise ValueError("SRS interval table must have exactly six entries (tiers 0-5)")
        if any(hours <= 0 for hours in v):
            raise ValueError("SRS intervals must be positive")
        if any(later < earlier for earlier, later in zip(v, v[1:])):
            raise ValueError("SRS intervals must not decrease with tier")
        return v

    @property
    def srs_intervals(self) -> list[timedelta]:
        return [timedelta(hours=hours) for hours in self.srs_intervals_hours]


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


def _parse_intervals(raw: str) -> list[float]:
    try:
        return [float(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise ConfigurationError(
            f"KOTOBA_SRS_INTERVALS_HOURS must be comma-separated numbers, got {raw!r}"
        ) from None


def load_settings(env_file: Optional[Path] = None) -> EngineSettings:
    """
    Build EngineSettings from the environment.

    Args:
        env_file: Optional .env file to load first (existing environment
            variables take precedence)

    Raises:
        ConfigurationError: If any value is malformed
    """
    if env_file is not None:
        load_dotenv(env_file)
    else:
        load_dotenv()

    values: dict = {}
    if raw := os.environ.get("KOTOBA_AUTO_UNLOCK"):
        values["auto_unlock"] = _parse_bool("KOTOBA_AUTO_UNLOCK", raw)
    if raw := os.environ.get("KOTOBA_SRS_INTERVALS_HOURS"):
        values["srs_intervals_hours"] = _parse_intervals(raw)
    if raw := os.environ.get("KOTOBA_PROGRESS_DB"):
        values["progress_db"] = Path(raw).expanduser()
    if raw := os.environ.get("KOTOBA_CATALOG_PATH"):
        values["catalog_path"] = Path(raw).expanduser()
    if raw := os.environ.get("KOTOBA_STUDENT_ID"):
        values["student_id"] = raw

    try:
        return EngineSettings(**values)
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e
