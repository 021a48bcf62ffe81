"""Configuration loaded from .driftwatch.toml and environment variables.

Loading order: defaults → TOML file → env vars.

Scoring and matching constants are fixed in their modules; only TTLs,
list sizes, the AI model and the calendar timezone are configurable.
"""

from __future__ import annotations

import logging
import os
import tomllib
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".driftwatch.toml"
CONFIG_SEARCH_PATHS = [
    Path("."),
    Path.home() / ".config" / "driftwatch",
]


class SessionSectionConfig(BaseModel):
    """[session] section: Tier 2 cache policy."""

    soft_ttl_minutes: int = 15
    hard_ttl_minutes: int = 60
    top_projects: int = 3
    max_dropped_ball_warnings: int = 5
    max_commitment_warnings: int = 3
    commitment_warning_days: int = 5


class DailySectionConfig(BaseModel):
    """[daily] section: Tier 3 context limits."""

    recent_notes: int = 15
    items_per_stage: int = 5
    dropped_balls: int = 5
    open_commitments: int = 5
    max_tokens: int = 1000


class MatchingSectionConfig(BaseModel):
    """[matching] section."""

    use_ai: bool = True
    max_tokens: int = 50


class AISectionConfig(BaseModel):
    """[ai] section."""

    model: str = "haiku"
    timeout: float = 120


class CalendarSectionConfig(BaseModel):
    """[calendar] section: where day and week boundaries fall."""

    timezone: str = "UTC"

    @field_validator("timezone")
    @classmethod
    def _known_zone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def now(self) -> datetime:
        return datetime.now(self.tzinfo)


class StoreSectionConfig(BaseModel):
    """[store] section."""

    directory: str = "./.driftwatch"

    @property
    def path(self) -> Path:
        return Path(self.directory).expanduser()


class DriftwatchConfig(BaseModel):
    """Top-level configuration model."""

    session: SessionSectionConfig = Field(default_factory=SessionSectionConfig)
    daily: DailySectionConfig = Field(default_factory=DailySectionConfig)
    matching: MatchingSectionConfig = Field(default_factory=MatchingSectionConfig)
    ai: AISectionConfig = Field(default_factory=AISectionConfig)
    calendar: CalendarSectionConfig = Field(default_factory=CalendarSectionConfig)
    store: StoreSectionConfig = Field(default_factory=StoreSectionConfig)


def load_config(path: Path | None = None) -> DriftwatchConfig:
    """Load configuration from TOML, then overlay environment variables.

    Args:
        path: Explicit TOML path. When omitted, ``.driftwatch.toml`` is
            looked up in the working directory, then
            ``~/.config/driftwatch/``, then
            ``~/.config/driftwatch/config.toml``.

    Returns:
        The merged configuration.
    """
    data: dict[str, object] = {}

    if path is not None:
        if path.exists():
            data = _load_toml(path)
            logger.info("Loaded config from %s", path)
        else:
            logger.warning("Config file not found: %s", path)
    else:
        for search_dir in CONFIG_SEARCH_PATHS:
            candidate = search_dir / CONFIG_FILENAME
            if candidate.exists():
                data = _load_toml(candidate)
                logger.info("Loaded config from %s", candidate)
                break
        global_config = Path.home() / ".config" / "driftwatch" / "config.toml"
        if not data and global_config.exists():
            data = _load_toml(global_config)
            logger.info("Loaded config from %s", global_config)

    config = DriftwatchConfig.model_validate(data) if data else DriftwatchConfig()
    return _apply_env_vars(config)


def _load_toml(path: Path) -> dict[str, object]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _apply_env_vars(config: DriftwatchConfig) -> DriftwatchConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    env_mapping: dict[str, tuple[str, str]] = {
        "DRIFTWATCH_STORE_DIR": ("store", "directory"),
        "DRIFTWATCH_MODEL": ("ai", "model"),
        "DRIFTWATCH_TIMEZONE": ("calendar", "timezone"),
    }

    for env_var, (section, field) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            data[section][field] = value

    timeout_raw = os.environ.get("DRIFTWATCH_AI_TIMEOUT")
    if timeout_raw is not None:
        try:
            data["ai"]["timeout"] = float(timeout_raw)
        except ValueError:
            logger.warning("Ignoring non-numeric DRIFTWATCH_AI_TIMEOUT=%r", timeout_raw)

    return DriftwatchConfig.model_validate(data)
