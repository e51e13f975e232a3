from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError, field_validator

from .errors import InvalidArgumentError
from .timezones import DEFAULT_TIMEZONE_KEY, parse_zone_name

log = logging.getLogger(__name__)

ENV_DEFAULT_TIMEZONE = "PORTADT_DEFAULT_TIMEZONE"


class ConfigError(RuntimeError):
    pass


class PortaSettings(BaseModel):
    """Settings-provider carrying the default timezone for PortaMoment constructors."""

    default_timezone: str | None = None
    timezone_key: str = DEFAULT_TIMEZONE_KEY

    @field_validator("default_timezone")
    @classmethod
    def _zone_resolves(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            return None
        try:
            parse_zone_name(v)
        except InvalidArgumentError as exc:
            raise ValueError(str(exc)) from exc
        return v

    def has(self, key: str) -> bool:
        return key == self.timezone_key and self.default_timezone is not None

    def get(self, key: str) -> Any:
        if not self.has(key):
            raise KeyError(key)
        return self.default_timezone


def _read_yaml(path: Path) -> object:
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def load_settings(path: Path | None = None) -> PortaSettings:
    """Load settings from an optional YAML file, then overlay the environment."""
    load_dotenv(override=False)
    raw: dict[str, Any] = {}
    if path is not None:
        if not path.exists():
            raise ConfigError(f"Missing settings file: {path}")
        data = _read_yaml(path)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"{path} must be a mapping of setting -> value.")
        raw.update(data)

    env_zone = os.getenv(ENV_DEFAULT_TIMEZONE)
    if env_zone:
        raw["default_timezone"] = env_zone

    try:
        settings = PortaSettings.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc
    log.debug("Loaded settings default_timezone=%s", settings.default_timezone)
    return settings
