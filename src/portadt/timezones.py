"""Timezone resolution for PortaMoment constructors.

A timezone argument may be a zone string, a ``tzinfo`` object or a
settings-provider (anything with ``has(key)`` and ``get(key)``).
The argument is classified once into a :data:`TimezoneSpec` and resolved to a
concrete ``tzinfo``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import timedelta, timezone, tzinfo
from typing import Any, Protocol, Union, runtime_checkable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import InvalidArgumentError

log = logging.getLogger(__name__)

DEFAULT_TIMEZONE_KEY = "default.timezone"

UTC = timezone.utc

_UTC_ALIASES = {"utc", "z", "gmt", "zulu"}
_OFFSET_RE = re.compile(
    r"^(?:utc|gmt)?\s*(?P<sign>[+-])(?P<hours>\d{1,2})(?::?(?P<minutes>\d{2}))?$",
    re.IGNORECASE,
)


@runtime_checkable
class SettingsProvider(Protocol):
    def has(self, key: str) -> bool: ...

    def get(self, key: str) -> Any: ...


@dataclass(frozen=True)
class ZoneName:
    name: str


@dataclass(frozen=True)
class ZoneObject:
    tz: tzinfo


@dataclass(frozen=True)
class ProviderLookup:
    provider: SettingsProvider
    key: str


TimezoneSpec = Union[ZoneName, ZoneObject, ProviderLookup]


def timezone_spec(value: Any, key: str = DEFAULT_TIMEZONE_KEY) -> TimezoneSpec:
    if isinstance(value, str):
        return ZoneName(value)
    if isinstance(value, tzinfo):
        return ZoneObject(value)
    if _is_provider(value):
        return ProviderLookup(value, key)
    raise InvalidArgumentError(
        f"timezone must be a string, timezone object, or settings-provider, got {type(value).__name__}"
    )


def _is_provider(value: Any) -> bool:
    # dict-likes carry get() but not has()
    return callable(getattr(value, "has", None)) and callable(getattr(value, "get", None))


def parse_zone_name(name: str) -> tzinfo:
    """Resolve an IANA name, a UTC alias or a fixed offset such as ``GMT+03:00``."""
    text = name.strip()
    if text.lower() in _UTC_ALIASES:
        return UTC

    match = _OFFSET_RE.match(text)
    if match:
        hours = int(match.group("hours"))
        minutes = int(match.group("minutes") or 0)
        if hours > 23 or minutes > 59:
            raise InvalidArgumentError(f"Invalid UTC offset: {name!r}")
        offset = timedelta(hours=hours, minutes=minutes)
        if match.group("sign") == "-":
            offset = -offset
        return UTC if not offset else timezone(offset)

    try:
        return ZoneInfo(text)
    except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
        raise InvalidArgumentError(f"Unknown timezone: {name!r}") from exc


def resolve_spec(spec: TimezoneSpec) -> tzinfo:
    if isinstance(spec, ZoneObject):
        return spec.tz
    if isinstance(spec, ZoneName):
        return parse_zone_name(spec.name)

    if not spec.provider.has(spec.key):
        log.debug("Settings provider has no %r, falling back to UTC", spec.key)
        return UTC
    value = spec.provider.get(spec.key)
    if isinstance(value, str):
        return parse_zone_name(value)
    if isinstance(value, tzinfo):
        return value
    raise InvalidArgumentError(
        f"Settings value {spec.key!r} must be a timezone string or timezone object, "
        f"got {type(value).__name__}"
    )


def resolve_timezone(value: Any, key: str = DEFAULT_TIMEZONE_KEY) -> tzinfo:
    return resolve_spec(timezone_spec(value, key))


def timezone_name(tz: tzinfo) -> str:
    if isinstance(tz, ZoneInfo):
        return tz.key
    offset = tz.utcoffset(None)
    if offset is None:
        return str(tz)
    if not offset:
        return "UTC"
    total = int(offset.total_seconds()) // 60
    sign = "-" if total < 0 else "+"
    hours, minutes = divmod(abs(total), 60)
    return f"{sign}{hours:02d}:{minutes:02d}"
