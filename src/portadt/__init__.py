"""Immutable billing datetimes: UTC wire strings in, local-zone boundaries out."""

from .clock import Clock, FixedClock, SystemClock
from .config import PortaSettings, load_settings
from .errors import InvalidArgumentError, ParseError, PortaTimeError
from .moment import PortaMoment
from .parsing import WIRE_DATE_FORMAT, WIRE_DATETIME_FORMAT
from .timezones import DEFAULT_TIMEZONE_KEY, SettingsProvider, resolve_timezone
from .version import __version__

__all__ = [
    "Clock",
    "DEFAULT_TIMEZONE_KEY",
    "FixedClock",
    "InvalidArgumentError",
    "ParseError",
    "PortaMoment",
    "PortaSettings",
    "PortaTimeError",
    "SettingsProvider",
    "SystemClock",
    "WIRE_DATETIME_FORMAT",
    "WIRE_DATE_FORMAT",
    "__version__",
    "load_settings",
    "resolve_timezone",
]
