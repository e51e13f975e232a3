"""Wire-format parsers and the free-form calendar expression parser.

Expressions are read as local wall-clock time in a target zone. Supported
phrases: ``now``, ``today``, ``midnight``, ``noon``, ``tomorrow``,
``yesterday``, ``+N unit`` / ``-N unit`` / ``N unit ago``, ``next unit`` /
``last unit``, ``first day of next month`` / ``last day of this month`` and
``@<epoch>``. Whatever remains is handed to ``dateutil`` as an absolute date
and/or time.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, tzinfo

import pandas as pd
from dateutil import parser as date_parser

from .errors import ParseError

log = logging.getLogger(__name__)

WIRE_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
WIRE_DATE_FORMAT = "%Y-%m-%d"

_UNIT = r"(?P<unit>fortnight|sec(?:ond)?|min(?:ute)?|hour|day|week|month|year)s?"
_UNITS: dict[str, tuple[str, int]] = {
    "sec": ("seconds", 1),
    "second": ("seconds", 1),
    "min": ("minutes", 1),
    "minute": ("minutes", 1),
    "hour": ("hours", 1),
    "day": ("days", 1),
    "week": ("weeks", 1),
    "fortnight": ("weeks", 2),
    "month": ("months", 1),
    "year": ("years", 1),
}
_DIRECTIONS = {"next": 1, "this": 0, "last": -1, "previous": -1}

_EPOCH_RE = re.compile(r"^@(?P<seconds>-?\d+(?:\.\d+)?)$")
_DAY_OF_RE = re.compile(
    r"\b(?P<edge>first|last) day of(?:\s+(?P<direction>next|last|previous|this))?\s+month\b",
    re.IGNORECASE,
)
_AGO_RE = re.compile(r"(?<![\w:.-])(?P<count>\d+)\s*" + _UNIT + r"\s+ago\b", re.IGNORECASE)
_OFFSET_RE = re.compile(r"(?<![\w:.-])(?P<count>[+-]?\d+)\s*" + _UNIT + r"\b", re.IGNORECASE)
_DIRECTION_RE = re.compile(
    r"\b(?P<direction>next|last|previous|this)\s+" + _UNIT + r"\b", re.IGNORECASE
)
_KEYWORD_RE = re.compile(
    r"\b(?P<word>now|today|midnight|noon|tomorrow|yesterday)\b", re.IGNORECASE
)


@dataclass
class _Expression:
    offsets: dict[str, int] = field(default_factory=dict)
    day_of: tuple[str, int] | None = None
    day_shift: int = 0
    time_of_day: tuple[int, int] | None = None
    absolute: str = ""

    def add(self, unit: str, count: int) -> None:
        name, factor = _UNITS[unit.lower()]
        self.offsets[name] = self.offsets.get(name, 0) + count * factor


def localize(wall: pd.Timestamp, tz: tzinfo) -> pd.Timestamp:
    """Attach ``tz`` to a naive wall-clock timestamp.

    Wall times inside a DST gap take the offset in force before the gap
    (02:30 becomes 03:30); ambiguous wall times take the first occurrence.
    """
    local = wall.tz_localize(tz, ambiguous=True, nonexistent="NaT")
    if local is not pd.NaT:
        return local
    before = (wall - pd.Timedelta(hours=3)).tz_localize(tz, ambiguous=True, nonexistent="shift_forward")
    return (wall - before.utcoffset()).tz_localize("UTC").tz_convert(tz)


def wall_clock(ts: pd.Timestamp) -> pd.Timestamp:
    return ts.tz_localize(None)


def parse_wire_datetime(value: str) -> pd.Timestamp:
    """Parse ``YYYY-MM-DD HH:MM:SS`` as a UTC instant."""
    if not isinstance(value, str):
        raise ParseError(f"Wire datetime must be a string, got {type(value).__name__}")
    try:
        return pd.Timestamp(datetime.strptime(value, WIRE_DATETIME_FORMAT), tz="UTC")
    except (ValueError, OverflowError) as exc:
        raise ParseError(f"Invalid wire datetime {value!r}, expected {WIRE_DATETIME_FORMAT}") from exc


def parse_wire_date(value: str) -> pd.Timestamp:
    """Parse ``YYYY-MM-DD`` as a naive midnight timestamp."""
    if not isinstance(value, str):
        raise ParseError(f"Wire date must be a string, got {type(value).__name__}")
    try:
        return pd.Timestamp(datetime.strptime(value, WIRE_DATE_FORMAT))
    except (ValueError, OverflowError) as exc:
        raise ParseError(f"Invalid wire date {value!r}, expected {WIRE_DATE_FORMAT}") from exc


def _tokenize(text: str) -> _Expression:
    expr = _Expression()

    def day_of(match: re.Match[str]) -> str:
        if expr.day_of is not None:
            raise ParseError(f"Conflicting day-of-month phrases in {text!r}")
        which = (match.group("direction") or "this").lower()
        expr.day_of = (match.group("edge").lower(), _DIRECTIONS[which])
        return " "

    def ago(match: re.Match[str]) -> str:
        expr.add(match.group("unit"), -int(match.group("count")))
        return " "

    def offset(match: re.Match[str]) -> str:
        expr.add(match.group("unit"), int(match.group("count")))
        return " "

    def direction(match: re.Match[str]) -> str:
        expr.add(match.group("unit"), _DIRECTIONS[match.group("direction").lower()])
        return " "

    def keyword(match: re.Match[str]) -> str:
        word = match.group("word").lower()
        if word == "noon":
            expr.time_of_day = (12, 0)
        elif word != "now":
            expr.time_of_day = expr.time_of_day or (0, 0)
            expr.day_shift += {"tomorrow": 1, "yesterday": -1}.get(word, 0)
        return " "

    rest = _DAY_OF_RE.sub(day_of, text)
    rest = _AGO_RE.sub(ago, rest)
    rest = _OFFSET_RE.sub(offset, rest)
    rest = _DIRECTION_RE.sub(direction, rest)
    rest = _KEYWORD_RE.sub(keyword, rest)
    expr.absolute = " ".join(rest.split())
    return expr


def _parse_absolute(text: str, day: datetime) -> tuple[pd.Timestamp, bool]:
    """Parse ``text`` against ``day``; the flag tells whether it carried a time of day."""
    try:
        parsed = date_parser.parse(text, default=day)
        shifted = date_parser.parse(text, default=day.replace(hour=13))
    except (ValueError, OverflowError) as exc:
        raise ParseError(f"Unable to parse datetime expression {text!r}") from exc
    return pd.Timestamp(parsed), parsed.hour == shifted.hour


def parse_expression(value: str, tz: tzinfo, now: pd.Timestamp) -> pd.Timestamp:
    """Interpret ``value`` as local time in ``tz``; ``now`` anchors relative phrases.

    Applied in order: absolute part, ``today``/``tomorrow``/``noon`` style
    keywords, relative offsets, ``first/last day of`` phrases.
    """
    if not isinstance(value, str):
        raise ParseError(f"Datetime expression must be a string, got {type(value).__name__}")
    text = value.strip()

    epoch = _EPOCH_RE.match(text)
    if epoch:
        return pd.Timestamp(float(epoch.group("seconds")), unit="s", tz="UTC").tz_convert(tz)

    expr = _tokenize(text)
    offsets = {name: count for name, count in expr.offsets.items() if count}
    now_local = now.tz_convert(tz)

    instant: pd.Timestamp | None = now_local
    explicit_time = False
    if expr.absolute:
        parsed, explicit_time = _parse_absolute(
            expr.absolute, datetime(now_local.year, now_local.month, now_local.day)
        )
        instant = parsed.tz_convert(tz) if parsed.tz is not None else None
        wall = wall_clock(instant) if instant is not None else parsed
    else:
        wall = wall_clock(now_local)

    if expr.time_of_day is None and not offsets and expr.day_of is None:
        # exact instants keep their fold in repeated DST hours
        return instant if instant is not None else localize(wall, tz)

    if expr.time_of_day is not None:
        wall = wall + pd.Timedelta(days=expr.day_shift)
        if not explicit_time:
            hour, minute = expr.time_of_day
            wall = wall.normalize() + pd.Timedelta(hours=hour, minutes=minute)

    if offsets:
        wall = wall + pd.DateOffset(**offsets)

    if expr.day_of is not None:
        edge, months = expr.day_of
        wall = wall.replace(day=1) + pd.DateOffset(months=months)
        if edge == "last":
            wall = wall.replace(day=wall.days_in_month)

    log.debug("Parsed %r as local %s", value, wall)
    return localize(wall, tz)
