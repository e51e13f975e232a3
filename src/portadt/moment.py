"""Immutable datetime value for billing timestamps.

The billing API exchanges datetimes as UTC strings (``YYYY-MM-DD HH:MM:SS``)
while business logic needs them in a local zone and at day or month
boundaries, e.g. an add-on product change over local midnight: the last
second of one day ends the old product and 00:00:00 of the next day starts
the new one.

``PortaMoment`` wraps a timezone-aware ``pandas.Timestamp``. Every
transform returns a new instance.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Any, Union

import pandas as pd

from .clock import SYSTEM_CLOCK, Clock, as_timestamp, now_utc
from .errors import InvalidArgumentError
from .parsing import (
    WIRE_DATE_FORMAT,
    WIRE_DATETIME_FORMAT,
    localize,
    parse_expression,
    parse_wire_date,
    parse_wire_datetime,
    wall_clock,
)
from .timezones import DEFAULT_TIMEZONE_KEY, UTC, resolve_timezone, timezone_name

InstantLike = Union["PortaMoment", pd.Timestamp, datetime]


def _instant(value: Any) -> pd.Timestamp:
    if isinstance(value, PortaMoment):
        return value.timestamp
    if isinstance(value, (pd.Timestamp, datetime)):
        return as_timestamp(value)
    raise InvalidArgumentError(
        f"Expected a PortaMoment, pandas.Timestamp or datetime, got {type(value).__name__}"
    )


@dataclass(frozen=True, eq=False)
class PortaMoment:
    timestamp: pd.Timestamp
    clock: Clock = field(default=SYSTEM_CLOCK, repr=False)

    def __post_init__(self) -> None:
        ts = pd.Timestamp(self.timestamp)
        if ts.tz is None:
            raise InvalidArgumentError("PortaMoment requires a timezone-aware timestamp")
        object.__setattr__(self, "timestamp", ts)

    @classmethod
    def create(
        cls,
        datetime: str = "now",
        timezone: Any = "UTC",
        timezone_key: str = DEFAULT_TIMEZONE_KEY,
        clock: Clock | None = None,
    ) -> PortaMoment:
        """Build a moment from a local datetime expression in the given zone.

        ``timezone`` may be a zone string (``Europe/Paris``, ``GMT+03:00``),
        a ``tzinfo`` object, or a settings-provider exposing ``has``/``get``;
        the provider is asked for ``timezone_key`` and a missing key falls
        back to UTC.
        """
        tz = resolve_timezone(timezone, timezone_key)
        clock = clock or SYSTEM_CLOCK
        return cls(parse_expression(datetime, tz, now_utc(clock)), clock)

    @classmethod
    def from_wire_string(
        cls,
        datetime: str,
        timezone: Any = "UTC",
        timezone_key: str = DEFAULT_TIMEZONE_KEY,
    ) -> PortaMoment:
        """Read a billing datetime string (always UTC) and show it in ``timezone``."""
        tz = resolve_timezone(timezone, timezone_key)
        return cls(parse_wire_datetime(datetime).tz_convert(tz))

    @classmethod
    def from_wire_date_string(
        cls,
        date: str,
        timezone: Any = "UTC",
        timezone_key: str = DEFAULT_TIMEZONE_KEY,
    ) -> PortaMoment:
        """Read a billing date string as local midnight in ``timezone``.

        Date-only strings from the billing are relative to the context zone
        (a customer's, for instance), not UTC.
        """
        tz = resolve_timezone(timezone, timezone_key)
        return cls(localize(parse_wire_date(date), tz))

    @classmethod
    def from_instant(cls, other: InstantLike) -> PortaMoment:
        if isinstance(other, PortaMoment):
            return cls(other.timestamp, other.clock)
        return cls(_instant(other))

    @staticmethod
    def format_instant(other: InstantLike) -> str:
        return PortaMoment.from_instant(other).to_wire_string()

    @property
    def timezone(self) -> tzinfo:
        return self.timestamp.tzinfo

    @property
    def timezone_name(self) -> str:
        return timezone_name(self.timezone)

    def _replace_wall(self, wall: pd.Timestamp) -> PortaMoment:
        return PortaMoment(localize(wall, self.timezone), self.clock)

    def with_timezone(self, timezone: Any, timezone_key: str = DEFAULT_TIMEZONE_KEY) -> PortaMoment:
        tz = resolve_timezone(timezone, timezone_key)
        return PortaMoment(self.timestamp.tz_convert(tz), self.clock)

    def to_wire_string(self) -> str:
        return self.timestamp.tz_convert(UTC).strftime(WIRE_DATETIME_FORMAT)

    def to_wire_date_string(self) -> str:
        return self.timestamp.strftime(WIRE_DATE_FORMAT)

    def format(self, pattern: str) -> str:
        return self.timestamp.strftime(pattern)

    def isoformat(self) -> str:
        return self.timestamp.isoformat(timespec="milliseconds")

    def to_datetime(self) -> datetime:
        return self.timestamp.tz_convert(UTC).floor("us").tz_convert(self.timezone).to_pydatetime()

    def first_moment_of_day(self) -> PortaMoment:
        return self._replace_wall(wall_clock(self.timestamp).normalize())

    def last_moment_of_day(self) -> PortaMoment:
        wall = wall_clock(self.timestamp).normalize()
        return self._replace_wall(wall.replace(hour=23, minute=59, second=59))

    def next_day(self) -> PortaMoment:
        return self._replace_wall(wall_clock(self.timestamp) + pd.DateOffset(days=1))

    def first_day_of_next_month(self) -> PortaMoment:
        return self._replace_wall(wall_clock(self.timestamp) + pd.offsets.MonthBegin(1))

    def last_day_of_this_month(self) -> PortaMoment:
        wall = wall_clock(self.timestamp)
        return self._replace_wall(wall.replace(day=wall.days_in_month))

    def prorate_till_end_of_month(self, fee: float) -> float:
        """Share of ``fee`` for the rest of the month, the current day included."""
        days = self.timestamp.days_in_month
        return round(days - self.timestamp.day + 1) * float(fee) / days

    def is_in_future(self, clock: Clock | None = None) -> bool:
        return self.timestamp > now_utc(clock or self.clock)

    def is_in_past(self, clock: Clock | None = None) -> bool:
        return self.timestamp < now_utc(clock or self.clock)

    def is_between(self, start: InstantLike | None = None, end: InstantLike | None = None) -> bool:
        """Inclusive range check; a ``None`` bound leaves that side open."""
        return (start is None or self >= start) and (end is None or self <= end)

    def __str__(self) -> str:
        return self.to_wire_string()

    def __repr__(self) -> str:
        return f"PortaMoment({self.isoformat()!r}, {self.timezone_name!r})"

    def __hash__(self) -> int:
        return hash(self.timestamp.tz_convert(UTC))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, _COMPARABLE):
            return NotImplemented
        return self.timestamp == _instant(other)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, _COMPARABLE):
            return NotImplemented
        return self.timestamp < _instant(other)

    def __le__(self, other: object) -> bool:
        if not isinstance(other, _COMPARABLE):
            return NotImplemented
        return self.timestamp <= _instant(other)

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, _COMPARABLE):
            return NotImplemented
        return self.timestamp > _instant(other)

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, _COMPARABLE):
            return NotImplemented
        return self.timestamp >= _instant(other)


_COMPARABLE = (PortaMoment, pd.Timestamp, datetime)
