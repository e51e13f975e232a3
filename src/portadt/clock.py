from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

import pandas as pd


class Clock(Protocol):
    def now(self) -> pd.Timestamp: ...


def ensure_utc(ts: pd.Timestamp) -> pd.Timestamp:
    if ts.tz is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")


@dataclass(frozen=True)
class SystemClock:
    def now(self) -> pd.Timestamp:
        return pd.Timestamp.now(tz="UTC")


@dataclass(frozen=True)
class FixedClock:
    """Clock frozen at one instant. Naive values are read as UTC."""

    at: pd.Timestamp

    def __post_init__(self) -> None:
        object.__setattr__(self, "at", ensure_utc(pd.Timestamp(self.at)))

    def now(self) -> pd.Timestamp:
        return self.at


SYSTEM_CLOCK = SystemClock()


def now_utc(clock: Clock | None = None) -> pd.Timestamp:
    return ensure_utc((clock or SYSTEM_CLOCK).now())


def as_timestamp(value: pd.Timestamp | datetime) -> pd.Timestamp:
    ts = pd.Timestamp(value)
    if ts.tz is None:
        return ts.tz_localize("UTC")
    return ts
