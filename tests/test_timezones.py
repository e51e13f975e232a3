from __future__ import annotations

from datetime import timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from portadt.errors import InvalidArgumentError
from portadt.timezones import (
    UTC,
    ProviderLookup,
    ZoneName,
    ZoneObject,
    parse_zone_name,
    resolve_timezone,
    timezone_spec,
    timezone_name,
)


class _Settings:
    def __init__(self, values: dict[str, object]) -> None:
        self.values = values
        self.gets: list[str] = []

    def has(self, key: str) -> bool:
        return key in self.values

    def get(self, key: str) -> object:
        self.gets.append(key)
        return self.values[key]


@pytest.mark.parametrize(
    ("name", "offset"),
    [
        ("GMT+03:00", timedelta(hours=3)),
        ("+0530", timedelta(hours=5, minutes=30)),
        ("UTC-5", timedelta(hours=-5)),
        ("-09:30", timedelta(hours=-9, minutes=-30)),
        ("+00:00", timedelta(0)),
    ],
)
def test_fixed_offsets(name: str, offset: timedelta) -> None:
    assert parse_zone_name(name).utcoffset(None) == offset


@pytest.mark.parametrize("name", ["UTC", "utc", "Z", "GMT"])
def test_utc_aliases(name: str) -> None:
    assert parse_zone_name(name) is UTC


def test_iana_name() -> None:
    assert parse_zone_name(" Europe/Paris ") == ZoneInfo("Europe/Paris")


@pytest.mark.parametrize("name", ["Mars/Olympus_Mons", "+25:00", "", "../etc/passwd"])
def test_invalid_names(name: str) -> None:
    with pytest.raises(InvalidArgumentError):
        parse_zone_name(name)


def test_timezone_spec_tags() -> None:
    provider = _Settings({})
    assert timezone_spec("Europe/Paris") == ZoneName("Europe/Paris")
    assert timezone_spec(UTC) == ZoneObject(UTC)
    assert timezone_spec(provider, "billing.tz") == ProviderLookup(provider, "billing.tz")
    with pytest.raises(InvalidArgumentError, match="timezone must be a string"):
        timezone_spec(3)


def test_tzinfo_used_as_is() -> None:
    tz = timezone(timedelta(hours=2), "EET-ish")
    assert resolve_timezone(tz) is tz


def test_provider_lookup() -> None:
    provider = _Settings({"default.timezone": "Pacific/Palau"})
    assert resolve_timezone(provider) == ZoneInfo("Pacific/Palau")
    assert provider.gets == ["default.timezone"]


def test_provider_custom_key_and_fallback() -> None:
    provider = _Settings({"customer.timezone": "+02:00"})
    assert resolve_timezone(provider, "customer.timezone").utcoffset(None) == timedelta(hours=2)
    assert resolve_timezone(provider) is UTC
    assert provider.gets == ["customer.timezone"]


def test_provider_bad_zone_string() -> None:
    with pytest.raises(InvalidArgumentError):
        resolve_timezone(_Settings({"default.timezone": "Nowhere/Special"}))


def test_timezone_name() -> None:
    assert timezone_name(ZoneInfo("Pacific/Palau")) == "Pacific/Palau"
    assert timezone_name(UTC) == "UTC"
    assert timezone_name(parse_zone_name("GMT+03:00")) == "+03:00"
    assert timezone_name(parse_zone_name("-0930")) == "-09:30"
