"""Unit tests for the W3C date and RFC 3339 timestamp codec."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from sipmeta.domain.dates import (
    SLASH_DMY,
    DateFormatError,
    DatePrecision,
    W3CDate,
    format_datetime,
    new_date,
    new_date_layout,
    new_datetime,
    parse_date,
    parse_date_layout,
    parse_datetime,
    wrap_date,
)


@pytest.mark.parametrize(
    ("text", "precision"),
    [
        ("2015", DatePrecision.YEAR),
        ("2015-03", DatePrecision.MONTH),
        ("2015-03-09", DatePrecision.DAY),
    ],
)
def test_parse_date_keeps_precision(text: str, precision: DatePrecision) -> None:
    parsed = parse_date(text)
    assert parsed.precision is precision
    assert parsed.isoformat() == text
    assert str(parsed) == text


@pytest.mark.parametrize("text", ["", "15", "2015-3", "2015-13", "2015-02-30", "09/03/2015"])
def test_parse_date_rejects_malformed_dates(text: str) -> None:
    with pytest.raises(DateFormatError):
        parse_date(text)
    assert new_date(text) is None


def test_parse_date_rejects_non_strings() -> None:
    with pytest.raises(DateFormatError, match="must be a string"):
        parse_date(2015)  # type: ignore[arg-type]


def test_layout_parsing_and_wrapping_give_day_precision() -> None:
    parsed = parse_date_layout(SLASH_DMY, "09/03/2015")
    assert parsed == W3CDate(date(2015, 3, 9), DatePrecision.DAY)

    with pytest.raises(DateFormatError, match="does not match layout"):
        parse_date_layout(SLASH_DMY, "2015-03-09")

    wrapped = wrap_date(datetime(2020, 1, 2, 23, 59, tzinfo=timezone.utc))
    assert wrapped.isoformat() == "2020-01-02"


def test_parse_datetime_requires_offset() -> None:
    parsed = parse_datetime("2020-01-01T10:00:00+10:00")
    assert parsed.utcoffset() == timedelta(hours=10)

    with pytest.raises(DateFormatError, match="no UTC offset"):
        parse_datetime("2020-01-01T10:00:00")
    with pytest.raises(DateFormatError):
        parse_datetime("yesterday")
    assert new_datetime("") is None
    assert new_datetime("not a time") is None


def test_format_datetime_rfc3339() -> None:
    utc = datetime(2020, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert format_datetime(utc) == "2020-01-02T03:04:05Z"

    sydney = datetime(2020, 1, 2, 3, 4, 5, tzinfo=timezone(timedelta(hours=10)))
    assert format_datetime(sydney) == "2020-01-02T03:04:05+10:00"

    fractional = datetime(2020, 1, 2, 3, 4, 5, 500000, tzinfo=timezone(timedelta(hours=-3, minutes=-30)))
    assert format_datetime(fractional) == "2020-01-02T03:04:05.5-03:30"


def test_format_then_parse_datetime_is_stable() -> None:
    original = datetime(1999, 12, 31, 23, 59, 59, tzinfo=timezone(timedelta(hours=11)))
    assert parse_datetime(format_datetime(original)) == original


def test_layout_helpers_return_none_on_mismatch() -> None:
    assert new_date_layout(SLASH_DMY, "31/01/2015") == W3CDate(date(2015, 1, 31))
    assert new_date_layout(SLASH_DMY, "2015-01-31") is None
