"""W3C date codec: calendar dates at year, month or day precision plus RFC 3339 timestamps."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import IntEnum
from typing import Final

# strptime layouts for dates that arrive in non-W3C shapes.
W3C_YMD: Final[str] = "%Y-%m-%d"
W3C_YM: Final[str] = "%Y-%m"
W3C_Y: Final[str] = "%Y"
SLASH_DMY: Final[str] = "%d/%m/%Y"
FB_DATETIME: Final[str] = "%Y-%m-%dT%H:%M:%S%z"

_W3C_DATE_RE: Final[re.Pattern[str]] = re.compile(
    r"^(?P<year>\d{4})(?:-(?P<month>\d{2})(?:-(?P<day>\d{2}))?)?$"
)

__all__ = [
    "DatePrecision",
    "DateFormatError",
    "FB_DATETIME",
    "SLASH_DMY",
    "W3CDate",
    "W3C_Y",
    "W3C_YM",
    "W3C_YMD",
    "format_datetime",
    "new_date",
    "new_date_layout",
    "new_datetime",
    "parse_date",
    "parse_date_layout",
    "parse_datetime",
    "wrap_date",
]


class DateFormatError(ValueError):
    """Raised when a date or timestamp string cannot be parsed."""


class DatePrecision(IntEnum):
    DAY = 0
    MONTH = 1
    YEAR = 2


@dataclass(frozen=True, slots=True)
class W3CDate:
    """A calendar date that serializes as ``yyyy``, ``yyyy-mm`` or ``yyyy-mm-dd``."""

    value: date
    precision: DatePrecision = DatePrecision.DAY

    def isoformat(self) -> str:
        if self.precision is DatePrecision.YEAR:
            return f"{self.value.year:04d}"
        if self.precision is DatePrecision.MONTH:
            return f"{self.value.year:04d}-{self.value.month:02d}"
        return f"{self.value.year:04d}-{self.value.month:02d}-{self.value.day:02d}"

    def __str__(self) -> str:
        return self.isoformat()


def parse_date(text: str) -> W3CDate:
    """Parse a W3C date string; the precision follows the string's length."""

    if not isinstance(text, str):
        raise DateFormatError(f"date must be a string, got {type(text).__name__}")
    match = _W3C_DATE_RE.fullmatch(text)
    if match is None:
        raise DateFormatError(f"invalid W3C date {text!r}: expected yyyy, yyyy-mm or yyyy-mm-dd")

    year = int(match.group("year"))
    month = match.group("month")
    day = match.group("day")
    if day is not None:
        precision = DatePrecision.DAY
    elif month is not None:
        precision = DatePrecision.MONTH
    else:
        precision = DatePrecision.YEAR

    try:
        value = date(year, int(month or 1), int(day or 1))
    except ValueError as exc:
        raise DateFormatError(f"invalid W3C date {text!r}: {exc}") from exc
    return W3CDate(value, precision)


def new_date(text: str) -> W3CDate | None:
    """Like :func:`parse_date` but returns ``None`` for an invalid date."""

    try:
        return parse_date(text)
    except DateFormatError:
        return None


def parse_date_layout(layout: str, text: str) -> W3CDate:
    """Parse ``text`` with a strptime ``layout`` into a day-precision date."""

    try:
        parsed = datetime.strptime(text, layout)
    except (TypeError, ValueError) as exc:
        raise DateFormatError(f"date {text!r} does not match layout {layout!r}") from exc
    return wrap_date(parsed)


def new_date_layout(layout: str, text: str) -> W3CDate | None:
    try:
        return parse_date_layout(layout, text)
    except DateFormatError:
        return None


def wrap_date(value: date | datetime) -> W3CDate:
    """Wrap an existing date or datetime as a day-precision :class:`W3CDate`."""

    if isinstance(value, datetime):
        value = value.date()
    return W3CDate(value, DatePrecision.DAY)


def parse_datetime(text: str) -> datetime:
    """Parse an RFC 3339 timestamp. The result is always timezone-aware."""

    if not isinstance(text, str):
        raise DateFormatError(f"timestamp must be a string, got {type(text).__name__}")
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise DateFormatError(f"invalid RFC 3339 timestamp {text!r}") from exc
    if parsed.tzinfo is None or parsed.utcoffset() is None:
        raise DateFormatError(f"timestamp {text!r} has no UTC offset")
    return parsed


def new_datetime(text: str) -> datetime | None:
    """Like :func:`parse_datetime` but returns ``None`` for empty or invalid input."""

    if not text:
        return None
    try:
        return parse_datetime(text)
    except DateFormatError:
        return None


def format_datetime(value: datetime) -> str:
    """Format a timestamp as RFC 3339, trimming trailing fractional zeros.

    Naive values are taken to be in local time.
    """

    aware = value if value.tzinfo is not None else value.astimezone()
    text = aware.strftime("%Y-%m-%dT%H:%M:%S")
    if aware.microsecond:
        text += f".{aware.microsecond:06d}".rstrip("0")
    offset = aware.utcoffset() or timedelta(0)
    if offset == timedelta(0):
        return text + "Z"
    sign = "+" if offset > timedelta(0) else "-"
    minutes = abs(int(offset.total_seconds())) // 60
    return f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}"
