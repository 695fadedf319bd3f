"""Timestamp parsing for feed and page metadata.

Two strict parsers:

    parse_iso8601  - ISO-8601 date with optional time (dateutil)
    parse_rfc822   - lenient RFC-822, as written by legacy RSS generators

Both raise :class:`FormatError`; the ``try_*`` variants return ``None``.
:func:`parse_datetime` tries ISO-8601 first, then RFC-822, and is what the
metadata resolver and the feed drivers call.

The RFC-822 epoch conversion counts days with a fixed month table and adds a
leap day whenever ``year % 4 == 0``.  There is no century rule, so results
for 1900 or 2100 differ from the Gregorian calendar.
"""

from __future__ import annotations

import logging
import re
from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import dateparser
from dateutil.parser import isoparse

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

_HOUR_MILLIS = 3600 * 1000


class FormatError(ValueError):
    """Raised when a date/time string cannot be parsed.

    Attributes:
        message  -- description including the offending substring
        position -- character offset where parsing stopped
    """

    def __init__(self, message: str, position: int = 0) -> None:
        super().__init__(f"{message} (at position {position})")
        self.message = message
        self.position = position


# ---------------------------------------------------------------------------
# Conversions
# ---------------------------------------------------------------------------

def to_millis(dt: datetime | None) -> int:
    """Return epoch milliseconds for *dt* (0 for ``None``)."""
    if dt is None:
        return 0
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    delta = dt - _EPOCH
    return (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000


def from_millis(millis: int) -> datetime:
    """Return an aware UTC datetime for epoch milliseconds."""
    return _EPOCH + timedelta(milliseconds=millis)


# ---------------------------------------------------------------------------
# ISO-8601
# ---------------------------------------------------------------------------

def parse_iso8601(value: str) -> datetime:
    """Parse an ISO-8601 date with optional time.

    Accepts ``2003-12-13``, ``2003-12-13T18:30Z``, ``2003-12-13T18:30:02.145Z``
    and numeric offsets (``-0600``, ``+05:30``).  Values without an offset are
    taken as UTC.
    """
    text = (value or "").strip()
    if not text:
        raise FormatError("Empty ISO-8601 timestamp", 0)
    try:
        parsed = isoparse(text)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=UTC)
        return parsed.astimezone(UTC)
    except (ValueError, OverflowError) as exc:
        raise FormatError(f"Invalid ISO-8601 timestamp: {text!r} ({exc})", 0) from exc


def try_parse_iso8601(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return parse_iso8601(value)
    except FormatError:
        return None


# ---------------------------------------------------------------------------
# RFC-822
# ---------------------------------------------------------------------------

_MONTHS: dict[str, int] = {
    "jan": 1, "january": 1,
    "feb": 2, "february": 2,
    "mar": 3, "march": 3,
    "apr": 4, "april": 4,
    "may": 5,
    "jun": 6, "june": 6,
    "jul": 7, "july": 7,
    "aug": 8, "august": 8,
    "sep": 9, "september": 9,
    "oct": 10, "october": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12,
}

# Milliseconds *added* to the wall-clock time read as GMT
_TZ_OFFSETS: dict[str, int] = {
    "UT": 0,
    "GMT": 0,
    "EST": 5 * _HOUR_MILLIS,
    "EDT": 4 * _HOUR_MILLIS,
    "CST": 6 * _HOUR_MILLIS,
    "CDT": 5 * _HOUR_MILLIS,
    "MST": 7 * _HOUR_MILLIS,
    "MDT": 6 * _HOUR_MILLIS,
    "PST": 8 * _HOUR_MILLIS,
    "PDT": 7 * _HOUR_MILLIS,
    "A": -1 * _HOUR_MILLIS,
    "M": -1 * _HOUR_MILLIS,
    "N": 1 * _HOUR_MILLIS,
    "Y": 12 * _HOUR_MILLIS,
}

# Cumulative days before each month (non-leap)
_DAYS_BEFORE_MONTH = (0, 31, 59, 90, 120, 151, 181, 212, 243, 273, 304, 334)

_INT_RE = re.compile(r"-?\d+")
_FLOAT_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)")


def timestamp_millis(year: int, month: int, day: int, hour: int, minute: int, sec: int) -> int:
    """Epoch milliseconds for a GMT wall-clock time, using the legacy day count."""
    days = 365 * (year - 1970) + _DAYS_BEFORE_MONTH[month - 1] + (day - 1)
    # Leap days since 1970, truncating toward zero
    leap = year - 1969
    days += leap // 4 if leap >= 0 else -(-leap // 4)
    if month > 2 and year % 4 == 0:
        days += 1
    return (sec + 60 * (minute + 60 * (hour + 24 * days))) * 1000


def _to_int(token: str) -> int | None:
    return int(token) if _INT_RE.fullmatch(token) else None


def _eat_spaces(pos: int, text: str) -> int:
    while pos < len(text) and text[pos].isspace():
        pos += 1
    return pos


def _read_to_space(pos: int, text: str) -> tuple[int, str]:
    start = pos
    while pos < len(text) and not text[pos].isspace():
        pos += 1
    return pos, text[start:pos]


def _read_to_time_delim(pos: int, text: str) -> tuple[int, str]:
    """Read up to ``:`` or a space; the delimiter itself is consumed."""
    buf: list[str] = []
    while pos < len(text):
        ch = text[pos]
        pos += 1
        if ch in ": ":
            return pos, "".join(buf)
        buf.append(ch)
    return pos, "".join(buf)


def _zone_offset(tz: str, gmt_millis: int, pos: int) -> int:
    """Milliseconds to add to *gmt_millis* for the zone token *tz*."""
    char0 = tz[0]
    if char0 in "+-" or char0.isdigit():
        digits = tz[1:] if char0 in "+-" else tz
        end = min(2, len(digits))
        hours = _to_int(digits[:end])
        if hours is None:
            raise FormatError(f"Invalid offset hours: {tz}", pos)
        offset = hours * _HOUR_MILLIS
        start = end
        if start < len(digits) and digits[start] == ":":
            start += 1
        if start < len(digits):
            mins = _to_int(digits[start:start + 2])
            if mins is None:
                raise FormatError(f"Invalid offset minutes: {tz}", pos)
            offset += mins * 60 * 1000
        return offset if char0 == "-" else -offset

    if char0 in "Zz":
        return 0

    if tz in _TZ_OFFSETS:
        return _TZ_OFFSETS[tz]

    try:
        zone = ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError):
        logger.debug("Unknown time zone %r, assuming GMT", tz)
        return 0
    try:
        utc_offset = from_millis(gmt_millis).astimezone(zone).utcoffset()
    except (OverflowError, ValueError) as exc:
        raise FormatError(f"Timestamp out of range for zone {tz}", pos) from exc
    return -int(utc_offset.total_seconds() * 1000) if utc_offset else 0


def parse_rfc822_millis(value: str) -> int:
    """Parse an RFC-822 timestamp and return epoch milliseconds."""
    text = value or ""
    length = len(text)

    pos = 0
    while pos < length and not text[pos].isdigit():
        pos += 1
    if pos == length:
        raise FormatError("Not an RFC822 timestamp", 0)

    pos, token = _read_to_space(pos, text)
    day = _to_int(token)
    if day is None:
        raise FormatError(f"Unable to parse day: {token} ({text})", pos)

    pos = _eat_spaces(pos, text)
    pos, token = _read_to_space(pos, text)
    month = _MONTHS.get(token.lower(), 0)
    if month == 0:
        raise FormatError(f"Invalid month: {token} ({text})", pos)

    pos = _eat_spaces(pos, text)
    pos, token = _read_to_space(pos, text)
    year = _to_int(token)
    if year is None:
        raise FormatError(f"Unable to parse year: {token} ({text})", pos)

    pos = _eat_spaces(pos, text)
    if pos >= length:
        return timestamp_millis(year, month, day, 0, 0, 0)

    pos, token = _read_to_time_delim(pos, text)
    hour = _to_int(token)
    if hour is None:
        raise FormatError(f"Unable to parse hour: {token} ({text})", pos)

    pos = _eat_spaces(pos, text)
    if pos >= length:
        return timestamp_millis(year, month, day, hour, 0, 0)

    pos, token = _read_to_time_delim(pos, text)
    minute = _to_int(token)
    if minute is None:
        raise FormatError(f"Unable to parse minutes: {token} ({text})", pos)

    pos = _eat_spaces(pos, text)
    if pos >= length:
        return timestamp_millis(year, month, day, hour, minute, 0)

    pos, token = _read_to_space(pos, text)
    if not _FLOAT_RE.fullmatch(token):
        raise FormatError(f"Unable to parse seconds: {token} ({text})", pos)
    sec = int(float(token))

    pos = _eat_spaces(pos, text)
    gmt_millis = timestamp_millis(year, month, day, hour, minute, sec)
    if pos >= length:
        return gmt_millis

    pos, tz = _read_to_space(pos, text)
    return gmt_millis + _zone_offset(tz, gmt_millis, pos)


def parse_rfc822(value: str) -> datetime:
    """Parse an RFC-822 timestamp (``Wed, 02 Oct 2002 08:00:00 EST``).

    The day of week is optional, single-digit hours are accepted and any
    trailing field may be omitted (missing fields are zero, UTC).
    """
    millis = parse_rfc822_millis(value)
    try:
        return from_millis(millis)
    except OverflowError as exc:
        raise FormatError(f"Timestamp out of range: {value}", 0) from exc


def try_parse_rfc822(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return parse_rfc822(value)
    except FormatError:
        return None


# ---------------------------------------------------------------------------
# Combined
# ---------------------------------------------------------------------------

def parse_datetime(value: str | None) -> datetime | None:
    """Parse *value* as ISO-8601, then RFC-822.  ``None`` if neither applies."""
    if not value or not value.strip():
        return None
    value = value.strip()
    try:
        return parse_iso8601(value)
    except FormatError:
        pass
    try:
        return parse_rfc822(value)
    except FormatError as exc:
        logger.debug("Date parse failed for %r: %s", value, exc)
    return None


def parse_rfc822_first(value: str | None) -> datetime | None:
    """Parse *value* as RFC-822, then ISO-8601 (feed dates favour RFC-822)."""
    return try_parse_rfc822(value) or try_parse_iso8601(value)


def parse_timestamp(value: str | None) -> int:
    """Epoch milliseconds for :func:`parse_datetime` (0 when unparseable)."""
    return to_millis(parse_datetime(value))


def parse_lenient(value: str | None) -> datetime | None:
    """Free-form date parsing for visible page text ("March 3, 2021")."""
    if not value or not value.strip():
        return None
    try:
        parsed = dateparser.parse(
            value.strip(),
            settings={
                "RETURN_AS_TIMEZONE_AWARE": True,
                "TIMEZONE": "UTC",
                "PREFER_DAY_OF_MONTH": "first",
            },
        )
        return parsed.astimezone(UTC) if parsed else None
    except Exception as exc:
        logger.debug("Lenient date parse failed for %r: %s", value, exc)
        return None
