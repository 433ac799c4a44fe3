"""Normalization of loosely formatted date/time input into calendar wire timestamps.

The calendar backend only accepts ISO 8601 datetimes of the shape
``YYYY-MM-DDTHH:MM:SS[.sss][Z|+HH:MM]``. Tool arguments usually already have that
shape, but user text can reach the tool layer untouched, so every date/time
argument passes through :func:`normalize` before it is validated or sent.

Recognized inputs, in priority order:

* canonical ISO datetimes (returned verbatim once their fields check out)
* bare ISO dates, read as local midnight
* ``today`` / ``tomorrow`` / ``yesterday``
* ``in <N> minute(s)|hour(s)|day(s)|week(s)``
* month-first ``M/D/YYYY`` or ``M-D-YYYY`` with an optional ``H:MM[:SS] [AM|PM]``
* anything ``dateutil`` can make sense of

Integers are epoch milliseconds. Non-canonical input is emitted as a UTC instant
with millisecond precision.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil import parser as date_parser
from tzlocal import get_localzone

from ..domain import DateParseError, EventDateTime

DateInput = Union[str, int, float, date, datetime]

CANONICAL_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d{3})?([+-]\d{2}:\d{2}|Z)?$")
_ISO_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_RELATIVE_PATTERN = re.compile(r"^in\s+(\d+)\s+(minute|hour|day|week)s?$", re.IGNORECASE)
_MONTH_FIRST_PATTERN = re.compile(
    r"^(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})"
    r"(?:\s+(\d{1,2}):(\d{2})(?::(\d{2}))?(?:\s*(AM|PM))?)?$",
    re.IGNORECASE,
)
_DAY_OFFSETS = {"today": 0, "tomorrow": 1, "yesterday": -1}


def resolve_timezone(name: Optional[str] = None) -> tzinfo:
    """Return the named IANA zone, or the host's local zone when no name is given."""

    if not name:
        return get_localzone()
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown time zone: {name}") from exc


def timezone_name(tz: tzinfo) -> str:
    key = getattr(tz, "key", None)
    if key:
        return str(key)
    return str(tz)


def format_instant(moment: datetime) -> str:
    """Render an aware datetime as ``YYYY-MM-DDTHH:MM:SS.sssZ``."""

    utc = moment.astimezone(timezone.utc)
    return f"{utc.strftime('%Y-%m-%dT%H:%M:%S')}.{utc.microsecond // 1000:03d}Z"


def is_valid_format(value: object) -> bool:
    """True when ``value`` is already a canonical timestamp with real calendar fields."""

    if not isinstance(value, str) or not CANONICAL_PATTERN.match(value):
        return False
    try:
        _from_canonical(value)
    except ValueError:
        return False
    return True


def parse_datetime_value(
    value: DateInput,
    field: str,
    *,
    tz: Optional[tzinfo] = None,
    now: Optional[datetime] = None,
) -> datetime:
    """Resolve ``value`` to an aware datetime or raise :class:`DateParseError`."""

    zone = tz or resolve_timezone()
    if value is None or value == "" or isinstance(value, bool):
        raise DateParseError(field, value, "date input is required")

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=zone)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=zone)
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise DateParseError(field, value, "timestamp out of range") from exc
    if not isinstance(value, str):
        raise DateParseError(field, value, f"unsupported date type {type(value).__name__}")

    return _parse_string(value.strip(), field, zone, now)


def normalize(
    value: DateInput,
    field: str,
    *,
    tz: Optional[tzinfo] = None,
    now: Optional[datetime] = None,
) -> str:
    """Return the canonical timestamp for ``value``; canonical strings come back unchanged."""

    if isinstance(value, str) and CANONICAL_PATTERN.match(value.strip()):
        candidate = value.strip()
        try:
            _from_canonical(candidate)
        except ValueError as exc:
            raise DateParseError(field, value, "invalid calendar fields") from exc
        return candidate
    return format_instant(parse_datetime_value(value, field, tz=tz, now=now))


def to_event_datetime(
    value: DateInput,
    field: str,
    *,
    tz: Optional[tzinfo] = None,
    now: Optional[datetime] = None,
) -> EventDateTime:
    """Build the ``{dateTime, timeZone}`` pair for calendar writes."""

    zone = tz or resolve_timezone()
    normalized = normalize(value, field, tz=zone, now=now)
    return EventDateTime(date_time=normalized, time_zone=event_time_zone(value, tz=zone))


def event_time_zone(value: DateInput, *, tz: Optional[tzinfo] = None) -> str:
    """``UTC`` when the raw input pinned itself to UTC, otherwise the local zone name."""

    if isinstance(value, str) and value.strip().endswith(("Z", "+00:00")):
        return "UTC"
    return timezone_name(tz or resolve_timezone())


def to_instant(timestamp: str, *, tz: Optional[tzinfo] = None) -> datetime:
    """Read a normalized timestamp back into an aware datetime (naive means ``tz``)."""

    moment = _from_canonical(timestamp)
    return moment if moment.tzinfo else moment.replace(tzinfo=tz or resolve_timezone())


def with_offset(timestamp: str, *, tz: Optional[tzinfo] = None) -> str:
    """Give a canonical timestamp an explicit offset; query bounds must carry one."""

    match = CANONICAL_PATTERN.match(timestamp)
    if match and match.group(2):
        return timestamp
    return to_instant(timestamp, tz=tz).isoformat(timespec="seconds")


def parse_event_boundary(boundary: Optional[dict], *, tz: Optional[tzinfo] = None) -> Optional[datetime]:
    """Read an event's ``start``/``end`` object (``dateTime`` or all-day ``date``)."""

    if not boundary:
        return None
    zone = tz or resolve_timezone()
    raw = boundary.get("dateTime")
    if raw:
        moment = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        if moment.tzinfo is None:
            named = boundary.get("timeZone")
            moment = moment.replace(tzinfo=resolve_timezone(named) if named else zone)
        return moment
    raw_date = boundary.get("date")
    if raw_date:
        return datetime.combine(date.fromisoformat(raw_date), time.min, tzinfo=zone)
    return None


# ---------------------------------------------------------------------- parsing stages


def _from_canonical(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _parse_string(text: str, field: str, zone: tzinfo, now: Optional[datetime]) -> datetime:
    if not text:
        raise DateParseError(field, text, "date input is required")

    if CANONICAL_PATTERN.match(text):
        try:
            moment = _from_canonical(text)
        except ValueError as exc:
            raise DateParseError(field, text, "invalid calendar fields") from exc
        return moment if moment.tzinfo else moment.replace(tzinfo=zone)

    if match := _ISO_DATE_PATTERN.match(text):
        year, month, day = (int(part) for part in match.groups())
        return _build(field, text, zone, year, month, day)

    reference = _reference_now(now, zone)

    offset = _DAY_OFFSETS.get(text.lower())
    if offset is not None:
        return reference + timedelta(days=offset)

    if match := _RELATIVE_PATTERN.match(text):
        return _apply_relative(reference, int(match.group(1)), match.group(2).lower())

    if match := _MONTH_FIRST_PATTERN.match(text):
        return _parse_month_first(match, field, text, zone)

    return _fallback_parse(text, field, zone, reference)


def _reference_now(now: Optional[datetime], zone: tzinfo) -> datetime:
    if now is None:
        return datetime.now(zone)
    return now if now.tzinfo else now.replace(tzinfo=zone)


def _apply_relative(reference: datetime, amount: int, unit: str) -> datetime:
    if unit == "minute":
        return _shift_absolute(reference, timedelta(minutes=amount))
    if unit == "hour":
        return _shift_absolute(reference, timedelta(hours=amount))
    if unit == "day":
        return reference + timedelta(days=amount)
    return reference + timedelta(weeks=amount)


def _shift_absolute(reference: datetime, delta: timedelta) -> datetime:
    # Minutes and hours are elapsed time; days and weeks keep the wall clock.
    zone = reference.tzinfo
    return (reference.astimezone(timezone.utc) + delta).astimezone(zone)


def _parse_month_first(match: re.Match, field: str, text: str, zone: tzinfo) -> datetime:
    month, day, year = int(match.group(1)), int(match.group(2)), int(match.group(3))
    hour = int(match.group(4) or 0)
    minute = int(match.group(5) or 0)
    second = int(match.group(6) or 0)
    meridiem = (match.group(7) or "").upper()
    if meridiem:
        if hour < 1 or hour > 12:
            raise DateParseError(field, text, "hour must be 1-12 with AM/PM")
        if meridiem == "PM" and hour != 12:
            hour += 12
        elif meridiem == "AM" and hour == 12:
            hour = 0
    return _build(field, text, zone, year, month, day, hour, minute, second)


def _build(field: str, raw: str, zone: tzinfo, *parts: int) -> datetime:
    try:
        return datetime(*parts, tzinfo=zone)
    except ValueError as exc:
        raise DateParseError(field, raw, str(exc)) from exc


def _fallback_parse(text: str, field: str, zone: tzinfo, reference: datetime) -> datetime:
    default = reference.replace(hour=0, minute=0, second=0, microsecond=0, tzinfo=None)
    try:
        moment = date_parser.parse(text, default=default)
    except (ValueError, OverflowError) as exc:
        raise DateParseError(field, text) from exc
    return moment if moment.tzinfo else moment.replace(tzinfo=zone)
