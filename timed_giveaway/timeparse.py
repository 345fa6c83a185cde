"""Resolve 12-hour clock strings such as ``5:30PM`` into absolute end times."""

from __future__ import annotations

import re
from datetime import UTC, datetime, time, timedelta
from zoneinfo import ZoneInfo

CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})\s*(AM|PM)$", re.IGNORECASE)


class TimeParseError(ValueError):
    """Raised when an end time string cannot be resolved."""


class InvalidFormat(TimeParseError):
    pass


class InvalidValue(TimeParseError):
    pass


def parse_clock(text: str) -> time:
    """Convert a 12-hour clock string into a 24-hour ``time``."""
    match = CLOCK_RE.match(text.strip())
    if not match:
        raise InvalidFormat(
            'Invalid time format. Please use format like "5:30PM" or "11:45AM"'
        )

    hours = int(match.group(1))
    minutes = int(match.group(2))
    period = match.group(3).upper()
    if hours < 1 or hours > 12 or minutes < 0 or minutes > 59:
        raise InvalidValue("Invalid time values. Hours must be 1-12, minutes 0-59")

    if period == "AM" and hours == 12:
        hours = 0
    elif period == "PM" and hours != 12:
        hours += 12
    return time(hours, minutes)


def localize(now: datetime, tz: ZoneInfo) -> datetime:
    """Return ``now`` as an aware UTC instant, reading naive values as wall-clock time in ``tz``."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=tz)
    return now.astimezone(UTC)


def parse_expiry(text: str, now: datetime, tz: ZoneInfo) -> datetime:
    """Return the next instant (in UTC) at which the wall clock in ``tz`` shows ``text``.

    Today's date is taken from ``now`` as seen in ``tz``. When that moment is
    not strictly in the future the same wall-clock time on the following day
    is used instead.
    """
    wall_clock = parse_clock(text)
    now_utc = localize(now, tz)
    now_local = now_utc.astimezone(tz)

    candidate = datetime.combine(now_local.date(), wall_clock, tzinfo=tz)
    # Same-zone comparisons ignore fold, so compare UTC instants.
    if candidate.astimezone(UTC) <= now_utc:
        candidate = datetime.combine(
            now_local.date() + timedelta(days=1), wall_clock, tzinfo=tz
        )
    return candidate.astimezone(UTC)


def format_clock(instant: datetime, tz: ZoneInfo) -> str:
    """Render the wall-clock part of ``instant`` in the form ``parse_clock`` accepts."""
    local = instant.astimezone(tz)
    hour = local.hour % 12 or 12
    period = "AM" if local.hour < 12 else "PM"
    return f"{hour}:{local.minute:02d}{period}"


def format_expiry(instant: datetime, tz: ZoneInfo) -> str:
    return instant.astimezone(tz).strftime("%Y-%m-%d %H:%M %Z")
