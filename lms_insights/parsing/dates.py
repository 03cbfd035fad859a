"""
lms_insights/parsing/dates.py

Lenient date-time parsing for LMS and StoryLane exports.

Recognized inputs, in order:

    M/D/YY H:MM      StoryLane "Last View" column ("5/7/24 13:25")
    M/D/YY           date-only form; any text after the year is ignored
    ISO 8601         "2024-05-07", "2024-05-07T13:25:00Z", ...
    misc. formats    see ``FALLBACK_FORMATS``

Two-digit years are read as 20YY. Offset-aware values are converted to UTC
and returned naive, so every timestamp produced here compares cleanly with
every other.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

_SLASH_DATETIME = re.compile(
    r"^(?P<month>\d{1,2})/(?P<day>\d{1,2})/(?P<year>\d{4}|\d{2})"
    r"\s+(?P<hour>\d{1,2}):(?P<minute>\d{2})(?::(?P<second>\d{2}))?$"
)
_SLASH_DATE = re.compile(r"^(?P<month>\d{1,2})/(?P<day>\d{1,2})/(?P<year>\d{4}|\d{2})(?=\D|$)")

FALLBACK_FORMATS: tuple[str, ...] = (
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M:%S",
    "%d %B %Y",
    "%d %b %Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%d-%b-%Y",
)

_MONTH_NAMES: tuple[str, ...] = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


def _full_year(raw: str) -> int:
    year = int(raw)
    return year + 2000 if len(raw) == 2 else year


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _parse_slash_form(text: str) -> datetime | None:
    match = _SLASH_DATETIME.match(text)
    if match is not None:
        return datetime(
            _full_year(match["year"]),
            int(match["month"]),
            int(match["day"]),
            int(match["hour"]),
            int(match["minute"]),
            int(match["second"] or 0),
        )

    match = _SLASH_DATE.match(text)
    if match is not None:
        return datetime(_full_year(match["year"]), int(match["month"]), int(match["day"]))
    return None


def _parse_general(text: str) -> datetime | None:
    normalized = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        return _to_naive_utc(datetime.fromisoformat(normalized))
    except ValueError:
        pass

    for fmt in FALLBACK_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def parse_date(value: str | None) -> datetime | None:
    """
    Parse ``value`` into a naive UTC datetime, or return ``None``.

    Never raises: blank input returns ``None`` silently, unrecognized input
    returns ``None`` and logs a warning.
    """

    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None

    try:
        parsed = _parse_slash_form(text)
    except ValueError:
        # Matched the shape but not the calendar, e.g. 13/45/24.
        parsed = None
    if parsed is None:
        parsed = _parse_general(text)

    if parsed is None:
        logger.warning("Could not parse date value=%r", value)
    return parsed


def month_key(value: datetime) -> str:
    """
    Return the ``YYYY-MM`` bucket of ``value``.
    """

    return f"{value.year:04d}-{value.month:02d}"


def month_label(value: datetime) -> str:
    """
    Return the display label of ``value``'s month, e.g. ``"May 2024"``.
    """

    return f"{_MONTH_NAMES[value.month - 1]} {value.year}"


def month_label_from_key(key: str) -> str:
    """
    Return the display label for a ``YYYY-MM`` key.
    """

    year, month = key.split("-", 1)
    return f"{_MONTH_NAMES[int(month) - 1]} {int(year)}"
