"""
Date and time helpers shared by the validator and the schema normalizer.

Two levels of strictness live here:

- ``is_parseable_date`` / ``is_parseable_time`` are literal allow-lists used
  to flag suspicious extractor output. They never reject anything.
- ``parse_date`` / ``is_clock_time`` actually parse, and back the canonical
  ``YYYY-MM-DD`` start date and the per-field validators.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Optional

from family_activities.ingestion.normalization.patterns import (
    DASH,
    MONTH_ABBREVIATIONS,
    MONTHS,
    WEEKDAYS,
    upper_meridiem,
)

DATE_FORMATS = [
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%m/%d/%y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
]

TIME_FORMATS = [
    "%H:%M",
    "%I:%M %p",
    "%I:%M%p",
    "%H:%M:%S",
    "%I %p",
    "%I%p",
]

CANONICAL_DATE_FORMAT = "%Y-%m-%d"

_DATE_ALLOW_LIST = [
    re.compile(r"^\d{1,2}/\d{1,2}/\d{2,4}$"),
    re.compile(r"^\d{1,2}-\d{1,2}-\d{2,4}$"),
    re.compile(r"^\d{4}-\d{1,2}-\d{1,2}$"),
    re.compile(rf"^(?:{MONTHS})\s+\d{{1,2}}(?:\s*{DASH}\s*\d{{1,2}})?,?\s+\d{{4}}$"),
    re.compile(rf"^(?:{MONTH_ABBREVIATIONS}|{MONTHS})\.?\s+\d{{1,2}}$"),
    re.compile(rf"^(?:{WEEKDAYS}),?\s+(?:{MONTHS}|{MONTH_ABBREVIATIONS})\.?\s+\d{{1,2}}(?:,?\s+\d{{4}})?$"),
]

_TIME_ALLOW_LIST = [
    re.compile(r"(?i)^\d{1,2}:\d{2}\s*[ap]\.?m\.?$"),
    re.compile(r"(?i)^\d{1,2}\s*[ap]\.?m\.?$"),
    re.compile(r"^(?:[01]?\d|2[0-3]):[0-5]\d$"),
    re.compile(rf"(?i)^\d{{1,2}}(?::\d{{2}})?\s*(?:[ap]m)?\s*{DASH}\s*\d{{1,2}}(?::\d{{2}})?\s*(?:[ap]m)?$"),
]

# "October 1-31, 2024" -> "October 1, 2024"
_DAY_RANGE = re.compile(rf"^((?:{MONTHS}|{MONTH_ABBREVIATIONS})\.?\s+\d{{1,2}})\s*{DASH}\s*\d{{1,2}}(,?\s+\d{{4}})$")
_TIME_START = re.compile(r"(?i)\d{1,2}(?::\d{2}){1,2}(?:\s*[ap]\.?m\.?)?|\d{1,2}\s*[ap]\.?m\b\.?")
_TIME_MARKERS = ("AM", "PM", "am", "pm", ":")


def is_parseable_date(text: str) -> bool:
    """Check ``text`` against the literal date allow-list."""
    text = (text or "").strip()
    return any(pattern.match(text) for pattern in _DATE_ALLOW_LIST)


def is_parseable_time(text: str) -> bool:
    """Check ``text`` against the literal time allow-list."""
    text = (text or "").strip()
    return any(pattern.match(text) for pattern in _TIME_ALLOW_LIST)


def parse_date(text: str) -> Optional[date]:
    """
    Parse ``text`` with the fixed format list.

    Day ranges collapse to their first day. Returns None when no format
    matches.
    """
    if not text:
        return None
    text = " ".join(text.split())
    range_match = _DAY_RANGE.match(text)
    if range_match:
        text = f"{range_match.group(1)}, {range_match.group(2).lstrip(', ')}"

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def format_date(text: str) -> Optional[str]:
    """Reformat ``text`` to ``YYYY-MM-DD``, or None when it cannot be parsed."""
    parsed = parse_date(text)
    return parsed.strftime(CANONICAL_DATE_FORMAT) if parsed else None


def is_clock_time(text: str) -> bool:
    """
    Check whether ``text`` (or the start of a time range) parses as a clock time.
    """
    if not text:
        return False
    start = re.split(rf"\s*{DASH}\s*", text.strip(), maxsplit=1)[0]
    start = start.replace(".", "").upper()
    for fmt in TIME_FORMATS:
        try:
            datetime.strptime(start, fmt)
            return True
        except ValueError:
            continue
    return False


def normalize_time(text: str) -> str:
    """Trim and upper-case am/pm markers ("10:30am" -> "10:30AM")."""
    return upper_meridiem((text or "").strip())


def split_datetime(text: str) -> tuple[str, str]:
    """
    Split a combined date/time string into (date, time).

    Strings that already parse as a date, or that carry no time marker,
    are returned whole as the date.

    Example:
        >>> split_datetime("2024-12-15 10:00 AM")
        ('2024-12-15', '10:00 AM')
    """
    text = (text or "").strip()
    if not text:
        return "", ""
    if parse_date(text) is not None or not any(marker in text for marker in _TIME_MARKERS):
        return text, ""

    match = _TIME_START.search(text)
    if not match:
        return text, ""

    date_part = text[: match.start()].strip()
    date_part = re.sub(r"(?i)(?:,|\bat|@)\s*$", "", date_part).strip()
    time_part = text[match.start():].strip()
    if not date_part:
        return "", time_part
    return date_part, time_part
