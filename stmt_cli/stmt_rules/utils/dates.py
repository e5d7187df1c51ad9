"""Date/time cell normalisation."""

from __future__ import annotations

import re
from datetime import date

_DATE_RE = re.compile(
    r"^(?P<year>\d{4})\s*[.\-/년]\s*(?P<month>\d{1,2})\s*[.\-/월]\s*(?P<day>\d{1,2})\s*일?\.?"
    r"(?:\s*(?P<time>\d{1,2}:\d{2}(?::\d{2})?))?$"
)
_COMPACT_DATE_RE = re.compile(
    r"^(?P<year>\d{4})(?P<month>\d{2})(?P<day>\d{2})(?:\s*(?P<time>\d{1,2}:\d{2}(?::\d{2})?))?$"
)
_TIME_RE = re.compile(r"^(?P<hour>\d{1,2}):(?P<minute>\d{2})(?::(?P<second>\d{2}))?$")


def split_datetime(value: str) -> tuple[str, str | None]:
    """Return ``(iso_date, time)`` for a date or date+time cell.

    Raises ``ValueError`` when the text is not a recognisable calendar date.
    """

    text = " ".join(str(value).split())
    match = _DATE_RE.match(text) or _COMPACT_DATE_RE.match(text)
    if not match:
        raise ValueError(f"Unrecognised date: {value!r}")
    parsed = date(int(match["year"]), int(match["month"]), int(match["day"]))
    time_part = match["time"]
    return parsed.isoformat(), normalize_time(time_part) if time_part else None


def normalize_time(value: str) -> str:
    """Zero-pad ``H:MM[:SS]`` into ``HH:MM[:SS]``; raises ``ValueError`` otherwise."""

    match = _TIME_RE.match(str(value).strip())
    if not match:
        raise ValueError(f"Unrecognised time: {value!r}")
    hour, minute = int(match["hour"]), int(match["minute"])
    if hour > 23 or minute > 59:
        raise ValueError(f"Time out of range: {value!r}")
    if match["second"] is None:
        return f"{hour:02d}:{minute:02d}"
    second = int(match["second"])
    if second > 59:
        raise ValueError(f"Time out of range: {value!r}")
    return f"{hour:02d}:{minute:02d}:{second:02d}"
