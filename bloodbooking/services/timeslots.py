from __future__ import annotations

import logging
import re
from datetime import datetime, time

logger = logging.getLogger(__name__)

_HHMM = re.compile(r"^(\d{1,2}):(\d{2})$")
_HHMMSS = re.compile(r"^(\d{1,2}):(\d{2}):\d{2}$")


def to_minutes(value: str) -> int | None:
    """Minutes since midnight for "H:MM"/"HH:MM", or None if unparseable."""
    if not isinstance(value, str):
        return None
    m = _HHMM.match(value.strip())
    if not m:
        return None
    hours, minutes = int(m.group(1)), int(m.group(2))
    if minutes > 59:
        return None
    return hours * 60 + minutes


def format_minutes(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


def normalize_time(raw) -> str:
    """Turn a sheet cell (time/datetime, "9:00", "09:00:00") into "HH:MM".

    Values that do not look like a time are returned stripped but otherwise
    unchanged, so they simply never match a generated slot.
    """
    if isinstance(raw, (datetime, time)):
        return f"{raw.hour:02d}:{raw.minute:02d}"
    text = str(raw if raw is not None else "").strip()
    m = _HHMM.match(text) or _HHMMSS.match(text)
    if m:
        return f"{int(m.group(1)):02d}:{m.group(2)}"
    return text


def generate_time_slots(start: str, end: str, interval_minutes) -> list[str]:
    """Slot labels in [start, end) stepped by interval_minutes.

    Returns an empty list for unparseable times, a non-positive interval or
    start >= end.
    """
    start_min = to_minutes(start)
    end_min = to_minutes(end)
    try:
        interval = int(interval_minutes)
    except (TypeError, ValueError):
        interval = 0

    if start_min is None or end_min is None or interval <= 0 or start_min >= end_min:
        logger.warning("Invalid time slot settings start=%r end=%r interval=%r", start, end, interval_minutes)
        return []

    return [format_minutes(m) for m in range(start_min, end_min, interval)]
