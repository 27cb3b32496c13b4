"""Relative day and time-of-day resolution for utterances."""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from typing import Optional

TIME_PHRASE_RE = re.compile(
    r"\b(?:before|by|at)\s+(\d{1,2})(?::(\d{2}))?\s*(am|pm)\b",
    re.IGNORECASE,
)

DEFAULT_TIME_OF_DAY = time(9, 0)


def resolve_base_date(utterance: str, now: datetime) -> date:
    """'tomorrow' shifts one day ahead; 'today' or no day word keeps today."""
    if "tomorrow" in utterance.lower():
        return (now + timedelta(days=1)).date()
    return now.date()


def extract_time(utterance: str) -> Optional[time]:
    """Find a 'before/by/at H[:MM] am|pm' phrase and return its time of day."""
    match = TIME_PHRASE_RE.search(utterance)
    if not match:
        return None
    hour = int(match.group(1))
    minute = int(match.group(2)) if match.group(2) else 0
    if hour > 12 or minute > 59:
        return None
    hour = hour % 12
    if match.group(3).lower() == "pm":
        hour += 12
    return time(hour, minute)


def at_time(day: date, t: Optional[time] = None) -> datetime:
    return datetime.combine(day, t or time.min)
