"""
Time-of-day and weekday helpers shared by the resolver and the formatters.

All day-of-week lookups go through ``DAY_NAMES`` (Sunday=0 ... Saturday=6).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
import re
from typing import Optional, Tuple

from .errors import InvalidTimeError

DAY_NAMES: Tuple[str, ...] = (
    "sunday",
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
)

DAY_NAMES_DE = {
    "sunday": "Sonntag",
    "monday": "Montag",
    "tuesday": "Dienstag",
    "wednesday": "Mittwoch",
    "thursday": "Donnerstag",
    "friday": "Freitag",
    "saturday": "Samstag",
}

_TIME_RE = re.compile(r"(\d{1,2})(?::(\d{2}))?", re.ASCII)


def day_index(day: date) -> int:
    """Return the Sunday-based weekday index (0-6) of ``day``."""
    return (day.weekday() + 1) % 7


def day_name_for(day: date) -> str:
    return DAY_NAMES[day_index(day)]


def parse_day(value: object) -> Optional[date]:
    """
    Read a calendar date from a ``date``, ``YYYY-MM-DD`` or ISO datetime string.

    Returns ``None`` for anything else.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip().split("T", 1)[0])
    except ValueError:
        return None


def normalize_time(raw: str) -> str:
    """
    Normalize a time of day to zero-padded ``HH:MM``.

    Accepts hour-only values (``"9"``, ``"09"``) and ``H:MM`` / ``HH:MM``.
    ``"24:00"`` is allowed as the end-of-day sentinel.

    Raises:
        InvalidTimeError: for anything else.
    """
    if not isinstance(raw, str):
        raise InvalidTimeError(raw)
    match = _TIME_RE.fullmatch(raw)
    if match is None:
        raise InvalidTimeError(raw)
    hour = int(match.group(1))
    minute = int(match.group(2) or 0)
    if minute > 59 or hour > 24 or (hour == 24 and minute != 0):
        raise InvalidTimeError(raw)
    return f"{hour:02d}:{minute:02d}"


def try_normalize_time(raw: object) -> Optional[str]:
    try:
        return normalize_time(raw)  # type: ignore[arg-type]
    except InvalidTimeError:
        return None


def hour_of(value: str) -> int:
    return int(normalize_time(value)[:2])


class PopularityLabel(str, Enum):
    POPULAR = "popular"
    RECOMMENDED = "recommended"
    EVENING = "evening"


@dataclass(frozen=True)
class PopularityRule:
    start_hour: int
    end_hour: int
    label: PopularityLabel

    def matches(self, hour: int) -> bool:
        return self.start_hour <= hour <= self.end_hour


# Evaluated in order; first match wins. Bounds are inclusive on the hour.
POPULARITY_RULES: Tuple[PopularityRule, ...] = (
    PopularityRule(14, 16, PopularityLabel.POPULAR),
    PopularityRule(9, 11, PopularityLabel.RECOMMENDED),
    PopularityRule(18, 20, PopularityLabel.EVENING),
)


def classify_popularity(
    value: str, rules: Tuple[PopularityRule, ...] = POPULARITY_RULES
) -> Optional[PopularityLabel]:
    """Return the popularity label for a start time, or ``None``."""
    hour = hour_of(value)
    for rule in rules:
        if rule.matches(hour):
            return rule.label
    return None
