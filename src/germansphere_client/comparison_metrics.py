"""
Derived values for the comparison tables.

Winner helpers return the index of the best entry in the list they are
given. Ties go to the earliest entry (insertion order), and entries without
a usable value are skipped. ``-1`` means nothing was comparable.
"""

from __future__ import annotations

import math
import re
from typing import Any, Iterable, List, Literal, Mapping, Optional, Sequence, Tuple, Union

from .availability import parse_availability
from .schemas import Availability, ComparisonItem, ComparisonItemType

Entry = Union[ComparisonItem, Mapping[str, Any]]

DEFAULT_COURSE_WEEKS = 8
DAYS_PER_WEEK = 5
HOURS_PER_DAY = 3


def _data(entry: Entry) -> Mapping[str, Any]:
    if isinstance(entry, ComparisonItem):
        return entry.data
    return entry


def _number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return number


def _first_number(data: Mapping[str, Any], *keys: str) -> Optional[float]:
    for key in keys:
        number = _number(data.get(key))
        if number is not None:
            return number
    return None


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def winner_index(values: Sequence[Optional[float]], mode: Literal["min", "max"]) -> int:
    best_index = -1
    best_value: Optional[float] = None
    for index, value in enumerate(values):
        if value is None:
            continue
        if (
            best_value is None
            or (mode == "min" and value < best_value)
            or (mode == "max" and value > best_value)
        ):
            best_index, best_value = index, value
    return best_index


def price_of(entry: Entry) -> Optional[float]:
    data = _data(entry)
    item_type = entry.type if isinstance(entry, ComparisonItem) else None
    if item_type == ComparisonItemType.TUTOR:
        return _first_number(data, "hourly_rate", "hourlyRate", "price")
    if item_type == ComparisonItemType.SCHOOL:
        return _first_number(data, "lowest_price", "price")
    return _first_number(data, "price", "hourly_rate", "hourlyRate", "lowest_price")


def cheapest_index(items: Sequence[Entry]) -> int:
    return winner_index([price_of(item) for item in items], "min")


def available_spots(entry: Entry) -> Optional[int]:
    """Open seats: maximum capacity minus current occupancy."""
    data = _data(entry)
    capacity = _first_number(data, "max_students", "maxStudents", "max_capacity")
    if capacity is None:
        return None
    occupied = _first_number(data, "enrolled_students", "currentStudents", "current_occupancy") or 0
    return int(capacity - occupied)


def most_available_index(items: Sequence[Entry]) -> int:
    return winner_index([available_spots(item) for item in items], "max")


def highest_rated_index(items: Sequence[Entry]) -> int:
    return winner_index([_first_number(_data(item), "rating") for item in items], "max")


def most_reviewed_index(items: Sequence[Entry]) -> int:
    return winner_index(
        [_first_number(_data(item), "review_count", "reviewCount") for item in items], "max"
    )


def experience_years(entry: Entry) -> int:
    data = _data(entry)
    years = _first_number(data, "experience_years", "experienceYears")
    if years is not None:
        return int(years)
    match = re.search(r"(\d+)", str(data.get("experience") or ""))
    return int(match.group(1)) if match else 0


def most_experienced_index(items: Sequence[Entry]) -> int:
    return winner_index([float(experience_years(item)) for item in items], "max")


def course_weeks(entry: Entry) -> int:
    data = _data(entry)
    weeks = _first_number(data, "duration_weeks", "durationWeeks")
    if weeks:
        return int(weeks)
    match = re.match(r"\s*(\d+)", str(data.get("duration") or ""))
    if match and int(match.group(1)) > 0:
        return int(match.group(1))
    return DEFAULT_COURSE_WEEKS


def price_per_hour(entry: Entry) -> Optional[int]:
    """Course price per contact hour (five days a week, three hours a day)."""
    price = _first_number(_data(entry), "price")
    if price is None:
        return None
    total_hours = course_weeks(entry) * DAYS_PER_WEEK * HOURS_PER_DAY
    return _round_half_up(price / total_hours)


def school_price_range(
    school_id: int, courses: Iterable[Mapping[str, Any]]
) -> Optional[Tuple[float, float]]:
    """Lowest and highest course price offered by a school, if it has any priced courses."""
    prices: List[float] = []
    for course in courses:
        if course.get("school_id", course.get("schoolId")) != school_id:
            continue
        price = _number(course.get("price"))
        if price is not None:
            prices.append(price)
    if not prices:
        return None
    return (min(prices), max(prices))


def cheapest_school_index(
    schools: Sequence[Entry], courses: Iterable[Mapping[str, Any]]
) -> int:
    course_list = list(courses)
    lows: List[Optional[float]] = []
    for school in schools:
        school_id = school.id if isinstance(school, ComparisonItem) else school.get("id")
        price_range = school_price_range(school_id, course_list)
        lows.append(price_range[0] if price_range else None)
    return winner_index(lows, "min")


def tutor_available_hours(availability: Union[Availability, Mapping[str, Any], None]) -> int:
    """Number of bookable weekly slots a tutor offers."""
    if availability is None:
        return 0
    if isinstance(availability, Mapping):
        if "weeklySchedule" in availability or "weekly_schedule" in availability:
            availability = parse_availability(dict(availability))
        else:
            # Legacy shape: day name -> list of hour strings.
            return sum(len(v) for v in availability.values() if isinstance(v, list))
    return sum(
        sum(1 for slot in day.time_slots if slot.available)
        for day in availability.weekly_schedule.values()
        if day.enabled
    )
