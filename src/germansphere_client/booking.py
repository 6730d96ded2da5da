"""
Booking hand-off.

Packages a slot chosen in the booking dialog into a ``POST /bookings``
request, and works out which start times the viewer already holds on a date
so the resolver can flag them.
"""

from __future__ import annotations

from datetime import date
import logging
import math
from typing import Any, Iterable, List, Optional, Set, Union

from pydantic import ValidationError

from .client import ApiClient
from .config import Settings
from .errors import ApiError, BookingValidationError, InvalidTimeError
from .schemas import BookingRecord, BookingRequest
from .storage import KeyValueStore
from .time_slots import normalize_time, parse_day, try_normalize_time

logger = logging.getLogger(__name__)

DateLike = Union[date, str]

INACTIVE_STATUSES = frozenset({"cancelled"})


def normalize_booking_date(value: DateLike) -> date:
    """Accept a ``date``, ``YYYY-MM-DD`` or an ISO datetime string."""
    parsed = parse_day(value)
    if parsed is None:
        raise BookingValidationError(f"Invalid booking date: {value!r}")
    return parsed


def _slot_start(time_slot: str) -> str:
    # Course schedules come as ranges ("09:00 - 12:00").
    return time_slot.split("-", 1)[0].strip()


def _build(**fields: Any) -> BookingRequest:
    try:
        return BookingRequest(**fields)
    except ValidationError as exc:
        raise BookingValidationError(
            "Invalid booking request", details={"errors": exc.errors(include_url=False)}
        ) from exc


def build_tutor_booking(
    tutor_id: Optional[int],
    day: Optional[DateLike],
    time: Optional[str],
    subject: Optional[str],
    *,
    duration_minutes: int = 60,
    notes: Optional[str] = "",
) -> BookingRequest:
    """
    Build the request for a tutoring session.

    Raises:
        BookingValidationError: if tutor, date, time or subject is missing,
            or the time is not a valid time of day.
    """
    missing = [
        name
        for name, value in (
            ("tutor_id", tutor_id),
            ("date", day),
            ("time", time),
            ("subject", (subject or "").strip()),
        )
        if not value
    ]
    if missing:
        raise BookingValidationError(
            "Please fill in all required fields", details={"missing": missing}
        )
    try:
        time_slot = normalize_time(time)
    except InvalidTimeError as exc:
        raise BookingValidationError(str(exc)) from exc

    return _build(
        booking_type="tutor",
        tutor_id=tutor_id,
        start_date=normalize_booking_date(day),
        time_slot=time_slot,
        duration_minutes=duration_minutes,
        subject=subject.strip(),
        notes=(notes or "").strip(),
    )


def build_course_booking(
    course_id: Optional[int],
    day: Optional[DateLike],
    time_slot: Optional[str] = None,
    *,
    duration_minutes: int = 60,
    notes: Optional[str] = "",
) -> BookingRequest:
    if not course_id or not day:
        raise BookingValidationError("Course and start date are required")
    start = _slot_start(time_slot) if time_slot else "09:00"
    try:
        start = normalize_time(start)
    except InvalidTimeError as exc:
        raise BookingValidationError(str(exc)) from exc

    return _build(
        booking_type="course",
        course_id=course_id,
        start_date=normalize_booking_date(day),
        time_slot=start,
        duration_minutes=duration_minutes,
        notes=(notes or "").strip(),
    )


def estimate_price(hourly_rate: float, duration_minutes: int) -> int:
    """Session price at ``hourly_rate``, rounded half up."""
    return math.floor(hourly_rate * duration_minutes / 60 + 0.5)


def _coerce_records(bookings: Iterable[Any]) -> List[BookingRecord]:
    records = []
    for entry in bookings:
        if isinstance(entry, BookingRecord):
            records.append(entry)
            continue
        try:
            records.append(BookingRecord.model_validate(entry))
        except ValidationError:
            logger.debug("Skipping malformed booking entry: %r", entry)
    return records


def reserved_times_for(bookings: Iterable[Any], day: date) -> Set[str]:
    """Start times (``HH:MM``) of the viewer's active bookings on ``day``."""
    reserved: Set[str] = set()
    for record in _coerce_records(bookings):
        if not record.start_date or not record.time_slot:
            continue
        if (record.status or "").lower() in INACTIVE_STATUSES:
            continue
        try:
            booked_on = normalize_booking_date(record.start_date)
        except BookingValidationError:
            continue
        if booked_on != day:
            continue
        raw_start = _slot_start(record.time_slot)
        if raw_start.count(":") == 2:
            # TIME columns serialize with seconds.
            raw_start = raw_start.rsplit(":", 1)[0]
        start = try_normalize_time(raw_start)
        if start is not None:
            reserved.add(start)
    return reserved


class BookingCache:
    """Local copy of the viewer's bookings, read alongside API results."""

    def __init__(self, store: KeyValueStore, storage_key: str = "bookings") -> None:
        self.store = store
        self.storage_key = storage_key

    @classmethod
    def from_settings(cls, settings: Settings, store: KeyValueStore) -> "BookingCache":
        return cls(store, settings.bookings_storage_key)

    def all(self) -> List[dict]:
        raw = self.store.get(self.storage_key)
        if not isinstance(raw, list):
            return []
        return [entry for entry in raw if isinstance(entry, dict)]

    def append(self, booking: dict) -> None:
        bookings = self.all()
        bookings.append(booking)
        try:
            self.store.set(self.storage_key, bookings)
        except Exception:
            logger.warning("Failed to cache booking locally", exc_info=True)

    def clear(self) -> None:
        self.store.delete(self.storage_key)


class BookingService:
    """Submits bookings and reports the viewer's reserved times."""

    def __init__(self, client: ApiClient, cache: BookingCache) -> None:
        self.client = client
        self.cache = cache

    async def submit(self, request: BookingRequest) -> dict:
        """Post ``request``; API errors propagate to the booking form."""
        response = await self.client.create_booking(request)
        booking = response.get("booking") if isinstance(response, dict) else None
        if not isinstance(booking, dict):
            booking = request.to_payload()
        self.cache.append(booking)
        logger.info(
            "Created %s booking for %s at %s",
            request.booking_type,
            request.start_date.isoformat(),
            request.time_slot,
        )
        return response

    async def reserved_times(self, day: Optional[DateLike]) -> Set[str]:
        selected = parse_day(day)
        if selected is None:
            return set()
        remote: List[Any] = []
        try:
            response = await self.client.list_bookings()
        except ApiError as exc:
            logger.warning("Could not load bookings (status=%s): %s", exc.status, exc.message)
        else:
            if isinstance(response, dict) and isinstance(response.get("bookings"), list):
                remote = response["bookings"]
            elif isinstance(response, list):
                remote = response
        return reserved_times_for([*remote, *self.cache.all()], selected)
