"""
Availability resolution for the tutor booking dialog.

Turns a tutor's recurring weekly schedule into the concrete slots bookable on
one calendar date. Resolution is pure: the same (availability, date,
reserved times) always yields the same slots. Failures anywhere upstream
degrade to "no availability" so the dialog can always offer another day.
"""

from __future__ import annotations

from datetime import date
import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Set, Union

from pydantic import ValidationError

from .client import ApiClient
from .errors import ApiError
from .schemas import Availability, DaySchedule, ResolvedSlot, TimeSlot
from .time_slots import classify_popularity, day_name_for, parse_day, try_normalize_time

logger = logging.getLogger(__name__)

DayLike = Union[date, str]


def parse_availability(raw: Any) -> Availability:
    """
    Parse an ``availability`` payload leniently.

    Absent or malformed payloads become empty availability. A malformed day
    is dropped on its own; the rest of the week survives.
    """
    if raw is None:
        return Availability.empty()
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.warning("Availability payload is not valid JSON; treating as empty")
            return Availability.empty()
    if not isinstance(raw, dict):
        logger.warning("Availability payload has type %s; treating as empty", type(raw).__name__)
        return Availability.empty()

    weekly_raw = raw.get("weeklySchedule", raw.get("weekly_schedule")) or {}
    if not isinstance(weekly_raw, dict):
        logger.warning("weeklySchedule is not an object; treating as empty")
        weekly_raw = {}

    weekly: dict[str, DaySchedule] = {}
    for day_name, day_raw in weekly_raw.items():
        try:
            weekly[str(day_name)] = DaySchedule.model_validate(day_raw)
        except ValidationError as exc:
            logger.warning("Skipping malformed schedule for %r: %s", day_name, exc.errors())

    exceptions = raw.get("exceptions") or []
    if not isinstance(exceptions, list):
        exceptions = []
    return Availability(weekly_schedule=weekly, exceptions=exceptions)


def _canonical_slot(slot: TimeSlot) -> Optional[TimeSlot]:
    start = try_normalize_time(slot.start)
    end = try_normalize_time(slot.end)
    if start is None or end is None:
        logger.warning("Dropping slot with unparseable times: %r - %r", slot.start, slot.end)
        return None
    return TimeSlot(start=start, end=end, available=slot.available)


def resolve_day_schedule(
    availability: Optional[Availability], day: Optional[DayLike]
) -> List[TimeSlot]:
    """
    Return the available slots of ``day``'s weekday, in schedule order.

    ``day`` may be a ``date`` or an ISO date string; an unreadable date
    resolves to no slots.
    """
    if availability is None or day is None:
        return []
    selected = parse_day(day)
    if selected is None:
        logger.warning("Cannot resolve slots for unreadable date %r", day)
        return []
    day_schedule = availability.weekly_schedule.get(day_name_for(selected))
    if day_schedule is None or not day_schedule.enabled:
        return []

    slots: List[TimeSlot] = []
    for slot in day_schedule.time_slots:
        if not slot.available:
            continue
        canonical = _canonical_slot(slot)
        if canonical is not None:
            slots.append(canonical)
    return slots


def _normalize_reserved(reserved_times: Iterable[str]) -> Set[str]:
    normalized = set()
    for value in reserved_times:
        canonical = try_normalize_time(value)
        if canonical is not None:
            normalized.add(canonical)
    return normalized


def exclude_reserved(
    slots: Iterable[TimeSlot], reserved_times: Iterable[str]
) -> List[ResolvedSlot]:
    """
    Flag slots whose start the viewer has already booked.

    Reserved slots stay in the list so the UI can show the conflict.
    """
    reserved = _normalize_reserved(reserved_times)
    resolved = []
    for slot in slots:
        start = try_normalize_time(slot.start) or slot.start
        end = try_normalize_time(slot.end) or slot.end
        resolved.append(ResolvedSlot(start=start, end=end, reserved=start in reserved))
    return resolved


def resolve_bookable_slots(
    availability: Optional[Availability],
    day: Optional[DayLike],
    reserved_times: Iterable[str] = (),
) -> List[ResolvedSlot]:
    slots = exclude_reserved(resolve_day_schedule(availability, day), reserved_times)
    return [
        slot.model_copy(update={"popularity": classify_popularity(slot.start)})
        for slot in slots
    ]


def extract_tutor_availability(response: Any) -> Availability:
    """Pull ``availability`` out of a ``GET /tutors/{id}`` response."""
    if not isinstance(response, dict):
        return Availability.empty()
    tutor = response.get("tutor", response)
    if not isinstance(tutor, dict):
        return Availability.empty()
    return parse_availability(tutor.get("availability"))


class AvailabilityService:
    """
    Loads tutor availability for the booking dialog.

    Each fetch is tagged with the tutor it was issued for. When the selected
    tutor changes while a fetch is in flight, the late response is discarded.
    """

    def __init__(self, client: ApiClient) -> None:
        self.client = client
        self.current_tutor_id: Optional[int] = None
        self.availability: Optional[Availability] = None
        # In-flight fetch count per tutor id.
        self._pending: Dict[int, int] = {}

    @property
    def is_loading(self) -> bool:
        return self._pending.get(self.current_tutor_id, 0) > 0

    async def _fetch(self, tutor_id: int) -> Availability:
        try:
            response = await self.client.get_tutor(tutor_id)
        except ApiError as exc:
            logger.warning(
                "Could not load availability for tutor %s (status=%s): %s",
                tutor_id,
                exc.status,
                exc.message,
            )
            return Availability.empty()
        return extract_tutor_availability(response)

    async def load(self, tutor_id: Optional[int]) -> Optional[Availability]:
        """
        Select ``tutor_id`` and load its availability.

        Returns the loaded availability, or ``None`` when the response arrived
        after another tutor was selected.
        """
        self.current_tutor_id = tutor_id
        self.availability = None
        if tutor_id is None:
            self.availability = Availability.empty()
            return self.availability

        self._pending[tutor_id] = self._pending.get(tutor_id, 0) + 1
        try:
            availability = await self._fetch(tutor_id)
        finally:
            self._pending[tutor_id] -= 1
            if not self._pending[tutor_id]:
                del self._pending[tutor_id]

        if self.current_tutor_id != tutor_id:
            logger.info(
                "Discarding availability for tutor %s; tutor %s is now selected",
                tutor_id,
                self.current_tutor_id,
            )
            return None
        self.availability = availability
        return availability

    def slots_for(
        self, day: Optional[DayLike], reserved_times: Iterable[str] = ()
    ) -> List[ResolvedSlot]:
        return resolve_bookable_slots(self.availability, day, reserved_times)
