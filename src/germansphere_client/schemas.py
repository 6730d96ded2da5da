"""
Schemas for the GermanSphere client core.

Wire payloads use the frontend's camelCase keys (``weeklySchedule``,
``timeSlots``); the models accept either spelling.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .time_slots import PopularityLabel, normalize_time


class TimeSlot(BaseModel):
    """A start/end interval as stored in a weekly schedule (times may be abbreviated)."""

    start: str
    end: str
    available: bool = False


class DaySchedule(BaseModel):
    enabled: bool = False
    time_slots: List[TimeSlot] = Field(default_factory=list, alias="timeSlots")

    model_config = ConfigDict(populate_by_name=True)


class Availability(BaseModel):
    """
    A tutor's recurring availability.

    ``weekly_schedule`` is keyed by lowercase English day name. Keys outside
    ``time_slots.DAY_NAMES`` are kept but never resolved. ``exceptions`` is
    passed through untouched.
    """

    weekly_schedule: Dict[str, DaySchedule] = Field(
        default_factory=dict, alias="weeklySchedule"
    )
    exceptions: List[Any] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def empty(cls) -> "Availability":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.weekly_schedule


class ResolvedSlot(BaseModel):
    """A bookable slot for one concrete date."""

    start: str = Field(description="Start time in HH:MM format")
    end: str = Field(description="End time in HH:MM format")
    reserved: bool = False
    popularity: Optional[PopularityLabel] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "start": "14:00",
                "end": "15:00",
                "reserved": False,
                "popularity": "popular",
            }
        }
    )

    @property
    def label(self) -> str:
        return f"{self.start} - {self.end}"

    @property
    def selectable(self) -> bool:
        return not self.reserved


class ComparisonItemType(str, Enum):
    SCHOOL = "school"
    COURSE = "course"
    TUTOR = "tutor"


class ComparisonItem(BaseModel):
    """An entity snapshot queued for side-by-side comparison."""

    id: int
    type: ComparisonItemType
    data: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @property
    def key(self) -> Tuple[int, ComparisonItemType]:
        return (self.id, self.type)


class RejectionReason(str, Enum):
    CAPACITY_EXCEEDED = "capacity_exceeded"


class AddResult(BaseModel):
    """Outcome of adding an item to the comparison set."""

    added: bool
    reason: Optional[RejectionReason] = None
    message: Optional[str] = None

    @property
    def rejected(self) -> bool:
        return self.reason is not None


class BookingRequest(BaseModel):
    """Payload for ``POST /bookings``."""

    booking_type: Literal["tutor", "course"]
    tutor_id: Optional[int] = None
    course_id: Optional[int] = None
    start_date: date
    time_slot: str
    duration_minutes: int = Field(default=60, gt=0)
    subject: str = ""
    notes: str = ""

    @field_validator("time_slot")
    @classmethod
    def normalize_time_slot(cls, v: str) -> str:
        return normalize_time(v)

    @model_validator(mode="after")
    def check_target(self) -> "BookingRequest":
        if self.booking_type == "tutor":
            if self.tutor_id is None or self.course_id is not None:
                raise ValueError("Tutor bookings need tutor_id and no course_id")
        elif self.course_id is None or self.tutor_id is not None:
            raise ValueError("Course bookings need course_id and no tutor_id")
        return self

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class BookingRecord(BaseModel):
    """A booking as returned by the API or kept in the local cache."""

    id: Optional[Union[int, str]] = None
    tutor_id: Optional[int] = None
    course_id: Optional[int] = None
    start_date: Optional[str] = None
    time_slot: Optional[str] = None
    status: Optional[str] = None

    model_config = ConfigDict(extra="allow")
