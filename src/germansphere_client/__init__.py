"""GermanSphere client core: tutor availability resolution and comparison sets."""

from .availability import (
    AvailabilityService,
    exclude_reserved,
    parse_availability,
    resolve_bookable_slots,
    resolve_day_schedule,
)
from .client import ApiClient
from .comparison import MAX_ITEMS_PER_TYPE, ComparisonStore
from .comparison_metrics import cheapest_index, most_available_index
from .config import Settings
from .errors import (
    ApiAuthError,
    ApiConnectionError,
    ApiError,
    ApiNotFoundError,
    BookingValidationError,
    GermanSphereError,
    InvalidTimeError,
)
from .schemas import (
    AddResult,
    Availability,
    ComparisonItem,
    ComparisonItemType,
    ResolvedSlot,
    TimeSlot,
)
from .session import ClientSession, create_session
from .time_slots import PopularityLabel, classify_popularity, normalize_time

__all__ = [
    "AddResult",
    "ApiAuthError",
    "ApiClient",
    "ApiConnectionError",
    "ApiError",
    "ApiNotFoundError",
    "Availability",
    "AvailabilityService",
    "BookingValidationError",
    "ClientSession",
    "ComparisonItem",
    "ComparisonItemType",
    "ComparisonStore",
    "GermanSphereError",
    "InvalidTimeError",
    "MAX_ITEMS_PER_TYPE",
    "PopularityLabel",
    "ResolvedSlot",
    "Settings",
    "TimeSlot",
    "cheapest_index",
    "classify_popularity",
    "create_session",
    "exclude_reserved",
    "most_available_index",
    "normalize_time",
    "parse_availability",
    "resolve_bookable_slots",
    "resolve_day_schedule",
]
