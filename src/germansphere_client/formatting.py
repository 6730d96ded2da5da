"""Display formatting for dates, prices and ratings (German locale)."""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

from .time_slots import DAY_NAMES_DE, day_name_for

NOT_AVAILABLE = "N/A"


def format_selected_date(day: Optional[date]) -> str:
    """``Montag, 19.10.2026``"""
    if day is None:
        return ""
    return f"{DAY_NAMES_DE[day_name_for(day)]}, {day.day}.{day.month}.{day.year}"


def format_short_date(day: date) -> str:
    return day.strftime("%d.%m.%Y")


def _group_thousands(value: float) -> str:
    if float(value).is_integer():
        text = f"{int(value):,}"
    else:
        text = f"{value:,.2f}".rstrip("0")
        text = text.replace(".", "#")
    return text.replace(",", ".").replace("#", ",")


def format_price(price: Optional[float], currency: str = "MAD") -> str:
    if price is None:
        return NOT_AVAILABLE
    return f"{_group_thousands(price)} {currency}"


def format_hourly_rate(rate: Optional[float], currency: str = "MAD") -> str:
    if rate is None:
        return NOT_AVAILABLE
    return f"{format_price(rate, currency)}/Stunde"


def format_rating(rating: Any) -> str:
    try:
        value = float(rating)
    except (TypeError, ValueError):
        return NOT_AVAILABLE
    if value != value:
        return NOT_AVAILABLE
    return f"{value:.1f}"
