"""Utility helpers for the dining application."""
import math
import re
from datetime import date, datetime
from typing import Iterable, List, Optional, Union

MEAL_PERIOD_LABELS = {
    "breakfast": "Breakfast",
    "lunch": "Lunch",
    "dinner": "Dinner",
    "brunch": "Brunch",
    "light lunch": "Light Lunch",
}


def to_number(value) -> Optional[float]:
    """Return `value` as a finite float, or None.

    Accepts ints, floats, Decimals and numeric strings ("12.50"). Booleans,
    blank strings, NaN/inf and anything unparsable map to None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def unique_strings(values: Iterable) -> List[str]:
    """Lower-case, strip and de-duplicate strings, keeping first-seen order."""
    out = []
    seen = set()
    for v in values or []:
        if not isinstance(v, str):
            continue
        cleaned = v.strip().lower()
        if cleaned and cleaned not in seen:
            seen.add(cleaned)
            out.append(cleaned)
    return out


def format_date_iso(value: Union[date, datetime]) -> str:
    """Format a date for the API/database (YYYY-MM-DD)."""
    return value.strftime("%Y-%m-%d")


def get_today_iso() -> str:
    return format_date_iso(datetime.now())


def get_meal_period_from_time(hour: int) -> str:
    """Guess the current meal period from the hour of day."""
    if hour < 10:
        return "breakfast"
    if hour < 14:
        return "lunch"
    return "dinner"


def slugify(text: str) -> str:
    return re.sub(r"(^-|-$)", "", re.sub(r"[^a-z0-9]+", "-", (text or "").lower()))


def parse_iso_date(value: Union[str, date, datetime]) -> date:
    """Parse YYYY-MM-DD (or pass a date through). Raises ValueError when malformed."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip())
