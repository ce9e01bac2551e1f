"""Client for the campus dining menu API."""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import httpx

from dining_app.core.config import get_settings
from dining_app.scraper.config import DINING_HALLS

logger = logging.getLogger(__name__)


class ScraperError(Exception):
    """The dining API could not be reached or answered with an error."""


class UnknownDiningHallError(ScraperError):
    def __init__(self, slug: str):
        super().__init__(f"Unknown dining hall: {slug}")
        self.slug = slug


@dataclass
class ScrapedMenuItem:
    name: str
    category: Optional[str] = None
    course: Optional[str] = None
    serving_unit: Optional[str] = None
    traits: List[str] = field(default_factory=list)


@dataclass
class ScrapedMealPeriod:
    meal_period: str
    items: List[ScrapedMenuItem]


@dataclass
class ScrapedDayMenu:
    date: str
    dining_hall: str
    meals: List[ScrapedMealPeriod]


def _fetch_dining_option(client: httpx.Client, option_id: int, date: str) -> List[Dict]:
    settings = get_settings()
    url = f"{settings.DINING_API_BASE.rstrip('/')}/GetOption/"
    try:
        response = client.post(url, json={"DiningOptionID": str(option_id), "mealDate": date})
    except httpx.HTTPError as e:
        raise ScraperError(f"API request failed: {e}") from e
    if response.is_error:
        raise ScraperError(f"API request failed: {response.status_code} {response.reason_phrase}")
    try:
        data = response.json()
    except ValueError as e:
        raise ScraperError("API returned invalid JSON") from e
    # the API answers with a bare list of menu rows
    return data if isinstance(data, list) else []


def group_by_meal_period(rows: List[Dict]) -> Dict[str, List[Dict]]:
    """Group raw rows by their `Meal` field, keeping first-seen order."""
    groups: Dict[str, List[Dict]] = {}
    for row in rows:
        groups.setdefault(row.get("Meal") or "Other", []).append(row)
    return groups


def transform_menu_item(row: Dict) -> ScrapedMenuItem:
    traits = row.get("Traits") or ""
    return ScrapedMenuItem(
        name=row.get("FormalName") or "",
        category=row.get("Category") or None,
        course=row.get("Course") or None,
        serving_unit=row.get("ServingUnit") or None,
        traits=[t.strip() for t in traits.split(",") if t.strip()],
    )


def fetch_menu_from_api(hall_slug: str, date: str, client: Optional[httpx.Client] = None) -> Optional[ScrapedDayMenu]:
    """Fetch one day's menu for a hall.

    Returns None when the hall serves nothing that day (e.g. during breaks).
    Raises UnknownDiningHallError for an unconfigured slug and ScraperError
    when the API fails.
    """
    hall = DINING_HALLS.get(hall_slug)
    if hall is None:
        raise UnknownDiningHallError(hall_slug)

    own_client = client is None
    if own_client:
        client = httpx.Client(timeout=get_settings().DINING_API_TIMEOUT)
    try:
        rows = _fetch_dining_option(client, hall.option_id, date)
    finally:
        if own_client:
            client.close()

    if not rows:
        logger.info("No menu items found for %s on %s", hall.name, date)
        return None

    meals = [
        ScrapedMealPeriod(
            meal_period=period.lower(),
            items=[transform_menu_item(r) for r in period_rows if r.get("FormalName")],
        )
        for period, period_rows in group_by_meal_period(rows).items()
    ]
    return ScrapedDayMenu(date=date, dining_hall=hall.name, meals=meals)
