"""Menu browsing endpoints."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..core.utils import format_date_iso, get_today_iso, parse_iso_date, slugify
from ..database.queries import get_available_dates, get_menu_with_nutrition
from ..database.session import get_db
from ..schemas.schemas import DiningHallResponse, MenuData, MenuItemResponse, MenuResponse
from ..scraper.api_client import ScraperError, fetch_menu_from_api
from ..scraper.config import DINING_HALLS

logger = logging.getLogger(__name__)

router = APIRouter()

LIVE_MENU_NOTE = "No stored menu for this date. Showing live menu data without nutrition info."


def _live_menu(hall_slug: str, menu_date: str) -> Optional[MenuResponse]:
    live = fetch_menu_from_api(hall_slug, menu_date)
    if not live or not live.meals:
        return None
    hall = DINING_HALLS[hall_slug]
    meals = {}
    # live rows have no database ids; number them for the client
    next_id = 1
    for meal in live.meals:
        items = []
        for item in meal.items:
            items.append(MenuItemResponse(id=next_id, name=item.name, category=item.category,
                                          course=item.course, traits=item.traits))
            next_id += 1
        meals[meal.meal_period] = items
    return MenuResponse(
        data=MenuData(dining_hall=DiningHallResponse(id=0, name=hall.name, slug=hall.slug), date=menu_date, meals=meals),
        source="live_api",
        note=LIVE_MENU_NOTE,
    )


@router.get("/menu", response_model=MenuResponse)
def get_menu(hall: str = "ikenberry", date: Optional[str] = None, db: Session = Depends(get_db)):
    """Stored menu (with nutrition) for a hall and date, else the live dining API."""
    hall = slugify(hall)
    try:
        menu_date = format_date_iso(parse_iso_date(date)) if date else get_today_iso()
    except ValueError:
        raise HTTPException(status_code=400, detail="date must be YYYY-MM-DD")

    stored = get_menu_with_nutrition(db, hall, menu_date)
    if stored and stored["meals"]:
        meals = {
            period: [MenuItemResponse(**item.model_dump()) for item in items]
            for period, items in stored["meals"].items()
        }
        return MenuResponse(
            data=MenuData(dining_hall=DiningHallResponse.model_validate(stored["dining_hall"]),
                          date=stored["date"], meals=meals),
            source="database",
        )

    if hall not in DINING_HALLS:
        raise HTTPException(status_code=400, detail=f"Unknown dining hall: {hall}")
    try:
        live = _live_menu(hall, menu_date)
    except ScraperError as e:
        logger.exception("Live menu fetch failed for %s on %s", hall, menu_date)
        raise HTTPException(status_code=500, detail=str(e))
    if live is None:
        raise HTTPException(
            status_code=404,
            detail="No menu data available for this date. The dining hall may be closed (e.g., during breaks).",
        )
    return live


@router.get("/menu/dates")
def get_menu_dates(hall: str = "ikenberry", limit: int = Query(14, ge=1, le=90), db: Session = Depends(get_db)):
    """Dates with stored menus, most recent first."""
    hall = slugify(hall)
    return {"success": True, "hall": hall, "dates": get_available_dates(db, hall, limit=limit)}


@router.get("/dining-halls", response_model=List[DiningHallResponse])
def list_dining_halls():
    """Configured dining halls (id is the dining API option id)."""
    return [DiningHallResponse(id=h.option_id, name=h.name, slug=h.slug) for h in DINING_HALLS.values()]
