"""Admin endpoints for maintenance tasks like seeding menus."""
import logging
import time
from datetime import date, timedelta
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..core.config import get_settings
from ..core.utils import format_date_iso
from ..database.queries import (
    add_menu_entry,
    get_or_create_daily_menu,
    get_or_create_dining_hall,
    get_or_create_menu_item,
)
from ..database.session import get_db
from ..scraper.config import DINING_HALLS
from ..scraper.service import scrape_and_persist_menu
from ..services.nutrition import generate_missing_nutrition
from .cron import require_cron_secret

logger = logging.getLogger(__name__)

router = APIRouter()

# (meal period, name, category, course)
SAMPLE_MENU = [
    ("lunch", "Grilled Chicken Breast", "Entree", "Entrees"),
    ("lunch", "Roasted Potatoes", "Side", "Sides"),
    ("lunch", "Steamed Broccoli", "Vegetable", "Vegetables"),
    ("lunch", "Caesar Salad", "Salad", "Salad Bar"),
    ("dinner", "Vegetable Lasagna", "Entree", "Entrees"),
    ("dinner", "Garlic Bread", "Side", "Sides"),
    ("dinner", "Chocolate Chip Cookie", "Dessert", "Desserts"),
]


@router.post("/seed", dependencies=[Depends(require_cron_secret)])
def seed_menus(
    days: int = Query(7, ge=0, le=60),
    forward: int = Query(3, ge=0, le=30),
    skip_nutrition: bool = False,
    db: Session = Depends(get_db),
) -> Any:
    """Scrape every hall from `days` ago to `forward` days ahead, then fill in nutrition.

    - `days`: how many past days to scrape.
    - `forward`: how many upcoming days to scrape.
    - `skip_nutrition`: if True, leave nutrition generation for later.
    """
    started = time.monotonic()
    today = date.today()
    dates = [format_date_iso(today + timedelta(days=offset)) for offset in range(-days, forward + 1)]

    scraping = {"success": 0, "failed": 0, "total_items": 0, "details": []}
    for slug in DINING_HALLS:
        for menu_date in dates:
            # nutrition is generated in one batched pass below
            result = scrape_and_persist_menu(db, slug, menu_date, generate_nutrition=False)
            scraping["success" if result["success"] else "failed"] += 1
            scraping["total_items"] += result["item_count"]
            scraping["details"].append({
                "hall": slug, "date": menu_date, "items": result["item_count"], "error": result["error"],
            })

    nutrition = {"processed": 0, "successful": 0, "failed": 0, "errors": [], "skipped": True}
    if not skip_nutrition and get_settings().OPENAI_API_KEY:
        nutrition = dict(generate_missing_nutrition(db), skipped=False)

    return {
        "success": True,
        "message": "Seeding completed",
        "scraping": scraping,
        "nutrition": nutrition,
        "duration": round(time.monotonic() - started),
    }


@router.post("/seed/manual")
def seed_manual(db: Session = Depends(get_db)) -> Any:
    """Insert a small fixed menu for today so the app works without the dining API."""
    hall_info = DINING_HALLS["ikenberry"]
    today = date.today()
    try:
        hall = get_or_create_dining_hall(db, hall_info.name, hall_info.slug)
        count = 0
        for meal_period, name, category, course in SAMPLE_MENU:
            menu = get_or_create_daily_menu(db, hall.id, today, meal_period)
            item, _ = get_or_create_menu_item(db, name, category)
            add_menu_entry(db, menu.id, item.id, course)
            count += 1
        db.commit()
    except Exception as e:
        db.rollback()
        logger.exception("Manual seed failed")
        raise HTTPException(status_code=500, detail=str(e))
    return {"success": True, "message": f"Manually seeded {count} items for {format_date_iso(today)}"}
