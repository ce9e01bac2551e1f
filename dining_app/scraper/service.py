"""Scrape dining menus and persist them, estimating nutrition for new dishes."""
import logging
import time
from datetime import date, timedelta
from typing import Dict, List, Optional, Union

import httpx
from sqlalchemy.orm import Session

from dining_app.core.utils import format_date_iso, get_today_iso, parse_iso_date
from dining_app.database.queries import (
    add_menu_entry,
    get_nutrition_for_menu_item,
    get_or_create_daily_menu,
    get_or_create_dining_hall,
    get_or_create_menu_item,
)
from dining_app.scraper.api_client import ScrapedDayMenu, fetch_menu_from_api
from dining_app.scraper.config import DINING_HALLS
from dining_app.services.nutrition import generate_nutrition_for_item

logger = logging.getLogger(__name__)


def _summary(success: bool, item_count: int = 0, new_items: int = 0, error: Optional[str] = None) -> Dict:
    return {"success": success, "item_count": item_count, "new_items": new_items, "error": error}


def persist_menu_data(db: Session, menu: ScrapedDayMenu, hall_slug: str):
    """Write halls, daily menus, items and entries for a scraped day.

    Returns ``(total_items, new_items, item_ids_needing_nutrition)``. The
    caller commits.
    """
    hall_info = DINING_HALLS[hall_slug]
    hall = get_or_create_dining_hall(db, hall_info.name, hall_info.slug)

    total = new = 0
    needs_nutrition: List[int] = []
    for meal in menu.meals:
        daily_menu = get_or_create_daily_menu(db, hall.id, menu.date, meal.meal_period)
        for scraped in meal.items:
            item, created = get_or_create_menu_item(db, scraped.name, scraped.category, scraped.serving_unit)
            add_menu_entry(db, daily_menu.id, item.id, scraped.course)
            total += 1
            if created:
                new += 1
            if item.id not in needs_nutrition and (created or get_nutrition_for_menu_item(db, item.id) is None):
                needs_nutrition.append(item.id)
    return total, new, needs_nutrition


def scrape_and_persist_menu(db: Session, hall_slug: str, menu_date: Union[str, date],
                            client: Optional[httpx.Client] = None, generate_nutrition: bool = True) -> Dict:
    """Scrape one hall for one date and store it.

    Never raises: failures come back as ``{"success": False, "error": ...}``.
    Nutrition is estimated for new items and for stored items still lacking
    it; an estimate failing is logged and does not fail the scrape.
    """
    if hall_slug not in DINING_HALLS:
        return _summary(False, error=f"Unknown dining hall: {hall_slug}")
    try:
        menu_date = format_date_iso(parse_iso_date(menu_date))
        menu = fetch_menu_from_api(hall_slug, menu_date, client=client)
        if not menu or not menu.meals:
            return _summary(True, error="No menu data available")
        total, new, needs_nutrition = persist_menu_data(db, menu, hall_slug)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.exception("Error scraping %s for %s", hall_slug, menu_date)
        return _summary(False, error=str(e))

    if generate_nutrition:
        for item_id in needs_nutrition:
            generate_nutrition_for_item(db, item_id)

    logger.info("Scraped %s for %s: %d items (%d new)", hall_slug, menu_date, total, new)
    return _summary(True, total, new)


def scrape_all_dining_halls(db: Session, menu_date: Union[str, date, None] = None,
                            client: Optional[httpx.Client] = None, generate_nutrition: bool = True) -> Dict[str, Dict]:
    menu_date = menu_date or get_today_iso()
    return {
        slug: scrape_and_persist_menu(db, slug, menu_date, client=client, generate_nutrition=generate_nutrition)
        for slug in DINING_HALLS
    }


def scrape_menu_range(db: Session, hall_slug: str, start_date: Union[str, date], days: int = 7,
                      client: Optional[httpx.Client] = None, generate_nutrition: bool = True,
                      delay: float = 0.5) -> List[Dict]:
    """Scrape `days` consecutive dates starting at `start_date`, pausing `delay` seconds between requests."""
    start = parse_iso_date(start_date)
    results = []
    for offset in range(days):
        day = format_date_iso(start + timedelta(days=offset))
        summary = scrape_and_persist_menu(db, hall_slug, day, client=client, generate_nutrition=generate_nutrition)
        results.append({"date": day, **summary})
        if delay and offset < days - 1:
            time.sleep(delay)
    return results


def scheduled_scrape():
    """Background job: scrape today's menu for every hall."""
    from dining_app.database.session import SessionLocal

    db = SessionLocal()
    try:
        results = scrape_all_dining_halls(db)
        total = sum(r["item_count"] for r in results.values())
        failed = [slug for slug, r in results.items() if not r["success"]]
        logger.info("Scheduled scrape stored %d items; failed halls: %s", total, failed or "none")
    except Exception:
        logger.exception("Scheduled scrape failed")
    finally:
        db.close()
