"""Menu scraping endpoint, meant to be hit daily by a cron job."""
import logging
import time
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..core.utils import format_date_iso, get_today_iso, parse_iso_date
from ..database.session import get_db
from ..scraper.service import scrape_all_dining_halls, scrape_and_persist_menu
from .cron import require_cron_secret

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_cron_secret)])


@router.api_route("/scrape", methods=["GET", "POST"])
def run_scraper(date: Optional[str] = None, hall: Optional[str] = None, db: Session = Depends(get_db)):
    """Scrape one hall (``?hall=``) or all of them for ``?date=`` (default today)."""
    try:
        menu_date = format_date_iso(parse_iso_date(date)) if date else get_today_iso()
    except ValueError:
        raise HTTPException(status_code=400, detail="date must be YYYY-MM-DD")

    started = time.monotonic()
    if hall:
        results = {hall: scrape_and_persist_menu(db, hall, menu_date)}
    else:
        results = scrape_all_dining_halls(db, menu_date)

    return {
        "success": all(r["success"] for r in results.values()),
        "date": menu_date,
        "total_items": sum(r["item_count"] for r in results.values()),
        "new_items_with_nutrition": sum(r["new_items"] for r in results.values()),
        "duration_seconds": round(time.monotonic() - started),
        "results": results,
        "timestamp": datetime.utcnow().isoformat(),
    }
