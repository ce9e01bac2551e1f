"""CLI wrapper to scrape dining menus into the database (calls scraper service)."""
import argparse
import sys
from pathlib import Path
project_root = Path(__file__).parent.parent
sys.path.append(str(project_root))

from tabulate import tabulate

from dining_app.api import configure_logging
from dining_app.core.config import get_settings
from dining_app.core.utils import get_today_iso
from dining_app.database.session import SessionLocal, init_db
from dining_app.scraper.config import DINING_HALLS
from dining_app.scraper.service import scrape_menu_range
from dining_app.services.nutrition import generate_missing_nutrition


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--hall", choices=sorted(DINING_HALLS), help="only scrape this hall (default: all)")
    parser.add_argument("--date", default=None, help="first date to scrape, YYYY-MM-DD (default: today)")
    parser.add_argument("--days", type=int, default=1, help="number of consecutive days to scrape")
    parser.add_argument("--skip-nutrition", action="store_true", help="do not call the LLM for nutrition")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    configure_logging(get_settings().LOG_LEVEL)
    init_db()
    halls = [args.hall] if args.hall else list(DINING_HALLS)
    start = args.date or get_today_iso()

    db = SessionLocal()
    try:
        rows = []
        for slug in halls:
            for r in scrape_menu_range(db, slug, start, days=args.days, generate_nutrition=False):
                rows.append([slug, r["date"], r["success"], r["item_count"], r["new_items"], r["error"] or ""])
        print(tabulate(rows, headers=["Hall", "Date", "OK", "Items", "New", "Error"]))

        if not args.skip_nutrition:
            res = generate_missing_nutrition(db)
            print(f"Nutrition: {res['successful']} of {res['processed']} items estimated ({res['failed']} failed)")
    finally:
        db.close()


if __name__ == "__main__":
    main()
