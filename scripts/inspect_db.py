"""Script for inspecting database contents."""
import sys
from pathlib import Path
from tabulate import tabulate
from sqlalchemy import func

# Add the project root directory to the Python path
project_root = Path(__file__).parent.parent
sys.path.append(str(project_root))

from dining_app.core.utils import MEAL_PERIOD_LABELS
from dining_app.database.queries import get_dining_halls
from dining_app.database.session import SessionLocal
from dining_app.database.models import DailyMenu, DiningHall, MenuEntry, MenuItem, NutritionInfo, User

def inspect_db(limit=25):
    """Display a summary of halls, menus and items."""
    db = SessionLocal()

    try:
        halls = get_dining_halls(db)
        print("\n=== Dining Halls ===")
        print(tabulate([[h.id, h.slug, h.name] for h in halls], headers=["ID", "Slug", "Name"]))

        menus = (
            db.query(DiningHall.slug, DailyMenu.date, DailyMenu.meal_period, func.count(MenuEntry.menu_item_id))
            .join(DailyMenu, DailyMenu.dining_hall_id == DiningHall.id)
            .outerjoin(MenuEntry, MenuEntry.daily_menu_id == DailyMenu.id)
            .group_by(DiningHall.slug, DailyMenu.date, DailyMenu.meal_period)
            .order_by(DailyMenu.date.desc(), DiningHall.slug, DailyMenu.meal_period)
            .limit(limit)
            .all()
        )
        print("\n=== Daily Menus (most recent) ===")
        menu_data = [[slug, d, MEAL_PERIOD_LABELS.get(period, period.title()), count]
                     for slug, d, period, count in menus]
        print(tabulate(menu_data, headers=["Hall", "Date", "Meal", "Items"]))

        items = (
            db.query(MenuItem, NutritionInfo)
            .outerjoin(NutritionInfo, NutritionInfo.menu_item_id == MenuItem.id)
            .order_by(MenuItem.id)
            .limit(limit)
            .all()
        )
        print("\n=== Menu Items ===")
        item_data = [[i.id, i.name, i.category,
                      n.calories if n else None, n.protein if n else None,
                      n.carbs if n else None, n.fat if n else None]
                     for i, n in items]
        print(tabulate(item_data, headers=["ID", "Name", "Category", "Calories", "Protein", "Carbs", "Fat"]))

        missing = db.query(MenuItem).count() - db.query(NutritionInfo).count()
        print(f"\nItems without nutrition: {missing}")
        print(f"Users: {db.query(User).count()}")

    finally:
        db.close()

if __name__ == "__main__":
    inspect_db()
