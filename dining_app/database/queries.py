"""Query helpers shared by routes, services and the scraper.

Helpers only ``flush``; committing (and rolling back) is left to the caller so
a scrape or a request can group several writes into one transaction.
"""
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Union

from sqlalchemy.orm import Session

from dining_app.core.utils import format_date_iso, parse_iso_date
from dining_app.database.models import (
    DailyMenu,
    DiningHall,
    MealLog,
    MealLogItem,
    MenuEntry,
    MenuItem,
    NutritionInfo,
    UserProfile,
)
from dining_app.schemas.schemas import MenuItemCandidate, NutritionFacts

NUTRITION_FIELDS = (
    "calories", "protein", "carbs", "fat", "fiber", "sugar", "sodium",
    "serving_size", "vitamins", "minerals", "allergens", "dietary_flags",
    "llm_generated_at",
)
PROFILE_GOAL_FIELDS = ("daily_calories", "daily_protein", "daily_carbs", "daily_fat")
PROFILE_FIELDS = PROFILE_GOAL_FIELDS + (
    "dietary_flags", "allergens", "excluded_ingredients", "preferred_ingredients",
    "preferred_cuisines", "notes",
)

# --- dining halls ------------------------------------------------------------

def get_dining_halls(db: Session) -> List[DiningHall]:
    return db.query(DiningHall).order_by(DiningHall.id).all()

def get_dining_hall_by_slug(db: Session, slug: str) -> Optional[DiningHall]:
    return db.query(DiningHall).filter(DiningHall.slug == slug).first()

def get_or_create_dining_hall(db: Session, name: str, slug: str) -> DiningHall:
    hall = get_dining_hall_by_slug(db, slug)
    if hall:
        return hall
    hall = DiningHall(name=name, slug=slug)
    db.add(hall)
    db.flush()
    return hall

# --- menu items --------------------------------------------------------------

def get_menu_item_by_name(db: Session, name: str) -> Optional[MenuItem]:
    return db.query(MenuItem).filter(MenuItem.name == name).first()

def get_or_create_menu_item(db: Session, name: str, category: Optional[str] = None,
                            serving_unit: Optional[str] = None, description: Optional[str] = None):
    """Return ``(item, created)`` for the item named `name`."""
    item = get_menu_item_by_name(db, name)
    if item:
        return item, False
    item = MenuItem(name=name, category=category, serving_unit=serving_unit, description=description)
    db.add(item)
    db.flush()
    return item, True

def get_menu_items_without_nutrition(db: Session) -> List[MenuItem]:
    return (
        db.query(MenuItem)
        .outerjoin(NutritionInfo, NutritionInfo.menu_item_id == MenuItem.id)
        .filter(NutritionInfo.id.is_(None))
        .order_by(MenuItem.id)
        .all()
    )

# --- daily menus -------------------------------------------------------------

def get_or_create_daily_menu(db: Session, dining_hall_id: int, menu_date: Union[str, date],
                             meal_period: str) -> DailyMenu:
    menu_date = parse_iso_date(menu_date)
    menu = (
        db.query(DailyMenu)
        .filter(
            DailyMenu.dining_hall_id == dining_hall_id,
            DailyMenu.date == menu_date,
            DailyMenu.meal_period == meal_period,
        )
        .first()
    )
    if menu:
        return menu
    menu = DailyMenu(dining_hall_id=dining_hall_id, date=menu_date, meal_period=meal_period)
    db.add(menu)
    db.flush()
    return menu

def add_menu_entry(db: Session, daily_menu_id: int, menu_item_id: int,
                   course: Optional[str] = None) -> MenuEntry:
    """Link an item to a daily menu; linking the same pair twice is a no-op."""
    entry = db.get(MenuEntry, (daily_menu_id, menu_item_id))
    if entry:
        return entry
    entry = MenuEntry(daily_menu_id=daily_menu_id, menu_item_id=menu_item_id, course=course)
    db.add(entry)
    db.flush()
    return entry

# --- nutrition ---------------------------------------------------------------

def get_nutrition_for_menu_item(db: Session, menu_item_id: int) -> Optional[NutritionInfo]:
    return db.query(NutritionInfo).filter(NutritionInfo.menu_item_id == menu_item_id).first()

def upsert_nutrition_info(db: Session, menu_item_id: int, data: Dict) -> NutritionInfo:
    """Insert or replace the nutrition row for a menu item."""
    info = get_nutrition_for_menu_item(db, menu_item_id)
    if info is None:
        info = NutritionInfo(menu_item_id=menu_item_id)
        db.add(info)
    for field in NUTRITION_FIELDS:
        if field in data:
            setattr(info, field, data[field])
    info.updated_at = datetime.utcnow()
    db.flush()
    return info

def to_candidate(item: MenuItem, nutrition: Optional[NutritionInfo], course: Optional[str] = None) -> MenuItemCandidate:
    """Map database rows to the recommender's item type (Decimal columns become floats)."""
    return MenuItemCandidate(
        id=item.id,
        name=item.name,
        category=item.category,
        course=course,
        nutrition=NutritionFacts.model_validate(nutrition) if nutrition is not None else None,
    )

def get_menu_with_nutrition(db: Session, hall_slug: str, menu_date: Union[str, date]) -> Optional[Dict]:
    """Menu for one hall and date, grouped by meal period.

    Returns None for an unknown hall, otherwise
    ``{"dining_hall": DiningHall, "date": "YYYY-MM-DD", "meals": {period: [MenuItemCandidate]}}``
    with periods and items in alphabetical order. `meals` is empty when
    nothing has been scraped for that date.
    """
    hall = get_dining_hall_by_slug(db, hall_slug)
    if hall is None:
        return None
    menu_date = parse_iso_date(menu_date)

    rows = (
        db.query(DailyMenu.meal_period, MenuEntry.course, MenuItem, NutritionInfo)
        .join(MenuEntry, MenuEntry.daily_menu_id == DailyMenu.id)
        .join(MenuItem, MenuItem.id == MenuEntry.menu_item_id)
        .outerjoin(NutritionInfo, NutritionInfo.menu_item_id == MenuItem.id)
        .filter(DailyMenu.dining_hall_id == hall.id, DailyMenu.date == menu_date)
        .order_by(DailyMenu.meal_period, MenuItem.name)
        .all()
    )

    meals: Dict[str, List[MenuItemCandidate]] = {}
    for meal_period, course, item, nutrition in rows:
        meals.setdefault(meal_period, []).append(to_candidate(item, nutrition, course))

    return {"dining_hall": hall, "date": format_date_iso(menu_date), "meals": meals}

def get_available_dates(db: Session, hall_slug: str, limit: int = 14) -> List[str]:
    """Dates with a stored menu for the hall, most recent first."""
    hall = get_dining_hall_by_slug(db, hall_slug)
    if hall is None:
        return []
    rows = (
        db.query(DailyMenu.date)
        .filter(DailyMenu.dining_hall_id == hall.id)
        .distinct()
        .order_by(DailyMenu.date.desc())
        .limit(limit)
        .all()
    )
    return [format_date_iso(d) for (d,) in rows]

# --- user profile / meal history --------------------------------------------

def get_user_profile(db: Session, user_id: int) -> Optional[UserProfile]:
    return db.get(UserProfile, user_id)

def upsert_user_profile(db: Session, user_id: int, data: Dict) -> UserProfile:
    """Create or update a profile; only the keys present in `data` are written."""
    profile = get_user_profile(db, user_id)
    if profile is None:
        profile = UserProfile(user_id=user_id)
        db.add(profile)
    for field in PROFILE_FIELDS:
        if field not in data:
            continue
        value = data[field]
        if field in PROFILE_GOAL_FIELDS and value is not None:
            value = int(round(value))
        setattr(profile, field, value)
    profile.updated_at = datetime.utcnow()
    db.flush()
    return profile

def create_meal_log(db: Session, user_id: int, log_date: Union[str, date], meal_period: str,
                    items: List[Dict], dining_hall_id: Optional[int] = None,
                    source: str = "manual", notes: Optional[str] = None) -> MealLog:
    """Store a meal and its item snapshots.

    Each item dict carries ``item_name`` and optionally ``menu_item_id``,
    ``quantity`` and the macro columns of MealLogItem.
    """
    log = MealLog(
        user_id=user_id,
        dining_hall_id=dining_hall_id,
        date=parse_iso_date(log_date),
        meal_period=meal_period,
        source=source,
        notes=notes,
    )
    for item in items:
        log.items.append(MealLogItem(**item))
    db.add(log)
    db.flush()
    return log

def get_recent_meal_items(db: Session, user_id: int, days: int = 14):
    """(menu_item_id, item_name, quantity) rows logged by the user in the last `days` days."""
    cutoff = datetime.utcnow() - timedelta(days=days)
    return (
        db.query(MealLogItem.menu_item_id, MealLogItem.item_name, MealLogItem.quantity)
        .join(MealLog, MealLog.id == MealLogItem.meal_log_id)
        .filter(MealLog.user_id == user_id, MealLog.created_at >= cutoff)
        .all()
    )
