"""
Tests for database query helpers.
"""
from datetime import datetime, timedelta
from decimal import Decimal

from dining_app.database import queries
from dining_app.database.models import DiningHall, MealLog, MenuEntry, NutritionInfo, User
from dining_app.scraper.config import DINING_HALLS

from conftest import MENU_DATE


def test_halls_are_seeded(db):
    """Test every configured hall exists after setup."""
    assert [h.slug for h in queries.get_dining_halls(db)] == list(DINING_HALLS)


def test_get_or_create_dining_hall_is_idempotent(db):
    """Test an existing hall is returned instead of duplicated."""
    hall = queries.get_or_create_dining_hall(db, "PAR Dining Hall", "par")
    assert hall.id == queries.get_dining_hall_by_slug(db, "par").id
    assert db.query(DiningHall).count() == len(DINING_HALLS)


def test_get_or_create_menu_item(db):
    """Test the created flag distinguishes new and existing items."""
    item, created = queries.get_or_create_menu_item(db, "Tater Tots", "Sides")
    again, created_again = queries.get_or_create_menu_item(db, "Tater Tots")
    assert created and not created_again
    assert again.id == item.id


def test_add_menu_entry_is_idempotent(db):
    """Test linking the same item twice keeps one entry."""
    hall = queries.get_dining_hall_by_slug(db, "isr")
    menu = queries.get_or_create_daily_menu(db, hall.id, MENU_DATE, "lunch")
    item, _ = queries.get_or_create_menu_item(db, "Pho")
    queries.add_menu_entry(db, menu.id, item.id, "Main")
    queries.add_menu_entry(db, menu.id, item.id, "Main")
    assert db.query(MenuEntry).count() == 1
    assert queries.get_or_create_daily_menu(db, hall.id, MENU_DATE, "lunch").id == menu.id


def test_get_menu_with_nutrition_groups_and_orders(db, make_menu):
    """Test meals are grouped by period with items in name order."""
    make_menu("lunch", [("Zucchini Bake", None), ("Apple Crisp", {"calories": 210, "protein": Decimal("2.50")})])
    make_menu("dinner", [("Beef Stew", {"calories": 450, "protein": 30})])

    menu = queries.get_menu_with_nutrition(db, "ikenberry", MENU_DATE)
    assert menu["dining_hall"].slug == "ikenberry"
    assert menu["date"] == MENU_DATE
    assert list(menu["meals"]) == ["dinner", "lunch"]
    lunch = menu["meals"]["lunch"]
    assert [i.name for i in lunch] == ["Apple Crisp", "Zucchini Bake"]
    assert lunch[0].nutrition.protein == 2.5
    assert isinstance(lunch[0].nutrition.protein, float)
    assert lunch[1].nutrition is None


def test_get_menu_with_nutrition_unknown_hall(db):
    """Test an unknown hall gives None and a known empty one gives no meals."""
    assert queries.get_menu_with_nutrition(db, "nowhere", MENU_DATE) is None
    assert queries.get_menu_with_nutrition(db, "par", MENU_DATE)["meals"] == {}


def test_get_available_dates(db, make_menu):
    """Test distinct dates come back most recent first."""
    make_menu("lunch", [("Soup", None)], menu_date="2024-09-01")
    make_menu("dinner", [("Soup", None)], menu_date="2024-09-01")
    make_menu("lunch", [("Soup", None)], menu_date="2024-09-05")
    assert queries.get_available_dates(db, "ikenberry") == ["2024-09-05", "2024-09-01"]
    assert queries.get_available_dates(db, "ikenberry", limit=1) == ["2024-09-05"]
    assert queries.get_available_dates(db, "nowhere") == []


def test_items_without_nutrition_and_upsert(db, make_menu):
    """Test upserting fills the gap and updates the same row."""
    ids = make_menu("lunch", [("Tacos", None), ("Rice", {"calories": 200})])
    missing = queries.get_menu_items_without_nutrition(db)
    assert [i.name for i in missing] == ["Tacos"]

    queries.upsert_nutrition_info(db, ids["Tacos"], {"calories": 350, "protein": 18, "allergens": ["gluten"]})
    queries.upsert_nutrition_info(db, ids["Tacos"], {"calories": 360})
    db.commit()
    assert queries.get_menu_items_without_nutrition(db) == []
    info = queries.get_nutrition_for_menu_item(db, ids["Tacos"])
    assert info.calories == 360
    assert info.allergens == ["gluten"]
    assert db.query(NutritionInfo).count() == 2


def test_upsert_user_profile_partial(db):
    """Test goals are stored as whole numbers and unset fields are kept."""
    user = User(name="Sam")
    db.add(user)
    db.flush()
    queries.upsert_user_profile(db, user.id, {"daily_calories": 2100.6, "allergens": ["nuts"]})
    queries.upsert_user_profile(db, user.id, {"daily_protein": 150})
    db.commit()
    profile = queries.get_user_profile(db, user.id)
    assert profile.daily_calories == 2101
    assert profile.daily_protein == 150
    assert profile.allergens == ["nuts"]


def test_recent_meal_items_window(db):
    """Test only meals logged within the window are returned."""
    user = User(name="Ari")
    db.add(user)
    db.flush()
    queries.create_meal_log(db, user.id, MENU_DATE, "lunch",
                            [{"menu_item_id": 7, "item_name": "Pho", "quantity": 2}])
    old = queries.create_meal_log(db, user.id, MENU_DATE, "dinner",
                                  [{"menu_item_id": 8, "item_name": "Old Dish"}])
    old.created_at = datetime.utcnow() - timedelta(days=30)
    db.commit()

    rows = queries.get_recent_meal_items(db, user.id, days=14)
    assert [(r.menu_item_id, r.item_name, r.quantity) for r in rows] == [(7, "Pho", 2)]
    assert db.query(MealLog).count() == 2
