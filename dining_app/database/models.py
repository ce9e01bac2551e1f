"""SQLAlchemy models for the dining application."""
from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship, declarative_base
from datetime import datetime

Base = declarative_base()

class DiningHall(Base):
    """A dining location scraped from the campus dining API."""
    __tablename__ = "dining_halls"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(100), nullable=False, unique=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    daily_menus = relationship("DailyMenu", back_populates="dining_hall")

class MenuItem(Base):
    """A dish, shared across every menu it appears on (keyed by name)."""
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True)
    serving_unit = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    nutrition = relationship("NutritionInfo", back_populates="menu_item", uselist=False,
                             cascade="all, delete-orphan")

class DailyMenu(Base):
    """One meal period (breakfast, lunch, ...) at one hall on one date."""
    __tablename__ = "daily_menus"
    __table_args__ = (UniqueConstraint("dining_hall_id", "date", "meal_period", name="uq_daily_menu"),)

    id = Column(Integer, primary_key=True)
    dining_hall_id = Column(Integer, ForeignKey("dining_halls.id"), nullable=False)
    date = Column(Date, nullable=False)
    meal_period = Column(String(50), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    dining_hall = relationship("DiningHall", back_populates="daily_menus")
    entries = relationship("MenuEntry", back_populates="daily_menu", cascade="all, delete-orphan")

class MenuEntry(Base):
    """Junction between a daily menu and the items served on it."""
    __tablename__ = "menu_entries"

    daily_menu_id = Column(Integer, ForeignKey("daily_menus.id", ondelete="CASCADE"), primary_key=True)
    menu_item_id = Column(Integer, ForeignKey("menu_items.id", ondelete="CASCADE"), primary_key=True)
    # e.g. "Main", "Side", "Dessert"
    course = Column(String(100), nullable=True)

    daily_menu = relationship("DailyMenu", back_populates="entries")
    menu_item = relationship("MenuItem")

class NutritionInfo(Base):
    """Estimated nutrition facts for a menu item (one row per item)."""
    __tablename__ = "nutrition_info"

    id = Column(Integer, primary_key=True)
    menu_item_id = Column(Integer, ForeignKey("menu_items.id", ondelete="CASCADE"), nullable=False, unique=True)
    calories = Column(Integer, nullable=True)
    # grams
    protein = Column(Numeric(6, 2), nullable=True)
    carbs = Column(Numeric(6, 2), nullable=True)
    fat = Column(Numeric(6, 2), nullable=True)
    fiber = Column(Numeric(6, 2), nullable=True)
    sugar = Column(Numeric(6, 2), nullable=True)
    # mg
    sodium = Column(Integer, nullable=True)
    serving_size = Column(String(100), nullable=True)
    # daily value percentages, e.g. {"vitamin_c": 15}
    vitamins = Column(JSON, nullable=True)
    minerals = Column(JSON, nullable=True)
    allergens = Column(JSON, nullable=True)
    dietary_flags = Column(JSON, nullable=True)
    llm_generated_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    menu_item = relationship("MenuItem", back_populates="nutrition")

class User(Base):
    """User model for storing account data."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True, unique=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    profile = relationship("UserProfile", back_populates="user", uselist=False, cascade="all, delete-orphan")
    meal_logs = relationship("MealLog", back_populates="user", cascade="all, delete-orphan")

class UserProfile(Base):
    """Daily goals and food preferences for a user."""
    __tablename__ = "user_profiles"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    daily_calories = Column(Integer, nullable=True)
    daily_protein = Column(Integer, nullable=True)
    daily_carbs = Column(Integer, nullable=True)
    daily_fat = Column(Integer, nullable=True)
    dietary_flags = Column(JSON, nullable=True)
    allergens = Column(JSON, nullable=True)
    excluded_ingredients = Column(JSON, nullable=True)
    preferred_ingredients = Column(JSON, nullable=True)
    preferred_cuisines = Column(JSON, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="profile")

class MealLog(Base):
    """A meal a user ate (or planned), used for history and repeat avoidance."""
    __tablename__ = "meal_logs"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    dining_hall_id = Column(Integer, ForeignKey("dining_halls.id"), nullable=True)
    date = Column(Date, nullable=False)
    meal_period = Column(String(50), nullable=False)
    # "manual", "recommendation", ...
    source = Column(String(50), nullable=False, default="manual")
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="meal_logs")
    items = relationship("MealLogItem", back_populates="meal_log", cascade="all, delete-orphan")

class MealLogItem(Base):
    """Snapshot of one item in a logged meal."""
    __tablename__ = "meal_log_items"

    id = Column(Integer, primary_key=True)
    meal_log_id = Column(Integer, ForeignKey("meal_logs.id", ondelete="CASCADE"), nullable=False)
    menu_item_id = Column(Integer, ForeignKey("menu_items.id"), nullable=True)
    item_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    calories = Column(Integer, nullable=True)
    protein = Column(Numeric(6, 2), nullable=True)
    carbs = Column(Numeric(6, 2), nullable=True)
    fat = Column(Numeric(6, 2), nullable=True)
    fiber = Column(Numeric(6, 2), nullable=True)
    sugar = Column(Numeric(6, 2), nullable=True)
    sodium = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    meal_log = relationship("MealLog", back_populates="items")
