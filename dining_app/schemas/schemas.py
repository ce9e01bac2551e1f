"""Pydantic schemas for request/response models."""
from datetime import date as date_type, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from ..core.utils import to_number


def _whole_or_none(value):
    number = to_number(value)
    return None if number is None else int(round(number))


def _string_list(value):
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    return [v for v in value if isinstance(v, str)]


def _percent_map(value):
    if not isinstance(value, dict):
        return None
    out = {}
    for k, v in value.items():
        number = to_number(v)
        if number is not None:
            out[str(k)] = number
    return out


# --- recommendation engine types -------------------------------------------

class NutritionFacts(BaseModel):
    """Nutrition record for one menu item.

    Numeric fields are parsed here, once, so decimal columns and numeric
    strings coming from storage or the LLM arrive as floats. Anything
    unparsable becomes None.
    """
    calories: Optional[int] = None
    protein: Optional[float] = None
    carbs: Optional[float] = None
    fat: Optional[float] = None
    fiber: Optional[float] = None
    sugar: Optional[float] = None
    sodium: Optional[int] = None
    serving_size: Optional[str] = None
    vitamins: Optional[Dict[str, float]] = None
    minerals: Optional[Dict[str, float]] = None
    allergens: List[str] = Field(default_factory=list)
    dietary_flags: List[str] = Field(default_factory=list)

    model_config = {"from_attributes": True}

    @field_validator("calories", "sodium", mode="before")
    @classmethod
    def _parse_whole(cls, v):
        return _whole_or_none(v)

    @field_validator("protein", "carbs", "fat", "fiber", "sugar", mode="before")
    @classmethod
    def _parse_grams(cls, v):
        return to_number(v)

    @field_validator("vitamins", "minerals", mode="before")
    @classmethod
    def _parse_percentages(cls, v):
        return _percent_map(v)

    @field_validator("allergens", "dietary_flags", mode="before")
    @classmethod
    def _parse_tags(cls, v):
        return _string_list(v)


class MenuItemCandidate(BaseModel):
    id: int
    name: str
    category: Optional[str] = None
    course: Optional[str] = None
    nutrition: Optional[NutritionFacts] = None


class RecommendationConstraints(BaseModel):
    """Soft bounds and preferences applied to a recommendation."""
    min_protein: Optional[float] = None
    max_calories: Optional[float] = None
    min_calories: Optional[float] = None
    max_carbs: Optional[float] = None
    max_fat: Optional[float] = None
    max_items: Optional[int] = None
    dietary_flags: List[str] = Field(default_factory=list)
    exclude_allergens: List[str] = Field(default_factory=list)
    avoid_ingredients: List[str] = Field(default_factory=list)
    prefer_ingredients: List[str] = Field(default_factory=list)
    meal_period: Optional[str] = None

    @field_validator("min_protein", "max_calories", "min_calories", "max_carbs", "max_fat", mode="before")
    @classmethod
    def _parse_bounds(cls, v):
        return to_number(v)

    @field_validator("max_items", mode="before")
    @classmethod
    def _parse_count(cls, v):
        return _whole_or_none(v)

    @field_validator("dietary_flags", "exclude_allergens", "avoid_ingredients", "prefer_ingredients", mode="before")
    @classmethod
    def _parse_terms(cls, v):
        return _string_list(v)


class DailyGoals(BaseModel):
    calories: Optional[float] = None
    protein: Optional[float] = None
    carbs: Optional[float] = None
    fat: Optional[float] = None

    @field_validator("calories", "protein", "carbs", "fat", mode="before")
    @classmethod
    def _parse_goal(cls, v):
        return to_number(v)


class MacroTotals(BaseModel):
    calories: float = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0


class RecommendationItem(BaseModel):
    id: int
    name: str
    quantity: int = 1
    nutrition: Optional[NutritionFacts] = None
    # protein per calorie; used for candidate ranking only
    score: float = 0.0


class RecommendationResult(BaseModel):
    items: List[RecommendationItem] = Field(default_factory=list)
    totals: MacroTotals = Field(default_factory=MacroTotals)
    constraints: RecommendationConstraints
    explanation: str
    warnings: List[str] = Field(default_factory=list)


# --- API request / response models -----------------------------------------

class RecommendRequest(BaseModel):
    prompt: Optional[str] = None
    dining_hall: Optional[str] = None
    date: Optional[str] = None
    meal_period: Optional[str] = None
    user_id: Optional[int] = None
    max_items: Optional[int] = None
    dietary_flags: List[str] = Field(default_factory=list)
    exclude_allergens: List[str] = Field(default_factory=list)
    avoid_ingredients: List[str] = Field(default_factory=list)
    prefer_ingredients: List[str] = Field(default_factory=list)
    daily_calories: Optional[float] = None
    daily_protein: Optional[float] = None
    daily_carbs: Optional[float] = None
    daily_fat: Optional[float] = None

    @field_validator("daily_calories", "daily_protein", "daily_carbs", "daily_fat", mode="before")
    @classmethod
    def _parse_numbers(cls, v):
        return to_number(v)

    @field_validator("max_items", mode="before")
    @classmethod
    def _parse_count(cls, v):
        return _whole_or_none(v)

    @field_validator("dietary_flags", "exclude_allergens", "avoid_ingredients", "prefer_ingredients", mode="before")
    @classmethod
    def _parse_lists(cls, v):
        return _string_list(v)


class RecommendResponse(BaseModel):
    success: bool = True
    recommendation: RecommendationResult
    source: str = "database"


class DiningHallResponse(BaseModel):
    id: int
    name: str
    slug: str

    model_config = {"from_attributes": True}


class MenuItemResponse(BaseModel):
    id: int
    name: str
    category: Optional[str] = None
    course: Optional[str] = None
    traits: List[str] = Field(default_factory=list)
    nutrition: Optional[NutritionFacts] = None


class MenuData(BaseModel):
    dining_hall: DiningHallResponse
    date: str
    meals: Dict[str, List[MenuItemResponse]]


class MenuResponse(BaseModel):
    success: bool = True
    data: MenuData
    source: str
    note: Optional[str] = None


class UserCreate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None


class UserResponse(BaseModel):
    id: int
    name: Optional[str] = None
    email: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProfileUpdate(BaseModel):
    daily_calories: Optional[float] = None
    daily_protein: Optional[float] = None
    daily_carbs: Optional[float] = None
    daily_fat: Optional[float] = None
    dietary_flags: Optional[List[str]] = None
    allergens: Optional[List[str]] = None
    excluded_ingredients: Optional[List[str]] = None
    preferred_ingredients: Optional[List[str]] = None
    preferred_cuisines: Optional[List[str]] = None
    notes: Optional[str] = None

    @field_validator("daily_calories", "daily_protein", "daily_carbs", "daily_fat", mode="before")
    @classmethod
    def _parse_goal(cls, v):
        return to_number(v)

    @field_validator("dietary_flags", "allergens", "excluded_ingredients", "preferred_ingredients",
                     "preferred_cuisines", mode="before")
    @classmethod
    def _trim_list(cls, v):
        if not isinstance(v, list):
            return None
        return [s.strip() for s in v if isinstance(s, str) and s.strip()]

    @field_validator("notes", mode="before")
    @classmethod
    def _trim_notes(cls, v):
        return v.strip() if isinstance(v, str) else None


class ProfileResponse(BaseModel):
    user_id: int
    daily_calories: Optional[int] = None
    daily_protein: Optional[int] = None
    daily_carbs: Optional[int] = None
    daily_fat: Optional[int] = None
    dietary_flags: Optional[List[str]] = None
    allergens: Optional[List[str]] = None
    excluded_ingredients: Optional[List[str]] = None
    preferred_ingredients: Optional[List[str]] = None
    preferred_cuisines: Optional[List[str]] = None
    notes: Optional[str] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class MealLogItemIn(BaseModel):
    menu_item_id: Optional[int] = None
    name: str
    quantity: int = 1
    nutrition: Optional[NutritionFacts] = None


class MealLogCreate(BaseModel):
    user_id: Optional[int] = None
    dining_hall_slug: Optional[str] = None
    date: Optional[date_type] = None
    meal_period: Optional[str] = None
    source: str = "manual"
    notes: Optional[str] = None
    items: List[MealLogItemIn] = Field(default_factory=list)
