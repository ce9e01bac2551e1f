"""Assemble a recommendation request: user profile, parsed prompt, stored menu."""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from dining_app.core.config import get_settings
from dining_app.core.utils import slugify, unique_strings
from dining_app.database.models import UserProfile
from dining_app.database.queries import get_menu_with_nutrition, get_recent_meal_items, get_user_profile
from dining_app.llm import prompt_parser
from dining_app.recommenders.menu.recommender import recommend
from dining_app.schemas.schemas import (
    DailyGoals,
    RecommendationConstraints,
    RecommendationResult,
    RecommendRequest,
)

logger = logging.getLogger(__name__)


class MenuNotFound(Exception):
    """No stored menu for the requested hall, date and meal period."""


def parse_prompt_or_empty(prompt: str) -> RecommendationConstraints:
    try:
        return prompt_parser.parse_recommendation_prompt(prompt)
    except Exception as e:
        logger.warning("Prompt parsing failed, continuing without parsed constraints: %s", e)
        return RecommendationConstraints()


def merge_constraints(parsed: RecommendationConstraints, request: RecommendRequest,
                      profile: Optional[UserProfile]) -> RecommendationConstraints:
    """Combine prompt, request and profile preferences.

    Term lists are unioned (prompt, then request, then profile). The request's
    `max_items` wins over the prompt's; the engine clamps whichever is used.
    """
    def profile_list(name):
        return list(getattr(profile, name) or []) if profile is not None else []

    return parsed.model_copy(update={
        "meal_period": request.meal_period.lower(),
        "max_items": request.max_items or parsed.max_items,
        "dietary_flags": unique_strings(parsed.dietary_flags + request.dietary_flags + profile_list("dietary_flags")),
        "exclude_allergens": unique_strings(
            parsed.exclude_allergens + request.exclude_allergens + profile_list("allergens")),
        "avoid_ingredients": unique_strings(
            parsed.avoid_ingredients + request.avoid_ingredients + profile_list("excluded_ingredients")),
        "prefer_ingredients": unique_strings(
            parsed.prefer_ingredients + request.prefer_ingredients + profile_list("preferred_ingredients")),
    })


def resolve_daily_goals(request: RecommendRequest, profile: Optional[UserProfile]) -> DailyGoals:
    """Per field: the stored profile goal, else the one sent with the request."""
    def pick(field):
        stored = getattr(profile, f"daily_{field}", None) if profile is not None else None
        return stored if stored is not None else getattr(request, f"daily_{field}")

    return DailyGoals(calories=pick("calories"), protein=pick("protein"), carbs=pick("carbs"), fat=pick("fat"))


def build_recommendation(db: Session, request: RecommendRequest) -> RecommendationResult:
    """Recommend a meal from the stored menu.

    Raises MenuNotFound when the hall/date/meal period has no menu; ValueError
    for a malformed date.
    """
    profile = None
    recent_ids = set()
    if request.user_id is not None:
        profile = get_user_profile(db, request.user_id)
        rows = get_recent_meal_items(db, request.user_id, days=get_settings().RECENT_HISTORY_DAYS)
        recent_ids = {row.menu_item_id for row in rows if row.menu_item_id is not None}

    constraints = merge_constraints(parse_prompt_or_empty(request.prompt), request, profile)

    menu = get_menu_with_nutrition(db, slugify(request.dining_hall), request.date)
    meal_period = constraints.meal_period
    if menu is None or meal_period not in menu["meals"]:
        raise MenuNotFound("No menu data for this meal period.")

    return recommend(
        menu["meals"][meal_period],
        constraints,
        resolve_daily_goals(request, profile),
        recent_ids,
    )
