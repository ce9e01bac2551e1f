"""Turn a free-text meal request into RecommendationConstraints."""
import logging

from dining_app.core.utils import to_number
from dining_app.llm import client as llm_client
from dining_app.schemas.schemas import RecommendationConstraints

log = logging.getLogger(__name__)

SYSTEM_PROMPT = """You extract nutrition constraints from a user's request.
If the user uses relative phrases like "high protein" or "low calorie" without numbers,
infer a reasonable numeric target based on a single meal (protein 25-60g, calories 400-800).
Return ONLY valid JSON with the exact keys specified. Use null when not specified."""

USER_PROMPT = """Extract constraints from this request:
"{prompt}"

Return JSON:
{{
  "min_protein": number|null,
  "max_calories": number|null,
  "min_calories": number|null,
  "max_carbs": number|null,
  "max_fat": number|null,
  "dietary_flags": string[],
  "exclude_allergens": string[],
  "avoid_ingredients": string[],
  "prefer_ingredients": string[],
  "max_items": number|null,
  "meal_period": string|null
}}"""

NUMBER_KEYS = ("min_protein", "max_calories", "min_calories", "max_carbs", "max_fat", "max_items")
LIST_KEYS = ("dietary_flags", "exclude_allergens", "avoid_ingredients", "prefer_ingredients")


def _number(value):
    # only real JSON numbers count; "30g" or "30" strings do not
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return to_number(value)


def _terms(value):
    if not isinstance(value, list):
        return []
    cleaned = (v.strip().lower() for v in value if isinstance(v, str))
    return [v for v in cleaned if v]


def parse_recommendation_prompt(prompt: str) -> RecommendationConstraints:
    """Ask the model for constraints implied by `prompt`.

    Raises LLMNotConfigured / LLMResponseError; callers fall back to empty
    constraints.
    """
    data = llm_client.complete_json(SYSTEM_PROMPT, USER_PROMPT.format(prompt=prompt), temperature=0, max_tokens=300)
    meal_period = data.get("meal_period")
    fields = {key: _number(data.get(key)) for key in NUMBER_KEYS}
    fields.update({key: _terms(data.get(key)) for key in LIST_KEYS})
    fields["meal_period"] = meal_period.lower() if isinstance(meal_period, str) else None
    log.debug("Parsed prompt constraints: %s", fields)
    return RecommendationConstraints(**fields)
