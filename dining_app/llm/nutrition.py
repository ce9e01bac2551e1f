"""Nutrition estimates for dining hall dishes via the OpenAI chat API."""
import logging
from typing import Dict, List, Optional, Sequence

from dining_app.core.utils import to_number
from dining_app.llm import client as llm_client
from dining_app.llm.client import LLMResponseError

log = logging.getLogger(__name__)

MAX_BATCH_SIZE = 10
TEMPERATURE = 0.3

NUTRITION_SYSTEM_PROMPT = """You are a nutritional information expert. Given a dish name from a university dining hall, provide accurate nutritional estimates.

Important guidelines:
1. Base estimates on typical university dining hall portion sizes (usually generous)
2. Consider common preparation methods in institutional food service
3. If the dish name is ambiguous, assume the most common version
4. Provide conservative estimates when uncertain
5. Include common allergens based on typical ingredients

Return ONLY valid JSON in the exact format specified. Do not include any text outside the JSON object."""

NUTRITION_SHAPE = """{
  "calories": <number>,
  "protein": <grams as number>,
  "carbs": <grams as number>,
  "fat": <grams as number>,
  "fiber": <grams as number>,
  "sugar": <grams as number>,
  "sodium": <mg as number>,
  "serving_size": "<description like '1 cup' or '1 serving (6 oz)'>",
  "vitamins": {"vitamin_a": <daily value % or null>, "vitamin_c": <% or null>, "vitamin_d": <% or null>},
  "minerals": {"calcium": <daily value % or null>, "iron": <% or null>, "potassium": <% or null>},
  "allergens": [<strings like "gluten", "dairy", "eggs", "soy", "nuts", "shellfish", "fish">],
  "dietary_flags": [<strings like "vegetarian", "vegan", "halal", "gluten-free">],
  "confidence": "<'high', 'medium', or 'low'>"
}"""

SINGLE_ITEM_PROMPT = """Estimate nutritional information for this dining hall dish: "{name}"

Category/context: {category}

Return a JSON object with this exact structure:
""" + NUTRITION_SHAPE.replace("{", "{{").replace("}", "}}")

BATCH_PROMPT = """Estimate nutritional information for these dining hall dishes:

{dishes}

Return a JSON object of the form {{"items": [{{"name": "<exact dish name>", "nutrition": <object>}}]}}
where each nutrition object has this exact structure:
""" + NUTRITION_SHAPE.replace("{", "{{").replace("}", "}}")

# (low, high) bounds applied to every estimate
CLAMPS = {
    "calories": (0, 3000),
    "protein": (0, 200),
    "carbs": (0, 500),
    "fat": (0, 200),
    "fiber": (0, 100),
    "sugar": (0, 200),
    "sodium": (0, 5000),
}
VITAMIN_KEYS = ("vitamin_a", "vitamin_c", "vitamin_d", "vitamin_b12", "vitamin_e")
MINERAL_KEYS = ("calcium", "iron", "potassium", "zinc", "magnesium")


def _clamp(value, low, high) -> float:
    number = to_number(value) or 0.0
    return max(low, min(high, number))


def _percentages(data, keys) -> Dict[str, float]:
    if not isinstance(data, dict):
        return {}
    out = {}
    for key in keys:
        number = to_number(data.get(key))
        if number is not None:
            out[key] = number
    return out


def _strings(value) -> List[str]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str)]


def validate_and_normalize_nutrition(data: Dict) -> Dict:
    """Clamp a raw estimate into plausible ranges and fill defaults.

    Accepts snake_case or camelCase keys for the serving size and dietary
    flags. Calories and sodium come back as ints, the rest as floats.
    """
    data = data if isinstance(data, dict) else {}
    out = {field: _clamp(data.get(field), low, high) for field, (low, high) in CLAMPS.items()}
    out["calories"] = int(round(out["calories"]))
    out["sodium"] = int(round(out["sodium"]))
    out["serving_size"] = data.get("serving_size") or data.get("servingSize") or "1 serving"
    out["vitamins"] = _percentages(data.get("vitamins"), VITAMIN_KEYS)
    out["minerals"] = _percentages(data.get("minerals"), MINERAL_KEYS)
    out["allergens"] = _strings(data.get("allergens"))
    out["dietary_flags"] = _strings(data.get("dietary_flags", data.get("dietaryFlags")))
    out["confidence"] = data.get("confidence") or "medium"
    return out


def generate_nutrition_for_dish(name: str, category: Optional[str] = None) -> Dict:
    """Estimate nutrition for one dish.

    Raises:
        LLMNotConfigured: no API key
        LLMResponseError: empty or malformed model output
    """
    prompt = SINGLE_ITEM_PROMPT.format(name=name, category=category or "General")
    data = llm_client.complete_json(NUTRITION_SYSTEM_PROMPT, prompt, temperature=TEMPERATURE, max_tokens=500)
    return validate_and_normalize_nutrition(data)


def generate_nutrition_batch(dishes: Sequence[Dict]) -> List[Dict]:
    """Estimate nutrition for several dishes, MAX_BATCH_SIZE per request.

    `dishes` are ``{"name": ..., "category": ...}`` dicts. Returns
    ``[{"name": ..., "nutrition": {...}}]`` in the order the model answered.
    """
    if not dishes:
        return []
    if len(dishes) > MAX_BATCH_SIZE:
        results = []
        for start in range(0, len(dishes), MAX_BATCH_SIZE):
            results.extend(generate_nutrition_batch(dishes[start:start + MAX_BATCH_SIZE]))
        return results

    dish_list = "\n".join(
        f"{i}. {d['name']}" + (f" ({d['category']})" if d.get("category") else "")
        for i, d in enumerate(dishes, start=1)
    )
    data = llm_client.complete_json(NUTRITION_SYSTEM_PROMPT, BATCH_PROMPT.format(dishes=dish_list),
                                    temperature=TEMPERATURE, max_tokens=2000)
    items = data.get("items")
    if not isinstance(items, list):
        raise LLMResponseError("Batch response has no items list")
    return [
        {"name": str(item.get("name") or ""), "nutrition": validate_and_normalize_nutrition(item.get("nutrition"))}
        for item in items
        if isinstance(item, dict)
    ]
