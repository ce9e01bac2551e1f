"""Generate and store LLM nutrition estimates for menu items."""
import logging
from datetime import datetime
from typing import Dict

from sqlalchemy.orm import Session

from dining_app.database.models import MenuItem
from dining_app.database.queries import (
    get_menu_items_without_nutrition,
    get_nutrition_for_menu_item,
    upsert_nutrition_info,
)
from dining_app.llm import nutrition as llm_nutrition
from dining_app.llm.client import LLMNotConfigured

logger = logging.getLogger(__name__)

BATCH_SIZE = 10


def store_nutrition(db: Session, menu_item_id: int, estimate: Dict):
    """Persist a normalized estimate; the caller commits."""
    return upsert_nutrition_info(db, menu_item_id, dict(estimate, llm_generated_at=datetime.utcnow()))


def generate_nutrition_for_item(db: Session, menu_item_id: int) -> Dict:
    """Estimate and store nutrition for one item unless it already has some.

    Returns ``{"success": bool, "error": str | None}``; never raises.
    """
    if get_nutrition_for_menu_item(db, menu_item_id) is not None:
        return {"success": True, "error": None}
    item = db.get(MenuItem, menu_item_id)
    if item is None:
        return {"success": False, "error": "Menu item not found"}
    try:
        estimate = llm_nutrition.generate_nutrition_for_dish(item.name, item.category)
        store_nutrition(db, item.id, estimate)
        db.commit()
    except LLMNotConfigured as e:
        logger.warning("Skipping nutrition for item %s: %s", menu_item_id, e)
        return {"success": False, "error": str(e)}
    except Exception as e:
        db.rollback()
        logger.exception("Error generating nutrition for item %s", menu_item_id)
        return {"success": False, "error": str(e)}
    return {"success": True, "error": None}


def generate_missing_nutrition(db: Session) -> Dict:
    """Fill in nutrition for every item that lacks it, BATCH_SIZE items per LLM call.

    A failed batch is retried item by item. Returns counts of processed,
    successful and failed items plus error messages.
    """
    results = {"processed": 0, "successful": 0, "failed": 0, "errors": []}
    items = [(item.id, item.name, item.category) for item in get_menu_items_without_nutrition(db)]
    if not items:
        return results
    logger.info("Found %d items without nutrition data", len(items))

    for start in range(0, len(items), BATCH_SIZE):
        batch = items[start:start + BATCH_SIZE]
        try:
            estimates = llm_nutrition.generate_nutrition_batch(
                [{"name": name, "category": category} for _, name, category in batch]
            )
        except Exception:
            logger.exception("Nutrition batch failed, trying items individually")
            for item_id, name, _ in batch:
                results["processed"] += 1
                outcome = generate_nutrition_for_item(db, item_id)
                if outcome["success"]:
                    results["successful"] += 1
                else:
                    results["failed"] += 1
                    results["errors"].append(f'"{name}": {outcome["error"]}')
            continue

        by_name = {e["name"].lower(): e for e in estimates}
        for position, (item_id, name, _) in enumerate(batch):
            results["processed"] += 1
            # match on name, falling back to the answer at the same position
            estimate = by_name.get(name.lower())
            if estimate is None and position < len(estimates):
                estimate = estimates[position]
            if estimate is None:
                results["failed"] += 1
                results["errors"].append(f'No nutrition result for "{name}"')
                continue
            try:
                store_nutrition(db, item_id, estimate["nutrition"])
                db.commit()
                results["successful"] += 1
            except Exception as e:
                db.rollback()
                logger.exception("Failed to store nutrition for %s", name)
                results["failed"] += 1
                results["errors"].append(f'DB error for "{name}": {e}')

    return results
