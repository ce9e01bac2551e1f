"""Meal logging endpoint."""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database.models import User
from ..database.queries import create_meal_log, get_dining_hall_by_slug
from ..database.session import get_db
from ..schemas.schemas import MealLogCreate

router = APIRouter()


@router.post("/meal-history")
def log_meal(payload: MealLogCreate, db: Session = Depends(get_db)):
    """Record a meal so later recommendations can steer away from repeats."""
    if payload.user_id is None or payload.date is None or not payload.meal_period or not payload.items:
        raise HTTPException(status_code=400, detail="user_id, date, meal_period, and items are required")
    if not db.get(User, payload.user_id):
        raise HTTPException(status_code=404, detail="User not found")

    hall = get_dining_hall_by_slug(db, payload.dining_hall_slug) if payload.dining_hall_slug else None
    items = []
    for item in payload.items:
        n = item.nutrition
        items.append({
            "menu_item_id": item.menu_item_id,
            "item_name": item.name,
            "quantity": max(1, item.quantity),
            "calories": n.calories if n else None,
            "protein": n.protein if n else None,
            "carbs": n.carbs if n else None,
            "fat": n.fat if n else None,
            "fiber": n.fiber if n else None,
            "sugar": n.sugar if n else None,
            "sodium": n.sodium if n else None,
        })

    try:
        log = create_meal_log(
            db,
            user_id=payload.user_id,
            log_date=payload.date,
            meal_period=payload.meal_period.lower(),
            items=items,
            dining_hall_id=hall.id if hall else None,
            source=payload.source,
            notes=payload.notes,
        )
        db.commit()
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=str(e))
    return {"success": True, "meal_log_id": log.id, "item_count": len(items)}
