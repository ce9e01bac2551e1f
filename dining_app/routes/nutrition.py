"""Nutrition generation endpoints."""
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database.session import get_db
from ..services.nutrition import generate_missing_nutrition, generate_nutrition_for_item
from .cron import require_cron_secret

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_cron_secret)])


@router.get("/nutrition")
def generate_missing(db: Session = Depends(get_db)):
    """Estimate nutrition for every stored item that lacks it."""
    results = generate_missing_nutrition(db)
    return {"success": True, **results, "timestamp": datetime.utcnow().isoformat()}


@router.post("/nutrition")
def generate_for_item(payload: dict, db: Session = Depends(get_db)):
    """Estimate nutrition for one item: ``{"menu_item_id": <int>}``."""
    menu_item_id = payload.get("menu_item_id")
    if not isinstance(menu_item_id, int) or isinstance(menu_item_id, bool) or menu_item_id <= 0:
        raise HTTPException(status_code=400, detail="menu_item_id is required and must be a number")

    result = generate_nutrition_for_item(db, menu_item_id)
    if not result["success"]:
        raise HTTPException(status_code=400, detail=result["error"])
    return {"success": True, "menu_item_id": menu_item_id, "timestamp": datetime.utcnow().isoformat()}
