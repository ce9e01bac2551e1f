"""Meal recommendation endpoint."""
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..core.utils import parse_iso_date
from ..database.session import get_db
from ..schemas.schemas import RecommendRequest, RecommendResponse
from ..services.recommendations import MenuNotFound, build_recommendation

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/recommend", response_model=RecommendResponse)
def recommend_meal(payload: RecommendRequest, db: Session = Depends(get_db)):
    """Pick the best combination of items from one stored meal period.

    The free-text `prompt` is turned into constraints by the LLM when one is
    configured; request fields and the user's saved profile are merged in.
    """
    if not payload.prompt or not payload.dining_hall or not payload.date or not payload.meal_period:
        raise HTTPException(status_code=400, detail="prompt, dining_hall, date, and meal_period are required")
    try:
        parse_iso_date(payload.date)
    except ValueError:
        raise HTTPException(status_code=400, detail="date must be YYYY-MM-DD")
    try:
        result = build_recommendation(db, payload)
    except MenuNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return RecommendResponse(recommendation=result)
