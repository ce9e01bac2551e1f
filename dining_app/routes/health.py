"""Health check endpoint."""
from datetime import datetime

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..core.config import get_settings
from ..database.session import get_db

router = APIRouter()


@router.get("/health")
def health(db: Session = Depends(get_db)):
    """Report database connectivity and whether an OpenAI key is configured."""
    checks = {"api": {"status": "ok"}}
    try:
        db.execute(text("SELECT 1"))
        checks["database"] = {"status": "ok"}
    except Exception as e:
        checks["database"] = {"status": "error", "message": str(e) or "Connection failed"}

    if get_settings().OPENAI_API_KEY:
        checks["openai"] = {"status": "ok"}
    else:
        checks["openai"] = {"status": "error", "message": "OPENAI_API_KEY not configured"}

    all_ok = all(c["status"] == "ok" for c in checks.values())
    return JSONResponse(
        status_code=200 if all_ok else 503,
        content={
            "status": "healthy" if all_ok else "degraded",
            "timestamp": datetime.utcnow().isoformat(),
            "checks": checks,
        },
    )
