"""Shared-secret check for maintenance endpoints called by a scheduler."""
from typing import Optional

from fastapi import Header, HTTPException, Request

from ..core.config import get_settings


def require_cron_secret(request: Request, authorization: Optional[str] = Header(None)):
    """Require ``Authorization: Bearer <CRON_SECRET>`` when a secret is configured.

    GET requests are only checked in production so the endpoints stay easy to
    poke during development; anything else is always checked.
    """
    settings = get_settings()
    secret = settings.CRON_SECRET
    if not secret:
        return
    if request.method == "GET" and not settings.is_production:
        return
    if authorization != f"Bearer {secret}":
        raise HTTPException(status_code=401, detail="Unauthorized")
