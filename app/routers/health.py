# app/routers/health.py
"""
System health check endpoint.
Returns status of backend + DB + identity provider reachability.
"""

import requests
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from app.database import get_db
from app.config import settings
from datetime import datetime

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db)):
    """
    Returns:
    - Backend status
    - Database connectivity
    - Identity provider reachability (skipped when IDENTITY_PROVIDER_URL is unset)
    """
    result = {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "backend": "ok",
        "database": "unknown",
        "identity_provider": "not_configured",
    }

    # Check database
    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
    except Exception as e:
        result["database"] = f"error: {type(e).__name__}"
        result["status"] = "degraded"

    if settings.IDENTITY_PROVIDER_URL:
        try:
            resp = requests.get(settings.IDENTITY_PROVIDER_URL, timeout=3)
            result["identity_provider"] = "ok" if resp.status_code < 500 else f"http_{resp.status_code}"
        except requests.exceptions.ConnectionError:
            result["identity_provider"] = "unreachable"
            result["status"] = "degraded"
        except requests.exceptions.RequestException as e:
            result["identity_provider"] = f"error: {type(e).__name__}"
            result["status"] = "degraded"

    return result
