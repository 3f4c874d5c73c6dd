from fastapi import APIRouter, Depends, HTTPException

from ..config import Config
from ..deps import get_config, get_integrations, get_store
from ..errors import StoreError

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    return {"ok": True}


@router.get("/health/db")
def health_db(store=Depends(get_store)):
    try:
        store.ping()
    except StoreError as e:
        # surface the error so we know exactly what's wrong
        raise HTTPException(status_code=503, detail=f"DB check failed: {e.original_error or e}")
    return {"ok": True, "db": "up"}


@router.get("/diag")
def diag(config: Config = Depends(get_config), integrations=Depends(get_integrations)):
    """Which vendors are configured (to explain 503s quickly)."""
    return {
        "configured": config.integration_status(),
        "active": {name: integrations.available(name) for name in ("calendar", "sms", "mailer", "payments")},
        "mock_geocoding": config.mock_geocoding,
    }
