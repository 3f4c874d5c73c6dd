# doorway/payments.py
from fastapi import APIRouter, Depends

from .auth import require_admin
from .deps import get_integrations, get_workflow
from .models import CheckoutOut

router = APIRouter(tags=["payments"])


@router.get("/payments/ping")
def ping(integrations=Depends(get_integrations)):
    gateway = integrations.payments
    return {
        "ok": True,
        "has_secret_key": bool(gateway and gateway.api_key),
        "has_webhook_secret": bool(gateway and gateway.webhook_secret),
    }


@router.post("/jobs/{job_id}/checkout", response_model=CheckoutOut, dependencies=[Depends(require_admin)])
def create_checkout(job_id: str, workflow=Depends(get_workflow)):
    return workflow.create_checkout(job_id)
