# doorway/stripe_webhook.py
import logging

from fastapi import APIRouter, Depends, Request

from .deps import get_integrations, get_workflow
from .errors import JobNotFound
from .invoice import to_amount

log = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/stripe", tags=["stripe"])


@router.post("/webhook")
async def webhook(req: Request, integrations=Depends(get_integrations), workflow=Depends(get_workflow)):
    gateway = integrations.require("payments")
    payload = await req.body()
    event = gateway.parse_webhook(payload, req.headers.get("stripe-signature"))

    etype = event.get("type")
    log.info(f"Stripe webhook received: {etype}")

    if etype == "checkout.session.completed":
        session = event["data"]["object"]
        job_id = (session.get("metadata") or {}).get("job_id")
        if not job_id:
            log.warning("Payment received but no job_id in metadata")
            return {"received": True}

        log.info(f"Payment received for job {job_id}")
        amount = to_amount(session.get("amount_total")) / 100
        try:
            workflow.record_payment(job_id, session.get("payment_intent"), amount)
        except JobNotFound:
            # acknowledged so Stripe stops retrying a deleted job
            log.warning(f"Payment received for unknown job {job_id}")

    return {"received": True}
