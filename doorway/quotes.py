# doorway/quotes.py
import logging

from fastapi import APIRouter, Depends

from .deps import get_intake
from .models import QuoteIn, QuoteOut

log = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/quotes", tags=["quotes"])


@router.post("", response_model=QuoteOut)
def submit_quote(payload: QuoteIn, intake=Depends(get_intake)):
    """Public quote form; no auth."""
    log.info(f"Quote request from {payload.email} for {payload.service}")
    return intake.submit(payload)
