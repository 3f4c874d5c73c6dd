"""
Public quote intake.

A quote request becomes a client (matched by lower-cased email) and a new
``LEAD_RECEIVED`` job. Repeat submissions from the same email inside the
idempotency window are treated as the same lead and write nothing. The
window is keyed on email alone, so two genuinely different requests from
one address inside it collapse into one.
"""

import logging
from datetime import timedelta
from typing import Callable, Optional

from .models import QuoteIn, QuoteOut
from .services.geocoding import Geocoder
from .status import INITIAL_STATUS, ClientStatus
from .store import utcnow

logger = logging.getLogger(__name__)


class QuoteIntake:
    def __init__(self, store, config, geocoder: Optional[Geocoder] = None, clock: Callable = utcnow):
        self.store = store
        self.window = timedelta(minutes=config.idempotency_window_minutes)
        self.geocoder = geocoder
        self.clock = clock

    def submit(self, quote: QuoteIn) -> QuoteOut:
        now = self.clock()
        email = quote.email.strip().lower()

        recent = self.store.find_recent_job_for_email(email, now - self.window)
        if recent:
            logger.info(f"Duplicate quote from {email} within window; reusing job {recent['id']}")
            return QuoteOut(client_id=recent.get("client_id") or "", job_id=recent["id"], duplicate=True)

        client = self.store.find_client_by_email(email)
        if client:
            client = self.store.update_client(client["id"], {
                "name": quote.name,
                "phone": quote.phone,
                "address": quote.address,
                "last_contact_date": now.isoformat(),
            }) or client
            logger.info(f"Quote from existing client {client['id']}")
        else:
            client = self.store.insert_client({
                "name": quote.name,
                "email": email,
                "phone": quote.phone,
                "address": quote.address,
                "property_notes": "",
                "location": self.geocoder.locate(quote.address) if self.geocoder else None,
                "status": ClientStatus.LEAD.value,
                "total_spent": 0,
                "job_count": 0,
                "created_at": now.isoformat(),
                "last_contact_date": now.isoformat(),
            })
            logger.info(f"New client {client['id']} from quote")

        job = self.store.insert_job({
            "client_id": client["id"],
            "name": quote.name,
            "email": email,
            "phone": quote.phone,
            "address": quote.address,
            "service": quote.service,
            "status": INITIAL_STATUS.value,
            "created_at": now.isoformat(),
        })
        self.store.update_client(client["id"], {"job_count": int(client.get("job_count") or 0) + 1})
        self.store.log_event("quote_submitted", {"client_id": client["id"], "job_id": job["id"]})

        return QuoteOut(client_id=client["id"], job_id=job["id"])
