# doorway/services/stripe_service.py
import json
import logging
from typing import Any, Dict, Optional

import stripe

from ..errors import IntegrationError, IntegrationUnavailable, ValidationFailed
from ..invoice import InvoiceTotals

logger = logging.getLogger(__name__)


class PaymentGateway:
    """Card payments through Stripe Checkout; the api key is passed per request."""

    def __init__(
        self,
        api_key: str,
        webhook_secret: Optional[str],
        currency: str = "cad",
        success_url: str = "",
        cancel_url: str = "",
    ):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.currency = currency
        self.success_url = success_url
        self.cancel_url = cancel_url

    def create_checkout(self, job: Dict[str, Any], totals: InvoiceTotals) -> Dict[str, str]:
        if not self.api_key:
            raise IntegrationUnavailable("stripe")
        if totals.total_cents <= 0:
            raise ValidationFailed("Invoice total must be greater than zero to take payment")

        job_id = job["id"]
        try:
            session = stripe.checkout.Session.create(
                api_key=self.api_key,
                mode="payment",
                payment_method_types=["card"],
                customer_email=job.get("email") or None,
                line_items=[{
                    "price_data": {
                        "currency": self.currency,
                        "product_data": {"name": f"{job.get('service') or 'Service'} - {job.get('name') or job_id}"},
                        "unit_amount": totals.total_cents,
                    },
                    "quantity": 1,
                }],
                success_url=f"{self.success_url}?job_id={job_id}",
                cancel_url=f"{self.cancel_url}?job_id={job_id}",
                metadata={"job_id": job_id},
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe Checkout create failed for job {job_id}: {e}")
            raise IntegrationError("stripe", "Failed to create checkout session", original_error=e)

        logger.info(f"Created checkout session {session.id} for job {job_id}")
        return {"checkout_url": session.url, "session_id": session.id}

    def parse_webhook(self, payload: bytes, sig_header: Optional[str]) -> Dict[str, Any]:
        """Verify the Stripe signature and return the event as a plain dict."""
        if not self.webhook_secret:
            raise IntegrationUnavailable("stripe webhook secret")
        if not sig_header:
            raise ValidationFailed("Missing stripe-signature header")
        try:
            stripe.Webhook.construct_event(payload=payload, sig_header=sig_header, secret=self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.error(f"Stripe webhook verify FAILED: {e}")
            raise ValidationFailed("signature verification failed", original_error=e)
        return json.loads(payload)
