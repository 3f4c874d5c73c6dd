"""
Optional vendor collaborators.

Each slot is either a working client or None. ``require`` turns a missing
vendor into ``IntegrationUnavailable`` for operations that cannot do
without it; best-effort callers check ``available`` and skip.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..errors import IntegrationUnavailable
from .email_service import InvoiceMailer
from .google_calendar_service import GoogleCalendar
from .stripe_service import PaymentGateway
from .twilio_service import TwilioSms

logger = logging.getLogger(__name__)


@dataclass
class Integrations:
    calendar: Optional[GoogleCalendar] = None
    sms: Optional[TwilioSms] = None
    mailer: Optional[InvoiceMailer] = None
    payments: Optional[PaymentGateway] = None

    def available(self, name: str) -> bool:
        return getattr(self, name) is not None

    def require(self, name: str):
        vendor = getattr(self, name)
        if vendor is None:
            raise IntegrationUnavailable(name)
        return vendor


def build_integrations(config) -> Integrations:
    integrations = Integrations()

    if config.google_client_email and config.google_private_key:
        integrations.calendar = GoogleCalendar.from_service_account(
            config.google_client_email, config.google_private_key, config.google_calendar_id
        )
    else:
        logger.warning("Google Calendar not configured: calendar sync disabled")

    if config.twilio_account_sid and config.twilio_auth_token and config.twilio_phone_number:
        integrations.sms = TwilioSms(
            config.twilio_account_sid, config.twilio_auth_token, config.twilio_phone_number
        )
    else:
        logger.warning("Twilio not configured: SMS disabled")

    if config.resend_api_key:
        integrations.mailer = InvoiceMailer(config.resend_api_key, config.email_from_address)
    else:
        logger.warning("Resend not configured: invoice email disabled")

    if config.stripe_secret_key or config.stripe_webhook_secret:
        integrations.payments = PaymentGateway(
            api_key=config.stripe_secret_key,
            webhook_secret=config.stripe_webhook_secret,
            currency=config.stripe_currency,
            success_url=config.success_url,
            cancel_url=config.cancel_url,
        )
    else:
        logger.warning("Stripe not configured: payments disabled")

    return integrations
