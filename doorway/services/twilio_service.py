"""
Twilio SMS Service
Sends job notifications (booking confirmed, on my way, invoice ready)
"""

import logging
from typing import Optional

import httpx

from ..errors import IntegrationError

logger = logging.getLogger(__name__)

TWILIO_API = "https://api.twilio.com/2010-04-01"


class TwilioSms:
    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        http: Optional[httpx.Client] = None,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.http = http or httpx.Client(timeout=10.0)

    def send(self, to_phone: str, body: str) -> str:
        """
        Send an SMS and return the Twilio message SID.

        Raises IntegrationError on a bad number or any API/transport failure.
        """
        if not to_phone:
            raise IntegrationError("twilio", "No phone number provided")
        to_phone = to_phone.strip()
        if not to_phone.startswith("+"):
            raise IntegrationError("twilio", f"Phone number must be in E.164 format: {to_phone}")

        logger.info(f"Sending SMS to {to_phone}")
        try:
            response = self.http.post(
                f"{TWILIO_API}/Accounts/{self.account_sid}/Messages.json",
                auth=(self.account_sid, self.auth_token),
                data={"To": to_phone, "From": self.from_number, "Body": body},
            )
        except httpx.HTTPError as e:
            raise IntegrationError("twilio", str(e), original_error=e)

        if response.status_code not in (200, 201):
            try:
                error = response.json()
            except ValueError:
                error = {}
            message = error.get("message") or f"HTTP {response.status_code}"
            code = error.get("code")
            raise IntegrationError("twilio", f"[{code}] {message}" if code else message)

        sid = response.json().get("sid")
        logger.info(f"SMS sent to {to_phone} (SID: {sid})")
        return sid


# Message bodies

def booking_confirmation_sms(business_name: str, client_name: str, service: str, when: str) -> str:
    return (
        f"Hi {client_name}, your {service} with {business_name} is booked for {when}. "
        "Reply to this message if you need to reschedule."
    )


def on_my_way_sms(business_name: str, client_name: str) -> str:
    return f"Hi {client_name}, this is {business_name}. We're on our way to you now!"


def invoice_ready_sms(business_name: str, client_name: str, total: str) -> str:
    return (
        f"Hi {client_name}, your invoice from {business_name} for ${total} has been emailed to you. "
        "Thank you for your business!"
    )
