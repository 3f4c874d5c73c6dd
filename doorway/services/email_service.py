"""
Invoice email delivery via Resend
"""

import logging
from typing import Any, Dict

import resend

from ..errors import IntegrationError

logger = logging.getLogger(__name__)


class InvoiceMailer:
    def __init__(self, api_key: str, from_address: str):
        self.api_key = api_key
        self.from_address = from_address

    def send(self, to: str, subject: str, html_content: str) -> Dict[str, Any]:
        """Send one HTML email; any Resend failure becomes an IntegrationError."""
        resend.api_key = self.api_key
        email_data = {
            "from": self.from_address,
            "to": [to],
            "subject": subject,
            "html": html_content,
        }
        try:
            logger.info(f"Sending email via Resend to: {to}")
            response = resend.Emails.send(email_data)
        except Exception as e:
            logger.error(f"Email send error to {to}: {e}")
            raise IntegrationError("resend", f"Failed to send email: {e}", original_error=e)
        logger.info(f"Email sent via Resend: {response}")
        return response
