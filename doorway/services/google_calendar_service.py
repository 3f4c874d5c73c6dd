"""
Google Calendar Service
Creates one-hour calendar events for booked jobs using a service account
"""

import logging
import time
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import httpx
from jose import jwt
from jose.exceptions import JOSEError

from ..errors import IntegrationError

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_CALENDAR_API = "https://www.googleapis.com/calendar/v3"
CALENDAR_SCOPE = "https://www.googleapis.com/auth/calendar.events"
EVENT_DURATION = timedelta(hours=1)


class ServiceAccountCredentials:
    """OAuth2 JWT-bearer flow: sign an assertion with the private key, trade it for a token."""

    def __init__(self, client_email: str, private_key: str, http: httpx.Client):
        self.client_email = client_email
        self.private_key = private_key
        self.http = http
        self._token: Optional[str] = None
        self._expires_at = 0.0

    def access_token(self) -> str:
        now = time.time()
        # refresh 5 minutes early
        if self._token and now < self._expires_at - 300:
            return self._token

        try:
            assertion = jwt.encode(
                {
                    "iss": self.client_email,
                    "scope": CALENDAR_SCOPE,
                    "aud": GOOGLE_TOKEN_URL,
                    "iat": int(now),
                    "exp": int(now) + 3600,
                },
                self.private_key,
                algorithm="RS256",
            )
        except JOSEError as e:
            raise IntegrationError("google_calendar", f"could not sign assertion: {e}", original_error=e)

        try:
            response = self.http.post(
                GOOGLE_TOKEN_URL,
                data={"grant_type": "urn:ietf:params:oauth:grant-type:jwt-bearer", "assertion": assertion},
            )
        except httpx.HTTPError as e:
            raise IntegrationError("google_calendar", str(e), original_error=e)
        if response.status_code != 200:
            raise IntegrationError("google_calendar", f"token exchange failed: {response.text}")

        tokens = response.json()
        self._token = tokens.get("access_token")
        if not self._token:
            raise IntegrationError("google_calendar", "no access token in token response")
        self._expires_at = now + int(tokens.get("expires_in", 3600))
        logger.info("Google Calendar token refreshed")
        return self._token


class GoogleCalendar:
    def __init__(self, calendar_id: str, credentials, http: Optional[httpx.Client] = None):
        self.calendar_id = calendar_id or "primary"
        self.credentials = credentials
        self.http = http or httpx.Client(timeout=10.0)

    @classmethod
    def from_service_account(
        cls, client_email: str, private_key: str, calendar_id: str, http: Optional[httpx.Client] = None
    ) -> "GoogleCalendar":
        http = http or httpx.Client(timeout=10.0)
        return cls(calendar_id, ServiceAccountCredentials(client_email, private_key, http), http)

    def create_event(self, title: str, description: str, location: str, start: datetime) -> Dict[str, Any]:
        """Insert a one-hour event and return the created event resource."""
        end = start + EVENT_DURATION
        event = {
            "summary": title,
            "description": description,
            "location": location,
            "start": {"dateTime": start.isoformat(), "timeZone": "UTC"},
            "end": {"dateTime": end.isoformat(), "timeZone": "UTC"},
        }
        token = self.credentials.access_token()

        logger.info(f"Syncing with Google Calendar ({self.calendar_id})...")
        try:
            response = self.http.post(
                f"{GOOGLE_CALENDAR_API}/calendars/{self.calendar_id}/events",
                headers={"Authorization": f"Bearer {token}"},
                json=event,
            )
        except httpx.HTTPError as e:
            raise IntegrationError("google_calendar", str(e), original_error=e)

        if response.status_code not in (200, 201):
            raise IntegrationError("google_calendar", f"event insert failed: {response.text}")

        created = response.json()
        logger.info(f"Calendar event created: {created.get('htmlLink')}")
        return created
