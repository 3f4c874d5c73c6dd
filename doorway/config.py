# doorway/config.py
import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

# .env at the project root; real env vars win
load_dotenv(dotenv_path=Path(__file__).resolve().parent.parent / ".env")


def _sanitize(value: Optional[str]) -> Optional[str]:
    """Strip one pair of quotes pasted around a dashboard value."""
    if not value:
        return None
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        value = value[1:-1]
    return value or None


def _pem(value: Optional[str]) -> Optional[str]:
    """Service account keys arrive with literal \\n sequences."""
    value = _sanitize(value)
    return value.replace("\\n", "\n") if value else None


def _parse_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("true", "1", "t", "y", "yes")


def _parse_list(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class Config(BaseModel):
    # Supabase (service role so it bypasses RLS on the server)
    supabase_url: Optional[str] = None
    supabase_service_role: Optional[str] = None
    supabase_jwt_secret: Optional[str] = None

    # Admin boundary
    admin_secret: Optional[str] = None
    # no default: without a secret no session cookie is ever accepted
    session_secret: Optional[str] = None
    session_ttl_hours: int = 12
    session_cookie_secure: bool = True
    admin_emails: List[str] = []

    # Stripe
    stripe_secret_key: Optional[str] = None
    stripe_webhook_secret: Optional[str] = None
    stripe_currency: str = "cad"
    success_url: str = "https://doorwaydetail.ca/payment-success"
    cancel_url: str = "https://doorwaydetail.ca/payment-cancel"

    # Twilio
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_phone_number: Optional[str] = None

    # Google Calendar (service account)
    google_client_email: Optional[str] = None
    google_private_key: Optional[str] = None
    google_calendar_id: str = "primary"

    # Resend
    resend_api_key: Optional[str] = None
    email_from_address: str = "Doorway Detail <invoices@doorwaydetail.ca>"
    business_name: str = "Doorway Detail"
    business_phone: str = "289-772-5757"

    # Geocoding
    mock_geocoding: bool = True
    mock_latitude: float = 43.2557
    mock_longitude: float = -79.8711
    nominatim_base_url: str = "https://nominatim.openstreetmap.org"
    nominatim_user_agent: str = "DoorwayOps/1.0"

    # Workflow
    idempotency_window_minutes: int = 10
    default_tax_rate: float = 0.0

    # Server
    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"
    port: int = 8000

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "Config":
        env = os.environ if environ is None else environ
        values = {
            "supabase_url": env.get("SUPABASE_URL"),
            "supabase_service_role": _sanitize(env.get("SUPABASE_SERVICE_ROLE")),
            "supabase_jwt_secret": _sanitize(env.get("SUPABASE_JWT_SECRET")),
            "admin_secret": _sanitize(env.get("ADMIN_SECRET")),
            "session_secret": _sanitize(env.get("SESSION_SECRET")) or _sanitize(env.get("ADMIN_SECRET")),
            "admin_emails": [e.lower() for e in _parse_list(env.get("ADMIN_EMAILS"))],
            "session_cookie_secure": _parse_bool(env.get("SESSION_COOKIE_SECURE"), True),
            "stripe_secret_key": _sanitize(env.get("STRIPE_SECRET_KEY")),
            "stripe_webhook_secret": _sanitize(env.get("STRIPE_WEBHOOK_SECRET")),
            "stripe_currency": env.get("STRIPE_CURRENCY"),
            "success_url": env.get("SUCCESS_URL"),
            "cancel_url": env.get("CANCEL_URL"),
            "twilio_account_sid": _sanitize(env.get("TWILIO_ACCOUNT_SID")),
            "twilio_auth_token": _sanitize(env.get("TWILIO_AUTH_TOKEN")),
            "twilio_phone_number": env.get("TWILIO_PHONE_NUMBER"),
            "google_client_email": env.get("GOOGLE_CLIENT_EMAIL"),
            "google_private_key": _pem(env.get("GOOGLE_PRIVATE_KEY")),
            "google_calendar_id": env.get("GOOGLE_CALENDAR_ID"),
            "resend_api_key": _sanitize(env.get("RESEND_API_KEY")),
            "email_from_address": env.get("EMAIL_FROM_ADDRESS"),
            "business_name": env.get("BUSINESS_NAME"),
            "business_phone": env.get("BUSINESS_PHONE"),
            "mock_geocoding": _parse_bool(env.get("MOCK_GEOCODING"), True),
            "nominatim_base_url": env.get("NOMINATIM_BASE_URL"),
            "idempotency_window_minutes": env.get("IDEMPOTENCY_WINDOW_MINUTES"),
            "default_tax_rate": env.get("DEFAULT_TAX_RATE"),
            "cors_origins": _parse_list(env.get("CORS_ORIGINS")) or None,
            "log_level": (env.get("LOG_LEVEL") or "").upper() or None,
            "port": env.get("PORT"),
        }
        # unset keys fall back to the field defaults
        return cls(**{k: v for k, v in values.items() if v is not None})

    def integration_status(self) -> Dict[str, bool]:
        return {
            "supabase": bool(self.supabase_url and self.supabase_service_role),
            "stripe": bool(self.stripe_secret_key),
            "stripe_webhook": bool(self.stripe_webhook_secret),
            "twilio": bool(self.twilio_account_sid and self.twilio_auth_token and self.twilio_phone_number),
            "google_calendar": bool(self.google_client_email and self.google_private_key),
            "resend": bool(self.resend_api_key),
            "admin_secret": bool(self.admin_secret),
        }


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
