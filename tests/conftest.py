"""
Shared fixtures: an in-memory stand-in for the Supabase store, recording
vendor doubles, a controllable clock and a logged-in admin client.
"""

import copy
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from doorway.config import Config
from doorway.errors import IntegrationError
from doorway.main import create_app
from doorway.services.geocoding import Geocoder
from doorway.services.integrations import Integrations
from doorway.services.stripe_service import PaymentGateway
from doorway.store import new_id

ADMIN_PASSWORD = "letmein"
WEBHOOK_SECRET = "whsec_test_secret"


class InMemoryStore:
    """Same surface as SupabaseStore, backed by dicts."""

    def __init__(self):
        self.clients = {}
        self.jobs = {}
        self.events = []
        self.calls = []

    def _record(self, name):
        self.calls.append(name)

    def ping(self):
        return True

    # clients
    def get_client(self, client_id):
        self._record("get_client")
        row = self.clients.get(client_id)
        return copy.deepcopy(row) if row else None

    def find_client_by_email(self, email):
        self._record("find_client_by_email")
        email = email.strip().lower()
        for row in self.clients.values():
            if row.get("email") == email:
                return copy.deepcopy(row)
        return None

    def list_clients(self, search=None):
        self._record("list_clients")
        rows = list(self.clients.values())
        if search:
            term = search.lower()
            rows = [
                r for r in rows
                if any(term in (r.get(k) or "").lower() for k in ("name", "email", "address"))
            ]
        return sorted(copy.deepcopy(rows), key=lambda r: r.get("created_at") or "", reverse=True)

    def insert_client(self, data):
        self._record("insert_client")
        row = {"id": new_id(), "created_at": datetime.now(timezone.utc).isoformat(), **data}
        self.clients[row["id"]] = row
        return copy.deepcopy(row)

    def update_client(self, client_id, changes):
        self._record("update_client")
        if client_id not in self.clients:
            return None
        self.clients[client_id].update(changes)
        return copy.deepcopy(self.clients[client_id])

    def delete_client(self, client_id):
        self._record("delete_client")
        return self.clients.pop(client_id, None) is not None

    # jobs
    def get_job(self, job_id):
        self._record("get_job")
        row = self.jobs.get(job_id)
        return copy.deepcopy(row) if row else None

    def list_jobs(self, status=None, client_id=None):
        self._record("list_jobs")
        rows = [
            r for r in self.jobs.values()
            if (status is None or r.get("status") == status)
            and (client_id is None or r.get("client_id") == client_id)
        ]
        return sorted(copy.deepcopy(rows), key=lambda r: r.get("created_at") or "", reverse=True)

    def find_recent_job_for_email(self, email, since):
        self._record("find_recent_job_for_email")
        matches = [
            r for r in self.jobs.values()
            if r.get("email") == email.strip().lower()
            and datetime.fromisoformat(r["created_at"]) >= since
        ]
        matches.sort(key=lambda r: r["created_at"], reverse=True)
        return copy.deepcopy(matches[0]) if matches else None

    def insert_job(self, data):
        self._record("insert_job")
        row = {"id": new_id(), "created_at": datetime.now(timezone.utc).isoformat(), **data}
        self.jobs[row["id"]] = row
        return copy.deepcopy(row)

    def update_job(self, job_id, changes):
        self._record("update_job")
        if job_id not in self.jobs:
            return None
        self.jobs[job_id].update(changes)
        return copy.deepcopy(self.jobs[job_id])

    def delete_job(self, job_id):
        self._record("delete_job")
        return self.jobs.pop(job_id, None) is not None

    def log_event(self, action, meta):
        self.events.append((action, meta))


class FakeSms:
    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    def send(self, to_phone, body):
        if self.fail:
            raise IntegrationError("twilio", "simulated outage")
        self.sent.append((to_phone, body))
        return "SM123"


class FakeCalendar:
    def __init__(self, fail=False):
        self.fail = fail
        self.events = []

    def create_event(self, title, description, location, start):
        if self.fail:
            raise IntegrationError("google_calendar", "simulated outage")
        event = {"id": f"evt{len(self.events) + 1}", "summary": title, "location": location,
                 "start": start, "end": start + timedelta(hours=1), "description": description}
        self.events.append(event)
        return event


class FakeMailer:
    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    def send(self, to, subject, html_content):
        if self.fail:
            raise IntegrationError("resend", "simulated outage")
        self.sent.append({"to": to, "subject": subject, "html": html_content})
        return {"id": "email_1"}


class FakeClock:
    def __init__(self, start=None):
        self.now = start or datetime(2025, 6, 2, 14, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def config():
    return Config(
        admin_secret=ADMIN_PASSWORD,
        session_secret="test-session-secret",
        session_cookie_secure=False,
        admin_emails=["owner@doorwaydetail.ca"],
        supabase_url="https://example.supabase.co",
        supabase_jwt_secret="supabase-jwt-secret",
        stripe_webhook_secret=WEBHOOK_SECRET,
        mock_geocoding=True,
    )


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sms():
    return FakeSms()


@pytest.fixture
def calendar():
    return FakeCalendar()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def integrations(sms, calendar, mailer):
    return Integrations(
        calendar=calendar,
        sms=sms,
        mailer=mailer,
        payments=PaymentGateway(api_key=None, webhook_secret=WEBHOOK_SECRET),
    )


@pytest.fixture
def app(config, store, integrations, clock):
    return create_app(
        config=config,
        store=store,
        integrations=integrations,
        geocoder=Geocoder(mock=True),
        clock=clock,
    )


@pytest.fixture
def client(app):
    """Anonymous client."""
    return TestClient(app)


@pytest.fixture
def admin(app):
    """Client holding a valid admin session cookie."""
    c = TestClient(app)
    resp = c.post("/auth/login", data={"password": ADMIN_PASSWORD})
    assert resp.status_code == 200
    return c


@pytest.fixture
def seed_job(store, clock):
    """Insert a client + job in a given status and return the job id."""

    def _seed(status="LEAD_RECEIVED", **fields):
        client = store.insert_client({
            "name": "Dana Smith",
            "email": "dana@example.com",
            "phone": "+12895550100",
            "address": "12 King St W, Hamilton",
            "status": "LEAD",
            "total_spent": 0,
            "job_count": 1,
        })
        job = store.insert_job({
            "client_id": client["id"],
            "name": "Dana Smith",
            "email": "dana@example.com",
            "phone": "+12895550100",
            "address": "12 King St W, Hamilton",
            "service": "Window Cleaning",
            "status": status,
            "created_at": clock().isoformat(),
            **fields,
        })
        return job["id"]

    return _seed
