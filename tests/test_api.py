"""
HTTP tests: admin boundary, error mapping and the main job routes.
"""

import time

from fastapi.testclient import TestClient
from jose import jwt

from conftest import InMemoryStore
from doorway.auth import SESSION_AUDIENCE, SESSION_COOKIE
from doorway.config import Config
from doorway.errors import StoreError
from doorway.main import create_app
from doorway.services.geocoding import Geocoder

QUOTE = {
    "name": "Dana Smith",
    "email": "dana@example.com",
    "phone": "+12895550100",
    "address": "12 King St W, Hamilton",
    "service": "Window Cleaning",
}


class TestAdminBoundary:
    def test_anonymous_json_request_rejected(self, client, store):
        """Test that an admin route refuses before the store is touched."""
        resp = client.get("/jobs")
        assert resp.status_code == 401
        assert resp.json() == {"detail": "Admin session required"}
        assert store.calls == []

    def test_anonymous_browser_redirected_to_login(self, client, store):
        resp = client.get("/clients", headers={"accept": "text/html"}, follow_redirects=False)
        assert resp.status_code == 303
        assert resp.headers["location"] == "/login"
        assert store.calls == []

    def test_tampered_cookie_rejected(self, client):
        client.cookies.set("session_token", "not-a-jwt")
        assert client.get("/jobs").status_code == 401

    def test_wrong_password(self, client):
        resp = client.post("/auth/login", data={"password": "guess"})
        assert resp.status_code == 401
        assert "session_token" not in resp.cookies

    def test_login_not_configured(self, config, store):
        config.admin_secret = None
        app = create_app(config=config, store=store, integrations=None, geocoder=Geocoder(mock=True))
        resp = TestClient(app).post("/auth/login", data={"password": "anything"})
        assert resp.status_code == 503

    def test_no_secret_rejects_every_cookie(self, store, integrations):
        """Test that without SESSION_SECRET/ADMIN_SECRET no self-signed cookie opens admin routes."""
        app = create_app(
            config=Config.from_env({"SUPABASE_URL": "https://example.supabase.co"}),
            store=store,
            integrations=integrations,
            geocoder=Geocoder(mock=True),
        )
        c = TestClient(app)
        now = int(time.time())
        for secret in ("dev-session-secret", "anything"):
            forged = jwt.encode(
                {"sub": "intruder", "aud": SESSION_AUDIENCE, "iat": now, "exp": now + 3600},
                secret,
                algorithm="HS256",
            )
            c.cookies.set(SESSION_COOKIE, forged)
            assert c.get("/clients").status_code == 401
        assert store.calls == []
        assert c.post("/auth/login", data={"password": "anything"}).status_code == 503

    def test_login_then_logout(self, admin):
        assert admin.get("/jobs").status_code == 200
        admin.post("/auth/logout")
        assert admin.get("/jobs").status_code == 401

    def test_login_form_is_public(self, client):
        resp = client.get("/login")
        assert resp.status_code == 200
        assert "password" in resp.text

    def test_identity_bridge_for_admin_email(self, client, config):
        token = jwt.encode(
            {"sub": "user-1", "email": "Owner@DoorwayDetail.ca", "iss": f"{config.supabase_url}/auth/v1"},
            config.supabase_jwt_secret,
            algorithm="HS256",
        )
        resp = client.post("/auth/session", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200
        assert resp.json()["email"] == "owner@doorwaydetail.ca"
        assert client.get("/jobs").status_code == 200

    def test_identity_bridge_rejects_other_accounts(self, client, config):
        token = jwt.encode(
            {"sub": "user-2", "email": "someone@example.com", "iss": f"{config.supabase_url}/auth/v1"},
            config.supabase_jwt_secret,
            algorithm="HS256",
        )
        resp = client.post("/auth/session", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 403
        assert client.get("/jobs").status_code == 401

    def test_identity_bridge_bad_signature(self, client, config):
        token = jwt.encode(
            {"sub": "user-1", "email": "owner@doorwaydetail.ca", "iss": f"{config.supabase_url}/auth/v1"},
            "wrong-secret",
            algorithm="HS256",
        )
        resp = client.post("/auth/session", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401


class TestPublicRoutes:
    def test_health(self, client):
        assert client.get("/health").json() == {"ok": True}
        assert client.get("/health/db").json() == {"ok": True, "db": "up"}

    def test_diag(self, client):
        body = client.get("/diag").json()
        assert body["active"] == {"calendar": True, "sms": True, "mailer": True, "payments": True}
        assert body["configured"]["stripe_webhook"] is True

    def test_payments_ping(self, client):
        assert client.get("/payments/ping").json() == {
            "ok": True,
            "has_secret_key": False,
            "has_webhook_secret": True,
        }

    def test_submit_quote(self, client, store):
        resp = client.post("/quotes", json=QUOTE)
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["duplicate"] is False
        assert store.jobs[body["job_id"]]["status"] == "LEAD_RECEIVED"

    def test_duplicate_quote(self, client, store):
        first = client.post("/quotes", json=QUOTE).json()
        second = client.post("/quotes", json={**QUOTE, "email": "DANA@example.com"}).json()
        assert second["duplicate"] is True
        assert second["job_id"] == first["job_id"]
        assert len(store.jobs) == 1

    def test_quote_missing_field(self, client):
        resp = client.post("/quotes", json={k: v for k, v in QUOTE.items() if k != "phone"})
        assert resp.status_code == 422


class TestJobRoutes:
    def test_get_job_includes_invoice_and_moves(self, admin, seed_job):
        job_id = seed_job("SCHEDULED", price="100", discount="10", tax_rate="13")
        body = admin.get(f"/jobs/{job_id}").json()
        assert body["invoice"]["total"] == "101.70"
        assert body["allowed_transitions"] == ["SCHEDULED", "COMPLETED", "INVOICED", "CANCELLED"]

    def test_missing_job_is_404(self, admin):
        resp = admin.get("/jobs/does-not-exist")
        assert resp.status_code == 404
        assert resp.json()["code"] == "NOT_FOUND"

    def test_rejected_transition_is_409(self, admin, store, seed_job):
        job_id = seed_job("LEAD_RECEIVED")
        resp = admin.patch(f"/jobs/{job_id}/status", json={"status": "PAID"})
        assert resp.status_code == 409
        assert resp.json() == {
            "detail": "Cannot move job from LEAD_RECEIVED to PAID",
            "code": "TRANSITION_REJECTED",
        }
        assert store.jobs[job_id]["status"] == "LEAD_RECEIVED"

    def test_unknown_status_label(self, admin, seed_job):
        resp = admin.patch(f"/jobs/{seed_job()}/status", json={"status": "ARCHIVED"})
        assert resp.status_code == 422

    def test_list_jobs_by_status(self, admin, seed_job):
        seed_job("LEAD_RECEIVED")
        paid = seed_job("PAID")
        body = admin.get("/jobs", params={"status": "PAID"}).json()
        assert [j["id"] for j in body] == [paid]

    def test_create_job_for_client(self, admin, store, seed_job):
        client_id = store.jobs[seed_job()]["client_id"]
        resp = admin.post("/jobs", json={"client_id": client_id, "service": "Gutter Cleaning"})
        assert resp.status_code == 201
        assert resp.json()["service"] == "Gutter Cleaning"

    def test_booking(self, admin, store, calendar, seed_job):
        job_id = seed_job()
        resp = admin.post(f"/jobs/{job_id}/booking", json={"date": "2025-06-10T09:30:00+00:00"})
        assert resp.status_code == 200
        assert resp.json()["calendar_synced"] is True
        assert store.jobs[job_id]["status"] == "SCHEDULED"
        assert len(calendar.events) == 1

    def test_pricing(self, admin, seed_job):
        resp = admin.patch(f"/jobs/{seed_job()}/pricing", json={"price": "200", "tax_rate": 13})
        assert resp.status_code == 200
        assert resp.json()["invoice"]["total"] == "226.00"

    def test_invoice_mail_failure_is_502(self, admin, store, mailer, seed_job):
        mailer.fail = True
        job_id = seed_job("COMPLETED", price=100)
        resp = admin.post(f"/jobs/{job_id}/invoice")
        assert resp.status_code == 502
        assert resp.json()["code"] == "INTEGRATION_ERROR"
        assert store.jobs[job_id]["status"] == "COMPLETED"

    def test_invoice_sent(self, admin, store, seed_job):
        job_id = seed_job("COMPLETED", price=100, tax_rate=13)
        body = admin.post(f"/jobs/{job_id}/invoice").json()
        assert body["success"] is True
        assert body["invoice"]["total"] == "113.00"
        assert store.jobs[job_id]["status"] == "INVOICED"

    def test_checkout_without_stripe_key_is_503(self, admin, seed_job):
        resp = admin.post(f"/jobs/{seed_job('INVOICED', price=100)}/checkout")
        assert resp.status_code == 503
        assert resp.json()["code"] == "INTEGRATION_UNAVAILABLE"

    def test_on_my_way(self, admin, sms, seed_job):
        body = admin.post(f"/jobs/{seed_job('SCHEDULED')}/on-my-way").json()
        assert body["sms_sent"] is True
        assert "on our way" in sms.sent[0][1]

    def test_delete(self, admin, store, seed_job):
        job_id = seed_job()
        assert admin.delete(f"/jobs/{job_id}").status_code == 204
        assert job_id not in store.jobs


class TestClientRoutes:
    def test_create_and_fetch(self, admin):
        resp = admin.post("/clients", json={"name": "Lee", "email": "Lee@Example.com", "address": "1 Main St"})
        assert resp.status_code == 201
        created = resp.json()
        assert created["email"] == "lee@example.com"
        assert created["status"] == "LEAD"
        assert created["location"] is not None

        fetched = admin.get(f"/clients/{created['id']}").json()
        assert fetched["jobs"] == []

    def test_duplicate_email_is_409(self, admin):
        admin.post("/clients", json={"name": "Lee", "email": "lee@example.com"})
        resp = admin.post("/clients", json={"name": "Lee Again", "email": "LEE@example.com"})
        assert resp.status_code == 409
        assert resp.json()["code"] == "DUPLICATE"

    def test_search(self, admin):
        admin.post("/clients", json={"name": "Lee", "email": "lee@example.com", "address": "1 Main St"})
        admin.post("/clients", json={"name": "Sam", "email": "sam@example.com", "address": "9 Bay St"})
        body = admin.get("/clients", params={"search": "bay"}).json()
        assert [c["name"] for c in body] == ["Sam"]

    def test_update_address_relocates(self, admin):
        created = admin.post("/clients", json={"name": "Lee", "email": "lee@example.com", "address": "1 Main St"}).json()
        updated = admin.patch(f"/clients/{created['id']}", json={"address": "77 James St N"}).json()
        assert updated["address"] == "77 James St N"
        assert updated["location"] != created["location"]

    def test_update_status(self, admin):
        created = admin.post("/clients", json={"name": "Lee", "email": "lee@example.com"}).json()
        updated = admin.patch(f"/clients/{created['id']}", json={"status": "CHURNED"}).json()
        assert updated["status"] == "CHURNED"

    def test_delete_leaves_jobs(self, admin, store, seed_job):
        job_id = seed_job()
        client_id = store.jobs[job_id]["client_id"]
        assert admin.delete(f"/clients/{client_id}").status_code == 204
        assert client_id not in store.clients
        assert job_id in store.jobs

    def test_missing_client(self, admin):
        assert admin.get("/clients/nope").status_code == 404


class FailingStore(InMemoryStore):
    def list_jobs(self, status=None, client_id=None):
        raise StoreError("jobs list failed", original_error=RuntimeError("relation \"jobs\" does not exist"))

    def ping(self):
        raise StoreError("clients ping failed", original_error=RuntimeError("connection refused"))


class TestStoreFailures:
    def test_store_error_is_generic_500(self, config, integrations):
        app = create_app(config=config, store=FailingStore(), integrations=integrations, geocoder=Geocoder(mock=True))
        c = TestClient(app)
        c.post("/auth/login", data={"password": config.admin_secret})
        resp = c.get("/jobs")
        assert resp.status_code == 500
        assert resp.json() == {"detail": "Database operation failed", "code": "STORE_ERROR"}

    def test_health_db_reports_outage(self, config, integrations):
        app = create_app(config=config, store=FailingStore(), integrations=integrations, geocoder=Geocoder(mock=True))
        resp = TestClient(app).get("/health/db")
        assert resp.status_code == 503
        assert "connection refused" in resp.json()["detail"]
