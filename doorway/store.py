"""
Persistence over the Supabase tables ``clients``, ``jobs`` and ``audit_logs``.

Rows are plain dicts. Ids are generated here so a job or client id is known
before the insert round trip returns.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from supabase import Client, create_client

from .errors import StoreError

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


class SupabaseStore:
    def __init__(self, client: Client):
        self.sb = client

    @classmethod
    def from_config(cls, config) -> "SupabaseStore":
        if not config.supabase_url or not config.supabase_service_role:
            raise RuntimeError("Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE")
        return cls(create_client(config.supabase_url, config.supabase_service_role))

    def _execute(self, what: str, query) -> List[Row]:
        try:
            resp = query.execute()
        except Exception as e:
            logger.error(f"{what} failed: {e}")
            raise StoreError(f"{what} failed", original_error=e)
        return resp.data or []

    def _first(self, what: str, query) -> Optional[Row]:
        rows = self._execute(what, query)
        return rows[0] if rows else None

    # ── health ──────────────────────────────────────────────────────────────
    def ping(self) -> bool:
        self._execute("clients ping", self.sb.table("clients").select("id").limit(1))
        return True

    # ── clients ─────────────────────────────────────────────────────────────
    def get_client(self, client_id: str) -> Optional[Row]:
        return self._first("clients select", self.sb.table("clients").select("*").eq("id", client_id).limit(1))

    def find_client_by_email(self, email: str) -> Optional[Row]:
        return self._first(
            "clients select by email",
            self.sb.table("clients").select("*").eq("email", email.strip().lower()).limit(1),
        )

    def list_clients(self, search: Optional[str] = None) -> List[Row]:
        q = self.sb.table("clients").select("*")
        if search:
            term = search.replace(",", " ").strip()
            q = q.or_(f"name.ilike.%{term}%,email.ilike.%{term}%,address.ilike.%{term}%")
        return self._execute("clients list", q.order("created_at", desc=True))

    def insert_client(self, data: Row) -> Row:
        row = {"id": new_id(), "created_at": utcnow().isoformat(), **data}
        return self._first("clients insert", self.sb.table("clients").insert(row)) or row

    def update_client(self, client_id: str, changes: Row) -> Optional[Row]:
        changes = {**changes, "updated_at": utcnow().isoformat()}
        return self._first("clients update", self.sb.table("clients").update(changes).eq("id", client_id))

    def delete_client(self, client_id: str) -> bool:
        return bool(self._execute("clients delete", self.sb.table("clients").delete().eq("id", client_id)))

    # ── jobs ────────────────────────────────────────────────────────────────
    def get_job(self, job_id: str) -> Optional[Row]:
        return self._first("jobs select", self.sb.table("jobs").select("*").eq("id", job_id).limit(1))

    def list_jobs(self, status: Optional[str] = None, client_id: Optional[str] = None) -> List[Row]:
        q = self.sb.table("jobs").select("*")
        if status:
            q = q.eq("status", status)
        if client_id:
            q = q.eq("client_id", client_id)
        return self._execute("jobs list", q.order("created_at", desc=True))

    def find_recent_job_for_email(self, email: str, since: datetime) -> Optional[Row]:
        return self._first(
            "jobs select recent",
            self.sb.table("jobs")
            .select("*")
            .eq("email", email.strip().lower())
            .gte("created_at", since.isoformat())
            .order("created_at", desc=True)
            .limit(1),
        )

    def insert_job(self, data: Row) -> Row:
        row = {"id": new_id(), "created_at": utcnow().isoformat(), **data}
        return self._first("jobs insert", self.sb.table("jobs").insert(row)) or row

    def update_job(self, job_id: str, changes: Row) -> Optional[Row]:
        changes = {**changes, "updated_at": utcnow().isoformat()}
        return self._first("jobs update", self.sb.table("jobs").update(changes).eq("id", job_id))

    def delete_job(self, job_id: str) -> bool:
        return bool(self._execute("jobs delete", self.sb.table("jobs").delete().eq("id", job_id)))

    # ── audit ───────────────────────────────────────────────────────────────
    def log_event(self, action: str, meta: Row) -> None:
        try:
            self.sb.table("audit_logs").insert(
                {"action": action, "meta": meta, "timestamp": utcnow().isoformat()}
            ).execute()
        except Exception as e:
            logger.warning(f"audit log '{action}' failed: {e}")
