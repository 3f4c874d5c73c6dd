"""
Job lifecycle operations used by the admin dashboard and the payment webhook.

Status writes go through the transition guard and are refused with
``TransitionRejected`` before anything is written. Notifications that follow
a successful write (calendar, SMS) are best effort: their failures are logged
and reported back but never undo the write. Sending an invoice is the one
operation whose whole purpose is a vendor call, so a mail failure aborts it
and leaves the job where it was.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Optional

from .email_templates import invoice_email_template
from .errors import ClientNotFound, DoorwayError, JobNotFound, TransitionRejected, ValidationFailed
from .invoice import invoice_number, to_amount, totals_for_job
from .services.integrations import Integrations
from .services.twilio_service import booking_confirmation_sms, invoice_ready_sms, on_my_way_sms
from .status import ClientStatus, JobStatus, coerce_status, is_valid_transition, parse_status
from .store import utcnow

logger = logging.getLogger(__name__)


class JobWorkflow:
    def __init__(self, store, integrations: Integrations, config, clock: Callable = utcnow):
        self.store = store
        self.integrations = integrations
        self.config = config
        self.clock = clock

    # ── lookups ─────────────────────────────────────────────────────────────
    def get_job(self, job_id: str) -> Dict[str, Any]:
        job = self.store.get_job(job_id)
        if not job:
            raise JobNotFound(job_id)
        return job

    def _guard(self, job: Dict[str, Any], new_status: JobStatus) -> JobStatus:
        current = coerce_status(job.get("status"))
        if not is_valid_transition(current, new_status):
            logger.warning(f"Rejected transition for job {job['id']}: {current.value} -> {new_status.value}")
            raise TransitionRejected(current.value, new_status.value)
        return current

    def _write(self, job_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        updated = self.store.update_job(job_id, changes)
        if updated is None:
            raise JobNotFound(job_id)
        return updated

    # ── jobs ────────────────────────────────────────────────────────────────
    def create_job_from_client(self, client_id: str, service: str = "Window Cleaning") -> Dict[str, Any]:
        client = self.store.get_client(client_id)
        if not client:
            raise ClientNotFound(client_id)

        job = self.store.insert_job({
            "client_id": client_id,
            "name": client.get("name"),
            "email": client.get("email"),
            "phone": client.get("phone"),
            "address": client.get("address"),
            "service": service,
            "status": JobStatus.LEAD_RECEIVED.value,
            "price": 0,
            "created_at": self.clock().isoformat(),
        })
        self.store.update_client(client_id, {"job_count": int(client.get("job_count") or 0) + 1})
        logger.info(f"Created job {job['id']} for client {client_id}")
        return job

    def change_status(self, job_id: str, new_status) -> Dict[str, Any]:
        target = parse_status(new_status)
        if target is None:
            raise ValidationFailed(f"Unknown status: {new_status}")
        job = self.get_job(job_id)
        current = self._guard(job, target)

        updated = self._write(job_id, {"status": target.value})
        self.store.log_event("status_changed", {"job_id": job_id, "from": current.value, "to": target.value})
        logger.info(f"Job {job_id}: {current.value} -> {target.value}")
        return updated

    def update_pricing(
        self,
        job_id: str,
        price: Any = None,
        discount: Any = None,
        tax_rate: Any = None,
        invoice_notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        self.get_job(job_id)
        changes: Dict[str, Any] = {}
        # stored as plain floats so string prices never reach the invoice math
        if price is not None:
            changes["price"] = float(to_amount(price))
        if discount is not None:
            changes["discount"] = float(to_amount(discount))
        if tax_rate is not None:
            changes["tax_rate"] = float(to_amount(tax_rate))
        if invoice_notes is not None:
            changes["invoice_notes"] = invoice_notes
        if not changes:
            raise ValidationFailed("No pricing fields supplied")
        return self._write(job_id, changes)

    def delete_job(self, job_id: str) -> None:
        self.get_job(job_id)
        self.store.delete_job(job_id)
        self.store.log_event("job_deleted", {"job_id": job_id})

    # ── booking and notifications ───────────────────────────────────────────
    def confirm_booking(self, job_id: str, date: datetime) -> Dict[str, Any]:
        job = self.get_job(job_id)
        self._guard(job, JobStatus.SCHEDULED)

        updated = self._write(job_id, {"status": JobStatus.SCHEDULED.value, "scheduled_date": date.isoformat()})
        logger.info(f"Booked job {job_id} for {date.isoformat()}")

        calendar_synced = self._sync_calendar(updated, date)
        sms_sent = self._send_sms(
            updated,
            booking_confirmation_sms(
                self.config.business_name,
                updated.get("name") or "there",
                updated.get("service") or "service",
                date.strftime("%A %B %d at %I:%M %p"),
            ),
        )
        return {"job": updated, "calendar_synced": calendar_synced, "sms_sent": sms_sent}

    def notify_on_my_way(self, job_id: str) -> Dict[str, Any]:
        job = self.get_job(job_id)
        sent = self._send_sms(job, on_my_way_sms(self.config.business_name, job.get("name") or "there"))
        return {"job_id": job_id, "sms_sent": sent}

    def _sync_calendar(self, job: Dict[str, Any], start: datetime) -> bool:
        if not self.integrations.available("calendar"):
            logger.warning(f"Skipping calendar sync for job {job['id']}: calendar not configured")
            return False
        totals = totals_for_job(job, self.config.default_tax_rate)
        try:
            event = self.integrations.calendar.create_event(
                title=f"Service: {job.get('name')} - {job.get('service')}",
                description=(
                    f"Service: {job.get('service')}\n"
                    f"Phone: {job.get('phone')}\n"
                    f"Email: {job.get('email')}\n"
                    f"Address: {job.get('address')}\n"
                    f"Price: ${totals.total:,.2f}\n"
                    f"Note: {job.get('invoice_notes') or 'None'}"
                ),
                location=job.get("address") or "No Address Provided",
                start=start,
            )
        except DoorwayError as e:
            logger.error(f"Calendar sync failed for job {job['id']}: {e}")
            return False

        if event.get("id"):
            try:
                self.store.update_job(job["id"], {"calendar_event_id": event["id"]})
            except DoorwayError as e:
                logger.warning(f"Could not record calendar event on job {job['id']}: {e}")
        return True

    def _send_sms(self, job: Dict[str, Any], body: str) -> bool:
        if not self.integrations.available("sms"):
            logger.warning(f"Skipping SMS for job {job['id']}: Twilio not configured")
            return False
        try:
            self.integrations.sms.send(job.get("phone") or "", body)
        except DoorwayError as e:
            logger.warning(f"SMS failed for job {job['id']}: {e}")
            return False
        return True

    # ── invoicing and payment ───────────────────────────────────────────────
    def send_invoice(self, job_id: str) -> Dict[str, Any]:
        job = self.get_job(job_id)
        self._guard(job, JobStatus.INVOICED)
        if not job.get("email"):
            raise ValidationFailed(f"Job {job_id} has no client email")
        mailer = self.integrations.require("mailer")

        totals = totals_for_job(job, self.config.default_tax_rate)
        created = job.get("created_at")
        invoice_date = created[:10] if isinstance(created, str) else self.clock().date().isoformat()
        html = invoice_email_template(
            business_name=self.config.business_name,
            business_phone=self.config.business_phone,
            client_name=job.get("name") or "there",
            service=job.get("service") or "service",
            address=job.get("address") or "",
            invoice_number=invoice_number(job_id),
            invoice_date=invoice_date,
            totals=totals,
            notes=job.get("invoice_notes"),
        )
        # raises IntegrationError; the job stays where it was
        mailer.send(job["email"], f"Invoice from {self.config.business_name}: {job.get('service')}", html)

        updated = self._write(job_id, {
            "status": JobStatus.INVOICED.value,
            "invoiced_at": self.clock().isoformat(),
            "invoice_total": float(totals.total),
        })
        self.store.log_event("invoice_sent", {"job_id": job_id, "total": str(totals.total)})
        sms_sent = self._send_sms(
            updated, invoice_ready_sms(self.config.business_name, job.get("name") or "there", f"{totals.total:,.2f}")
        )
        return {"job": updated, "totals": totals, "sms_sent": sms_sent}

    def create_checkout(self, job_id: str) -> Dict[str, str]:
        job = self.get_job(job_id)
        gateway = self.integrations.require("payments")
        session = gateway.create_checkout(job, totals_for_job(job, self.config.default_tax_rate))
        self.store.update_job(job_id, {"checkout_session_id": session["session_id"]})
        return session

    def record_payment(self, job_id: str, payment_id: Optional[str], amount: Decimal) -> Dict[str, Any]:
        job = self.get_job(job_id)
        current = coerce_status(job.get("status"))
        if current is JobStatus.PAID and payment_id and job.get("stripe_payment_id") == payment_id:
            # webhook redelivery
            logger.info(f"Payment {payment_id} already recorded for job {job_id}")
            return job
        if not is_valid_transition(current, JobStatus.PAID):
            # money has already moved; record it anyway
            logger.warning(f"Payment for job {job_id} arrived while {current.value}; recording as PAID")

        updated = self._write(job_id, {
            "status": JobStatus.PAID.value,
            "paid_at": self.clock().isoformat(),
            "stripe_payment_id": payment_id,
            "amount_paid": float(amount),
        })
        self.store.log_event("payment_received", {"job_id": job_id, "payment_id": payment_id, "amount": str(amount)})
        self._credit_client(job, amount)
        return updated

    def _credit_client(self, job: Dict[str, Any], amount: Decimal) -> None:
        client_id = job.get("client_id")
        if not client_id:
            return
        try:
            client = self.store.get_client(client_id)
            if not client:
                logger.warning(f"Paid job {job['id']} references missing client {client_id}")
                return
            total_spent = to_amount(client.get("total_spent")) + amount
            self.store.update_client(client_id, {
                "total_spent": float(total_spent),
                "status": ClientStatus.ACTIVE.value,
                "last_service_date": self.clock().isoformat(),
            })
        except DoorwayError as e:
            logger.error(f"Could not credit client {client_id} for job {job['id']}: {e}")
