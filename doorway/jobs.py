# doorway/jobs.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from .auth import require_admin
from .config import Config
from .deps import get_config, get_store, get_workflow
from .errors import JobNotFound
from .invoice import totals_for_job
from .models import BookingIn, JobIn, PricingIn, StatusChange
from .status import JobStatus, allowed_transitions

log = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/jobs", tags=["jobs"], dependencies=[Depends(require_admin)])


def _with_totals(job: dict, config: Config) -> dict:
    totals = totals_for_job(job, config.default_tax_rate)
    return {
        **job,
        "invoice": totals.model_dump(mode="json"),
        "allowed_transitions": [s.value for s in allowed_transitions(job.get("status"))],
    }


@router.get("")
def list_jobs(status: Optional[JobStatus] = Query(default=None), store=Depends(get_store)):
    return store.list_jobs(status=status.value if status else None)


@router.post("", status_code=201)
def create_job(payload: JobIn, workflow=Depends(get_workflow)):
    return workflow.create_job_from_client(payload.client_id, payload.service)


@router.get("/{job_id}")
def get_job(job_id: str, store=Depends(get_store), config: Config = Depends(get_config)):
    job = store.get_job(job_id)
    if not job:
        raise JobNotFound(job_id)
    return _with_totals(job, config)


@router.patch("/{job_id}/status")
def change_status(job_id: str, payload: StatusChange, workflow=Depends(get_workflow)):
    return workflow.change_status(job_id, payload.status)


@router.post("/{job_id}/booking")
def confirm_booking(job_id: str, payload: BookingIn, workflow=Depends(get_workflow)):
    log.info(f"Booking job {job_id}")
    return workflow.confirm_booking(job_id, payload.date)


@router.post("/{job_id}/on-my-way")
def on_my_way(job_id: str, workflow=Depends(get_workflow)):
    return workflow.notify_on_my_way(job_id)


@router.patch("/{job_id}/pricing")
def update_pricing(job_id: str, payload: PricingIn, workflow=Depends(get_workflow), config: Config = Depends(get_config)):
    job = workflow.update_pricing(job_id, **payload.model_dump())
    return _with_totals(job, config)


@router.post("/{job_id}/invoice")
def send_invoice(job_id: str, workflow=Depends(get_workflow)):
    result = workflow.send_invoice(job_id)
    return {
        "success": True,
        "job": result["job"],
        "invoice": result["totals"].model_dump(mode="json"),
        "sms_sent": result["sms_sent"],
    }


@router.delete("/{job_id}", status_code=204)
def delete_job(job_id: str, workflow=Depends(get_workflow)):
    workflow.delete_job(job_id)
