"""
Job and client status labels plus the job transition guard.

``JOB_WORKFLOW`` is the graph of allowed moves. ``SCHEDULED`` is reachable
from anywhere so staff can always reschedule or reset a job; ``PAID``,
``LOST`` and ``CANCELLED`` are otherwise terminal.
"""

from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Union


class JobStatus(str, Enum):
    LEAD_RECEIVED = "LEAD_RECEIVED"
    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"
    INVOICED = "INVOICED"
    PAID = "PAID"
    UNPAID = "UNPAID"
    LOST = "LOST"
    CANCELLED = "CANCELLED"


class ClientStatus(str, Enum):
    LEAD = "LEAD"
    ACTIVE = "ACTIVE"
    CHURNED = "CHURNED"


INITIAL_STATUS = JobStatus.LEAD_RECEIVED
OVERRIDE_STATUS = JobStatus.SCHEDULED

JOB_WORKFLOW: Dict[JobStatus, FrozenSet[JobStatus]] = {
    JobStatus.LEAD_RECEIVED: frozenset({JobStatus.SCHEDULED, JobStatus.LOST, JobStatus.CANCELLED}),
    JobStatus.SCHEDULED: frozenset({JobStatus.INVOICED, JobStatus.CANCELLED, JobStatus.COMPLETED}),
    JobStatus.COMPLETED: frozenset({JobStatus.INVOICED}),
    JobStatus.INVOICED: frozenset({JobStatus.PAID, JobStatus.UNPAID}),
    JobStatus.UNPAID: frozenset(),
    JobStatus.PAID: frozenset(),
    JobStatus.LOST: frozenset(),
    JobStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset({JobStatus.PAID, JobStatus.LOST, JobStatus.CANCELLED})

StatusLike = Union[JobStatus, str, None]


def parse_status(value: StatusLike) -> Optional[JobStatus]:
    """Return the matching JobStatus, or None for anything unrecognised."""
    if isinstance(value, JobStatus):
        return value
    if not isinstance(value, str):
        return None
    try:
        return JobStatus(value.strip().upper())
    except ValueError:
        return None


def coerce_status(value: StatusLike) -> JobStatus:
    """Current status of a stored job; missing or unknown means a fresh lead."""
    return parse_status(value) or INITIAL_STATUS


def is_valid_transition(current: StatusLike, new: StatusLike) -> bool:
    target = parse_status(new)
    if target is None:
        return False
    if target is OVERRIDE_STATUS:
        return True
    return target in JOB_WORKFLOW[coerce_status(current)]


def allowed_transitions(current: StatusLike) -> List[JobStatus]:
    """Targets the dashboard may offer for a job, in declaration order."""
    reachable = JOB_WORKFLOW[coerce_status(current)] | {OVERRIDE_STATUS}
    return [status for status in JobStatus if status in reachable]
