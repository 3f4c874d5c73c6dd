"""
Domain errors for the Doorway ops API.

Every error carries an ``ErrorCode`` and a human-readable message; the
exception handler in ``main`` maps codes to HTTP status codes so routers
never build error responses by hand.
"""

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    DUPLICATE = "DUPLICATE"
    TRANSITION_REJECTED = "TRANSITION_REJECTED"
    INTEGRATION_ERROR = "INTEGRATION_ERROR"
    INTEGRATION_UNAVAILABLE = "INTEGRATION_UNAVAILABLE"
    STORE_ERROR = "STORE_ERROR"


HTTP_STATUS = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.DUPLICATE: 409,
    ErrorCode.TRANSITION_REJECTED: 409,
    ErrorCode.INTEGRATION_ERROR: 502,
    ErrorCode.INTEGRATION_UNAVAILABLE: 503,
    ErrorCode.STORE_ERROR: 500,
}


class DoorwayError(Exception):
    """Base exception with structured error information."""

    code = ErrorCode.VALIDATION_ERROR

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.message = message
        self.original_error = original_error
        super().__init__(message)

    @property
    def status_code(self) -> int:
        return HTTP_STATUS[self.code]

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code.value}


class ValidationFailed(DoorwayError):
    code = ErrorCode.VALIDATION_ERROR


class NotFound(DoorwayError):
    code = ErrorCode.NOT_FOUND


class JobNotFound(NotFound):
    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}")


class ClientNotFound(NotFound):
    def __init__(self, client_id: str):
        self.client_id = client_id
        super().__init__(f"Client not found: {client_id}")


class DuplicateClient(DoorwayError):
    code = ErrorCode.DUPLICATE

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"A client with email {email} already exists")


class TransitionRejected(DoorwayError):
    code = ErrorCode.TRANSITION_REJECTED

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move job from {current} to {requested}")


class IntegrationError(DoorwayError):
    """A vendor call failed."""

    code = ErrorCode.INTEGRATION_ERROR

    def __init__(self, vendor: str, message: str, original_error: Optional[Exception] = None):
        self.vendor = vendor
        super().__init__(f"{vendor}: {message}", original_error)


class IntegrationUnavailable(DoorwayError):
    """A vendor is not configured for this deployment."""

    code = ErrorCode.INTEGRATION_UNAVAILABLE

    def __init__(self, vendor: str):
        self.vendor = vendor
        super().__init__(f"{vendor} is not configured")


class StoreError(DoorwayError):
    code = ErrorCode.STORE_ERROR

    def to_dict(self) -> dict:
        # driver messages can leak table/row details
        return {"detail": "Database operation failed", "code": self.code.value}
