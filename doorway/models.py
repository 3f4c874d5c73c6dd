# doorway/models.py
from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .status import ClientStatus, JobStatus

Amount = Union[float, str, None]


class _In(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)


def _lower_email(v: Optional[str]) -> Optional[str]:
    return v.lower() if v else v


class QuoteIn(_In):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    phone: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    service: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return _lower_email(v)


class QuoteOut(BaseModel):
    success: bool = True
    client_id: str
    job_id: str
    duplicate: bool = False


class ClientIn(_In):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    phone: str = ""
    address: str = ""
    property_notes: str = ""
    gate_code: str = ""
    referral_source: str = ""
    tags: List[str] = []

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return _lower_email(v)


class ClientUpdate(_In):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = Field(default=None, min_length=3)
    phone: Optional[str] = None
    address: Optional[str] = None
    property_notes: Optional[str] = None
    gate_code: Optional[str] = None
    referral_source: Optional[str] = None
    tags: Optional[List[str]] = None
    status: Optional[ClientStatus] = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return _lower_email(v)


class JobIn(_In):
    client_id: str = Field(..., min_length=1)
    service: str = "Window Cleaning"


class StatusChange(BaseModel):
    status: JobStatus


class BookingIn(BaseModel):
    date: datetime


class PricingIn(_In):
    price: Amount = None
    discount: Amount = None
    tax_rate: Amount = None
    invoice_notes: Optional[str] = None


class CheckoutOut(BaseModel):
    checkout_url: str
    session_id: str
