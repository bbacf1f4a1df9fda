"""Visit domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...schemas import LineItemInput, LineItemResponse, PricingResponse
from ...utils.sanitization import clean_text

VISIT_STATUSES = ("SCHEDULED", "IN_PROGRESS", "COMPLETED", "CANCELLED")


def _validate_status(v):
    if v not in VISIT_STATUSES:
        raise ValueError(f"Invalid status. Must be one of: {', '.join(VISIT_STATUSES)}")
    return v


class VisitCreate(BaseModel):
    """Schedule a visit. Without line items, the job's line items are copied."""

    scheduled_at: datetime
    duration_minutes: int = Field(default=120, ge=1, le=24 * 60)
    notes: Optional[str] = None
    line_items: Optional[list[LineItemInput]] = None

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v):
        return clean_text(v)


class VisitUpdate(BaseModel):
    scheduled_at: Optional[datetime] = None
    duration_minutes: Optional[int] = Field(default=None, ge=1, le=24 * 60)
    status: Optional[str] = None
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return v if v is None else _validate_status(v)

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v):
        return clean_text(v)


class VisitStatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return _validate_status(v)


class VisitLineItemsReplace(BaseModel):
    # An empty list clears the visit's line items
    line_items: list[LineItemInput]


class VisitInvoiceSummary(BaseModel):
    id: int
    number: int
    display_number: str
    status: str


class VisitResponse(BaseModel):
    id: int
    job_id: int
    job_title: str
    client_id: int
    scheduled_at: datetime
    duration_minutes: int
    status: str
    notes: Optional[str]
    completed_at: Optional[datetime]
    created_at: Optional[datetime]
    is_invoiced: bool
    invoice: Optional[VisitInvoiceSummary] = None
    pricing: PricingResponse
    line_items: list[LineItemResponse] = []


class VisitDeleteResponse(BaseModel):
    message: str
    invoice_deleted: bool
    invoice_id: Optional[int] = None
