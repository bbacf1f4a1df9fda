"""Job domain schemas - Pydantic models for validation"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...config import DEFAULT_TAX_RATE
from ...schemas import LineItemInput, LineItemResponse, PricingResponse
from ...utils.sanitization import clean_text

JOB_STATUSES = ("ACTIVE", "COMPLETED", "CANCELLED")


class JobCreate(BaseModel):
    client_id: int
    property_id: Optional[int] = None
    number: Optional[int] = None
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    tax_rate: Decimal = Field(default=Decimal(DEFAULT_TAX_RATE), ge=0, le=100)
    line_items: list[LineItemInput] = []

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        cleaned = clean_text(v, max_length=255)
        if not cleaned:
            raise ValueError("Title is required")
        return cleaned

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        return clean_text(v)


class JobUpdate(BaseModel):
    """Edit job fields. Status has its own endpoint; line items are edited one by one."""

    property_id: Optional[int] = None
    number: Optional[int] = None
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    tax_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if v is None:
            return v
        cleaned = clean_text(v, max_length=255)
        if not cleaned:
            raise ValueError("Title cannot be empty")
        return cleaned

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        return clean_text(v)


class JobStatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v not in JOB_STATUSES:
            raise ValueError(f"Invalid status. Must be one of: {', '.join(JOB_STATUSES)}")
        return v


class JobResponse(BaseModel):
    id: int
    number: int
    display_number: str
    client_id: int
    client_name: str
    property_id: Optional[int]
    title: str
    description: Optional[str]
    status: str
    completed_at: Optional[datetime]
    created_at: Optional[datetime]
    pricing: PricingResponse
    line_items: list[LineItemResponse] = []
    invoice_ids: list[int] = []
