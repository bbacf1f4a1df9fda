"""Invoice domain schemas - Pydantic models for validation"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from ...config import DEFAULT_CURRENCY, DEFAULT_TAX_RATE
from ...schemas import LineItemInput, LineItemResponse
from ...services.payment_reconciler import INVOICE_STATUSES, PaymentSummary
from ...services.pricing_calculator import PricingBreakdown
from ...utils.numbering import format_entity_number
from ...utils.sanitization import clean_text


class InvoiceCreate(BaseModel):
    client_id: int
    job_id: Optional[int] = None
    number: Optional[int] = None
    tax_rate: Decimal = Field(default=Decimal(DEFAULT_TAX_RATE), ge=0, le=100)
    currency: str = Field(default=DEFAULT_CURRENCY, min_length=3, max_length=10)
    notes: Optional[str] = None
    issued_at: Optional[datetime] = None
    due_at: Optional[datetime] = None
    line_items: list[LineItemInput] = Field(..., min_length=1)

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v):
        return clean_text(v)


class InvoiceFromJob(BaseModel):
    """
    Invoice a job. Its line items are copied onto the new invoice, or, when
    visit_ids is given, the line items of those completed visits.
    """

    job_id: int
    visit_ids: Optional[list[int]] = Field(default=None, min_length=1)
    tax_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)
    notes: Optional[str] = None
    due_at: Optional[datetime] = None

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v):
        return clean_text(v)


class PricingPreviewRequest(BaseModel):
    """Unsaved form state. Values are read leniently; nothing is validated or stored."""

    line_items: list[dict[str, Any]] = []
    tax_rate: Any = DEFAULT_TAX_RATE


class LineItemsReplace(BaseModel):
    line_items: list[LineItemInput] = Field(..., min_length=1)


class InvoiceStatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v not in INVOICE_STATUSES:
            raise ValueError(f"Invalid status. Must be one of: {', '.join(INVOICE_STATUSES)}")
        return v


class InvoicePaymentResponse(BaseModel):
    id: int
    number: int
    display_number: str
    amount: float
    method: str
    reference: Optional[str]
    paid_at: datetime


class InvoiceResponse(BaseModel):
    """Invoice with amounts derived from its line items and payments"""

    id: int
    public_id: str
    number: int
    display_number: str
    client_id: int
    client_name: str
    job_id: Optional[int]
    status: str
    payment_status: str
    currency: str
    issued_at: Optional[datetime]
    due_at: Optional[datetime]
    paid_at: Optional[datetime]
    subtotal: float
    tax_rate_percent: float
    tax_amount: float
    total: float
    amount_paid: float
    balance_due: float
    is_overpaid: bool
    created_at: Optional[datetime]

    @classmethod
    def build_fields(
        cls,
        invoice,
        pricing: PricingBreakdown,
        summary: PaymentSummary,
        payment_status: str,
    ) -> dict:
        return {
            "id": invoice.id,
            "public_id": invoice.public_id,
            "number": invoice.number,
            "display_number": format_entity_number("invoice", invoice.number),
            "client_id": invoice.client_id,
            "client_name": invoice.client.display_name if invoice.client else "Unknown",
            "job_id": invoice.job_id,
            "status": invoice.status,
            "payment_status": payment_status,
            "currency": invoice.currency,
            "issued_at": invoice.issued_at,
            "due_at": invoice.due_at,
            "paid_at": invoice.paid_at,
            "subtotal": pricing.subtotal,
            "tax_rate_percent": pricing.tax_rate_percent,
            "tax_amount": pricing.tax_amount,
            "total": pricing.total,
            "amount_paid": summary.amount_paid,
            "balance_due": summary.balance_due,
            "is_overpaid": summary.is_overpaid,
            "created_at": invoice.created_at,
        }


class InvoiceDetailResponse(InvoiceResponse):
    notes: Optional[str]
    line_items: list[LineItemResponse]
    payments: list[InvoicePaymentResponse]
    visit_ids: list[int] = []


class PricingPreviewResponse(BaseModel):
    subtotal: float
    tax_rate_percent: float
    tax_amount: float
    total: float
    formatted_total: str
