"""Payment domain schemas - Pydantic models for validation"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...utils.sanitization import clean_text

PAYMENT_METHODS = ("CASH", "CHECK", "CREDIT_CARD", "E-TRANSFER", "BANK_TRANSFER", "OTHER")


class PaymentCreate(BaseModel):
    invoice_id: int
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    method: str = "CASH"
    reference: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None
    paid_at: Optional[datetime] = None

    @field_validator("method")
    @classmethod
    def validate_method(cls, v):
        v = v.strip().upper()
        if v not in PAYMENT_METHODS:
            raise ValueError(f"Invalid payment method. Must be one of: {', '.join(PAYMENT_METHODS)}")
        return v

    @field_validator("reference")
    @classmethod
    def validate_reference(cls, v):
        return clean_text(v, max_length=255)

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v):
        return clean_text(v)


class PaymentResponse(BaseModel):
    id: int
    number: int
    display_number: str
    invoice_id: int
    invoice_number: str
    client_name: str
    amount: float
    method: str
    reference: Optional[str]
    notes: Optional[str]
    paid_at: datetime
    created_at: Optional[datetime]


class PaymentRecordedResponse(BaseModel):
    payment: PaymentResponse
    invoice_status: str
    amount_paid: float
    balance_due: float
    # Set when the payment exceeds what was still owed
    warning: Optional[str] = None


class PaymentDeletedResponse(BaseModel):
    message: str
    invoice_status: str
    amount_paid: float
    balance_due: float


class PaymentsSummaryResponse(BaseModel):
    total_collected: float
    total_outstanding: float
    payment_count: int
    unpaid_invoice_count: int
    overpaid_invoice_count: int
