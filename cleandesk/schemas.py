"""Schemas shared by the billing surfaces (jobs, estimates, invoices)"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .services.pricing_calculator import PricingBreakdown
from .utils.sanitization import clean_text


class MessageResponse(BaseModel):
    message: str


class LineItemInput(BaseModel):
    """Line item as submitted when saving. Any client-side `total` is ignored."""

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    quantity: Decimal = Field(default=Decimal("1"), ge=0, max_digits=12, decimal_places=3)
    unit_price: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        cleaned = clean_text(v, max_length=255)
        if not cleaned:
            raise ValueError("Line item name is required")
        return cleaned

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        return clean_text(v)


class LineItemResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    quantity: float
    unit_price: float
    total: float
    sort_order: int

    class Config:
        from_attributes = True


class PricingResponse(BaseModel):
    subtotal: float
    tax_rate_percent: float
    tax_amount: float
    discount_amount: float = 0
    total: float
    deposit_amount: float = 0

    @classmethod
    def from_breakdown(cls, pricing: PricingBreakdown) -> "PricingResponse":
        return cls(
            subtotal=pricing.subtotal,
            tax_rate_percent=pricing.tax_rate_percent,
            tax_amount=pricing.tax_amount,
            discount_amount=pricing.discount_amount,
            total=pricing.total,
            deposit_amount=pricing.deposit_amount,
        )
