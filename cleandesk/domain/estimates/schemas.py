"""Estimate domain schemas - Pydantic models for validation"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...config import DEFAULT_TAX_RATE
from ...schemas import LineItemInput, LineItemResponse, PricingResponse
from ...services.pricing_calculator import DEPOSIT_TYPES, DISCOUNT_TYPES
from ...utils.sanitization import clean_text

ESTIMATE_STATUSES = ("DRAFT", "SENT", "ACCEPTED", "DECLINED", "EXPIRED")
PRICING_SETTINGS = (
    "discount_type",
    "discount_value",
    "deposit_required",
    "deposit_type",
    "deposit_value",
)


def check_pricing_settings(
    discount_type=None,
    discount_value=None,
    deposit_required=False,
    deposit_type=None,
    deposit_value=None,
) -> None:
    """Raises ValueError for an inconsistent discount or deposit configuration"""
    if discount_type is not None and discount_type not in DISCOUNT_TYPES:
        raise ValueError("discount_type must be 'percentage' or 'fixed'")
    if discount_type == "percentage" and (discount_value or 0) > 100:
        raise ValueError("Percentage discount cannot exceed 100")

    if deposit_required:
        if deposit_type not in DEPOSIT_TYPES:
            raise ValueError("deposit_type must be 'percentage' or 'fixed' when a deposit is required")
        if not deposit_value:
            raise ValueError("deposit_value is required when a deposit is required")
        if deposit_type == "percentage" and deposit_value > 100:
            raise ValueError("Percentage deposit cannot exceed 100")


class EstimateCreate(BaseModel):
    client_id: int
    property_id: Optional[int] = None
    number: Optional[int] = None
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    status: str = "DRAFT"
    valid_until: Optional[datetime] = None

    tax_rate: Decimal = Field(default=Decimal(DEFAULT_TAX_RATE), ge=0, le=100)
    discount_type: Optional[str] = None
    discount_value: Optional[Decimal] = Field(default=None, ge=0)
    deposit_required: bool = False
    deposit_type: Optional[str] = None
    deposit_value: Optional[Decimal] = Field(default=None, ge=0)

    line_items: list[LineItemInput] = Field(..., min_length=1)

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

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v not in ESTIMATE_STATUSES:
            raise ValueError(f"Invalid status. Must be one of: {', '.join(ESTIMATE_STATUSES)}")
        return v

    @model_validator(mode="after")
    def validate_pricing_settings(self):
        check_pricing_settings(**{name: getattr(self, name) for name in PRICING_SETTINGS})
        return self


class EstimateStatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v not in ESTIMATE_STATUSES:
            raise ValueError(f"Invalid status. Must be one of: {', '.join(ESTIMATE_STATUSES)}")
        return v


class EstimateUpdate(BaseModel):
    """
    Edit an estimate. Only the fields sent are changed; line_items, when sent,
    replace all existing line items. Discount and deposit settings are checked
    together with the stored ones.
    """

    property_id: Optional[int] = None
    number: Optional[int] = None
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[str] = None
    valid_until: Optional[datetime] = None

    tax_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)
    discount_type: Optional[str] = None
    discount_value: Optional[Decimal] = Field(default=None, ge=0)
    deposit_required: Optional[bool] = None
    deposit_type: Optional[str] = None
    deposit_value: Optional[Decimal] = Field(default=None, ge=0)

    line_items: Optional[list[LineItemInput]] = Field(default=None, min_length=1)

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

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v is not None and v not in ESTIMATE_STATUSES:
            raise ValueError(f"Invalid status. Must be one of: {', '.join(ESTIMATE_STATUSES)}")
        return v


class EstimatePricingResponse(PricingResponse):
    discount_type: Optional[str]
    discount_value: Optional[float]
    deposit_required: bool
    deposit_type: Optional[str]
    deposit_value: Optional[float]


class EstimateResponse(BaseModel):
    id: int
    number: int
    display_number: str
    client_id: int
    client_name: str
    property_id: Optional[int]
    title: str
    description: Optional[str]
    status: str
    valid_until: Optional[datetime]
    created_at: Optional[datetime]
    pricing: EstimatePricingResponse
    line_items: list[LineItemResponse] = []
