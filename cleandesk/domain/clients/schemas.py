"""Client domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...shared.validators import validate_email, validate_phone
from ...utils.sanitization import clean_text
from ...utils.numbering import format_entity_number

CLIENT_STATUSES = ("LEAD", "ACTIVE", "INACTIVE")
LEAD_STATUSES = ("NEW", "CONTACTED", "QUALIFIED", "CONVERTED", "LOST")


def _clean_list(values: Optional[list[str]], validator) -> list[str]:
    """Validate each entry, drop blanks and duplicates, keep order"""
    cleaned = []
    for value in values or []:
        if not value or not value.strip():
            continue
        normalized = validator(value.strip())
        if normalized not in cleaned:
            cleaned.append(normalized)
    return cleaned


class ContactFields(BaseModel):
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    company_name: Optional[str] = Field(None, max_length=255)
    emails: Optional[list[str]] = None
    phones: Optional[list[str]] = None
    addresses: Optional[list[str]] = None
    lead_source: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None

    @field_validator("first_name", "last_name", "company_name", "lead_source")
    @classmethod
    def validate_names(cls, v):
        return clean_text(v, max_length=255)

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v):
        return clean_text(v)

    @field_validator("emails")
    @classmethod
    def validate_emails(cls, v):
        if v is None:
            return v
        return _clean_list(v, validate_email)

    @field_validator("phones")
    @classmethod
    def validate_phones(cls, v):
        if v is None:
            return v
        return _clean_list(v, validate_phone)

    @field_validator("addresses")
    @classmethod
    def validate_addresses(cls, v):
        if v is None:
            return v
        return _clean_list(v, lambda a: clean_text(a, max_length=500))


class ClientCreate(ContactFields):
    """Schema for creating a client or lead"""

    client_status: str = "ACTIVE"
    lead_status: Optional[str] = None
    number: Optional[int] = None  # Explicit number, otherwise next in sequence

    @field_validator("client_status")
    @classmethod
    def validate_client_status(cls, v):
        if v not in CLIENT_STATUSES:
            raise ValueError(f"Invalid client status. Must be one of: {', '.join(CLIENT_STATUSES)}")
        return v

    @field_validator("lead_status")
    @classmethod
    def validate_lead_status(cls, v):
        if v is not None and v not in LEAD_STATUSES:
            raise ValueError(f"Invalid lead status. Must be one of: {', '.join(LEAD_STATUSES)}")
        return v

    @model_validator(mode="after")
    def require_name(self):
        if not (self.first_name or self.last_name or self.company_name):
            raise ValueError("A first name, last name or company name is required")
        if self.client_status == "LEAD" and self.lead_status is None:
            self.lead_status = "NEW"
        return self


class ClientUpdate(ContactFields):
    """Schema for updating an existing client. Omitted fields are left unchanged."""

    client_status: Optional[str] = None
    number: Optional[int] = None

    @field_validator("client_status")
    @classmethod
    def validate_client_status(cls, v):
        if v is not None and v not in CLIENT_STATUSES:
            raise ValueError(f"Invalid client status. Must be one of: {', '.join(CLIENT_STATUSES)}")
        return v


class LeadStatusUpdate(BaseModel):
    lead_status: str

    @field_validator("lead_status")
    @classmethod
    def validate_lead_status(cls, v):
        if v not in LEAD_STATUSES:
            raise ValueError(f"Invalid lead status. Must be one of: {', '.join(LEAD_STATUSES)}")
        return v


class PropertyCreate(BaseModel):
    address: str = Field(..., min_length=1, max_length=500)
    notes: Optional[str] = None
    property_type: Optional[str] = Field(None, max_length=100)
    square_footage: Optional[str] = Field(None, max_length=50)
    levels: Optional[str] = Field(None, max_length=50)
    bedrooms: Optional[str] = Field(None, max_length=50)
    bathrooms: Optional[str] = Field(None, max_length=50)
    basement: Optional[str] = Field(None, max_length=100)

    @field_validator("address")
    @classmethod
    def validate_address(cls, v):
        cleaned = clean_text(v, max_length=500)
        if not cleaned:
            raise ValueError("Address is required")
        return cleaned

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v):
        return clean_text(v)


class PropertyUpdate(BaseModel):
    """Only the fields sent are changed. The address can be edited but not cleared."""

    address: Optional[str] = Field(None, min_length=1, max_length=500)
    notes: Optional[str] = None
    property_type: Optional[str] = Field(None, max_length=100)
    square_footage: Optional[str] = Field(None, max_length=50)
    levels: Optional[str] = Field(None, max_length=50)
    bedrooms: Optional[str] = Field(None, max_length=50)
    bathrooms: Optional[str] = Field(None, max_length=50)
    basement: Optional[str] = Field(None, max_length=100)

    @field_validator("address")
    @classmethod
    def validate_address(cls, v):
        if v is None:
            return v
        cleaned = clean_text(v, max_length=500)
        if not cleaned:
            raise ValueError("Address cannot be empty")
        return cleaned

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v):
        return clean_text(v)


class PropertyResponse(BaseModel):
    id: int
    client_id: int
    address: str
    notes: Optional[str]
    property_type: Optional[str]
    square_footage: Optional[str]
    levels: Optional[str]
    bedrooms: Optional[str]
    bathrooms: Optional[str]
    basement: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class ClientResponse(BaseModel):
    id: int
    number: int
    display_number: str
    display_name: str
    first_name: Optional[str]
    last_name: Optional[str]
    company_name: Optional[str]
    emails: list[str]
    phones: list[str]
    addresses: list[str]
    client_status: str
    lead_source: Optional[str]
    lead_status: Optional[str]
    converted_at: Optional[datetime]
    notes: Optional[str]
    created_at: Optional[datetime]
    properties: list[PropertyResponse] = []

    @classmethod
    def from_client(cls, client, include_properties: bool = False) -> "ClientResponse":
        return cls(
            id=client.id,
            number=client.number,
            display_number=format_entity_number("client", client.number),
            display_name=client.display_name,
            first_name=client.first_name,
            last_name=client.last_name,
            company_name=client.company_name,
            emails=client.emails or [],
            phones=client.phones or [],
            addresses=client.addresses or [],
            client_status=client.client_status,
            lead_source=client.lead_source,
            lead_status=client.lead_status,
            converted_at=client.converted_at,
            notes=client.notes,
            created_at=client.created_at,
            properties=(
                [PropertyResponse.model_validate(p) for p in client.properties]
                if include_properties
                else []
            ),
        )
