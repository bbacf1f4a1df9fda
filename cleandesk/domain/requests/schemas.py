"""
Service request schemas.

The website form evolves independently of this API, so the intake payload is
lenient: every section is optional and unknown keys are kept (extra="allow")
so they land in the stored snapshot.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from ...shared.validators import validate_email
from ...utils.numbering import format_entity_number
from ...utils.sanitization import clean_text

REQUEST_STATUSES = ("NEW", "CONTACTED", "SCHEDULED", "CLOSED")


class FormSection(BaseModel):
    model_config = ConfigDict(extra="allow")


class ContactInfo(FormSection):
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    company: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_contact_email(cls, v):
        return validate_email(v)

    @field_validator("firstName", "lastName", "company", "phone")
    @classmethod
    def validate_text(cls, v):
        return clean_text(v, max_length=255)


class ServiceDetails(FormSection):
    industry: Optional[str] = None
    bookingType: Optional[str] = None
    cleaningType: Optional[str] = None
    frequency: Optional[str] = None
    firstTimeDeepCleaning: Optional[bool] = None
    reason: Optional[str] = None
    reasonOther: Optional[str] = None


class Location(FormSection):
    address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    postalCode: Optional[str] = None


class Images(FormSection):
    folder: Optional[str] = None
    archiveLink: Optional[str] = None
    count: Optional[int] = None
    noPhotosReason: Optional[str] = None


class Scheduling(FormSection):
    datePreferences: Optional[str] = None
    accessMethod: Optional[str] = None
    accessDetails: Optional[str] = None
    specialRequests: Optional[str] = None


class MarketingInfo(FormSection):
    hearAbout: Optional[str] = None
    referralName: Optional[str] = None
    hearAboutOther: Optional[str] = None


class FormSubmission(FormSection):
    """Website intake form submission"""

    submissionId: Optional[str] = None
    timestamp: Optional[str] = None
    formVersion: Optional[str] = None

    contactInfo: Optional[ContactInfo] = None
    serviceDetails: Optional[ServiceDetails] = None
    location: Optional[Location] = None
    propertyDetails: Optional[dict[str, Any]] = None
    addOns: Any = None
    images: Optional[Images] = None
    scheduling: Optional[Scheduling] = None
    marketingInfo: Optional[MarketingInfo] = None
    pricing: Optional[dict[str, Any]] = None
    metadata: Any = None


class IngestResponse(BaseModel):
    success: bool = True
    requestId: int
    requestNumber: int
    clientId: int
    clientNumber: int
    propertyId: Optional[int]
    submissionId: Optional[str]
    message: str = "Request received successfully"


class RequestStatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v not in REQUEST_STATUSES:
            raise ValueError(f"Invalid status. Must be one of: {', '.join(REQUEST_STATUSES)}")
        return v


class ServiceRequestResponse(BaseModel):
    id: int
    number: int
    display_number: str
    client_id: int
    client_name: str
    property_id: Optional[int]
    property_address: Optional[str]
    title: str
    description: Optional[str]
    source: Optional[str]
    status: str
    urgency: Optional[str]
    industry: Optional[str]
    service_type: Optional[str]
    hear_about: Optional[str]
    preferred_at: Optional[datetime]
    created_at: Optional[datetime]
    details: Optional[dict[str, Any]] = None

    @classmethod
    def from_request(cls, request, include_details: bool = False) -> "ServiceRequestResponse":
        return cls(
            id=request.id,
            number=request.number,
            display_number=format_entity_number("request", request.number),
            client_id=request.client_id,
            client_name=request.client.display_name if request.client else "Unknown",
            property_id=request.property_id,
            property_address=request.property.address if request.property else None,
            title=request.title,
            description=request.description,
            source=request.source,
            status=request.status,
            urgency=request.urgency,
            industry=request.industry.label if request.industry else None,
            service_type=request.service_type.label if request.service_type else None,
            hear_about=request.hear_about.label if request.hear_about else None,
            preferred_at=request.preferred_at,
            created_at=request.created_at,
            details=request.details if include_details else None,
        )
