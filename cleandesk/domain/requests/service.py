"""Service request service - website form ingestion and request management"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ... import config
from ...models import Client, Organization, Property, ServiceRequest
from ...shared.validators import slugify
from ...tenancy import OrgContext, get_org_by_slug, set_tenant_context
from ...utils.numbering import get_next_number
from ...utils.sanitization import clean_text
from .repository import RequestRepository
from .schemas import FormSubmission, RequestStatusUpdate

logger = logging.getLogger(__name__)

# Website form labels that do not slugify to their lookup slug
INDUSTRY_SLUGS = {
    "Home Cleaning": "home-cleaning",
    "Office Cleaning": "office",
    "Airbnb Cleaning": "airbnb",
}

SERVICE_TYPE_SLUGS = {
    "Standard Cleaning": "standard",
    "Deep Cleaning": "deep",
    "Moving Standard Cleaning": "moving-standard",
    "Moving Deep Cleaning": "moving-deep",
    "Post-Renovation Cleaning": "post-renovation",
    "Recurring Cleaning": "recurring",
    "Office Cleaning": "office",
    "Airbnb Cleaning": "airbnb",
}

HEAR_ABOUT_SLUGS = {
    "Google Maps or GBP": "gbp",
    "Google Guaranteed": "google-guaranteed",
    "Brochure": "brochure",
    "Referral": "referral",
    "Other": "other",
}

DEFAULT_INDUSTRY_SLUG = "home-cleaning"
DEFAULT_SERVICE_TYPE_SLUG = "standard"

ISO_DATETIME = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}")

PROPERTY_FIELDS = {
    "property_type": "propertyType",
    "square_footage": "squareFootage",
    "levels": "levels",
    "bedrooms": "bedrooms",
    "bathrooms": "bathrooms",
    "basement": "basement",
}


def map_label(label: str, mapping: dict[str, str]) -> str:
    """Known form label to lookup slug; unknown labels are slugified"""
    return mapping.get(label) or slugify(label)


def parse_preferred_at(payload: dict[str, Any]) -> Optional[datetime]:
    """
    Preferred service time from scheduling.datePreferences, or the older
    scheduleAndAccess.preferred field. Free-text preferences give None.
    """
    candidates = [
        (payload.get("scheduling") or {}).get("datePreferences"),
        (payload.get("scheduleAndAccess") or {}).get("preferred"),
    ]
    for value in candidates:
        if not isinstance(value, str) or not ISO_DATETIME.match(value):
            continue
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.warning(f"⚠️ Unparseable preferred date: {value}")
            continue
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        return parsed
    return None


def _property_value(details: dict[str, Any], key: str) -> Optional[str]:
    value = details.get(key)
    if value is None or value == "":
        return None
    return clean_text(str(value), max_length=100)


class RequestService:
    """Service layer for service requests"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = RequestRepository()

    # ========================================================================
    # Website form ingestion
    # ========================================================================

    def _get_ingest_org(self) -> Organization:
        org_slug = config.DEFAULT_ORG_SLUG
        if not org_slug:
            logger.error("❌ DEFAULT_ORG_SLUG not configured, cannot ingest form submissions")
            raise HTTPException(status_code=500, detail="DEFAULT_ORG_SLUG not configured")

        org = get_org_by_slug(self.db, org_slug)
        if not org:
            logger.error(f"❌ Form ingestion organization not found: {org_slug}")
            raise HTTPException(status_code=500, detail=f"Organization not found: {org_slug}")
        return org

    def ingest_submission(self, data: FormSubmission) -> tuple[ServiceRequest, Client, Optional[Property]]:
        """
        Turn a website form submission into a LEAD client, an optional
        property and a NEW service request holding the full payload.
        """
        org = self._get_ingest_org()
        set_tenant_context(self.db, org.id)
        payload = data.model_dump(exclude_unset=True)

        contact = data.contactInfo
        service = data.serviceDetails
        marketing = data.marketingInfo

        industry_label = service.industry if service else None
        cleaning_label = service.cleaningType if service else None
        hear_about_label = marketing.hearAbout if marketing else None

        industry_slug = (
            map_label(industry_label, INDUSTRY_SLUGS) if industry_label else DEFAULT_INDUSTRY_SLUG
        )
        service_type_slug = (
            map_label(cleaning_label, SERVICE_TYPE_SLUGS)
            if cleaning_label
            else DEFAULT_SERVICE_TYPE_SLUG
        )
        hear_about_slug = map_label(hear_about_label, HEAR_ABOUT_SLUGS) if hear_about_label else None

        industry = self.repo.get_industry(self.db, industry_slug) or self.repo.get_first_industry(
            self.db
        )
        service_type = self.repo.get_service_type(self.db, service_type_slug)
        if service_type is None and industry is not None:
            logger.info(f"🆕 Creating service type '{service_type_slug}' from form submission")
            service_type = self.repo.create_service_type(
                self.db,
                industry_id=industry.id,
                slug=service_type_slug,
                label=cleaning_label or "Standard Cleaning",
                active=True,
            )
        hear_about = self.repo.get_hear_about(self.db, hear_about_slug) if hear_about_slug else None

        company = contact.company if contact else None
        client = Client(
            org_id=org.id,
            number=get_next_number(self.db, org.id, "client"),
            first_name=None if company or not contact else contact.firstName,
            last_name=None if company or not contact else contact.lastName,
            company_name=company,
            emails=[contact.email] if contact and contact.email else [],
            phones=[contact.phone] if contact and contact.phone else [],
            client_status="LEAD",
            lead_source=hear_about_slug or "website",
            lead_status="NEW",
        )
        self.db.add(client)
        self.db.flush()

        prop = None
        if data.location is not None:
            loc = data.location
            address = ", ".join(
                part for part in (loc.address, loc.city, loc.province, loc.postalCode) if part
            )
            details = data.propertyDetails or {}
            prop = Property(
                org_id=org.id,
                client_id=client.id,
                address=clean_text(address, max_length=500) or "Address not provided",
                notes=clean_text(details.get("parkingInfo")),
                **{column: _property_value(details, key) for column, key in PROPERTY_FIELDS.items()},
            )
            self.db.add(prop)
            self.db.flush()

        description_parts = []
        if service and service.reason:
            description_parts.append(f"Reason: {service.reason}")
        if data.scheduling and data.scheduling.specialRequests:
            description_parts.append(data.scheduling.specialRequests)

        payload["meta"] = {
            "formVersion": data.formVersion or "unknown",
            "submissionId": data.submissionId,
            "ingested": datetime.utcnow().isoformat(),
            "industrySlug": industry_slug,
            "serviceTypeSlug": service_type_slug,
            "hearAboutSlug": hear_about_slug,
        }

        request = ServiceRequest(
            org_id=org.id,
            number=get_next_number(self.db, org.id, "request"),
            client_id=client.id,
            property_id=prop.id if prop else None,
            title=f"{industry_label or 'Service Request'} - {cleaning_label or 'Standard'}",
            description=clean_text("\n".join(description_parts)),
            source=hear_about_slug or "website",
            status="NEW",
            urgency="normal",
            industry_id=industry.id if industry else None,
            service_type_id=service_type.id if service_type else None,
            hear_about_id=hear_about.id if hear_about else None,
            details=payload,
            preferred_at=parse_preferred_at(payload),
        )
        self.repo.create_request(self.db, request)

        self.repo.log_activity(
            self.db,
            org.id,
            "Request created via website form",
            request_id=request.id,
            type="SYSTEM",
            meta={
                "source": "website",
                "submissionId": data.submissionId,
                "industry": industry_label,
                "cleaningType": cleaning_label,
                "estimatedPrice": (data.pricing or {}).get("estimatedPrice"),
                "imageCount": (data.images.count if data.images else None) or 0,
                "hasImages": bool(data.images and data.images.archiveLink),
            },
        )

        self.db.commit()
        logger.info(
            f"📨 Website request #{request.number} ingested for org {org.slug} "
            f"(client #{client.number}, submission {data.submissionId})"
        )
        return request, client, prop

    # ========================================================================
    # Org-scoped management
    # ========================================================================

    def get_requests(self, ctx: OrgContext, status: Optional[str] = None) -> list[ServiceRequest]:
        return self.repo.get_requests(self.db, ctx.org_id, status)

    def get_request(self, request_id: int, ctx: OrgContext) -> ServiceRequest:
        request = self.repo.get_request_by_id(self.db, request_id, ctx.org_id)
        if not request:
            raise HTTPException(status_code=404, detail="Request not found")
        return request

    def update_status(
        self, request_id: int, data: RequestStatusUpdate, ctx: OrgContext
    ) -> ServiceRequest:
        request = self.get_request(request_id, ctx)
        previous = request.status
        request.status = data.status
        self.repo.log_activity(
            self.db,
            ctx.org_id,
            f"Status changed from {previous} to {data.status}",
            request_id=request.id,
            type="STATUS",
            meta={"user_id": ctx.user.id},
        )
        self.db.commit()
        return self.get_request(request.id, ctx)
