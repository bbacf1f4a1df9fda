"""Service request routers - public website intake and org-scoped management"""

import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy.orm import Session

from ... import config
from ...database import get_db
from ...rate_limiter import create_rate_limiter
from ...tenancy import OrgContext, get_org_context
from .schemas import (
    FormSubmission,
    IngestResponse,
    RequestStatusUpdate,
    ServiceRequestResponse,
)
from .service import RequestService

logger = logging.getLogger(__name__)

ingest_router = APIRouter(prefix="/api/requests", tags=["Website Intake"])
router = APIRouter(prefix="/t/{org_slug}/requests", tags=["Requests"])

rate_limit_form_ingest = create_rate_limiter(
    limit=config.FORM_INGEST_RATE_LIMIT,
    window_seconds=config.FORM_INGEST_RATE_WINDOW,
    key_prefix="form_ingest",
)


def get_request_service(db: Session = Depends(get_db)) -> RequestService:
    """Dependency injection for RequestService"""
    return RequestService(db)


async def verify_ingest_secret(
    x_form_ingest_secret: Optional[str] = Header(None, alias="x-form-ingest-secret"),
) -> None:
    """Shared-secret check for the website form, compared in constant time"""
    expected = config.FORM_INGEST_SECRET
    if not expected:
        logger.error("❌ FORM_INGEST_SECRET not configured, rejecting form submission")
        raise HTTPException(status_code=401, detail="Unauthorized")

    if not x_form_ingest_secret or not hmac.compare_digest(
        x_form_ingest_secret.encode(), expected.encode()
    ):
        logger.warning("🚫 Form submission with invalid ingest secret")
        raise HTTPException(status_code=401, detail="Unauthorized")


# ============================================================================
# PUBLIC INTAKE
# ============================================================================


@ingest_router.post(
    "",
    response_model=IngestResponse,
    status_code=201,
    dependencies=[Depends(rate_limit_form_ingest), Depends(verify_ingest_secret)],
)
async def ingest_form_submission(
    data: FormSubmission,
    service: RequestService = Depends(get_request_service),
):
    """Create a lead, property and service request from a website form submission"""
    request, client, prop = service.ingest_submission(data)
    return IngestResponse(
        requestId=request.id,
        requestNumber=request.number,
        clientId=client.id,
        clientNumber=client.number,
        propertyId=prop.id if prop else None,
        submissionId=data.submissionId,
    )


# ============================================================================
# ORG-SCOPED
# ============================================================================


@router.get("", response_model=list[ServiceRequestResponse])
async def get_requests(
    status: Optional[str] = Query(None),
    ctx: OrgContext = Depends(get_org_context),
    service: RequestService = Depends(get_request_service),
):
    return [ServiceRequestResponse.from_request(r) for r in service.get_requests(ctx, status)]


@router.get("/{request_id}", response_model=ServiceRequestResponse)
async def get_request(
    request_id: int,
    ctx: OrgContext = Depends(get_org_context),
    service: RequestService = Depends(get_request_service),
):
    """Request detail including the submitted form snapshot"""
    return ServiceRequestResponse.from_request(
        service.get_request(request_id, ctx), include_details=True
    )


@router.patch("/{request_id}/status", response_model=ServiceRequestResponse)
async def update_request_status(
    request_id: int,
    data: RequestStatusUpdate,
    ctx: OrgContext = Depends(get_org_context),
    service: RequestService = Depends(get_request_service),
):
    return ServiceRequestResponse.from_request(service.update_status(request_id, data, ctx))


__all__ = ["ingest_router", "router"]
