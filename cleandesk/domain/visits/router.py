"""Visit router - FastAPI endpoints for job visits"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...models_job import Visit
from ...schemas import LineItemResponse, PricingResponse
from ...services.pricing_calculator import compute_pricing
from ...tenancy import OrgContext, get_org_context
from ...utils.numbering import format_entity_number
from .schemas import (
    VisitCreate,
    VisitDeleteResponse,
    VisitInvoiceSummary,
    VisitLineItemsReplace,
    VisitResponse,
    VisitStatusUpdate,
    VisitUpdate,
)
from .service import VisitService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/t/{org_slug}", tags=["Visits"])


def get_visit_service(db: Session = Depends(get_db)) -> VisitService:
    """Dependency injection for VisitService"""
    return VisitService(db)


def to_visit_response(visit: Visit) -> VisitResponse:
    # Visits are taxed at their job's rate
    pricing = compute_pricing(visit.line_items, visit.job.tax_rate)
    invoice = visit.invoice
    return VisitResponse(
        id=visit.id,
        job_id=visit.job_id,
        job_title=visit.job.title,
        client_id=visit.job.client_id,
        scheduled_at=visit.scheduled_at,
        duration_minutes=visit.duration_minutes,
        status=visit.status,
        notes=visit.notes,
        completed_at=visit.completed_at,
        created_at=visit.created_at,
        is_invoiced=visit.invoice_id is not None,
        invoice=(
            VisitInvoiceSummary(
                id=invoice.id,
                number=invoice.number,
                display_number=format_entity_number("invoice", invoice.number),
                status=invoice.status,
            )
            if invoice is not None
            else None
        ),
        pricing=PricingResponse.from_breakdown(pricing),
        line_items=[LineItemResponse.model_validate(item) for item in visit.line_items],
    )


# ============================================================================
# VISITS OF A JOB
# ============================================================================


@router.get("/jobs/{job_id}/visits", response_model=list[VisitResponse])
async def get_job_visits(
    job_id: int,
    ctx: OrgContext = Depends(get_org_context),
    service: VisitService = Depends(get_visit_service),
):
    """List a job's visits in schedule order"""
    return [to_visit_response(v) for v in service.get_visits(job_id, ctx)]


@router.get("/jobs/{job_id}/visits/invoiceable", response_model=list[VisitResponse])
async def get_invoiceable_visits(
    job_id: int,
    ctx: OrgContext = Depends(get_org_context),
    service: VisitService = Depends(get_visit_service),
):
    """Completed visits not yet on an invoice"""
    return [to_visit_response(v) for v in service.get_invoiceable_visits(job_id, ctx)]


@router.post("/jobs/{job_id}/visits", response_model=VisitResponse, status_code=201)
async def create_visit(
    job_id: int,
    data: VisitCreate,
    ctx: OrgContext = Depends(get_org_context),
    service: VisitService = Depends(get_visit_service),
):
    return to_visit_response(service.create_visit(job_id, data, ctx))


# ============================================================================
# SINGLE VISIT
# ============================================================================


@router.get("/visits/{visit_id}", response_model=VisitResponse)
async def get_visit(
    visit_id: int,
    ctx: OrgContext = Depends(get_org_context),
    service: VisitService = Depends(get_visit_service),
):
    return to_visit_response(service.get_visit(visit_id, ctx))


@router.patch("/visits/{visit_id}", response_model=VisitResponse)
async def update_visit(
    visit_id: int,
    data: VisitUpdate,
    ctx: OrgContext = Depends(get_org_context),
    service: VisitService = Depends(get_visit_service),
):
    return to_visit_response(service.update_visit(visit_id, data, ctx))


@router.patch("/visits/{visit_id}/status", response_model=VisitResponse)
async def update_visit_status(
    visit_id: int,
    data: VisitStatusUpdate,
    ctx: OrgContext = Depends(get_org_context),
    service: VisitService = Depends(get_visit_service),
):
    return to_visit_response(service.update_status(visit_id, data, ctx))


@router.put("/visits/{visit_id}/line-items", response_model=VisitResponse)
async def replace_visit_line_items(
    visit_id: int,
    data: VisitLineItemsReplace,
    ctx: OrgContext = Depends(get_org_context),
    service: VisitService = Depends(get_visit_service),
):
    """Replace all line items of a visit that is not invoiced yet"""
    return to_visit_response(service.replace_line_items(visit_id, data, ctx))


@router.delete("/visits/{visit_id}", response_model=VisitDeleteResponse)
async def delete_visit(
    visit_id: int,
    delete_invoice: bool = Query(False, description="Also delete the invoice the visit is on"),
    ctx: OrgContext = Depends(get_org_context),
    service: VisitService = Depends(get_visit_service),
):
    invoice_deleted, invoice_id = service.delete_visit(visit_id, ctx, delete_invoice)
    return VisitDeleteResponse(
        message="Visit deleted successfully",
        invoice_deleted=invoice_deleted,
        invoice_id=invoice_id,
    )


__all__ = ["router"]
