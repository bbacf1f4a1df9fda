"""Job router - FastAPI endpoints for jobs"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...models_job import Job
from ...schemas import LineItemInput, LineItemResponse, MessageResponse, PricingResponse
from ...services.pricing_calculator import compute_pricing
from ...tenancy import OrgContext, get_org_context
from ...utils.numbering import format_entity_number
from .schemas import JobCreate, JobResponse, JobStatusUpdate, JobUpdate
from .service import JobService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/t/{org_slug}/jobs", tags=["Jobs"])


def get_job_service(db: Session = Depends(get_db)) -> JobService:
    """Dependency injection for JobService"""
    return JobService(db)


def to_job_response(job: Job, include_items: bool = True) -> JobResponse:
    pricing = compute_pricing(job.line_items, job.tax_rate)
    return JobResponse(
        id=job.id,
        number=job.number,
        display_number=format_entity_number("job", job.number),
        client_id=job.client_id,
        client_name=job.client.display_name if job.client else "Unknown",
        property_id=job.property_id,
        title=job.title,
        description=job.description,
        status=job.status,
        completed_at=job.completed_at,
        created_at=job.created_at,
        pricing=PricingResponse.from_breakdown(pricing),
        line_items=(
            [LineItemResponse.model_validate(item) for item in job.line_items]
            if include_items
            else []
        ),
        invoice_ids=[inv.id for inv in job.invoices],
    )


@router.get("", response_model=list[JobResponse])
async def get_jobs(
    status: Optional[str] = Query(None),
    ctx: OrgContext = Depends(get_org_context),
    service: JobService = Depends(get_job_service),
):
    return [to_job_response(job, include_items=False) for job in service.get_jobs(ctx, status)]


@router.post("", response_model=JobResponse, status_code=201)
async def create_job(
    data: JobCreate,
    ctx: OrgContext = Depends(get_org_context),
    service: JobService = Depends(get_job_service),
):
    return to_job_response(service.create_job(data, ctx))


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(
    job_id: int,
    ctx: OrgContext = Depends(get_org_context),
    service: JobService = Depends(get_job_service),
):
    """Get a job with its line items and pricing"""
    return to_job_response(service.get_job(job_id, ctx))


@router.patch("/{job_id}", response_model=JobResponse)
async def update_job(
    job_id: int,
    data: JobUpdate,
    ctx: OrgContext = Depends(get_org_context),
    service: JobService = Depends(get_job_service),
):
    return to_job_response(service.update_job(job_id, data, ctx))


@router.patch("/{job_id}/status", response_model=JobResponse)
async def update_job_status(
    job_id: int,
    data: JobStatusUpdate,
    ctx: OrgContext = Depends(get_org_context),
    service: JobService = Depends(get_job_service),
):
    return to_job_response(service.update_status(job_id, data, ctx))


@router.post("/{job_id}/line-items", response_model=JobResponse, status_code=201)
async def add_job_line_item(
    job_id: int,
    data: LineItemInput,
    ctx: OrgContext = Depends(get_org_context),
    service: JobService = Depends(get_job_service),
):
    return to_job_response(service.add_line_item(job_id, data, ctx))


@router.delete("/{job_id}/line-items/{item_id}", response_model=JobResponse)
async def remove_job_line_item(
    job_id: int,
    item_id: int,
    ctx: OrgContext = Depends(get_org_context),
    service: JobService = Depends(get_job_service),
):
    return to_job_response(service.remove_line_item(job_id, item_id, ctx))


@router.delete("/{job_id}", response_model=MessageResponse)
async def delete_job(
    job_id: int,
    ctx: OrgContext = Depends(get_org_context),
    service: JobService = Depends(get_job_service),
):
    service.delete_job(job_id, ctx)
    return MessageResponse(message="Job deleted successfully")


__all__ = ["router"]
