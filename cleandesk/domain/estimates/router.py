"""Estimate router - FastAPI endpoints for estimates"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...models_job import Estimate
from ...schemas import LineItemResponse, MessageResponse
from ...tenancy import OrgContext, get_org_context
from ...utils.numbering import format_entity_number
from .schemas import (
    EstimateCreate,
    EstimatePricingResponse,
    EstimateResponse,
    EstimateStatusUpdate,
    EstimateUpdate,
)
from .service import EstimateService, get_estimate_pricing

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/t/{org_slug}/estimates", tags=["Estimates"])


def get_estimate_service(db: Session = Depends(get_db)) -> EstimateService:
    """Dependency injection for EstimateService"""
    return EstimateService(db)


def to_estimate_response(estimate: Estimate, include_items: bool = True) -> EstimateResponse:
    pricing = get_estimate_pricing(estimate)
    return EstimateResponse(
        id=estimate.id,
        number=estimate.number,
        display_number=format_entity_number("estimate", estimate.number),
        client_id=estimate.client_id,
        client_name=estimate.client.display_name if estimate.client else "Unknown",
        property_id=estimate.property_id,
        title=estimate.title,
        description=estimate.description,
        status=estimate.status,
        valid_until=estimate.valid_until,
        created_at=estimate.created_at,
        pricing=EstimatePricingResponse(
            subtotal=pricing.subtotal,
            tax_rate_percent=pricing.tax_rate_percent,
            tax_amount=pricing.tax_amount,
            discount_amount=pricing.discount_amount,
            total=pricing.total,
            deposit_amount=pricing.deposit_amount,
            discount_type=pricing.discount_type,
            discount_value=pricing.discount_value,
            deposit_required=pricing.deposit_required,
            deposit_type=pricing.deposit_type,
            deposit_value=pricing.deposit_value,
        ),
        line_items=(
            [LineItemResponse.model_validate(item) for item in estimate.line_items]
            if include_items
            else []
        ),
    )


@router.get("", response_model=list[EstimateResponse])
async def get_estimates(
    status: Optional[str] = Query(None),
    ctx: OrgContext = Depends(get_org_context),
    service: EstimateService = Depends(get_estimate_service),
):
    """List estimates with their pricing"""
    return [
        to_estimate_response(est, include_items=False)
        for est in service.get_estimates(ctx, status)
    ]


@router.post("", response_model=EstimateResponse, status_code=201)
async def create_estimate(
    data: EstimateCreate,
    ctx: OrgContext = Depends(get_org_context),
    service: EstimateService = Depends(get_estimate_service),
):
    return to_estimate_response(service.create_estimate(data, ctx))


@router.get("/{estimate_id}", response_model=EstimateResponse)
async def get_estimate(
    estimate_id: int,
    ctx: OrgContext = Depends(get_org_context),
    service: EstimateService = Depends(get_estimate_service),
):
    return to_estimate_response(service.get_estimate(estimate_id, ctx))


@router.patch("/{estimate_id}", response_model=EstimateResponse)
async def update_estimate(
    estimate_id: int,
    data: EstimateUpdate,
    ctx: OrgContext = Depends(get_org_context),
    service: EstimateService = Depends(get_estimate_service),
):
    """Edit an estimate, optionally replacing its line items"""
    return to_estimate_response(service.update_estimate(estimate_id, data, ctx))


@router.patch("/{estimate_id}/status", response_model=EstimateResponse)
async def update_estimate_status(
    estimate_id: int,
    data: EstimateStatusUpdate,
    ctx: OrgContext = Depends(get_org_context),
    service: EstimateService = Depends(get_estimate_service),
):
    return to_estimate_response(service.update_status(estimate_id, data, ctx))


@router.delete("/{estimate_id}", response_model=MessageResponse)
async def delete_estimate(
    estimate_id: int,
    ctx: OrgContext = Depends(get_org_context),
    service: EstimateService = Depends(get_estimate_service),
):
    service.delete_estimate(estimate_id, ctx)
    return MessageResponse(message="Estimate deleted successfully")


__all__ = ["router"]
