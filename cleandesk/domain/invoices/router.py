"""Invoice router - FastAPI endpoints for invoices"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...models_invoice import Invoice
from ...schemas import LineItemResponse, MessageResponse
from ...services.pricing_calculator import format_currency
from ...tenancy import OrgContext, get_org_context
from ...utils.numbering import format_entity_number
from .schemas import (
    InvoiceCreate,
    InvoiceDetailResponse,
    InvoiceFromJob,
    InvoicePaymentResponse,
    InvoiceResponse,
    InvoiceStatusUpdate,
    LineItemsReplace,
    PricingPreviewRequest,
    PricingPreviewResponse,
)
from .service import InvoiceService, get_invoice_financials

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/t/{org_slug}/invoices", tags=["Invoices"])


def get_invoice_service(db: Session = Depends(get_db)) -> InvoiceService:
    """Dependency injection for InvoiceService"""
    return InvoiceService(db)


def to_invoice_response(invoice: Invoice) -> InvoiceResponse:
    return InvoiceResponse(**InvoiceResponse.build_fields(invoice, *get_invoice_financials(invoice)))


def to_invoice_detail(invoice: Invoice) -> InvoiceDetailResponse:
    fields = InvoiceResponse.build_fields(invoice, *get_invoice_financials(invoice))
    return InvoiceDetailResponse(
        **fields,
        notes=invoice.notes,
        line_items=[LineItemResponse.model_validate(item) for item in invoice.line_items],
        payments=[
            InvoicePaymentResponse(
                id=p.id,
                number=p.number,
                display_number=format_entity_number("payment", p.number),
                amount=p.amount,
                method=p.method,
                reference=p.reference,
                paid_at=p.paid_at,
            )
            for p in invoice.payments
        ],
        visit_ids=[visit.id for visit in invoice.visits],
    )


# ============================================================================
# QUERIES
# ============================================================================


@router.get("", response_model=list[InvoiceResponse])
async def get_invoices(
    status: Optional[str] = Query(None),
    ctx: OrgContext = Depends(get_org_context),
    service: InvoiceService = Depends(get_invoice_service),
):
    """List invoices with amounts derived per row"""
    return [to_invoice_response(inv) for inv in service.get_invoices(ctx, status)]


@router.post("/preview-pricing", response_model=PricingPreviewResponse)
async def preview_pricing(
    data: PricingPreviewRequest,
    ctx: OrgContext = Depends(get_org_context),
):
    """Live pricing for the invoice form. Nothing is saved."""
    pricing = InvoiceService.preview_pricing(data)
    return PricingPreviewResponse(
        subtotal=pricing.subtotal,
        tax_rate_percent=pricing.tax_rate_percent,
        tax_amount=pricing.tax_amount,
        total=pricing.total,
        formatted_total=format_currency(pricing.total),
    )


@router.get("/{invoice_id}", response_model=InvoiceDetailResponse)
async def get_invoice(
    invoice_id: int,
    ctx: OrgContext = Depends(get_org_context),
    service: InvoiceService = Depends(get_invoice_service),
):
    return to_invoice_detail(service.get_invoice(invoice_id, ctx))


# ============================================================================
# COMMANDS
# ============================================================================


@router.post("", response_model=InvoiceDetailResponse, status_code=201)
async def create_invoice(
    data: InvoiceCreate,
    ctx: OrgContext = Depends(get_org_context),
    service: InvoiceService = Depends(get_invoice_service),
):
    return to_invoice_detail(service.create_invoice(data, ctx))


@router.post("/from-job", response_model=InvoiceDetailResponse, status_code=201)
async def create_invoice_from_job(
    data: InvoiceFromJob,
    ctx: OrgContext = Depends(get_org_context),
    service: InvoiceService = Depends(get_invoice_service),
):
    return to_invoice_detail(service.create_from_job(data, ctx))


@router.put("/{invoice_id}/line-items", response_model=InvoiceDetailResponse)
async def replace_line_items(
    invoice_id: int,
    data: LineItemsReplace,
    ctx: OrgContext = Depends(get_org_context),
    service: InvoiceService = Depends(get_invoice_service),
):
    """Replace all line items of a draft invoice"""
    return to_invoice_detail(service.replace_line_items(invoice_id, data, ctx))


@router.patch("/{invoice_id}/status", response_model=InvoiceDetailResponse)
async def update_invoice_status(
    invoice_id: int,
    data: InvoiceStatusUpdate,
    ctx: OrgContext = Depends(get_org_context),
    service: InvoiceService = Depends(get_invoice_service),
):
    return to_invoice_detail(service.update_status(invoice_id, data, ctx))


@router.delete("/{invoice_id}", response_model=MessageResponse)
async def delete_invoice(
    invoice_id: int,
    ctx: OrgContext = Depends(get_org_context),
    service: InvoiceService = Depends(get_invoice_service),
):
    service.delete_invoice(invoice_id, ctx)
    return MessageResponse(message="Invoice deleted successfully")


__all__ = ["router", "to_invoice_response", "to_invoice_detail"]
