"""Payment router - FastAPI endpoints for payments"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...models_invoice import Payment
from ...tenancy import OrgContext, get_org_context
from ...utils.numbering import format_entity_number
from ..invoices.router import to_invoice_response
from ..invoices.schemas import InvoiceResponse
from .schemas import (
    PaymentCreate,
    PaymentDeletedResponse,
    PaymentRecordedResponse,
    PaymentResponse,
    PaymentsSummaryResponse,
)
from .service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/t/{org_slug}/payments", tags=["Payments"])


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db)


def to_payment_response(payment: Payment) -> PaymentResponse:
    invoice = payment.invoice
    return PaymentResponse(
        id=payment.id,
        number=payment.number,
        display_number=format_entity_number("payment", payment.number),
        invoice_id=payment.invoice_id,
        invoice_number=format_entity_number("invoice", invoice.number),
        client_name=invoice.client.display_name if invoice.client else "Unknown",
        amount=payment.amount,
        method=payment.method,
        reference=payment.reference,
        notes=payment.notes,
        paid_at=payment.paid_at,
        created_at=payment.created_at,
    )


@router.get("", response_model=list[PaymentResponse])
async def get_payments(
    ctx: OrgContext = Depends(get_org_context),
    service: PaymentService = Depends(get_payment_service),
):
    """All payments of the organization, newest first"""
    return [to_payment_response(p) for p in service.get_payments(ctx)]


@router.get("/unpaid-invoices", response_model=list[InvoiceResponse])
async def get_unpaid_invoices(
    ctx: OrgContext = Depends(get_org_context),
    service: PaymentService = Depends(get_payment_service),
):
    return [to_invoice_response(inv) for inv in service.get_unpaid_invoices(ctx)]


@router.get("/summary", response_model=PaymentsSummaryResponse)
async def get_payments_summary(
    ctx: OrgContext = Depends(get_org_context),
    service: PaymentService = Depends(get_payment_service),
):
    return PaymentsSummaryResponse(**service.get_summary(ctx))


@router.post("", response_model=PaymentRecordedResponse, status_code=201)
async def record_payment(
    data: PaymentCreate,
    ctx: OrgContext = Depends(get_org_context),
    service: PaymentService = Depends(get_payment_service),
):
    payment, invoice, summary, warning = service.record_payment(data, ctx)
    return PaymentRecordedResponse(
        payment=to_payment_response(payment),
        invoice_status=invoice.status,
        amount_paid=summary.amount_paid,
        balance_due=summary.balance_due,
        warning=warning,
    )


@router.delete("/{payment_id}", response_model=PaymentDeletedResponse)
async def delete_payment(
    payment_id: int,
    ctx: OrgContext = Depends(get_org_context),
    service: PaymentService = Depends(get_payment_service),
):
    invoice, summary = service.delete_payment(payment_id, ctx)
    return PaymentDeletedResponse(
        message="Payment deleted successfully",
        invoice_status=invoice.status,
        amount_paid=summary.amount_paid,
        balance_due=summary.balance_due,
    )


__all__ = ["router"]
