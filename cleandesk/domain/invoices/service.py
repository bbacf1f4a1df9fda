"""Invoice service - Business logic for invoices"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import DEFAULT_INVOICE_DUE_DAYS
from ...models_invoice import Invoice
from ...models_job import Visit
from ...services.payment_reconciler import (
    PaymentSummary,
    derive_payment_status,
    reconcile,
)
from ...services.pricing_calculator import PricingBreakdown, compute_pricing
from ...tenancy import OrgContext
from ...utils.line_items import build_line_items, copy_line_items
from ...utils.numbering import get_validated_number
from .repository import InvoiceRepository
from .schemas import (
    InvoiceCreate,
    InvoiceFromJob,
    InvoiceStatusUpdate,
    LineItemsReplace,
    PricingPreviewRequest,
)

logger = logging.getLogger(__name__)


def get_invoice_financials(
    invoice: Invoice, now: Optional[datetime] = None
) -> tuple[PricingBreakdown, PaymentSummary, str]:
    """Pricing, reconciliation and derived payment state of a loaded invoice"""
    pricing = compute_pricing(invoice.line_items, invoice.tax_rate)
    summary = reconcile(pricing.total, invoice.payments)
    if invoice.status in ("DRAFT", "CANCELLED"):
        # Not yet sent or void: nothing is owed
        due_at = None
    else:
        due_at = invoice.due_at
    payment_status = derive_payment_status(pricing.total, summary.amount_paid, due_at, now)
    return pricing, summary, payment_status


class InvoiceService:
    """Service layer for invoice business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = InvoiceRepository()

    def get_invoices(self, ctx: OrgContext, status: Optional[str] = None) -> list[Invoice]:
        return self.repo.get_invoices(self.db, ctx.org_id, status)

    def get_invoice(self, invoice_id: int, ctx: OrgContext) -> Invoice:
        invoice = self.repo.get_invoice_by_id(self.db, invoice_id, ctx.org_id)
        if not invoice:
            raise HTTPException(status_code=404, detail="Invoice not found")
        return invoice

    def _default_due_at(self, issued_at: datetime) -> datetime:
        return issued_at + timedelta(days=DEFAULT_INVOICE_DUE_DAYS)

    def create_invoice(self, data: InvoiceCreate, ctx: OrgContext) -> Invoice:
        client = self.repo.get_client(self.db, data.client_id, ctx.org_id)
        if not client:
            raise HTTPException(status_code=404, detail="Client not found")

        if data.job_id is not None:
            job = self.repo.get_job(self.db, data.job_id, ctx.org_id)
            if not job:
                raise HTTPException(status_code=404, detail="Job not found")
            if job.client_id != client.id:
                raise HTTPException(status_code=400, detail="Job belongs to a different client")

        issued_at = data.issued_at or datetime.utcnow()
        invoice = Invoice(
            org_id=ctx.org_id,
            number=get_validated_number(self.db, ctx.org_id, "invoice", data.number),
            client_id=client.id,
            job_id=data.job_id,
            tax_rate=data.tax_rate,
            currency=data.currency.upper(),
            status="DRAFT",
            notes=data.notes,
            issued_at=issued_at,
            due_at=data.due_at or self._default_due_at(issued_at),
        )
        invoice.line_items = build_line_items(ctx.org_id, data.line_items)

        self.repo.create_invoice(self.db, invoice)
        self.db.commit()
        logger.info(f"🧾 Invoice #{invoice.number} created in org {ctx.org.slug}")
        return self.get_invoice(invoice.id, ctx)

    def _invoiceable_visits(self, job, visit_ids: list[int], ctx: OrgContext) -> list[Visit]:
        visits = self.repo.get_job_visits(self.db, job.id, ctx.org_id, visit_ids)
        if len(visits) != len(set(visit_ids)):
            raise HTTPException(status_code=404, detail="Visit not found for this job")

        for visit in visits:
            if visit.status != "COMPLETED" or visit.invoice_id is not None:
                raise HTTPException(
                    status_code=409,
                    detail=f"Visit {visit.id} is not completed or is already invoiced",
                )
        return visits

    def create_from_job(self, data: InvoiceFromJob, ctx: OrgContext) -> Invoice:
        job = self.repo.get_job(self.db, data.job_id, ctx.org_id)
        if not job:
            raise HTTPException(status_code=404, detail="Job not found")

        visits = []
        if data.visit_ids:
            visits = self._invoiceable_visits(job, data.visit_ids, ctx)
            source_items = [item for visit in visits for item in visit.line_items]
            if not source_items:
                raise HTTPException(
                    status_code=400, detail="Selected visits have no line items to invoice"
                )
        else:
            source_items = job.line_items
            if not source_items:
                raise HTTPException(status_code=400, detail="Job has no line items to invoice")

        issued_at = datetime.utcnow()
        invoice = Invoice(
            org_id=ctx.org_id,
            number=get_validated_number(self.db, ctx.org_id, "invoice"),
            client_id=job.client_id,
            job_id=job.id,
            tax_rate=data.tax_rate if data.tax_rate is not None else job.tax_rate,
            status="DRAFT",
            notes=data.notes,
            issued_at=issued_at,
            due_at=data.due_at or self._default_due_at(issued_at),
        )
        invoice.line_items = copy_line_items(ctx.org_id, source_items)
        invoice.visits = visits

        self.repo.create_invoice(self.db, invoice)
        self.db.commit()
        logger.info(
            f"🧾 Invoice #{invoice.number} created from job #{job.number} ({len(visits)} visits)"
        )
        return self.get_invoice(invoice.id, ctx)

    @staticmethod
    def preview_pricing(data: PricingPreviewRequest) -> PricingBreakdown:
        """Pricing for unsaved form state"""
        return compute_pricing(data.line_items, data.tax_rate)

    def replace_line_items(
        self, invoice_id: int, data: LineItemsReplace, ctx: OrgContext
    ) -> Invoice:
        invoice = self.get_invoice(invoice_id, ctx)
        if invoice.status != "DRAFT":
            raise HTTPException(
                status_code=400, detail="Only draft invoices can have their line items edited"
            )

        invoice.line_items = build_line_items(ctx.org_id, data.line_items)
        self.db.commit()
        return self.get_invoice(invoice.id, ctx)

    def update_status(
        self, invoice_id: int, data: InvoiceStatusUpdate, ctx: OrgContext
    ) -> Invoice:
        invoice = self.get_invoice(invoice_id, ctx)
        previous = invoice.status

        invoice.status = data.status
        if data.status == "PAID" and invoice.paid_at is None:
            invoice.paid_at = datetime.utcnow()
        elif data.status != "PAID":
            invoice.paid_at = None

        self.db.commit()
        logger.info(f"📋 Invoice #{invoice.number} status {previous} -> {data.status}")
        return self.get_invoice(invoice.id, ctx)

    @staticmethod
    def ensure_deletable(invoice: Invoice) -> None:
        if invoice.payments:
            raise HTTPException(
                status_code=409,
                detail="Invoice has recorded payments. Delete the payments or cancel the invoice.",
            )

    def delete_invoice(self, invoice_id: int, ctx: OrgContext) -> None:
        """Delete an invoice without payments. Visits billed on it become invoiceable again."""
        invoice = self.get_invoice(invoice_id, ctx)
        self.ensure_deletable(invoice)
        self.repo.delete_invoice(self.db, invoice)
        self.db.commit()
        logger.info(f"🗑️ Invoice {invoice_id} deleted from org {ctx.org.slug}")
