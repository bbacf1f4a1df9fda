"""Payment service - Recording payments and keeping invoice status in step"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models_invoice import Invoice, Payment
from ...services.payment_reconciler import (
    PaymentSummary,
    exceeds_balance,
    status_after_payment_change,
    sum_payments,
)
from ...services.pricing_calculator import ZERO, format_currency
from ...tenancy import OrgContext
from ...utils.numbering import get_next_number
from ..invoices.repository import InvoiceRepository
from ..invoices.service import get_invoice_financials
from .repository import PaymentRepository
from .schemas import PaymentCreate

logger = logging.getLogger(__name__)


class PaymentService:
    """Service layer for payment business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PaymentRepository()
        self.invoices = InvoiceRepository()

    def get_payments(self, ctx: OrgContext) -> list[Payment]:
        return self.repo.get_payments(self.db, ctx.org_id)

    def _get_invoice(self, invoice_id: int, ctx: OrgContext) -> Invoice:
        invoice = self.invoices.get_invoice_by_id(self.db, invoice_id, ctx.org_id)
        if not invoice:
            raise HTTPException(status_code=404, detail="Invoice not found")
        return invoice

    def _apply_status(self, invoice: Invoice) -> PaymentSummary:
        """Move the stored invoice status to match what has been paid"""
        pricing, summary, _ = get_invoice_financials(invoice)
        new_status = status_after_payment_change(invoice.status, pricing.total, summary.amount_paid)

        if new_status == "PAID" and invoice.status != "PAID":
            invoice.paid_at = datetime.utcnow()
        elif new_status != "PAID":
            invoice.paid_at = None
        invoice.status = new_status
        return summary

    def record_payment(
        self, data: PaymentCreate, ctx: OrgContext
    ) -> tuple[Payment, Invoice, PaymentSummary, Optional[str]]:
        """
        Record a payment against an invoice of the org.

        Overpayment is accepted; a warning is returned when the amount exceeds
        the balance that was still due.
        """
        invoice = self._get_invoice(data.invoice_id, ctx)
        if invoice.status == "CANCELLED":
            raise HTTPException(status_code=400, detail="Cannot record a payment on a cancelled invoice")

        pricing, before, _ = get_invoice_financials(invoice)
        warning = None
        if exceeds_balance(data.amount, before.balance_due):
            warning = (
                f"Payment of {format_currency(data.amount, invoice.currency)} exceeds the "
                f"balance due of {format_currency(max(before.balance_due, ZERO), invoice.currency)}"
            )
            logger.warning(f"⚠️ Overpayment on invoice #{invoice.number}: {warning}")

        payment = Payment(
            org_id=ctx.org_id,
            number=get_next_number(self.db, ctx.org_id, "payment"),
            invoice_id=invoice.id,
            amount=data.amount,
            method=data.method,
            reference=data.reference,
            notes=data.notes,
            paid_at=data.paid_at or datetime.utcnow(),
        )
        self.repo.create_payment(self.db, payment)
        self.db.refresh(invoice, attribute_names=["payments"])

        summary = self._apply_status(invoice)
        self.db.commit()
        logger.info(
            f"💰 Payment #{payment.number} of {data.amount} recorded on invoice #{invoice.number} "
            f"(status {invoice.status})"
        )

        self.db.refresh(payment)
        return payment, invoice, summary, warning

    def delete_payment(self, payment_id: int, ctx: OrgContext) -> tuple[Invoice, PaymentSummary]:
        payment = self.repo.get_payment_by_id(self.db, payment_id, ctx.org_id)
        if not payment:
            raise HTTPException(status_code=404, detail="Payment not found")

        invoice = self._get_invoice(payment.invoice_id, ctx)
        self.repo.delete_payment(self.db, payment)
        self.db.refresh(invoice, attribute_names=["payments"])

        summary = self._apply_status(invoice)
        self.db.commit()
        logger.info(f"🗑️ Payment {payment_id} deleted, invoice #{invoice.number} now {invoice.status}")
        return invoice, summary

    def get_unpaid_invoices(self, ctx: OrgContext) -> list[Invoice]:
        """Open invoices with a positive balance"""
        unpaid = []
        for invoice in self.invoices.get_open_invoices(self.db, ctx.org_id):
            _, summary, _ = get_invoice_financials(invoice)
            if summary.balance_due > ZERO:
                unpaid.append(invoice)
        return unpaid

    def get_summary(self, ctx: OrgContext) -> dict:
        payments = self.repo.get_payments(self.db, ctx.org_id)

        total_outstanding = ZERO
        unpaid_count = 0
        overpaid_count = 0
        for invoice in self.invoices.get_invoices(self.db, ctx.org_id):
            if invoice.status == "CANCELLED":
                continue
            _, summary, _ = get_invoice_financials(invoice)
            if summary.is_overpaid:
                overpaid_count += 1
            elif summary.balance_due > ZERO and invoice.status != "PAID":
                total_outstanding += summary.balance_due
                unpaid_count += 1

        return {
            "total_collected": sum_payments(payments),
            "total_outstanding": total_outstanding,
            "payment_count": len(payments),
            "unpaid_invoice_count": unpaid_count,
            "overpaid_invoice_count": overpaid_count,
        }
