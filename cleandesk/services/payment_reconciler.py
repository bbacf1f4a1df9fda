"""
Payment reconciliation

Sums the payments recorded against an invoice and compares them with the
invoice total computed by the pricing calculator. Balances are never clamped:
a negative balance means the client overpaid and is shown as a warning.
"""

from datetime import datetime
from decimal import Decimal, localcontext
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict

from .pricing_calculator import MONEY_CONTEXT, ZERO, money, to_decimal

# Stored invoice statuses
INVOICE_STATUSES = ("DRAFT", "SENT", "PAID", "OVERDUE", "CANCELLED")

# Derived, display-only payment states
PAYMENT_STATE_PAID = "paid"
PAYMENT_STATE_PARTIAL = "partial"
PAYMENT_STATE_UNPAID = "unpaid"
PAYMENT_STATE_OVERDUE = "overdue"


class PaymentSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount_paid: Decimal
    balance_due: Decimal

    @property
    def is_settled(self) -> bool:
        return self.balance_due <= ZERO

    @property
    def is_overpaid(self) -> bool:
        return self.balance_due < ZERO


def _amount(payment: Any) -> Any:
    if isinstance(payment, dict):
        return payment.get("amount")
    return getattr(payment, "amount", None)


def sum_payments(payments: Iterable[Any]) -> Decimal:
    with localcontext(MONEY_CONTEXT):
        return money(sum((to_decimal(_amount(p)) for p in payments or []), ZERO))


def reconcile(total: Any, payments: Iterable[Any]) -> PaymentSummary:
    """amount_paid = sum of payment amounts; balance_due = total - amount_paid"""
    amount_paid = sum_payments(payments)
    with localcontext(MONEY_CONTEXT):
        balance_due = money(total) - amount_paid
    return PaymentSummary(amount_paid=amount_paid, balance_due=balance_due)


def derive_payment_status(
    total: Any,
    amount_paid: Any,
    due_at: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> str:
    """Display label for an invoice's payment state. Never written back to the invoice."""
    total = money(total)
    amount_paid = money(amount_paid)

    # A zero-total invoice with nothing paid is not settled, matching the stored status
    if amount_paid >= total and amount_paid > ZERO:
        return PAYMENT_STATE_PAID
    if due_at is not None and due_at < (now or datetime.utcnow()):
        return PAYMENT_STATE_OVERDUE
    if amount_paid > ZERO:
        return PAYMENT_STATE_PARTIAL
    return PAYMENT_STATE_UNPAID


def status_after_payment_change(status: str, total: Any, amount_paid: Any) -> str:
    """
    Stored invoice status after a payment is recorded or deleted.
    Cancelled invoices keep their status.
    """
    if status == "CANCELLED":
        return status

    total = money(total)
    amount_paid = money(amount_paid)
    if amount_paid >= total and amount_paid > ZERO:
        return "PAID"
    if amount_paid > ZERO:
        return "SENT"
    return "DRAFT"


def exceeds_balance(amount: Any, balance_due: Any) -> bool:
    return money(amount) > money(balance_due)
