"""
Invoice, Payment and Line Item Models

Invoice totals are not stored. Subtotal, tax and total are derived from the
line items and tax rate every time they are read (services/pricing_calculator.py).
"""

import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_public_id():
    """Generate a unique public ID for secure public access"""
    return str(uuid.uuid4())


class Invoice(Base):
    """Invoice model for client billing"""

    __tablename__ = "invoices"
    __table_args__ = (UniqueConstraint("org_id", "number", name="uq_invoice_org_number"),)

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(String(36), unique=True, index=True, default=generate_public_id)
    org_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    number = Column(Integer, nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="SET NULL"), nullable=True)

    tax_rate = Column(Numeric(6, 3), nullable=False, default=13)  # Percentage
    currency = Column(String(10), default="USD")

    # DRAFT, SENT, PAID, OVERDUE, CANCELLED - set by explicit action
    status = Column(String(20), default="DRAFT", nullable=False, index=True)

    notes = Column(Text, nullable=True)

    issued_at = Column(DateTime, server_default=func.now())
    due_at = Column(DateTime, nullable=True)
    paid_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("Client", back_populates="invoices")
    job = relationship("Job", back_populates="invoices")
    line_items = relationship(
        "LineItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="LineItem.sort_order",
    )
    payments = relationship(
        "Payment",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="Payment.paid_at.desc()",
    )
    # Visits billed on this invoice; unlinked when the invoice is deleted
    visits = relationship("Visit", back_populates="invoice", order_by="Visit.scheduled_at")


class Payment(Base):
    """Payment recorded against an invoice. Never edited once created."""

    __tablename__ = "payments"
    __table_args__ = (
        UniqueConstraint("org_id", "number", name="uq_payment_org_number"),
        CheckConstraint("amount > 0", name="ck_payment_amount_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    org_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    number = Column(Integer, nullable=False)
    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False)

    amount = Column(Numeric(12, 2), nullable=False)
    method = Column(String(50), nullable=False)  # cash, cheque, e-transfer, card, other
    reference = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    paid_at = Column(DateTime, server_default=func.now(), nullable=False)

    created_at = Column(DateTime, server_default=func.now())

    invoice = relationship("Invoice", back_populates="payments")


class LineItem(Base):
    """Billable row owned by exactly one invoice, job, estimate or visit"""

    __tablename__ = "line_items"
    __table_args__ = (
        CheckConstraint(
            "(CASE WHEN invoice_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN job_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN estimate_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN visit_id IS NULL THEN 0 ELSE 1 END) = 1",
            name="ck_line_item_single_owner",
        ),
        CheckConstraint("quantity >= 0", name="ck_line_item_quantity"),
        CheckConstraint("unit_price >= 0", name="ck_line_item_unit_price"),
    )

    id = Column(Integer, primary_key=True, index=True)
    org_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=True)
    estimate_id = Column(Integer, ForeignKey("estimates.id", ondelete="CASCADE"), nullable=True)
    visit_id = Column(Integer, ForeignKey("visits.id", ondelete="CASCADE"), nullable=True)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    quantity = Column(Numeric(12, 3), nullable=False, default=1)
    unit_price = Column(Numeric(12, 2), nullable=False, default=0)
    # Display cache only; pricing always recomputes quantity * unit_price
    total = Column(Numeric(12, 2), nullable=True)
    sort_order = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, server_default=func.now())

    invoice = relationship("Invoice", back_populates="line_items")
    job = relationship("Job", back_populates="line_items")
    estimate = relationship("Estimate", back_populates="line_items")
    visit = relationship("Visit", back_populates="line_items")
