"""
Job, Visit and Estimate Models
"""

from sqlalchemy import (
    Boolean,
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


class Job(Base):
    """Work order for a client; its line items can be copied onto an invoice"""

    __tablename__ = "jobs"
    __table_args__ = (UniqueConstraint("org_id", "number", name="uq_job_org_number"),)

    id = Column(Integer, primary_key=True, index=True)
    org_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    number = Column(Integer, nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="SET NULL"), nullable=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    # ACTIVE, COMPLETED, CANCELLED
    status = Column(String(20), default="ACTIVE", nullable=False, index=True)
    tax_rate = Column(Numeric(6, 3), nullable=False, default=13)

    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("Client", back_populates="jobs")
    property = relationship("Property")
    invoices = relationship("Invoice", back_populates="job")
    line_items = relationship(
        "LineItem",
        back_populates="job",
        cascade="all, delete-orphan",
        order_by="LineItem.sort_order",
    )
    visits = relationship(
        "Visit",
        back_populates="job",
        cascade="all, delete-orphan",
        order_by="Visit.scheduled_at",
    )


class Estimate(Base):
    """Quote sent to a client or lead before work is booked"""

    __tablename__ = "estimates"
    __table_args__ = (UniqueConstraint("org_id", "number", name="uq_estimate_org_number"),)

    id = Column(Integer, primary_key=True, index=True)
    org_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    number = Column(Integer, nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="SET NULL"), nullable=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    # DRAFT, SENT, ACCEPTED, DECLINED, EXPIRED
    status = Column(String(20), default="DRAFT", nullable=False, index=True)

    # Pricing settings
    tax_rate = Column(Numeric(6, 3), nullable=False, default=13)
    discount_type = Column(String(20), nullable=True)  # percentage, fixed
    discount_value = Column(Numeric(12, 2), nullable=True)
    deposit_required = Column(Boolean, default=False, nullable=False)
    deposit_type = Column(String(20), nullable=True)  # percentage, fixed
    deposit_value = Column(Numeric(12, 2), nullable=True)

    valid_until = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("Client", back_populates="estimates")
    property = relationship("Property")
    line_items = relationship(
        "LineItem",
        back_populates="estimate",
        cascade="all, delete-orphan",
        order_by="LineItem.sort_order",
    )


class Visit(Base):
    """
    One scheduled occurrence of a job.

    A visit carries its own line items, so it can be priced and invoiced on its
    own. Once invoiced it is linked to the invoice and only its notes can change.
    """

    __tablename__ = "visits"

    id = Column(Integer, primary_key=True, index=True)
    org_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="SET NULL"), nullable=True)

    scheduled_at = Column(DateTime, nullable=False, index=True)
    duration_minutes = Column(Integer, default=120, nullable=False)
    # SCHEDULED, IN_PROGRESS, COMPLETED, CANCELLED
    status = Column(String(20), default="SCHEDULED", nullable=False, index=True)
    notes = Column(Text, nullable=True)

    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    job = relationship("Job", back_populates="visits")
    invoice = relationship("Invoice", back_populates="visits")
    line_items = relationship(
        "LineItem",
        back_populates="visit",
        cascade="all, delete-orphan",
        order_by="LineItem.sort_order",
    )
