import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
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


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    firebase_uid = Column(String(255), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    # Super admins can open any organization
    is_super_admin = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    memberships = relationship("Membership", back_populates="user", cascade="all, delete-orphan")


class Organization(Base):
    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(String(36), unique=True, index=True, default=generate_public_id)
    name = Column(String(255), nullable=False)
    slug = Column(String(100), unique=True, index=True, nullable=False)
    industry = Column(String(100), nullable=True)
    timezone = Column(String(64), default="America/Toronto")
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    memberships = relationship(
        "Membership", back_populates="org", cascade="all, delete-orphan"
    )


class Membership(Base):
    """Links a user to an organization with a role"""

    __tablename__ = "memberships"
    __table_args__ = (UniqueConstraint("user_id", "org_id", name="uq_membership_user_org"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    org_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    role = Column(String(20), default="MEMBER", nullable=False)  # OWNER, ADMIN, MEMBER
    created_at = Column(DateTime, server_default=func.now())

    user = relationship("User", back_populates="memberships")
    org = relationship("Organization", back_populates="memberships")


class OrgCounter(Base):
    """Per-organization sequence for display numbers (CLT-0001, INV-0042, ...)"""

    __tablename__ = "org_counters"
    __table_args__ = (UniqueConstraint("org_id", "scope", name="uq_org_counter_scope"),)

    id = Column(Integer, primary_key=True)
    org_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    scope = Column(String(20), nullable=False)  # client, request, estimate, job, invoice, payment
    value = Column(Integer, default=0, nullable=False)


class Client(Base):
    __tablename__ = "clients"
    __table_args__ = (UniqueConstraint("org_id", "number", name="uq_client_org_number"),)

    id = Column(Integer, primary_key=True, index=True)
    org_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    number = Column(Integer, nullable=False)

    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    company_name = Column(String(255), nullable=True)
    # Validated string lists (see domain/clients/schemas.py)
    emails = Column(JSON, default=list, nullable=False)
    phones = Column(JSON, default=list, nullable=False)
    addresses = Column(JSON, default=list, nullable=False)

    # LEAD, ACTIVE, INACTIVE
    client_status = Column(String(20), default="ACTIVE", nullable=False, index=True)
    lead_source = Column(String(100), nullable=True)
    # NEW, CONTACTED, QUALIFIED, CONVERTED, LOST (only meaningful for leads)
    lead_status = Column(String(20), nullable=True)
    converted_at = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    properties = relationship("Property", back_populates="client", cascade="all, delete-orphan")
    invoices = relationship("Invoice", back_populates="client")
    jobs = relationship("Job", back_populates="client")
    estimates = relationship("Estimate", back_populates="client")

    @property
    def display_name(self) -> str:
        """Company name if present, otherwise 'First Last'"""
        if self.company_name:
            return self.company_name
        first = (self.first_name or "").strip()
        last = (self.last_name or "").strip()
        return " ".join(part for part in (first, last) if part) or "Unnamed Client"


class Property(Base):
    """Service location for a client"""

    __tablename__ = "properties"

    id = Column(Integer, primary_key=True, index=True)
    org_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    address = Column(String(500), nullable=False)
    notes = Column(Text, nullable=True)

    # Property attributes collected by the intake form
    property_type = Column(String(100), nullable=True)
    square_footage = Column(String(50), nullable=True)
    levels = Column(String(50), nullable=True)
    bedrooms = Column(String(50), nullable=True)
    bathrooms = Column(String(50), nullable=True)
    basement = Column(String(100), nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("Client", back_populates="properties")


# ---------------------------------------------------------------------------
# Website form lookup tables (shared across organizations)
# ---------------------------------------------------------------------------


class Industry(Base):
    __tablename__ = "industries"

    id = Column(Integer, primary_key=True)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    label = Column(String(255), nullable=False)
    active = Column(Boolean, default=True, nullable=False)


class ServiceType(Base):
    __tablename__ = "service_types"

    id = Column(Integer, primary_key=True)
    industry_id = Column(Integer, ForeignKey("industries.id"), nullable=True)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    label = Column(String(255), nullable=False)
    active = Column(Boolean, default=True, nullable=False)


class HearAbout(Base):
    __tablename__ = "hear_about_options"

    id = Column(Integer, primary_key=True)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    label = Column(String(255), nullable=False)


class ServiceRequest(Base):
    """Incoming service request (website form submission or manual entry)"""

    __tablename__ = "service_requests"
    __table_args__ = (UniqueConstraint("org_id", "number", name="uq_request_org_number"),)

    id = Column(Integer, primary_key=True, index=True)
    org_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    number = Column(Integer, nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="SET NULL"), nullable=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    source = Column(String(100), default="website")
    status = Column(String(20), default="NEW", nullable=False)
    urgency = Column(String(20), default="normal")

    industry_id = Column(Integer, ForeignKey("industries.id"), nullable=True)
    service_type_id = Column(Integer, ForeignKey("service_types.id"), nullable=True)
    hear_about_id = Column(Integer, ForeignKey("hear_about_options.id"), nullable=True)

    # Full form snapshot as submitted, plus ingestion metadata under "meta"
    details = Column(JSON, default=dict)
    preferred_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("Client")
    property = relationship("Property")
    industry = relationship("Industry")
    service_type = relationship("ServiceType")
    hear_about = relationship("HearAbout")


class Activity(Base):
    """Audit trail entry"""

    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, index=True)
    org_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    request_id = Column(
        Integer, ForeignKey("service_requests.id", ondelete="CASCADE"), nullable=True
    )
    type = Column(String(20), default="SYSTEM", nullable=False)
    message = Column(Text, nullable=False)
    meta = Column(JSON, default=dict)
    created_at = Column(DateTime, server_default=func.now())
