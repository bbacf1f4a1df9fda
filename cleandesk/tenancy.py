"""
Multi-tenancy: organization context and row-level security.

Every org-scoped route resolves an OrgContext from the `{org_slug}` path
parameter and hands it to its service explicitly. Access is granted to
members of the organization and to super admins. On PostgreSQL the org id is
also written to the `app.org_id` session variable so row-level security
policies filter every query of the request.
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException
from sqlalchemy import event, text
from sqlalchemy.orm import Session, joinedload

from .auth import get_current_user
from .database import get_db
from .models import Membership, Organization, User

logger = logging.getLogger(__name__)

ROLES = ("OWNER", "ADMIN", "MEMBER")


class OrgContext:
    """The organization a request operates on, and who is asking"""

    def __init__(self, org: Organization, user: User, role: Optional[str]):
        self.org = org
        self.user = user
        # None for super admins without a membership
        self.role = role

    @property
    def org_id(self) -> int:
        return self.org.id

    @property
    def is_super_admin(self) -> bool:
        return bool(self.user.is_super_admin)

    def has_role(self, *roles: str) -> bool:
        return self.is_super_admin or self.role in roles

    def __repr__(self) -> str:
        return f"<OrgContext org={self.org.slug} user={self.user.id} role={self.role}>"


def _set_org_config(connection, org_id: int) -> None:
    connection.execute(
        text("SELECT set_config('app.org_id', :org_id, true)"), {"org_id": str(org_id)}
    )


@event.listens_for(Session, "after_begin")
def apply_tenant_context(session, _transaction, connection):
    """Re-apply the org variable at the start of every transaction of a scoped session"""
    org_id = session.info.get("org_id")
    if org_id is not None and connection.dialect.name == "postgresql":
        _set_org_config(connection, org_id)


def set_tenant_context(db: Session, org_id: int) -> None:
    """
    Bind the session to an organization for row-level security (PostgreSQL only).

    The variable is transaction-local, so it is set now and again after every
    commit. Other dialects have no row-level security; there the
    repository-level org_id filters are the only isolation.
    """
    db.info["org_id"] = org_id
    if db.get_bind().dialect.name != "postgresql" or not db.in_transaction():
        return

    try:
        _set_org_config(db.connection(), org_id)
        logger.debug(f"RLS context set for org_id={org_id}")
    except Exception as e:
        logger.error(f"Failed to set RLS context for org_id={org_id}: {e}")
        raise


def get_org_by_slug(db: Session, slug: str) -> Optional[Organization]:
    return db.query(Organization).filter(Organization.slug == slug).first()


def get_user_membership(db: Session, user_id: int, org_id: int) -> Optional[Membership]:
    return (
        db.query(Membership)
        .options(joinedload(Membership.org))
        .filter(Membership.user_id == user_id, Membership.org_id == org_id)
        .first()
    )


def get_user_organizations(db: Session, user: User) -> list[tuple[Organization, Optional[str]]]:
    """Organizations the user can open, with the user's role in each"""
    if user.is_super_admin:
        memberships = {
            m.org_id: m.role
            for m in db.query(Membership).filter(Membership.user_id == user.id).all()
        }
        orgs = db.query(Organization).order_by(Organization.name).all()
        return [(org, memberships.get(org.id)) for org in orgs]

    rows = (
        db.query(Organization, Membership.role)
        .join(Membership, Membership.org_id == Organization.id)
        .filter(Membership.user_id == user.id)
        .order_by(Organization.name)
        .all()
    )
    return [(org, role) for org, role in rows]


def resolve_org_context(db: Session, org: Organization, user: User) -> OrgContext:
    """Check access to an organization and activate its tenant context"""
    membership = get_user_membership(db, user.id, org.id)

    if membership is None and not user.is_super_admin:
        logger.warning(f"🚫 User {user.id} denied access to org {org.slug}")
        raise HTTPException(
            status_code=403, detail="You do not have access to this organization"
        )

    set_tenant_context(db, org.id)
    return OrgContext(org=org, user=user, role=membership.role if membership else None)


async def get_org_context(
    org_slug: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> OrgContext:
    """FastAPI dependency for routes mounted under /t/{org_slug}"""
    org = get_org_by_slug(db, org_slug)
    if not org:
        raise HTTPException(status_code=404, detail="Organization not found")
    return resolve_org_context(db, org, current_user)


def require_role(*roles: str):
    """Dependency factory restricting a route to the given membership roles"""

    async def checker(ctx: OrgContext = Depends(get_org_context)) -> OrgContext:
        if not ctx.has_role(*roles):
            logger.warning(f"🚫 User {ctx.user.id} with role {ctx.role} needs one of {roles}")
            raise HTTPException(
                status_code=403,
                detail=f"Requires one of the following roles: {', '.join(roles)}",
            )
        return ctx

    return checker
