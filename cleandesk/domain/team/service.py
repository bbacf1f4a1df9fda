"""Team service - Organizations, members and roles"""

import logging
import uuid
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Membership, Organization, User
from ...shared.validators import make_org_slug
from ...tenancy import OrgContext, get_user_organizations
from .repository import TeamRepository
from .schemas import MemberInvite, MemberRoleUpdate, OrganizationCreate

logger = logging.getLogger(__name__)


def is_pending_user(user: User) -> bool:
    return user.firebase_uid.startswith("invited:")


class TeamService:
    """Service layer for organizations and memberships"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = TeamRepository()

    def get_organizations(self, user: User) -> list[tuple[Organization, Optional[str]]]:
        return get_user_organizations(self.db, user)

    def create_organization(self, data: OrganizationCreate, creator: User) -> Organization:
        """Create an organization with its first owner (super admins only)"""
        slug = data.slug or make_org_slug(data.name)
        if self.repo.slug_exists(self.db, slug):
            raise HTTPException(status_code=409, detail=f"Organization slug '{slug}' is taken")

        org = self.repo.create_organization(
            self.db,
            name=data.name,
            slug=slug,
            industry=data.industry,
            timezone=data.timezone,
        )

        owner = creator
        if data.owner_email and data.owner_email != creator.email:
            owner = self._get_or_invite_user(data.owner_email, None)
        self.repo.create_membership(self.db, owner.id, org.id, "OWNER")

        self.db.commit()
        self.db.refresh(org)
        logger.info(f"🏢 Organization '{org.slug}' created by {creator.email}")
        return org

    def get_members(self, ctx: OrgContext) -> list[Membership]:
        return self.repo.get_members(self.db, ctx.org_id)

    def _get_or_invite_user(self, email: str, full_name: Optional[str]) -> User:
        """
        Existing user by email, or a placeholder account that is linked to a
        Firebase identity the first time that email signs in.
        """
        user = self.repo.get_user_by_email(self.db, email)
        if user:
            return user
        logger.info(f"✉️ Creating pending account for {email}")
        return self.repo.create_user(
            self.db,
            firebase_uid=f"invited:{uuid.uuid4()}",
            email=email,
            full_name=full_name,
        )

    def add_member(self, data: MemberInvite, ctx: OrgContext) -> Membership:
        if data.role == "OWNER" and not ctx.has_role("OWNER"):
            raise HTTPException(status_code=403, detail="Only owners can add other owners")

        user = self._get_or_invite_user(data.email, data.full_name)
        if self.repo.find_membership(self.db, user.id, ctx.org_id):
            raise HTTPException(status_code=409, detail="User is already a member of this organization")

        membership = self.repo.create_membership(self.db, user.id, ctx.org_id, data.role)
        self.db.commit()
        logger.info(f"👥 {data.email} added to {ctx.org.slug} as {data.role}")
        return self.repo.get_membership(self.db, membership.id, ctx.org_id)

    def _get_membership(self, membership_id: int, ctx: OrgContext) -> Membership:
        membership = self.repo.get_membership(self.db, membership_id, ctx.org_id)
        if not membership:
            raise HTTPException(status_code=404, detail="Membership not found")
        return membership

    def _ensure_owner_remains(self, membership: Membership, ctx: OrgContext) -> None:
        if membership.role == "OWNER" and self.repo.count_owners(self.db, ctx.org_id) <= 1:
            raise HTTPException(
                status_code=400, detail="An organization must keep at least one owner"
            )

    def update_member_role(
        self, membership_id: int, data: MemberRoleUpdate, ctx: OrgContext
    ) -> Membership:
        membership = self._get_membership(membership_id, ctx)

        if "OWNER" in (data.role, membership.role) and not ctx.has_role("OWNER"):
            raise HTTPException(status_code=403, detail="Only owners can change owner roles")
        if data.role != "OWNER":
            self._ensure_owner_remains(membership, ctx)

        membership.role = data.role
        self.db.commit()
        return self._get_membership(membership_id, ctx)

    def remove_member(self, membership_id: int, ctx: OrgContext) -> None:
        """Remove a membership. The user account itself is kept."""
        membership = self._get_membership(membership_id, ctx)

        if membership.role == "OWNER" and not ctx.has_role("OWNER"):
            raise HTTPException(status_code=403, detail="Only owners can remove owners")
        self._ensure_owner_remains(membership, ctx)

        self.db.delete(membership)
        self.db.commit()
        logger.info(f"👋 Membership {membership_id} removed from {ctx.org.slug}")
