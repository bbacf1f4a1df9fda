"""Team router - organizations and members"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_super_admin
from ...database import get_db
from ...models import Membership, User
from ...schemas import MessageResponse
from ...tenancy import OrgContext, get_org_context, require_role
from .schemas import (
    MemberInvite,
    MemberResponse,
    MemberRoleUpdate,
    OrganizationCreate,
    OrganizationResponse,
)
from .service import TeamService, is_pending_user

logger = logging.getLogger(__name__)

orgs_router = APIRouter(prefix="/organizations", tags=["Organizations"])
router = APIRouter(prefix="/t/{org_slug}/team", tags=["Team"])

require_manager = require_role("OWNER", "ADMIN")


def get_team_service(db: Session = Depends(get_db)) -> TeamService:
    """Dependency injection for TeamService"""
    return TeamService(db)


def to_member_response(membership: Membership) -> MemberResponse:
    return MemberResponse(
        membership_id=membership.id,
        user_id=membership.user_id,
        email=membership.user.email,
        full_name=membership.user.full_name,
        role=membership.role,
        pending=is_pending_user(membership.user),
        created_at=membership.created_at,
    )


# ============================================================================
# ORGANIZATIONS
# ============================================================================


@orgs_router.get("", response_model=list[OrganizationResponse])
async def get_my_organizations(
    current_user: User = Depends(get_current_user),
    service: TeamService = Depends(get_team_service),
):
    """Organizations the current user can open"""
    return [
        OrganizationResponse(
            id=org.id,
            public_id=org.public_id,
            name=org.name,
            slug=org.slug,
            industry=org.industry,
            timezone=org.timezone,
            role=role,
        )
        for org, role in service.get_organizations(current_user)
    ]


@orgs_router.post("", response_model=OrganizationResponse, status_code=201)
async def create_organization(
    data: OrganizationCreate,
    current_user: User = Depends(require_super_admin),
    service: TeamService = Depends(get_team_service),
):
    org = service.create_organization(data, current_user)
    return OrganizationResponse(
        id=org.id,
        public_id=org.public_id,
        name=org.name,
        slug=org.slug,
        industry=org.industry,
        timezone=org.timezone,
        role="OWNER" if not data.owner_email or data.owner_email == current_user.email else None,
    )


# ============================================================================
# MEMBERS
# ============================================================================


@router.get("/members", response_model=list[MemberResponse])
async def get_members(
    ctx: OrgContext = Depends(get_org_context),
    service: TeamService = Depends(get_team_service),
):
    return [to_member_response(m) for m in service.get_members(ctx)]


@router.post("/members", response_model=MemberResponse, status_code=201)
async def add_member(
    data: MemberInvite,
    ctx: OrgContext = Depends(require_manager),
    service: TeamService = Depends(get_team_service),
):
    """Add a member by email (owners and admins only)"""
    return to_member_response(service.add_member(data, ctx))


@router.patch("/members/{membership_id}", response_model=MemberResponse)
async def update_member_role(
    membership_id: int,
    data: MemberRoleUpdate,
    ctx: OrgContext = Depends(require_manager),
    service: TeamService = Depends(get_team_service),
):
    return to_member_response(service.update_member_role(membership_id, data, ctx))


@router.delete("/members/{membership_id}", response_model=MessageResponse)
async def remove_member(
    membership_id: int,
    ctx: OrgContext = Depends(require_manager),
    service: TeamService = Depends(get_team_service),
):
    service.remove_member(membership_id, ctx)
    return MessageResponse(message="Member removed successfully")


__all__ = ["orgs_router", "router"]
