"""Client router - FastAPI endpoints for clients, leads and properties"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...schemas import MessageResponse
from ...tenancy import OrgContext, get_org_context
from .schemas import (
    ClientCreate,
    ClientResponse,
    ClientUpdate,
    LeadStatusUpdate,
    PropertyCreate,
    PropertyResponse,
    PropertyUpdate,
)
from .service import ClientService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/t/{org_slug}/clients", tags=["Clients"])
leads_router = APIRouter(prefix="/t/{org_slug}/leads", tags=["Leads"])
properties_router = APIRouter(prefix="/t/{org_slug}/properties", tags=["Properties"])


def get_client_service(db: Session = Depends(get_db)) -> ClientService:
    """Dependency injection for ClientService"""
    return ClientService(db)


# ============================================================================
# CLIENTS
# ============================================================================


@router.get("", response_model=list[ClientResponse])
async def get_clients(
    status: Optional[str] = Query(None, description="LEAD, ACTIVE or INACTIVE"),
    search: Optional[str] = Query(None, max_length=100),
    ctx: OrgContext = Depends(get_org_context),
    service: ClientService = Depends(get_client_service),
):
    """List clients, newest first"""
    return [ClientResponse.from_client(c) for c in service.get_clients(ctx, status, search)]


@router.post("", response_model=ClientResponse, status_code=201)
async def create_client(
    data: ClientCreate,
    ctx: OrgContext = Depends(get_org_context),
    service: ClientService = Depends(get_client_service),
):
    client = service.create_client(data, ctx)
    return ClientResponse.from_client(client, include_properties=True)


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: int,
    ctx: OrgContext = Depends(get_org_context),
    service: ClientService = Depends(get_client_service),
):
    """Get a client with its properties"""
    client = service.get_client(client_id, ctx)
    return ClientResponse.from_client(client, include_properties=True)


@router.patch("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: int,
    data: ClientUpdate,
    ctx: OrgContext = Depends(get_org_context),
    service: ClientService = Depends(get_client_service),
):
    client = service.update_client(client_id, data, ctx)
    return ClientResponse.from_client(client, include_properties=True)


@router.delete("/{client_id}", response_model=MessageResponse)
async def delete_client(
    client_id: int,
    ctx: OrgContext = Depends(get_org_context),
    service: ClientService = Depends(get_client_service),
):
    service.delete_client(client_id, ctx)
    return MessageResponse(message="Client deleted successfully")


@router.post("/{client_id}/properties", response_model=PropertyResponse, status_code=201)
async def add_property(
    client_id: int,
    data: PropertyCreate,
    ctx: OrgContext = Depends(get_org_context),
    service: ClientService = Depends(get_client_service),
):
    return service.add_property(client_id, data, ctx)


@properties_router.get("/{property_id}", response_model=PropertyResponse)
async def get_property(
    property_id: int,
    ctx: OrgContext = Depends(get_org_context),
    service: ClientService = Depends(get_client_service),
):
    return service.get_property(property_id, ctx)


@properties_router.patch("/{property_id}", response_model=PropertyResponse)
async def update_property(
    property_id: int,
    data: PropertyUpdate,
    ctx: OrgContext = Depends(get_org_context),
    service: ClientService = Depends(get_client_service),
):
    return service.update_property(property_id, data, ctx)


@properties_router.delete("/{property_id}", response_model=MessageResponse)
async def delete_property(
    property_id: int,
    ctx: OrgContext = Depends(get_org_context),
    service: ClientService = Depends(get_client_service),
):
    """Delete a property. Jobs, estimates and requests at it are unlinked, not deleted."""
    service.delete_property(property_id, ctx)
    return MessageResponse(message="Property deleted successfully")


# ============================================================================
# LEADS
# ============================================================================


@leads_router.get("", response_model=list[ClientResponse])
async def get_leads(
    search: Optional[str] = Query(None, max_length=100),
    ctx: OrgContext = Depends(get_org_context),
    service: ClientService = Depends(get_client_service),
):
    return [ClientResponse.from_client(c) for c in service.get_leads(ctx, search)]


@leads_router.patch("/{lead_id}/status", response_model=ClientResponse)
async def update_lead_status(
    lead_id: int,
    data: LeadStatusUpdate,
    ctx: OrgContext = Depends(get_org_context),
    service: ClientService = Depends(get_client_service),
):
    return ClientResponse.from_client(service.update_lead_status(lead_id, data, ctx))


@leads_router.post("/{lead_id}/convert", response_model=ClientResponse)
async def convert_lead(
    lead_id: int,
    ctx: OrgContext = Depends(get_org_context),
    service: ClientService = Depends(get_client_service),
):
    """Convert a lead to an active client (409 if already converted)"""
    return ClientResponse.from_client(service.convert_lead(lead_id, ctx), include_properties=True)


__all__ = ["router", "leads_router", "properties_router"]
