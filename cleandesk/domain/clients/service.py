"""Client service - Business logic for clients, leads and properties"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Client, Property
from ...tenancy import OrgContext
from ...utils.numbering import get_validated_number
from .repository import ClientRepository
from .schemas import (
    ClientCreate,
    ClientUpdate,
    LeadStatusUpdate,
    PropertyCreate,
    PropertyUpdate,
)

logger = logging.getLogger(__name__)


class ClientService:
    """Service layer for client business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ClientRepository()

    def get_clients(
        self, ctx: OrgContext, status: Optional[str] = None, search: Optional[str] = None
    ) -> list[Client]:
        return self.repo.get_clients(self.db, ctx.org_id, status=status, search=search)

    def get_client(self, client_id: int, ctx: OrgContext) -> Client:
        client = self.repo.get_client_by_id(self.db, client_id, ctx.org_id)
        if not client:
            raise HTTPException(status_code=404, detail="Client not found")
        return client

    def create_client(self, data: ClientCreate, ctx: OrgContext) -> Client:
        logger.info(f"📥 Creating {data.client_status.lower()} client in org {ctx.org.slug}")

        number = get_validated_number(self.db, ctx.org_id, "client", data.number)
        client = self.repo.create_client(
            self.db,
            ctx.org_id,
            number,
            first_name=data.first_name,
            last_name=data.last_name,
            company_name=data.company_name,
            emails=data.emails or [],
            phones=data.phones or [],
            addresses=data.addresses or [],
            client_status=data.client_status,
            lead_source=data.lead_source,
            lead_status=data.lead_status,
            notes=data.notes,
        )
        self.db.commit()
        self.db.refresh(client)
        logger.info(f"✅ Client #{client.number} created (id={client.id})")
        return client

    def update_client(self, client_id: int, data: ClientUpdate, ctx: OrgContext) -> Client:
        client = self.get_client(client_id, ctx)

        updates = data.model_dump(exclude_unset=True, exclude={"number"})
        if data.number is not None and data.number != client.number:
            updates["number"] = get_validated_number(
                self.db, ctx.org_id, "client", data.number, exclude_id=client.id
            )

        self.repo.update_client(self.db, client, **updates)
        self.db.commit()
        self.db.refresh(client)
        return client

    def delete_client(self, client_id: int, ctx: OrgContext) -> None:
        client = self.get_client(client_id, ctx)

        if self.repo.has_billing_records(self.db, client.id):
            raise HTTPException(
                status_code=409,
                detail="Client has jobs, estimates or invoices. Mark the client inactive instead.",
            )

        self.repo.delete_client(self.db, client)
        self.db.commit()
        logger.info(f"🗑️ Client {client_id} deleted from org {ctx.org.slug}")

    def add_property(self, client_id: int, data: PropertyCreate, ctx: OrgContext) -> Property:
        client = self.get_client(client_id, ctx)
        prop = self.repo.create_property(
            self.db, ctx.org_id, client.id, **data.model_dump()
        )
        self.db.commit()
        self.db.refresh(prop)
        return prop

    def get_property(self, property_id: int, ctx: OrgContext) -> Property:
        prop = self.repo.get_property(self.db, property_id, ctx.org_id)
        if not prop:
            raise HTTPException(status_code=404, detail="Property not found")
        return prop

    def update_property(self, property_id: int, data: PropertyUpdate, ctx: OrgContext) -> Property:
        prop = self.get_property(property_id, ctx)
        updates = data.model_dump(exclude_unset=True)
        if "address" in updates and updates["address"] is None:
            del updates["address"]

        self.repo.update_property(self.db, prop, **updates)
        self.db.commit()
        self.db.refresh(prop)
        return prop

    def delete_property(self, property_id: int, ctx: OrgContext) -> None:
        prop = self.get_property(property_id, ctx)
        self.repo.delete_property(self.db, prop)
        self.db.commit()
        logger.info(f"🗑️ Property {property_id} deleted from org {ctx.org.slug}")

    # Leads are clients with client_status LEAD

    def get_leads(self, ctx: OrgContext, search: Optional[str] = None) -> list[Client]:
        return self.repo.get_clients(self.db, ctx.org_id, status="LEAD", search=search)

    def get_lead(self, lead_id: int, ctx: OrgContext) -> Client:
        client = self.get_client(lead_id, ctx)
        if client.client_status != "LEAD" and client.converted_at is None:
            raise HTTPException(status_code=404, detail="Lead not found")
        return client

    def update_lead_status(self, lead_id: int, data: LeadStatusUpdate, ctx: OrgContext) -> Client:
        lead = self.get_lead(lead_id, ctx)

        if data.lead_status == "CONVERTED":
            return self.convert_lead(lead_id, ctx)

        if lead.converted_at is not None:
            raise HTTPException(status_code=409, detail="Lead already converted to client")

        lead.lead_status = data.lead_status
        self.db.commit()
        self.db.refresh(lead)
        return lead

    def convert_lead(self, lead_id: int, ctx: OrgContext) -> Client:
        """Turn a lead into an active client. The record, its number and its history are kept."""
        lead = self.get_lead(lead_id, ctx)

        if lead.converted_at is not None or lead.client_status != "LEAD":
            raise HTTPException(status_code=409, detail="Lead already converted to client")

        lead.client_status = "ACTIVE"
        lead.lead_status = "CONVERTED"
        lead.converted_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(lead)
        logger.info(f"🎉 Lead #{lead.number} converted to client in org {ctx.org.slug}")
        return lead
