"""Client repository - Database operations for clients, leads and properties"""

from typing import Optional

from sqlalchemy import String, cast, or_
from sqlalchemy.orm import Session, selectinload

from ...models import Client, Property
from ...models_invoice import Invoice
from ...models_job import Estimate, Job


class ClientRepository:
    """Repository for client database operations. Every query is scoped to one org."""

    @staticmethod
    def get_clients(
        db: Session,
        org_id: int,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[Client]:
        query = db.query(Client).filter(Client.org_id == org_id)

        if status:
            query = query.filter(Client.client_status == status)

        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Client.first_name.ilike(pattern),
                    Client.last_name.ilike(pattern),
                    Client.company_name.ilike(pattern),
                    cast(Client.emails, String).ilike(pattern),
                    cast(Client.phones, String).ilike(pattern),
                )
            )

        return query.order_by(Client.created_at.desc(), Client.id.desc()).all()

    @staticmethod
    def get_client_by_id(db: Session, client_id: int, org_id: int) -> Optional[Client]:
        return (
            db.query(Client)
            .options(selectinload(Client.properties))
            .filter(Client.id == client_id, Client.org_id == org_id)
            .first()
        )

    @staticmethod
    def create_client(db: Session, org_id: int, number: int, **client_data) -> Client:
        client = Client(org_id=org_id, number=number, **client_data)
        db.add(client)
        db.flush()
        return client

    @staticmethod
    def update_client(db: Session, client: Client, **updates) -> Client:
        """Update a client with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(client, key):
                setattr(client, key, value)
        db.flush()
        return client

    @staticmethod
    def has_billing_records(db: Session, client_id: int) -> bool:
        for model in (Invoice, Job, Estimate):
            if db.query(model.id).filter(model.client_id == client_id).first():
                return True
        return False

    @staticmethod
    def delete_client(db: Session, client: Client) -> None:
        db.delete(client)
        db.flush()

    @staticmethod
    def get_property(db: Session, property_id: int, org_id: int) -> Optional[Property]:
        return (
            db.query(Property)
            .filter(Property.id == property_id, Property.org_id == org_id)
            .first()
        )

    @staticmethod
    def create_property(db: Session, org_id: int, client_id: int, **property_data) -> Property:
        prop = Property(org_id=org_id, client_id=client_id, **property_data)
        db.add(prop)
        db.flush()
        return prop

    @staticmethod
    def update_property(db: Session, prop: Property, **updates) -> Property:
        for key, value in updates.items():
            if hasattr(prop, key):
                setattr(prop, key, value)
        db.flush()
        return prop

    @staticmethod
    def delete_property(db: Session, prop: Property) -> None:
        # Jobs, estimates and requests at this address keep their rows with property_id cleared
        db.delete(prop)
        db.flush()
