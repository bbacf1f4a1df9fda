"""Estimate repository - Database operations for estimates"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload, selectinload

from ...models import Client, Property
from ...models_job import Estimate


class EstimateRepository:
    """Repository for estimate database operations"""

    @staticmethod
    def get_estimates(db: Session, org_id: int, status: Optional[str] = None) -> list[Estimate]:
        query = (
            db.query(Estimate)
            .options(joinedload(Estimate.client), selectinload(Estimate.line_items))
            .filter(Estimate.org_id == org_id)
        )
        if status:
            query = query.filter(Estimate.status == status)
        return query.order_by(Estimate.created_at.desc(), Estimate.id.desc()).all()

    @staticmethod
    def get_estimate_by_id(db: Session, estimate_id: int, org_id: int) -> Optional[Estimate]:
        return (
            db.query(Estimate)
            .options(joinedload(Estimate.client), selectinload(Estimate.line_items))
            .filter(Estimate.id == estimate_id, Estimate.org_id == org_id)
            .first()
        )

    @staticmethod
    def get_client(db: Session, client_id: int, org_id: int) -> Optional[Client]:
        return db.query(Client).filter(Client.id == client_id, Client.org_id == org_id).first()

    @staticmethod
    def get_property(db: Session, property_id: int, org_id: int) -> Optional[Property]:
        return (
            db.query(Property)
            .filter(Property.id == property_id, Property.org_id == org_id)
            .first()
        )

    @staticmethod
    def create_estimate(db: Session, estimate: Estimate) -> Estimate:
        db.add(estimate)
        db.flush()
        return estimate

    @staticmethod
    def update_estimate(db: Session, estimate: Estimate, **updates) -> Estimate:
        for key, value in updates.items():
            if hasattr(estimate, key):
                setattr(estimate, key, value)
        db.flush()
        return estimate

    @staticmethod
    def delete_estimate(db: Session, estimate: Estimate) -> None:
        db.delete(estimate)
        db.flush()
