"""Job repository - Database operations for jobs"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload, selectinload

from ...models import Client, Property
from ...models_invoice import LineItem
from ...models_job import Job


class JobRepository:
    """Repository for job database operations"""

    @staticmethod
    def get_jobs(db: Session, org_id: int, status: Optional[str] = None) -> list[Job]:
        query = (
            db.query(Job)
            .options(
                joinedload(Job.client),
                selectinload(Job.line_items),
                selectinload(Job.invoices),
            )
            .filter(Job.org_id == org_id)
        )
        if status:
            query = query.filter(Job.status == status)
        return query.order_by(Job.created_at.desc(), Job.id.desc()).all()

    @staticmethod
    def get_job_by_id(db: Session, job_id: int, org_id: int) -> Optional[Job]:
        return (
            db.query(Job)
            .options(
                joinedload(Job.client),
                selectinload(Job.line_items),
                selectinload(Job.invoices),
            )
            .filter(Job.id == job_id, Job.org_id == org_id)
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
    def get_line_item(db: Session, job_id: int, item_id: int, org_id: int) -> Optional[LineItem]:
        return (
            db.query(LineItem)
            .filter(LineItem.id == item_id, LineItem.job_id == job_id, LineItem.org_id == org_id)
            .first()
        )

    @staticmethod
    def create_job(db: Session, job: Job) -> Job:
        db.add(job)
        db.flush()
        return job

    @staticmethod
    def update_job(db: Session, job: Job, **updates) -> Job:
        for key, value in updates.items():
            if hasattr(job, key):
                setattr(job, key, value)
        db.flush()
        return job

    @staticmethod
    def delete_job(db: Session, job: Job) -> None:
        db.delete(job)
        db.flush()
