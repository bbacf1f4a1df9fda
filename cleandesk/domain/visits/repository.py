"""Visit repository - Database operations for visits"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload, selectinload

from ...models_invoice import Invoice
from ...models_job import Job, Visit


class VisitRepository:
    """Repository for visit database operations"""

    @staticmethod
    def _with_relations(query):
        return query.options(
            joinedload(Visit.job),
            joinedload(Visit.invoice),
            selectinload(Visit.line_items),
        )

    @staticmethod
    def get_job(db: Session, job_id: int, org_id: int) -> Optional[Job]:
        return (
            db.query(Job)
            .options(selectinload(Job.line_items))
            .filter(Job.id == job_id, Job.org_id == org_id)
            .first()
        )

    @staticmethod
    def get_visits_for_job(db: Session, job_id: int, org_id: int) -> list[Visit]:
        return (
            VisitRepository._with_relations(db.query(Visit))
            .filter(Visit.job_id == job_id, Visit.org_id == org_id)
            .order_by(Visit.scheduled_at, Visit.id)
            .all()
        )

    @staticmethod
    def get_invoiceable_visits(db: Session, job_id: int, org_id: int) -> list[Visit]:
        """Completed visits of a job that are not on an invoice yet, oldest completion first"""
        return (
            VisitRepository._with_relations(db.query(Visit))
            .filter(
                Visit.job_id == job_id,
                Visit.org_id == org_id,
                Visit.status == "COMPLETED",
                Visit.invoice_id.is_(None),
            )
            .order_by(Visit.completed_at, Visit.id)
            .all()
        )

    @staticmethod
    def get_visit_by_id(db: Session, visit_id: int, org_id: int) -> Optional[Visit]:
        return (
            VisitRepository._with_relations(db.query(Visit))
            .filter(Visit.id == visit_id, Visit.org_id == org_id)
            .first()
        )

    @staticmethod
    def get_invoice(db: Session, invoice_id: int, org_id: int) -> Optional[Invoice]:
        return (
            db.query(Invoice)
            .options(selectinload(Invoice.payments))
            .filter(Invoice.id == invoice_id, Invoice.org_id == org_id)
            .first()
        )

    @staticmethod
    def create_visit(db: Session, visit: Visit) -> Visit:
        db.add(visit)
        db.flush()
        return visit

    @staticmethod
    def update_visit(db: Session, visit: Visit, **updates) -> Visit:
        for key, value in updates.items():
            if hasattr(visit, key):
                setattr(visit, key, value)
        db.flush()
        return visit

    @staticmethod
    def delete_visit(db: Session, visit: Visit) -> None:
        db.delete(visit)
        db.flush()

    @staticmethod
    def delete_invoice(db: Session, invoice: Invoice) -> None:
        db.delete(invoice)
        db.flush()
