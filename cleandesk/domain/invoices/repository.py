"""Invoice repository - Database operations for invoices"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload, selectinload

from ...models import Client
from ...models_invoice import Invoice
from ...models_job import Job, Visit


class InvoiceRepository:
    """Repository for invoice database operations"""

    @staticmethod
    def _with_relations(query):
        # Line items and payments are needed to derive amounts on every row
        return query.options(
            joinedload(Invoice.client),
            selectinload(Invoice.line_items),
            selectinload(Invoice.payments),
        )

    @staticmethod
    def get_invoices(db: Session, org_id: int, status: Optional[str] = None) -> list[Invoice]:
        query = InvoiceRepository._with_relations(db.query(Invoice)).filter(
            Invoice.org_id == org_id
        )
        if status:
            query = query.filter(Invoice.status == status)
        return query.order_by(Invoice.created_at.desc(), Invoice.id.desc()).all()

    @staticmethod
    def get_open_invoices(db: Session, org_id: int) -> list[Invoice]:
        """Invoices that can still receive payments"""
        return (
            InvoiceRepository._with_relations(db.query(Invoice))
            .filter(Invoice.org_id == org_id, Invoice.status.in_(("DRAFT", "SENT", "OVERDUE")))
            .order_by(Invoice.created_at.desc(), Invoice.id.desc())
            .all()
        )

    @staticmethod
    def get_invoice_by_id(db: Session, invoice_id: int, org_id: int) -> Optional[Invoice]:
        return (
            InvoiceRepository._with_relations(db.query(Invoice))
            .filter(Invoice.id == invoice_id, Invoice.org_id == org_id)
            .first()
        )

    @staticmethod
    def get_client(db: Session, client_id: int, org_id: int) -> Optional[Client]:
        return db.query(Client).filter(Client.id == client_id, Client.org_id == org_id).first()

    @staticmethod
    def get_job(db: Session, job_id: int, org_id: int) -> Optional[Job]:
        return (
            db.query(Job)
            .options(selectinload(Job.line_items))
            .filter(Job.id == job_id, Job.org_id == org_id)
            .first()
        )

    @staticmethod
    def get_job_visits(db: Session, job_id: int, org_id: int, visit_ids: list[int]) -> list[Visit]:
        return (
            db.query(Visit)
            .options(selectinload(Visit.line_items))
            .filter(Visit.id.in_(visit_ids), Visit.job_id == job_id, Visit.org_id == org_id)
            .order_by(Visit.scheduled_at, Visit.id)
            .all()
        )

    @staticmethod
    def create_invoice(db: Session, invoice: Invoice) -> Invoice:
        db.add(invoice)
        db.flush()
        return invoice

    @staticmethod
    def delete_invoice(db: Session, invoice: Invoice) -> None:
        db.delete(invoice)
        db.flush()
