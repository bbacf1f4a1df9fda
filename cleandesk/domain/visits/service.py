"""Visit service - Business logic for job visits and their line items"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models_job import Job, Visit
from ...tenancy import OrgContext
from ...utils.line_items import build_line_items, copy_line_items
from ..invoices.service import InvoiceService
from .repository import VisitRepository
from .schemas import VisitCreate, VisitLineItemsReplace, VisitStatusUpdate, VisitUpdate

logger = logging.getLogger(__name__)


class VisitService:
    """Service layer for visit business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = VisitRepository()

    def get_job(self, job_id: int, ctx: OrgContext) -> Job:
        job = self.repo.get_job(self.db, job_id, ctx.org_id)
        if not job:
            raise HTTPException(status_code=404, detail="Job not found")
        return job

    def get_visits(self, job_id: int, ctx: OrgContext) -> list[Visit]:
        job = self.get_job(job_id, ctx)
        return self.repo.get_visits_for_job(self.db, job.id, ctx.org_id)

    def get_invoiceable_visits(self, job_id: int, ctx: OrgContext) -> list[Visit]:
        job = self.get_job(job_id, ctx)
        return self.repo.get_invoiceable_visits(self.db, job.id, ctx.org_id)

    def get_visit(self, visit_id: int, ctx: OrgContext) -> Visit:
        visit = self.repo.get_visit_by_id(self.db, visit_id, ctx.org_id)
        if not visit:
            raise HTTPException(status_code=404, detail="Visit not found")
        return visit

    def create_visit(self, job_id: int, data: VisitCreate, ctx: OrgContext) -> Visit:
        job = self.get_job(job_id, ctx)
        if job.status == "CANCELLED":
            raise HTTPException(status_code=400, detail="Cannot schedule a visit on a cancelled job")

        visit = Visit(
            org_id=ctx.org_id,
            job_id=job.id,
            scheduled_at=data.scheduled_at,
            duration_minutes=data.duration_minutes,
            notes=data.notes,
            status="SCHEDULED",
        )
        if data.line_items is None:
            visit.line_items = copy_line_items(ctx.org_id, job.line_items)
        else:
            visit.line_items = build_line_items(ctx.org_id, data.line_items)

        self.repo.create_visit(self.db, visit)
        self.db.commit()
        logger.info(f"📅 Visit {visit.id} scheduled for job #{job.number} at {visit.scheduled_at}")
        return self.get_visit(visit.id, ctx)

    @staticmethod
    def _ensure_not_invoiced(visit: Visit, detail: str) -> None:
        if visit.invoice_id is not None:
            raise HTTPException(status_code=409, detail=detail)

    @staticmethod
    def _apply_status(visit: Visit, status: str, completed_at=None) -> None:
        visit.status = status
        if status == "COMPLETED":
            visit.completed_at = completed_at or visit.completed_at or datetime.utcnow()
        else:
            visit.completed_at = None

    def update_visit(self, visit_id: int, data: VisitUpdate, ctx: OrgContext) -> Visit:
        """Edit a visit. The job is left untouched. Invoiced visits only accept note changes."""
        visit = self.get_visit(visit_id, ctx)
        updates = data.model_dump(exclude_unset=True)

        if set(updates) - {"notes"}:
            self._ensure_not_invoiced(visit, "Invoiced visits only accept note changes")

        status = updates.pop("status", None)
        completed_at = updates.pop("completed_at", None)
        if status is not None:
            self._apply_status(visit, status, completed_at)
        elif completed_at is not None:
            if visit.status != "COMPLETED":
                raise HTTPException(
                    status_code=400, detail="Only completed visits have a completion time"
                )
            visit.completed_at = completed_at

        self.repo.update_visit(self.db, visit, **updates)
        self.db.commit()
        return self.get_visit(visit.id, ctx)

    def update_status(self, visit_id: int, data: VisitStatusUpdate, ctx: OrgContext) -> Visit:
        visit = self.get_visit(visit_id, ctx)
        if data.status != visit.status:
            self._ensure_not_invoiced(visit, "Cannot change the status of an invoiced visit")
            self._apply_status(visit, data.status)
            self.db.commit()
            logger.info(f"📋 Visit {visit.id} status -> {data.status}")
        return self.get_visit(visit.id, ctx)

    def replace_line_items(
        self, visit_id: int, data: VisitLineItemsReplace, ctx: OrgContext
    ) -> Visit:
        visit = self.get_visit(visit_id, ctx)
        self._ensure_not_invoiced(visit, "Cannot modify line items for an invoiced visit")

        visit.line_items = build_line_items(ctx.org_id, data.line_items)
        self.db.commit()
        return self.get_visit(visit.id, ctx)

    def delete_visit(
        self, visit_id: int, ctx: OrgContext, delete_invoice: bool = False
    ) -> tuple[bool, Optional[int]]:
        """
        Delete a visit and its line items.

        An invoiced visit is unlinked from its invoice, or the invoice is deleted
        too when delete_invoice is set (refused when it has payments).

        Returns:
            (invoice_deleted, invoice_id)
        """
        visit = self.get_visit(visit_id, ctx)
        invoice_id = visit.invoice_id
        invoice_deleted = False

        if invoice_id is not None and delete_invoice:
            invoice = self.repo.get_invoice(self.db, invoice_id, ctx.org_id)
            InvoiceService.ensure_deletable(invoice)
            # Other visits billed on the same invoice become invoiceable again
            self.repo.delete_invoice(self.db, invoice)
            invoice_deleted = True

        self.repo.delete_visit(self.db, visit)
        self.db.commit()
        logger.info(
            f"🗑️ Visit {visit_id} deleted from org {ctx.org.slug}"
            + (f" with invoice {invoice_id}" if invoice_deleted else "")
        )
        return invoice_deleted, invoice_id
