"""Job service - Business logic for jobs and their line items"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models_job import Job
from ...schemas import LineItemInput
from ...tenancy import OrgContext
from ...utils.line_items import build_line_items
from ...utils.numbering import get_validated_number
from .repository import JobRepository
from .schemas import JobCreate, JobStatusUpdate, JobUpdate

logger = logging.getLogger(__name__)


class JobService:
    """Service layer for job business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = JobRepository()

    def get_jobs(self, ctx: OrgContext, status: Optional[str] = None) -> list[Job]:
        return self.repo.get_jobs(self.db, ctx.org_id, status)

    def get_job(self, job_id: int, ctx: OrgContext) -> Job:
        job = self.repo.get_job_by_id(self.db, job_id, ctx.org_id)
        if not job:
            raise HTTPException(status_code=404, detail="Job not found")
        return job

    def create_job(self, data: JobCreate, ctx: OrgContext) -> Job:
        client = self.repo.get_client(self.db, data.client_id, ctx.org_id)
        if not client:
            raise HTTPException(status_code=404, detail="Client not found")

        if data.property_id is not None:
            prop = self.repo.get_property(self.db, data.property_id, ctx.org_id)
            if not prop or prop.client_id != client.id:
                raise HTTPException(status_code=404, detail="Property not found")

        job = Job(
            org_id=ctx.org_id,
            number=get_validated_number(self.db, ctx.org_id, "job", data.number),
            client_id=client.id,
            property_id=data.property_id,
            title=data.title,
            description=data.description,
            tax_rate=data.tax_rate,
            status="ACTIVE",
        )
        job.line_items = build_line_items(ctx.org_id, data.line_items)

        self.repo.create_job(self.db, job)
        self.db.commit()
        logger.info(f"🧹 Job #{job.number} created for client {client.id}")
        return self.get_job(job.id, ctx)

    def update_job(self, job_id: int, data: JobUpdate, ctx: OrgContext) -> Job:
        """Update job fields. Existing visits and invoices keep their own copies of the line items."""
        job = self.get_job(job_id, ctx)
        updates = data.model_dump(exclude_unset=True, exclude={"number"})

        # Required columns cannot be cleared
        for field in ("title", "tax_rate"):
            if field in updates and updates[field] is None:
                del updates[field]

        if updates.get("property_id") is not None:
            prop = self.repo.get_property(self.db, updates["property_id"], ctx.org_id)
            if not prop or prop.client_id != job.client_id:
                raise HTTPException(status_code=404, detail="Property not found")

        if data.number is not None and data.number != job.number:
            updates["number"] = get_validated_number(
                self.db, ctx.org_id, "job", data.number, exclude_id=job.id
            )

        self.repo.update_job(self.db, job, **updates)
        self.db.commit()
        logger.info(f"✏️ Job #{job.number} updated: {', '.join(sorted(updates)) or 'no changes'}")
        return self.get_job(job.id, ctx)

    def update_status(self, job_id: int, data: JobStatusUpdate, ctx: OrgContext) -> Job:
        job = self.get_job(job_id, ctx)
        job.status = data.status
        job.completed_at = datetime.utcnow() if data.status == "COMPLETED" else None
        self.db.commit()
        return self.get_job(job.id, ctx)

    def add_line_item(self, job_id: int, data: LineItemInput, ctx: OrgContext) -> Job:
        job = self.get_job(job_id, ctx)
        (item,) = build_line_items(ctx.org_id, [data])
        item.sort_order = max((li.sort_order for li in job.line_items), default=-1) + 1
        job.line_items.append(item)
        self.db.commit()
        return self.get_job(job.id, ctx)

    def remove_line_item(self, job_id: int, item_id: int, ctx: OrgContext) -> Job:
        job = self.get_job(job_id, ctx)
        item = self.repo.get_line_item(self.db, job.id, item_id, ctx.org_id)
        if not item:
            raise HTTPException(status_code=404, detail="Line item not found")

        job.line_items.remove(item)
        self.db.commit()
        return self.get_job(job.id, ctx)

    def delete_job(self, job_id: int, ctx: OrgContext) -> None:
        """Delete a job and its visits. Invoices created from it are kept and unlinked."""
        job = self.get_job(job_id, ctx)
        self.repo.delete_job(self.db, job)
        self.db.commit()
        logger.info(f"🗑️ Job {job_id} deleted from org {ctx.org.slug}")
