"""
Per-organization sequential display numbers.

Numbers are unique per entity type and per organization, start at 1 and
increment through the org_counters table. The counter row is locked
(SELECT ... FOR UPDATE on PostgreSQL) for the rest of the caller's transaction,
so the increment commits or rolls back together with the entity that uses it.
"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from ..models import Client, OrgCounter, ServiceRequest
from ..models_invoice import Invoice, Payment
from ..models_job import Estimate, Job

logger = logging.getLogger(__name__)

ENTITY_PREFIXES = {
    "client": "CLT",
    "request": "REQ",
    "estimate": "EST",
    "job": "JOB",
    "invoice": "INV",
    "payment": "PAY",
}

MODEL_MAP = {
    "client": Client,
    "request": ServiceRequest,
    "estimate": Estimate,
    "job": Job,
    "invoice": Invoice,
    "payment": Payment,
}


def ensure_counter(db: Session, org_id: int, scope: str) -> None:
    """
    Create the counter row if it does not exist yet.

    INSERT ... ON CONFLICT DO NOTHING, so concurrent first allocations in a new
    org both succeed: the loser waits for the winner's row instead of failing
    on the (org_id, scope) unique constraint.
    """
    dialect = sqlite if db.get_bind().dialect.name == "sqlite" else postgresql
    db.execute(
        dialect.insert(OrgCounter)
        .values(org_id=org_id, scope=scope, value=0)
        .on_conflict_do_nothing(index_elements=["org_id", "scope"])
    )


def _lock_counter(db: Session, org_id: int, scope: str) -> Optional[OrgCounter]:
    return (
        db.query(OrgCounter)
        .filter(OrgCounter.org_id == org_id, OrgCounter.scope == scope)
        .with_for_update()
        .populate_existing()
        .first()
    )


def _get_counter(db: Session, org_id: int, scope: str) -> OrgCounter:
    if scope not in ENTITY_PREFIXES:
        raise ValueError(f"Unknown numbering scope: {scope}")

    counter = _lock_counter(db, org_id, scope)
    if counter is None:
        ensure_counter(db, org_id, scope)
        counter = _lock_counter(db, org_id, scope)
    return counter


def get_next_number(db: Session, org_id: int, scope: str) -> int:
    """Allocate the next number for an entity type within an organization"""
    counter = _get_counter(db, org_id, scope)
    counter.value += 1
    db.flush()
    logger.debug(f"🔢 Allocated {scope} #{counter.value} for org {org_id}")
    return counter.value


def is_number_available(
    db: Session, org_id: int, scope: str, number: int, exclude_id: Optional[int] = None
) -> bool:
    """A number is available if unused in the org, or used by the entity being updated"""
    model = MODEL_MAP[scope]
    existing = (
        db.query(model.id).filter(model.org_id == org_id, model.number == number).first()
    )
    return existing is None or (exclude_id is not None and existing.id == exclude_id)


def get_validated_number(
    db: Session,
    org_id: int,
    scope: str,
    requested_number: Optional[int] = None,
    exclude_id: Optional[int] = None,
) -> int:
    """
    Use the requested number if it is free within the org, otherwise allocate one.

    Raises:
        HTTPException(409): requested number already taken
    """
    if requested_number is None:
        return get_next_number(db, org_id, scope)

    if requested_number < 1:
        raise HTTPException(status_code=400, detail="Number must be at least 1")

    if not is_number_available(db, org_id, scope, requested_number, exclude_id):
        raise HTTPException(
            status_code=409,
            detail=f"{scope.capitalize()} #{requested_number} already exists in this organization",
        )

    # Keep the sequence ahead of manually chosen numbers
    counter = _get_counter(db, org_id, scope)
    if requested_number > counter.value:
        counter.value = requested_number
        db.flush()

    return requested_number


def format_entity_number(scope: str, number: int) -> str:
    """CLT-0001, EST-0042, INV-0123"""
    return f"{ENTITY_PREFIXES[scope]}-{number:04d}"
