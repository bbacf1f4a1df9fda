"""Estimate service - Business logic for estimates"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models_job import Estimate
from ...services.pricing_calculator import PricingBreakdown, calculate_full_pricing
from ...tenancy import OrgContext
from ...utils.line_items import build_line_items
from ...utils.numbering import get_validated_number
from .repository import EstimateRepository
from .schemas import (
    PRICING_SETTINGS,
    EstimateCreate,
    EstimateStatusUpdate,
    EstimateUpdate,
    check_pricing_settings,
)

logger = logging.getLogger(__name__)


def get_estimate_pricing(estimate: Estimate) -> PricingBreakdown:
    return calculate_full_pricing(
        estimate.line_items,
        tax_rate=estimate.tax_rate,
        discount_type=estimate.discount_type,
        discount_value=estimate.discount_value,
        deposit_required=estimate.deposit_required,
        deposit_type=estimate.deposit_type,
        deposit_value=estimate.deposit_value,
    )


def normalize_pricing_settings(
    discount_type, discount_value, deposit_required, deposit_type, deposit_value
) -> dict:
    """Column values for the pricing settings; half-configured discounts and unused deposits are dropped"""
    return {
        "discount_type": discount_type if discount_value else None,
        "discount_value": discount_value if discount_type else None,
        "deposit_required": bool(deposit_required),
        "deposit_type": deposit_type if deposit_required else None,
        "deposit_value": deposit_value if deposit_required else None,
    }


class EstimateService:
    """Service layer for estimate business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = EstimateRepository()

    def get_estimates(self, ctx: OrgContext, status: Optional[str] = None) -> list[Estimate]:
        return self.repo.get_estimates(self.db, ctx.org_id, status)

    def get_estimate(self, estimate_id: int, ctx: OrgContext) -> Estimate:
        estimate = self.repo.get_estimate_by_id(self.db, estimate_id, ctx.org_id)
        if not estimate:
            raise HTTPException(status_code=404, detail="Estimate not found")
        return estimate

    def create_estimate(self, data: EstimateCreate, ctx: OrgContext) -> Estimate:
        client = self.repo.get_client(self.db, data.client_id, ctx.org_id)
        if not client:
            raise HTTPException(status_code=404, detail="Client not found")

        if data.property_id is not None:
            prop = self.repo.get_property(self.db, data.property_id, ctx.org_id)
            if not prop or prop.client_id != client.id:
                raise HTTPException(status_code=404, detail="Property not found")

        estimate = Estimate(
            org_id=ctx.org_id,
            number=get_validated_number(self.db, ctx.org_id, "estimate", data.number),
            client_id=client.id,
            property_id=data.property_id,
            title=data.title,
            description=data.description,
            status=data.status,
            valid_until=data.valid_until,
            tax_rate=data.tax_rate,
            **normalize_pricing_settings(
                data.discount_type,
                data.discount_value,
                data.deposit_required,
                data.deposit_type,
                data.deposit_value,
            ),
        )
        estimate.line_items = build_line_items(ctx.org_id, data.line_items)

        self.repo.create_estimate(self.db, estimate)
        self.db.commit()
        logger.info(f"📝 Estimate #{estimate.number} created for client {client.id}")
        return self.get_estimate(estimate.id, ctx)

    def update_estimate(self, estimate_id: int, data: EstimateUpdate, ctx: OrgContext) -> Estimate:
        estimate = self.get_estimate(estimate_id, ctx)
        updates = data.model_dump(exclude_unset=True, exclude={"number", "line_items"})

        # Required columns cannot be cleared
        for field in ("title", "status", "tax_rate", "deposit_required"):
            if field in updates and updates[field] is None:
                del updates[field]

        if updates.get("property_id") is not None:
            prop = self.repo.get_property(self.db, updates["property_id"], ctx.org_id)
            if not prop or prop.client_id != estimate.client_id:
                raise HTTPException(status_code=404, detail="Property not found")

        settings = {
            name: updates.pop(name) if name in updates else getattr(estimate, name)
            for name in PRICING_SETTINGS
        }
        try:
            check_pricing_settings(**settings)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
        updates.update(normalize_pricing_settings(**settings))

        if data.number is not None and data.number != estimate.number:
            updates["number"] = get_validated_number(
                self.db, ctx.org_id, "estimate", data.number, exclude_id=estimate.id
            )

        self.repo.update_estimate(self.db, estimate, **updates)
        if data.line_items is not None:
            estimate.line_items = build_line_items(ctx.org_id, data.line_items)

        self.db.commit()
        logger.info(f"✏️ Estimate #{estimate.number} updated")
        return self.get_estimate(estimate.id, ctx)

    def update_status(
        self, estimate_id: int, data: EstimateStatusUpdate, ctx: OrgContext
    ) -> Estimate:
        estimate = self.get_estimate(estimate_id, ctx)
        estimate.status = data.status
        self.db.commit()
        return self.get_estimate(estimate.id, ctx)

    def delete_estimate(self, estimate_id: int, ctx: OrgContext) -> None:
        estimate = self.get_estimate(estimate_id, ctx)
        self.repo.delete_estimate(self.db, estimate)
        self.db.commit()
        logger.info(f"🗑️ Estimate {estimate_id} deleted from org {ctx.org.slug}")
