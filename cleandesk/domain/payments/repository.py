"""Payment repository - Database operations for payments"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models_invoice import Invoice, Payment


class PaymentRepository:
    """Repository for payment database operations"""

    @staticmethod
    def get_payments(db: Session, org_id: int) -> list[Payment]:
        """All payments of an org, newest first"""
        return (
            db.query(Payment)
            .options(joinedload(Payment.invoice).joinedload(Invoice.client))
            .filter(Payment.org_id == org_id)
            .order_by(Payment.paid_at.desc(), Payment.id.desc())
            .all()
        )

    @staticmethod
    def get_payment_by_id(db: Session, payment_id: int, org_id: int) -> Optional[Payment]:
        return (
            db.query(Payment)
            .options(joinedload(Payment.invoice).joinedload(Invoice.client))
            .filter(Payment.id == payment_id, Payment.org_id == org_id)
            .first()
        )

    @staticmethod
    def create_payment(db: Session, payment: Payment) -> Payment:
        db.add(payment)
        db.flush()
        return payment

    @staticmethod
    def delete_payment(db: Session, payment: Payment) -> None:
        db.delete(payment)
        db.flush()
