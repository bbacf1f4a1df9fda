"""Team repository - Database operations for organizations and memberships"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Membership, Organization, User


class TeamRepository:
    """Repository for organization and membership database operations"""

    @staticmethod
    def get_members(db: Session, org_id: int) -> list[Membership]:
        return (
            db.query(Membership)
            .options(joinedload(Membership.user))
            .filter(Membership.org_id == org_id)
            .order_by(Membership.created_at.asc(), Membership.id.asc())
            .all()
        )

    @staticmethod
    def get_membership(db: Session, membership_id: int, org_id: int) -> Optional[Membership]:
        return (
            db.query(Membership)
            .options(joinedload(Membership.user))
            .filter(Membership.id == membership_id, Membership.org_id == org_id)
            .first()
        )

    @staticmethod
    def find_membership(db: Session, user_id: int, org_id: int) -> Optional[Membership]:
        return (
            db.query(Membership)
            .filter(Membership.user_id == user_id, Membership.org_id == org_id)
            .first()
        )

    @staticmethod
    def count_owners(db: Session, org_id: int) -> int:
        return (
            db.query(Membership)
            .filter(Membership.org_id == org_id, Membership.role == "OWNER")
            .count()
        )

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def create_user(db: Session, **user_data) -> User:
        user = User(**user_data)
        db.add(user)
        db.flush()
        return user

    @staticmethod
    def create_membership(db: Session, user_id: int, org_id: int, role: str) -> Membership:
        membership = Membership(user_id=user_id, org_id=org_id, role=role)
        db.add(membership)
        db.flush()
        return membership

    @staticmethod
    def slug_exists(db: Session, slug: str) -> bool:
        return db.query(Organization.id).filter(Organization.slug == slug).first() is not None

    @staticmethod
    def create_organization(db: Session, **org_data) -> Organization:
        org = Organization(**org_data)
        db.add(org)
        db.flush()
        return org
