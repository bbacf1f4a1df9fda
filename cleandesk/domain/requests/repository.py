"""Service request repository - requests, lookup tables and activity log"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Activity, HearAbout, Industry, ServiceRequest, ServiceType


class RequestRepository:
    """Repository for service request database operations"""

    @staticmethod
    def _with_relations(query):
        return query.options(
            joinedload(ServiceRequest.client),
            joinedload(ServiceRequest.property),
            joinedload(ServiceRequest.industry),
            joinedload(ServiceRequest.service_type),
            joinedload(ServiceRequest.hear_about),
        )

    @staticmethod
    def get_requests(
        db: Session, org_id: int, status: Optional[str] = None
    ) -> list[ServiceRequest]:
        query = RequestRepository._with_relations(db.query(ServiceRequest)).filter(
            ServiceRequest.org_id == org_id
        )
        if status:
            query = query.filter(ServiceRequest.status == status)
        return query.order_by(ServiceRequest.created_at.desc(), ServiceRequest.id.desc()).all()

    @staticmethod
    def get_request_by_id(db: Session, request_id: int, org_id: int) -> Optional[ServiceRequest]:
        return (
            RequestRepository._with_relations(db.query(ServiceRequest))
            .filter(ServiceRequest.id == request_id, ServiceRequest.org_id == org_id)
            .first()
        )

    @staticmethod
    def get_industry(db: Session, slug: str) -> Optional[Industry]:
        return db.query(Industry).filter(Industry.slug == slug).first()

    @staticmethod
    def get_first_industry(db: Session) -> Optional[Industry]:
        return db.query(Industry).order_by(Industry.id).first()

    @staticmethod
    def get_service_type(db: Session, slug: str) -> Optional[ServiceType]:
        return db.query(ServiceType).filter(ServiceType.slug == slug).first()

    @staticmethod
    def create_service_type(db: Session, **data) -> ServiceType:
        service_type = ServiceType(**data)
        db.add(service_type)
        db.flush()
        return service_type

    @staticmethod
    def get_hear_about(db: Session, slug: str) -> Optional[HearAbout]:
        return db.query(HearAbout).filter(HearAbout.slug == slug).first()

    @staticmethod
    def create_request(db: Session, request: ServiceRequest) -> ServiceRequest:
        db.add(request)
        db.flush()
        return request

    @staticmethod
    def log_activity(db: Session, org_id: int, message: str, **fields) -> Activity:
        activity = Activity(org_id=org_id, message=message, **fields)
        db.add(activity)
        db.flush()
        return activity
