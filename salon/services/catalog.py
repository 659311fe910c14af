# salon/services/catalog.py

from typing import List

from sqlmodel import Session, select

from salon.errors import NotFoundError
from salon.models import Service
from salon.schemas import ServiceCreate, ServiceUpdate


def get_service(session: Session, service_id: str, business_id: str) -> Service:
    service = session.get(Service, service_id)
    if service is None or service.business_id != business_id:
        raise NotFoundError("Service not found")
    return service


def list_services(session: Session, business_id: str, include_inactive: bool = False) -> List[Service]:
    stmt = select(Service).where(Service.business_id == business_id)
    if not include_inactive:
        stmt = stmt.where(Service.is_active == True)  # noqa: E712
    return list(session.exec(stmt.order_by(Service.name)).all())


def create_service(session: Session, business_id: str, data: ServiceCreate) -> Service:
    service = Service(business_id=business_id, **data.model_dump())
    session.add(service)
    session.commit()
    session.refresh(service)
    return service


def update_service(session: Session, business_id: str, service_id: str, data: ServiceUpdate) -> Service:
    # Appointments keep their own price and end_at, so nothing else changes here.
    service = get_service(session, service_id, business_id)
    for key, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(service, key, value)
    session.add(service)
    session.commit()
    session.refresh(service)
    return service
