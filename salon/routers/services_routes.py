# salon/routers/services_routes.py

from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session

from salon.auth import get_current_user
from salon.db import get_session
from salon.deps import require_role
from salon.models import User, UserRole
from salon.schemas import ServiceCreate, ServicePublic, ServiceUpdate
from salon.services import catalog

router = APIRouter(
    prefix="/services",
    tags=["services"],
)


@router.get("", response_model=List[ServicePublic])
def list_services(
    include_inactive: bool = False,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return catalog.list_services(session, current_user.business_id, include_inactive)


@router.post("", response_model=ServicePublic, status_code=201)
def create_service(
    service: ServiceCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    require_role(current_user, UserRole.ADMIN)
    return catalog.create_service(session, current_user.business_id, service)


@router.patch("/{service_id}", response_model=ServicePublic)
def update_service(
    service_id: str,
    changes: ServiceUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    require_role(current_user, UserRole.ADMIN)
    return catalog.update_service(session, current_user.business_id, service_id, changes)


@router.delete("/{service_id}", response_model=ServicePublic)
def deactivate_service(
    service_id: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    require_role(current_user, UserRole.ADMIN)
    return catalog.update_service(
        session, current_user.business_id, service_id, ServiceUpdate(is_active=False)
    )
