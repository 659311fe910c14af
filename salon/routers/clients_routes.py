# salon/routers/clients_routes.py

from fastapi import APIRouter, Depends, Query, Response
from sqlmodel import Session

from salon.auth import get_current_user
from salon.db import get_session
from salon.models import User
from salon.schemas import (
    AppointmentPublic,
    ClientCreate,
    ClientPage,
    ClientPublic,
    ClientUpdate,
    ClientWithHistory,
)
from salon.services import clients as client_service

router = APIRouter(
    prefix="/clients",
    tags=["clients"],
)


@router.get("", response_model=ClientPage)
def search_clients(
    q: str = "",
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return client_service.search_clients(session, current_user.business_id, q, page, limit)


@router.post("", response_model=ClientPublic, status_code=201)
def create_client(
    client: ClientCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return client_service.create_client(session, current_user.business_id, client)


@router.get("/{client_id}", response_model=ClientWithHistory)
def get_client(
    client_id: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    client = client_service.get_client(session, client_id, current_user.business_id)
    history = client_service.client_history(session, client)
    return ClientWithHistory(
        **ClientPublic.model_validate(client).model_dump(),
        appointments=[AppointmentPublic.model_validate(a) for a in history],
    )


@router.patch("/{client_id}", response_model=ClientPublic)
def update_client(
    client_id: str,
    changes: ClientUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return client_service.update_client(session, current_user.business_id, client_id, changes)


@router.delete("/{client_id}", status_code=204)
def delete_client(
    client_id: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    client_service.delete_client(session, current_user.business_id, client_id)
    return Response(status_code=204)
