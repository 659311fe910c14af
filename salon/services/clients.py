# salon/services/clients.py

import logging
from datetime import datetime

from sqlalchemy import func, or_
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from salon.core import normalise_phone, pagination_meta
from salon.errors import ClientHasFutureAppointmentsError, DuplicateClientError, NotFoundError
from salon.models import ACTIVE_STATUSES, Appointment, Client
from salon.schemas import ClientCreate, ClientUpdate

logger = logging.getLogger(__name__)


def _clean_email(email):
    return email.strip() if email and email.strip() else None


def _ensure_unique_phone(session: Session, business_id: str, phone: str, exclude_id=None):
    stmt = select(Client).where(Client.business_id == business_id).where(Client.phone == phone)
    if exclude_id:
        stmt = stmt.where(Client.id != exclude_id)
    if session.exec(stmt).first() is not None:
        raise DuplicateClientError(f"Ya existe un cliente con el teléfono {phone}.")


def get_client(session: Session, client_id: str, business_id: str) -> Client:
    client = session.get(Client, client_id)
    if client is None or client.business_id != business_id:
        raise NotFoundError("Client not found")
    return client


def create_client(session: Session, business_id: str, data: ClientCreate) -> Client:
    phone = normalise_phone(data.phone)
    _ensure_unique_phone(session, business_id, phone)

    client = Client(
        business_id=business_id,
        name=data.name.strip(),
        phone=phone,
        email=_clean_email(data.email),
        notes=data.notes,
    )
    session.add(client)
    session.commit()
    session.refresh(client)
    return client


def update_client(session: Session, business_id: str, client_id: str, data: ClientUpdate) -> Client:
    client = get_client(session, client_id, business_id)
    fields = data.model_fields_set

    if data.name:
        client.name = data.name.strip()
    if data.phone:
        phone = normalise_phone(data.phone)
        _ensure_unique_phone(session, business_id, phone, exclude_id=client.id)
        client.phone = phone
    if "email" in fields:
        client.email = _clean_email(data.email)
    if "notes" in fields:
        client.notes = data.notes

    session.add(client)
    session.commit()
    session.refresh(client)
    return client


def client_history(session: Session, client: Client):
    return session.exec(
        select(Appointment)
        .where(Appointment.client_id == client.id)
        .options(
            selectinload(Appointment.client),
            selectinload(Appointment.manicurist),
            selectinload(Appointment.service),
        )
        .order_by(Appointment.start_at.desc())
    ).all()


def search_clients(session: Session, business_id: str, query: str = "", page: int = 1, limit: int = 20):
    stmt = select(Client).where(Client.business_id == business_id)
    if query:
        pattern = f"%{query.lower()}%"
        stmt = stmt.where(
            or_(
                func.lower(Client.name).like(pattern),
                Client.phone.contains(query),
                func.lower(Client.email).like(pattern),
            )
        )

    total = session.exec(select(func.count()).select_from(stmt.subquery())).one()
    clients = session.exec(
        stmt.order_by(Client.name).offset((page - 1) * limit).limit(limit)
    ).all()
    return {"clients": clients, "meta": pagination_meta(total, page, limit)}


def delete_client(session: Session, business_id: str, client_id: str, now=None):
    client = get_client(session, client_id, business_id)
    now = now or datetime.now()

    future = session.exec(
        select(Appointment)
        .where(Appointment.client_id == client.id)
        .where(Appointment.start_at > now)
        .where(Appointment.status.in_(ACTIVE_STATUSES))
    ).first()
    if future is not None:
        raise ClientHasFutureAppointmentsError(
            "No se puede eliminar el cliente porque tiene turnos futuros activos."
        )

    # history goes with the client
    for appointment in session.exec(select(Appointment).where(Appointment.client_id == client.id)).all():
        for notification in appointment.notifications:
            session.delete(notification)
        session.delete(appointment)
    session.delete(client)
    session.commit()
    logger.info("Client %s deleted", client_id)
