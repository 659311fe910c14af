# tests/test_clients.py

from datetime import datetime, timedelta

import pytest
from sqlmodel import select

from salon.core import normalise_phone, pagination_meta
from salon.errors import ClientHasFutureAppointmentsError, DuplicateClientError, NotFoundError
from salon.models import Appointment, AppointmentStatus, Client, Notification, NotificationType
from salon.schemas import ClientCreate, ClientUpdate
from salon.services import clients as client_service

from .conftest import at


@pytest.mark.parametrize("raw, expected", [
    ("+54 9 11 4444-5555", "+5491144445555"),
    ("011 4444 5555", "+1144445555"),
    ("4444-5555", "+5444445555"),
    ("(351) 555-1234", "+3515551234"),
])
def test_normalise_phone(raw, expected):
    assert normalise_phone(raw) == expected


def test_pagination_meta():
    assert pagination_meta(41, 2, 20) == {
        "total": 41,
        "page": 2,
        "limit": 20,
        "totalPages": 3,
        "hasNextPage": True,
        "hasPrevPage": True,
    }
    assert pagination_meta(0, 1, 20)["hasNextPage"] is False


def test_create_normalises_phone_and_blank_email(session, business):
    client = client_service.create_client(
        session, business.id, ClientCreate(name="  Sofía ", phone="+54 9 11 2222-3333", email="  ")
    )

    assert client.name == "Sofía"
    assert client.phone == "+5491122223333"
    assert client.email is None


def test_duplicate_phone_in_same_business_is_rejected(session, business, customer):
    with pytest.raises(DuplicateClientError):
        client_service.create_client(session, business.id, ClientCreate(name="Otra", phone="+54 9 11 4444 5555"))


def test_update_checks_phone_against_other_clients(session, business, customer, second_customer):
    with pytest.raises(DuplicateClientError):
        client_service.update_client(session, business.id, second_customer.id, ClientUpdate(phone=customer.phone))

    updated = client_service.update_client(
        session, business.id, customer.id, ClientUpdate(phone=customer.phone, notes="alérgica al acetona")
    )
    assert updated.notes == "alérgica al acetona"


def test_clients_are_scoped_to_their_business(session, customer):
    with pytest.raises(NotFoundError):
        client_service.get_client(session, customer.id, "another-business")


def test_search_is_case_insensitive_and_paginated(session, business, customer, second_customer):
    page = client_service.search_clients(session, business.id, "MAR")
    assert [c.id for c in page["clients"]] == [customer.id]
    assert page["meta"]["total"] == 1

    by_phone = client_service.search_clients(session, business.id, "5566")
    assert [c.id for c in by_phone["clients"]] == [second_customer.id]

    first_page = client_service.search_clients(session, business.id, "", page=1, limit=1)
    assert len(first_page["clients"]) == 1
    assert first_page["meta"]["totalPages"] == 2
    assert first_page["meta"]["hasNextPage"] is True


def test_history_is_newest_first(session, customer, make_appointment):
    older = make_appointment(at(9))
    newer = make_appointment(at(15))

    history = client_service.client_history(session, customer)
    assert [a.id for a in history] == [newer.id, older.id]


def test_delete_is_blocked_by_future_live_appointments(session, business, customer, make_appointment):
    make_appointment(datetime.now() + timedelta(days=3), status=AppointmentStatus.PENDING)

    with pytest.raises(ClientHasFutureAppointmentsError):
        client_service.delete_client(session, business.id, customer.id)


def test_delete_takes_past_history_with_it(session, business, customer, make_appointment):
    past = make_appointment(at(10), status=AppointmentStatus.COMPLETED)
    session.add(Notification(appointment_id=past.id, type=NotificationType.CONFIRMATION))
    # a cancelled future booking does not block the delete
    make_appointment(at(12), status=AppointmentStatus.CANCELLED)
    session.commit()

    client_service.delete_client(session, business.id, customer.id, now=at(11))

    assert session.get(Client, customer.id) is None
    assert session.exec(select(Appointment)).all() == []
    assert session.exec(select(Notification)).all() == []
