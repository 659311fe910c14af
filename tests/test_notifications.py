# tests/test_notifications.py

import pytest
from sqlmodel import select

from salon.errors import NotificationSendError
from salon.models import AppSetting, AppointmentStatus, Notification, NotificationStatus, NotificationType
from salon.services.notifications import get_or_create_notification, process_notification

from .conftest import at
from .fakes import FakeProvider


def _rows(session, appointment_id):
    return session.exec(select(Notification).where(Notification.appointment_id == appointment_id)).all()


@pytest.mark.asyncio
async def test_confirmation_is_sent_and_recorded(session, provider, customer, make_appointment):
    appointment = make_appointment(at(10))

    notification = await process_notification(session, provider, appointment.id, NotificationType.CONFIRMATION)

    assert notification.status == NotificationStatus.SENT
    assert notification.external_id == "msg-1"
    assert notification.sent_at is not None
    to, body = provider.sent[0]
    assert to == customer.phone
    assert "María" in body
    assert "lunes, 6 de julio de 2026" in body
    assert "10:00" in body


@pytest.mark.asyncio
async def test_one_row_per_appointment_and_type(session, provider, make_appointment):
    appointment = make_appointment(at(10))

    await process_notification(session, provider, appointment.id, NotificationType.CONFIRMATION)
    await process_notification(session, provider, appointment.id, NotificationType.CONFIRMATION)
    await process_notification(session, provider, appointment.id, "REMINDER_24H")

    rows = _rows(session, appointment.id)
    assert sorted(r.type for r in rows) == [NotificationType.CONFIRMATION, NotificationType.REMINDER_24H]


def test_get_or_create_reuses_the_row(session, make_appointment):
    appointment = make_appointment(at(10))

    first = get_or_create_notification(session, appointment.id, NotificationType.CANCELLATION)
    second = get_or_create_notification(session, appointment.id, NotificationType.CANCELLATION)

    assert first.id == second.id
    assert first.status == NotificationStatus.PENDING


@pytest.mark.asyncio
async def test_stale_jobs_for_cancelled_appointments_are_skipped(session, provider, make_appointment):
    appointment = make_appointment(at(10), status=AppointmentStatus.CANCELLED)

    assert await process_notification(session, provider, appointment.id, NotificationType.REMINDER_24H) is None
    assert await process_notification(session, provider, appointment.id, NotificationType.CONFIRMATION) is None
    assert provider.sent == []
    assert _rows(session, appointment.id) == []

    cancellation = await process_notification(session, provider, appointment.id, NotificationType.CANCELLATION)
    assert cancellation.status == NotificationStatus.SENT
    assert "cancelado" in provider.sent[0][1]


@pytest.mark.asyncio
async def test_missing_appointment_is_skipped(session, provider):
    assert await process_notification(session, provider, "gone", NotificationType.CONFIRMATION) is None
    assert provider.sent == []


@pytest.mark.asyncio
async def test_transport_failure_marks_failed_and_raises(session, make_appointment):
    appointment = make_appointment(at(10))
    provider = FakeProvider(fail=True)

    with pytest.raises(NotificationSendError):
        await process_notification(session, provider, appointment.id, NotificationType.CONFIRMATION)

    [row] = _rows(session, appointment.id)
    assert row.status == NotificationStatus.FAILED
    assert row.error == "provider down"
    assert row.sent_at is None


@pytest.mark.asyncio
async def test_retry_after_failure_reuses_the_row(session, make_appointment):
    appointment = make_appointment(at(10))

    with pytest.raises(NotificationSendError):
        await process_notification(session, FakeProvider(fail=True), appointment.id, NotificationType.REMINDER_24H)
    await process_notification(session, FakeProvider(), appointment.id, NotificationType.REMINDER_24H)

    [row] = _rows(session, appointment.id)
    assert row.status == NotificationStatus.SENT
    assert row.error is None


@pytest.mark.asyncio
async def test_business_template_overrides_default(session, business, provider, make_appointment):
    appointment = make_appointment(at(10))
    session.add(AppSetting(
        business_id=business.id,
        key="whatsapp.template.reminder",
        value="Hola {clientName}, te esperamos el {date} a las {time} con {manicuristName}.",
    ))
    session.commit()

    await process_notification(session, provider, appointment.id, NotificationType.REMINDER_24H)

    assert provider.sent[0][1] == "Hola María, te esperamos el lunes, 6 de julio a las 10:00 con Ana."


@pytest.mark.asyncio
async def test_before_send_hook_runs_before_the_transport(session, provider, make_appointment):
    appointment = make_appointment(at(10))
    calls = []

    async def before_send():
        calls.append(len(provider.sent))

    await process_notification(
        session, provider, appointment.id, NotificationType.REMINDER_24H, before_send=before_send
    )

    assert calls == [0]
    assert len(provider.sent) == 1
