# salon/services/notifications.py

"""
Sends one WhatsApp notification for an appointment and records the outcome.

Called only from queue workers, never from request handlers.
"""

import logging
from datetime import datetime
from typing import Awaitable, Callable, Optional

from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from salon.errors import NotificationSendError
from salon.messages import TEMPLATE_KEYS, build_message
from salon.models import (
    Appointment,
    AppointmentStatus,
    Notification,
    NotificationStatus,
    NotificationType,
)
from salon.services.settings import get_app_settings, get_setting
from salon.whatsapp import WhatsAppProvider

logger = logging.getLogger(__name__)


def get_or_create_notification(session: Session, appointment_id: str, kind: NotificationType) -> Notification:
    notification = session.exec(
        select(Notification)
        .where(Notification.appointment_id == appointment_id)
        .where(Notification.type == kind)
    ).first()
    if notification is None:
        notification = Notification(appointment_id=appointment_id, type=kind)
        session.add(notification)
        session.commit()
        session.refresh(notification)
    return notification


async def process_notification(
    session: Session,
    provider: WhatsAppProvider,
    appointment_id: str,
    kind: NotificationType,
    before_send: Optional[Callable[[], Awaitable[None]]] = None,
) -> Optional[Notification]:
    kind = NotificationType(kind)
    appointment = session.exec(
        select(Appointment)
        .where(Appointment.id == appointment_id)
        .options(
            selectinload(Appointment.client),
            selectinload(Appointment.service),
            selectinload(Appointment.manicurist),
        )
    ).first()

    if appointment is None:
        logger.warning("Appointment %s not found, skipping %s", appointment_id, kind.value)
        return None

    # Stale job: nothing but the cancellation itself goes out for a cancelled appointment
    if appointment.status == AppointmentStatus.CANCELLED and kind != NotificationType.CANCELLATION:
        logger.info("Skipping %s for cancelled appointment %s", kind.value, appointment_id)
        return None

    notification = get_or_create_notification(session, appointment_id, kind)

    settings = get_app_settings(session, appointment.business_id)
    body = build_message(
        kind,
        client_name=appointment.client.name,
        service_name=appointment.service.name,
        manicurist_name=appointment.manicurist.name,
        start_at=appointment.start_at,
        custom_template=get_setting(settings, TEMPLATE_KEYS[kind]),
    )

    if before_send is not None:
        await before_send()

    result = await provider.send_text(appointment.client.phone, body)

    notification.status = NotificationStatus.SENT if result.success else NotificationStatus.FAILED
    notification.external_id = result.external_id
    notification.error = result.error
    notification.sent_at = datetime.now() if result.success else None
    session.add(notification)
    session.commit()

    if not result.success:
        # raise so the queue retries the job
        raise NotificationSendError(f"WhatsApp send failed: {result.error}")

    logger.info("%s sent to %s for appointment %s", kind.value, appointment.client.phone, appointment_id)
    return notification
