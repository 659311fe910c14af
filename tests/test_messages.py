# tests/test_messages.py

from datetime import datetime

from salon.messages import DEFAULT_REMINDER, apply_template, build_message, format_date_long, format_date_short
from salon.models import NotificationType

START = datetime(2026, 7, 6, 9, 5)


def test_spanish_dates():
    assert format_date_long(START) == "lunes, 6 de julio de 2026"
    assert format_date_short(datetime(2026, 12, 27, 18, 0)) == "domingo, 27 de diciembre"


def test_confirmation_uses_the_long_date():
    body = build_message(NotificationType.CONFIRMATION, "Sofi", "Kapping", "Ana", START)

    assert "Turno confirmado" in body
    assert "*Fecha:* lunes, 6 de julio de 2026" in body
    assert "*Hora:* 09:05" in body
    assert "*Servicio:* Kapping" in body
    assert "*Profesional:* Ana" in body


def test_cancellation_uses_the_short_date():
    body = build_message(NotificationType.CANCELLATION, "Sofi", "Kapping", "Ana", START)
    assert "Tu turno del lunes, 6 de julio a las 09:05 para *Kapping* ha sido cancelado." in body


def test_blank_override_falls_back_to_default():
    body = build_message(NotificationType.REMINDER_24H, "Sofi", "Kapping", "Ana", START, custom_template="   ")
    assert body == apply_template(DEFAULT_REMINDER, {
        "clientName": "Sofi",
        "serviceName": "Kapping",
        "manicuristName": "Ana",
        "date": "lunes, 6 de julio",
        "time": "09:05",
    })


def test_unknown_placeholders_are_left_alone():
    assert apply_template("{clientName} {unknown}", {"clientName": "Sofi"}) == "Sofi {unknown}"
