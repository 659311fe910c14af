# salon/messages.py

"""
WhatsApp message templates.

Placeholders: {clientName}, {serviceName}, {manicuristName}, {date}, {time}.
Use *text* for bold in WhatsApp. A business can override each template through
the settings keys below; an empty override falls back to the default.
"""

from datetime import datetime
from typing import Optional

from .models import NotificationType

TEMPLATE_KEYS = {
    NotificationType.CONFIRMATION: "whatsapp.template.confirmation",
    NotificationType.REMINDER_24H: "whatsapp.template.reminder",
    NotificationType.CANCELLATION: "whatsapp.template.cancellation",
}

DEFAULT_CONFIRMATION = (
    "✅ *Turno confirmado*\n\n"
    "Hola {clientName}! Tu turno ha sido agendado:\n\n"
    "📅 *Fecha:* {date}\n"
    "🕐 *Hora:* {time}\n"
    "💅 *Servicio:* {serviceName}\n"
    "👩‍🎨 *Profesional:* {manicuristName}\n\n"
    "Si necesitás cancelar o modificar, avisanos con al menos 2hs de anticipación. ¡Hasta pronto! 💖"
)

DEFAULT_REMINDER = (
    "⏰ *Recordatorio de turno*\n\n"
    "Hola {clientName}! Te recordamos tu turno:\n\n"
    "📅 *Fecha:* {date}\n"
    "🕐 *Hora:* {time}\n"
    "💅 *Servicio:* {serviceName}\n"
    "👩‍🎨 *Profesional:* {manicuristName}\n\n"
    "¡Te esperamos! 💅✨"
)

DEFAULT_CANCELLATION = (
    "❌ *Turno cancelado*\n\n"
    "Hola {clientName}. Tu turno del {date} a las {time} para *{serviceName}* ha sido cancelado.\n\n"
    "Si querés reagendar, escribinos cuando quieras. 🌸"
)

DEFAULTS = {
    NotificationType.CONFIRMATION: DEFAULT_CONFIRMATION,
    NotificationType.REMINDER_24H: DEFAULT_REMINDER,
    NotificationType.CANCELLATION: DEFAULT_CANCELLATION,
}

WEEKDAYS = ["lunes", "martes", "miércoles", "jueves", "viernes", "sábado", "domingo"]
MONTHS = [
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
]


def format_date_long(moment: datetime) -> str:
    # "lunes, 6 de julio de 2026"
    return f"{WEEKDAYS[moment.weekday()]}, {moment.day} de {MONTHS[moment.month - 1]} de {moment.year}"


def format_date_short(moment: datetime) -> str:
    return f"{WEEKDAYS[moment.weekday()]}, {moment.day} de {MONTHS[moment.month - 1]}"


def format_time(moment: datetime) -> str:
    return moment.strftime("%H:%M")


def apply_template(template: str, params: dict) -> str:
    for key, value in params.items():
        template = template.replace("{" + key + "}", value)
    return template


def build_message(
    kind: NotificationType,
    client_name: str,
    service_name: str,
    manicurist_name: str,
    start_at: datetime,
    custom_template: Optional[str] = None,
) -> str:
    template = (custom_template or "").strip() or DEFAULTS[kind]
    date_text = format_date_long(start_at) if kind == NotificationType.CONFIRMATION else format_date_short(start_at)
    return apply_template(
        template,
        {
            "clientName": client_name,
            "serviceName": service_name,
            "manicuristName": manicurist_name,
            "date": date_text,
            "time": format_time(start_at),
        },
    )
