# salon/models.py

import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, List

from sqlalchemy import Column, Index, Numeric, UniqueConstraint, text
from sqlmodel import SQLModel, Field, Relationship


def new_id() -> str:
    return uuid.uuid4().hex


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    MANICURIST = "MANICURIST"


class AppointmentStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


ACTIVE_STATUSES = (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED)
TERMINAL_STATUSES = (AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED)


class NotificationType(str, Enum):
    CONFIRMATION = "CONFIRMATION"
    REMINDER_24H = "REMINDER_24H"
    CANCELLATION = "CANCELLATION"


class NotificationStatus(str, Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"


class Business(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    name: str
    created_at: datetime = Field(default_factory=datetime.now)


class User(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    business_id: str = Field(foreign_key="business.id", index=True)
    email: str = Field(index=True, unique=True)
    name: str
    password_hash: str
    role: UserRole = UserRole.MANICURIST


class Manicurist(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    business_id: str = Field(foreign_key="business.id", index=True)
    user_id: Optional[str] = Field(default=None, foreign_key="user.id")
    name: str
    color: str = "#ec4899"
    is_active: bool = True

    schedules: List["Schedule"] = Relationship(back_populates="manicurist")


class Schedule(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("manicurist_id", "day_of_week", name="uq_schedule_manicurist_day"),
    )

    id: str = Field(default_factory=new_id, primary_key=True)
    manicurist_id: str = Field(foreign_key="manicurist.id", index=True)
    day_of_week: int  # 0=Mon ... 6=Sun
    start_time: str  # "HH:MM"
    end_time: str
    is_active: bool = True

    manicurist: Optional[Manicurist] = Relationship(back_populates="schedules")


class BlockedTime(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    manicurist_id: str = Field(foreign_key="manicurist.id", index=True)
    start_at: datetime
    end_at: datetime
    reason: Optional[str] = None


class Client(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("business_id", "phone", name="uq_client_business_phone"),
    )

    id: str = Field(default_factory=new_id, primary_key=True)
    business_id: str = Field(foreign_key="business.id", index=True)
    name: str
    phone: str  # E.164
    email: Optional[str] = None
    notes: Optional[str] = None


class Service(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    business_id: str = Field(foreign_key="business.id", index=True)
    name: str
    duration: int  # minutes
    price: Decimal = Field(sa_column=Column(Numeric(10, 2), nullable=False))
    color: str = "#a855f7"
    is_active: bool = True


class Appointment(SQLModel, table=True):
    __table_args__ = (
        # Final write-time guard against double-booking the same start.
        Index(
            "uq_appointment_manicurist_start_live",
            "manicurist_id",
            "start_at",
            unique=True,
            sqlite_where=text("status IN ('PENDING', 'CONFIRMED')"),
            postgresql_where=text("status IN ('PENDING', 'CONFIRMED')"),
        ),
    )

    id: str = Field(default_factory=new_id, primary_key=True)
    business_id: str = Field(foreign_key="business.id", index=True)
    client_id: str = Field(foreign_key="client.id", index=True)
    manicurist_id: str = Field(foreign_key="manicurist.id", index=True)
    service_id: str = Field(foreign_key="service.id")

    start_at: datetime = Field(index=True)
    end_at: datetime = Field(index=True)
    price: Decimal = Field(sa_column=Column(Numeric(10, 2), nullable=False))
    status: AppointmentStatus = Field(default=AppointmentStatus.PENDING, index=True)
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)

    client: Optional[Client] = Relationship()
    manicurist: Optional[Manicurist] = Relationship()
    service: Optional[Service] = Relationship()
    notifications: List["Notification"] = Relationship(back_populates="appointment")


class Notification(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("appointment_id", "type", name="uq_notification_appointment_type"),
    )

    id: str = Field(default_factory=new_id, primary_key=True)
    appointment_id: str = Field(foreign_key="appointment.id", index=True)
    type: NotificationType
    status: NotificationStatus = NotificationStatus.PENDING
    external_id: Optional[str] = None
    error: Optional[str] = None
    sent_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.now)

    appointment: Optional[Appointment] = Relationship(back_populates="notifications")


class AppSetting(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("business_id", "key", name="uq_setting_business_key"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    business_id: str = Field(foreign_key="business.id", index=True)
    key: str
    value: str
