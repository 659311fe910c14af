# salon/schemas.py

from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator, model_validator

from .core import parse_hhmm, to_local_naive
from .models import AppointmentStatus, NotificationStatus, NotificationType, UserRole

# incoming timestamps are stored as naive local time
LocalDateTime = Annotated[datetime, AfterValidator(to_local_naive)]


def _normalise_email(value: str) -> str:
    return value.strip().lower()


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str
    role: UserRole
    business_id: str


class UserCreate(BaseModel):
    email: str
    name: str
    password: str = Field(min_length=8, max_length=72)
    role: UserRole = UserRole.MANICURIST

    @field_validator("email")
    @classmethod
    def normalise_email(cls, value):
        return _normalise_email(value)


class BusinessSignup(BaseModel):
    business_name: str
    email: str
    name: str
    password: str = Field(min_length=8, max_length=72)

    @field_validator("email")
    @classmethod
    def normalise_email(cls, value):
        return _normalise_email(value)


# --- staff -------------------------------------------------------------------

class ScheduleDay(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    day_of_week: int = Field(ge=0, le=6)  # 0=Mon, 1=Tues....
    start_time: str = Field(pattern=r"^\d{2}:\d{2}$")
    end_time: str = Field(pattern=r"^\d{2}:\d{2}$")
    is_active: bool = True

    @model_validator(mode="after")
    def check_band(self):
        start = parse_hhmm(self.start_time)
        end = parse_hhmm(self.end_time)
        if self.is_active and start >= end:
            raise ValueError("start_time must be before end_time")
        return self


class ScheduleReplace(BaseModel):
    days: List[ScheduleDay]

    @field_validator("days")
    @classmethod
    def unique_days(cls, days):
        seen = [d.day_of_week for d in days]
        if len(seen) != len(set(seen)):
            raise ValueError("days cannot contain duplicates")
        return days


class ManicuristCreate(BaseModel):
    name: str
    color: str = "#ec4899"
    user_id: Optional[str] = None


class ManicuristPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    color: str
    is_active: bool
    user_id: Optional[str] = None


class BlockCreate(BaseModel):
    start_at: LocalDateTime
    end_at: LocalDateTime
    reason: Optional[str] = None

    @model_validator(mode="after")
    def check_interval(self):
        if self.start_at >= self.end_at:
            raise ValueError("start_at must be before end_at")
        return self


class BlockPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    manicurist_id: str
    start_at: datetime
    end_at: datetime
    reason: Optional[str] = None


# --- services & clients ------------------------------------------------------

class ServiceCreate(BaseModel):
    name: str
    duration: int = Field(gt=0, le=480)
    price: Decimal = Field(ge=0)
    color: str = "#a855f7"


class ServiceUpdate(BaseModel):
    name: Optional[str] = None
    duration: Optional[int] = Field(default=None, gt=0, le=480)
    price: Optional[Decimal] = Field(default=None, ge=0)
    color: Optional[str] = None
    is_active: Optional[bool] = None


class ServicePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    duration: int
    price: Decimal
    color: str
    is_active: bool


class ClientCreate(BaseModel):
    name: str = Field(min_length=1)
    phone: str = Field(min_length=5)
    email: Optional[str] = None
    notes: Optional[str] = None


class ClientUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None


class ClientPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    phone: str
    email: Optional[str] = None
    notes: Optional[str] = None


class ClientPage(BaseModel):
    clients: List[ClientPublic]
    meta: dict


# --- appointments ------------------------------------------------------------

class AppointmentCreate(BaseModel):
    client_id: str
    manicurist_id: str
    service_id: str
    start_at: LocalDateTime
    notes: Optional[str] = None


class AppointmentUpdate(BaseModel):
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = None
    start_at: Optional[LocalDateTime] = None
    manicurist_id: Optional[str] = None
    service_id: Optional[str] = None


class ClientSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    phone: str
    email: Optional[str] = None


class ManicuristSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    color: str


class ServiceSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    duration: int
    color: str


class NotificationPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    type: NotificationType
    status: NotificationStatus
    external_id: Optional[str] = None
    error: Optional[str] = None
    sent_at: Optional[datetime] = None


class AppointmentPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    start_at: datetime
    end_at: datetime
    price: Decimal
    status: AppointmentStatus
    notes: Optional[str] = None
    client: ClientSummary
    manicurist: ManicuristSummary
    service: ServiceSummary


class AppointmentDetail(AppointmentPublic):
    notifications: List[NotificationPublic] = []


class ClientWithHistory(ClientPublic):
    appointments: List[AppointmentPublic] = []


# --- availability ------------------------------------------------------------

class Slot(BaseModel):
    start: datetime
    end: datetime


class StaffSlot(Slot):
    manicurist_id: str


# --- dashboard ---------------------------------------------------------------

class DashboardStats(BaseModel):
    today_appointments: int
    confirmed_today: int
    pending_today: int
    completed_today: int
    revenue_today: Decimal
    revenue_range: Decimal
    appointments_range: int


class ManicuristProductivity(BaseModel):
    manicurist_id: str
    name: str
    color: str
    total_appointments: int
    completed_appointments: int
    total_revenue: Decimal
    avg_per_appointment: Decimal
