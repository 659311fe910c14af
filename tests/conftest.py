"""
Test configuration and fixtures.

Provides:
- In-memory SQLite engine shared across threads (StaticPool)
- Seeded business, admin, manicurists with a Monday 09:00-18:00 band,
  a 60 minute service and a client
- NotificationScheduler on an in-memory job queue with a fixed clock
- TestClient with the session, scheduler and current user overridden
"""
from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from salon.auth import get_current_user, hash_password
from salon.db import get_session, init_db
from salon.deps import get_scheduler
from salon.main import app
from salon.models import (
    Appointment,
    AppointmentStatus,
    Business,
    Client,
    Manicurist,
    Schedule,
    Service,
    User,
    UserRole,
)
from salon.queue import NotificationScheduler

from .fakes import FakeProvider, InMemoryJobQueue

MONDAY = date(2026, 7, 6)
# Sunday noon before MONDAY
NOW = datetime(2026, 7, 5, 12, 0)

ADMIN_PASSWORD = "secret-pass"


def at(hour, minute=0, day=MONDAY):
    return datetime(day.year, day.month, day.day, hour, minute)


# =============================================================================
# Database
# =============================================================================

@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


# =============================================================================
# Seed data
# =============================================================================

@pytest.fixture
def business(session):
    business = Business(name="Nails & Co")
    session.add(business)
    session.commit()
    session.refresh(business)
    return business


@pytest.fixture
def admin(session, business):
    user = User(
        business_id=business.id,
        email="admin@nails.test",
        name="Admin",
        password_hash=hash_password(ADMIN_PASSWORD),
        role=UserRole.ADMIN,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def _manicurist_with_band(session, business, name):
    manicurist = Manicurist(business_id=business.id, name=name)
    session.add(manicurist)
    session.commit()
    session.add(Schedule(manicurist_id=manicurist.id, day_of_week=0, start_time="09:00", end_time="18:00"))
    session.commit()
    session.refresh(manicurist)
    return manicurist


@pytest.fixture
def manicurist(session, business):
    return _manicurist_with_band(session, business, "Ana")


@pytest.fixture
def other_manicurist(session, business):
    return _manicurist_with_band(session, business, "Belén")


@pytest.fixture
def service(session, business):
    service = Service(business_id=business.id, name="Semipermanente", duration=60, price=Decimal("15000.00"))
    session.add(service)
    session.commit()
    session.refresh(service)
    return service


@pytest.fixture
def customer(session, business):
    client = Client(business_id=business.id, name="María", phone="+5491144445555")
    session.add(client)
    session.commit()
    session.refresh(client)
    return client


@pytest.fixture
def second_customer(session, business):
    client = Client(business_id=business.id, name="Laura", phone="+5491155556666")
    session.add(client)
    session.commit()
    session.refresh(client)
    return client


@pytest.fixture
def make_appointment(session, business, manicurist, service, customer):
    """Insert a row directly, bypassing the booking checks."""

    def make(start_at, end_at=None, status=AppointmentStatus.CONFIRMED, **overrides):
        appointment = Appointment(
            business_id=business.id,
            client_id=overrides.pop("client_id", customer.id),
            manicurist_id=overrides.pop("manicurist_id", manicurist.id),
            service_id=service.id,
            start_at=start_at,
            end_at=end_at or start_at + timedelta(minutes=service.duration),
            price=overrides.pop("price", service.price),
            status=status,
            **overrides,
        )
        session.add(appointment)
        session.commit()
        session.refresh(appointment)
        return appointment

    return make


# =============================================================================
# Queue & transport
# =============================================================================

@pytest.fixture
def job_queue():
    return InMemoryJobQueue()


@pytest.fixture
def scheduler(job_queue):
    return NotificationScheduler(job_queue, clock=lambda: NOW)


@pytest.fixture
def provider():
    return FakeProvider()


# =============================================================================
# API
# =============================================================================

@pytest.fixture
def api(session, scheduler, admin):
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_scheduler] = lambda: scheduler
    app.dependency_overrides[get_current_user] = lambda: admin
    yield TestClient(app)
    app.dependency_overrides.clear()
