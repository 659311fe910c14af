# tests/test_staff.py

from decimal import Decimal

import pytest
from pydantic import ValidationError

from salon.errors import NotFoundError
from salon.models import BlockedTime, Manicurist
from salon.schemas import BlockCreate, ManicuristCreate, ScheduleDay, ScheduleReplace, ServiceCreate, ServiceUpdate
from salon.services import catalog, staff

from .conftest import at


def test_replace_schedule_upserts_per_day(session, manicurist):
    rows = staff.replace_schedule(session, manicurist.id, [
        ScheduleDay(day_of_week=0, start_time="10:00", end_time="19:00"),
        ScheduleDay(day_of_week=5, start_time="09:00", end_time="13:00"),
    ])

    assert [(r.day_of_week, r.start_time, r.end_time) for r in rows] == [
        (0, "10:00", "19:00"),
        (5, "09:00", "13:00"),
    ]
    assert len(staff.list_schedule(session, manicurist.id)) == 2


def test_schedule_validation():
    with pytest.raises(ValidationError):
        ScheduleDay(day_of_week=7, start_time="09:00", end_time="18:00")
    with pytest.raises(ValidationError):
        ScheduleDay(day_of_week=1, start_time="9:00", end_time="18:00")
    with pytest.raises(ValidationError):
        ScheduleDay(day_of_week=1, start_time="18:00", end_time="09:00")
    with pytest.raises(ValidationError):
        ScheduleReplace(days=[
            ScheduleDay(day_of_week=1, start_time="09:00", end_time="18:00"),
            ScheduleDay(day_of_week=1, start_time="10:00", end_time="12:00"),
        ])
    # inactive days may carry any band
    assert not ScheduleDay(day_of_week=1, start_time="18:00", end_time="09:00", is_active=False).is_active


def test_blocks_add_list_delete(session, manicurist):
    block = staff.add_block(session, manicurist.id, BlockCreate(start_at=at(13), end_at=at(14), reason="médico"))

    assert [b.id for b in staff.list_blocks(session, manicurist.id)] == [block.id]
    staff.delete_block(session, manicurist.id, block.id)
    assert session.get(BlockedTime, block.id) is None

    with pytest.raises(NotFoundError):
        staff.delete_block(session, manicurist.id, block.id)


def test_block_must_have_positive_length():
    with pytest.raises(ValidationError):
        BlockCreate(start_at=at(14), end_at=at(14))


def test_deactivate_without_history_deletes(session, business):
    manicurist = staff.create_manicurist(session, business.id, ManicuristCreate(name="Caro", color="#000000"))

    assert staff.deactivate_manicurist(session, manicurist) is True
    assert session.get(Manicurist, manicurist.id) is None


def test_deactivate_with_history_is_soft(session, business, manicurist, make_appointment):
    make_appointment(at(10))

    assert staff.deactivate_manicurist(session, manicurist) is False
    assert session.get(Manicurist, manicurist.id).is_active is False
    assert staff.list_manicurists(session, business.id) == []
    assert len(staff.list_manicurists(session, business.id, include_inactive=True)) == 1


def test_service_price_change_leaves_bookings_alone(session, business, service, make_appointment):
    appointment = make_appointment(at(10))

    catalog.update_service(session, business.id, service.id, ServiceUpdate(price=Decimal("18000")))
    session.refresh(appointment)

    assert appointment.price == Decimal("15000.00")
    assert catalog.get_service(session, service.id, business.id).price == Decimal("18000")


def test_inactive_services_are_hidden_by_default(session, business, service):
    extra = catalog.create_service(session, business.id, ServiceCreate(name="Esmaltado", duration=30, price=Decimal("8000")))
    catalog.update_service(session, business.id, extra.id, ServiceUpdate(is_active=False))

    assert [s.id for s in catalog.list_services(session, business.id)] == [service.id]
    assert len(catalog.list_services(session, business.id, include_inactive=True)) == 2
