# tests/test_conflicts.py

from salon.models import AppointmentStatus, BlockedTime
from salon.services.conflicts import (
    client_has_overlapping_appointment,
    get_client_overlapping_appointment,
    is_slot_available,
)

from .conftest import at


def test_overlapping_booking_is_rejected(session, manicurist, make_appointment):
    make_appointment(at(10))

    assert not is_slot_available(session, manicurist.id, at(10, 30), at(11, 30))
    assert is_slot_available(session, manicurist.id, at(9), at(10))
    assert is_slot_available(session, manicurist.id, at(11), at(12))


def test_excluded_appointment_does_not_conflict_with_itself(session, manicurist, make_appointment):
    existing = make_appointment(at(10))

    assert is_slot_available(session, manicurist.id, at(10, 30), at(11, 30), exclude_appointment_id=existing.id)


def test_cancelled_booking_frees_the_slot(session, manicurist, make_appointment):
    make_appointment(at(10), status=AppointmentStatus.CANCELLED)

    assert is_slot_available(session, manicurist.id, at(10), at(11))


def test_interval_must_sit_inside_the_band(session, manicurist):
    assert not is_slot_available(session, manicurist.id, at(8, 45), at(9, 45))
    assert not is_slot_available(session, manicurist.id, at(17, 30), at(18, 30))
    assert is_slot_available(session, manicurist.id, at(17), at(18))


def test_blocked_time_wins(session, manicurist):
    session.add(BlockedTime(manicurist_id=manicurist.id, start_at=at(12), end_at=at(15)))
    session.commit()

    assert not is_slot_available(session, manicurist.id, at(14, 30), at(15, 30))
    assert is_slot_available(session, manicurist.id, at(15), at(16))


def test_inactive_manicurist_is_never_available(session, manicurist):
    manicurist.is_active = False
    session.add(manicurist)
    session.commit()

    assert not is_slot_available(session, manicurist.id, at(10), at(11))


def test_client_overlap_spans_all_staff(session, customer, other_manicurist, make_appointment):
    booked = make_appointment(at(14))

    other = get_client_overlapping_appointment(session, customer.id, at(14, 30), at(15, 30))
    assert other.id == booked.id
    assert not client_has_overlapping_appointment(session, customer.id, at(15), at(16))
    assert not client_has_overlapping_appointment(
        session, customer.id, at(14, 30), at(15, 30), exclude_appointment_id=booked.id
    )
