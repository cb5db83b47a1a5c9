"""
Tests for hoteltrack/services/booking_service.py
Covers: create / update validation order, conflict detection, lifecycle
transitions, auto check-in, extension, admin vs staff delete
"""
from datetime import datetime, timedelta

import pytest

from hoteltrack.exceptions import (
    ValidationError, ParseError, PastDateError, CapacityError,
    ConflictError, NotFoundError
)
from hoteltrack.models.ontology import (
    Room, RoomStatus, Guest, Booking, BookingStatus, StaffUser, StaffRole,
    ApprovalRequest, ApprovalStatus
)
from hoteltrack.models.schemas import BookingCreate, BookingUpdate
from hoteltrack.services.booking_service import BookingService
from hoteltrack.services.room_service import capacity_for
from hoteltrack.security.auth import get_password_hash

# 本地 2030-01-01 10:00 (UTC+8)
NOW = datetime(2030, 1, 1, 2, 0)


def clock():
    return NOW


# ── helpers ──────────────────────────────────────────────────────────

def _make_room(db, number="101", room_type="Double", status=RoomStatus.VACANT):
    r = Room(room_number=number, room_type=room_type,
             capacity=capacity_for(room_type), status=status)
    db.add(r)
    db.commit()
    return r


def _make_guest(db, name="Juan Dela Cruz"):
    g = Guest(full_name=name, age=30, contact="09171234567")
    db.add(g)
    db.commit()
    return g


def _make_user(db, username, role):
    u = StaffUser(username=username, full_name=username.title(),
                  password_hash=get_password_hash("secret123"), role=role, active=True)
    db.add(u)
    db.commit()
    return u


def _make_booking(db, guest, room, check_in, hours, status=BookingStatus.RESERVED, pax=1):
    b = Booking(guest_id=guest.id, room_id=room.id, check_in=check_in,
                check_out=check_in + timedelta(hours=hours), stay_hours=hours,
                pax=pax, status=status)
    db.add(b)
    db.commit()
    return b


def _payload(guest, room, check_in="2030-01-01T12:00", stay_hours=3, pax=1):
    return BookingCreate(
        guest_id=guest.id if guest else None,
        room_id=room.id if room else None,
        check_in=check_in,
        stay_hours=stay_hours,
        pax=pax,
    )


@pytest.fixture
def service(db_session):
    return BookingService(db_session, clock=clock)


@pytest.fixture
def room(db_session):
    return _make_room(db_session)


@pytest.fixture
def guest(db_session):
    return _make_guest(db_session)


# ── create ───────────────────────────────────────────────────────────

class TestCreateBooking:

    def test_future_booking_is_reserved(self, service, room, guest):
        booking = service.create_booking(_payload(guest, room, "2030-01-01T12:00", 5, 2))

        assert booking.status == BookingStatus.RESERVED
        assert booking.check_in == datetime(2030, 1, 1, 4, 0)
        assert booking.check_out == datetime(2030, 1, 1, 9, 0)
        assert booking.stay_hours == 5
        assert booking.pax == 2
        assert room.status == RoomStatus.VACANT

    def test_booking_starting_now_checks_in_immediately(self, service, room, guest, db_session):
        booking = service.create_booking(_payload(guest, room, "2030-01-01T10:00"))

        assert booking.status == BookingStatus.CHECKED_IN
        db_session.refresh(room)
        assert room.status == RoomStatus.OCCUPIED

    def test_past_check_in_rejected(self, service, room, guest):
        with pytest.raises(PastDateError):
            service.create_booking(_payload(guest, room, "2030-01-01T09:59"))

    def test_unreadable_check_in(self, service, room, guest):
        with pytest.raises(ParseError):
            service.create_booking(_payload(guest, room, "2030-02-30T12:00"))

    def test_check_out_past_last_representable_date(self, service, room, guest, db_session):
        with pytest.raises(ParseError):
            service.create_booking(_payload(guest, room, "9999-12-31T20:00", 24))
        assert db_session.query(Booking).count() == 0

    @pytest.mark.parametrize("field", ["guest_id", "room_id", "check_in", "stay_hours", "pax"])
    def test_missing_fields(self, service, room, guest, field):
        data = _payload(guest, room).model_dump()
        data[field] = None
        with pytest.raises(ValidationError):
            service.create_booking(BookingCreate(**data))

    def test_stay_hours_must_be_an_offered_option(self, service, room, guest):
        with pytest.raises(ValidationError):
            service.create_booking(_payload(guest, room, stay_hours=4))

    def test_over_capacity_always_reports_capacity(self, service, room, guest):
        # Double 房容量 2
        with pytest.raises(CapacityError):
            service.create_booking(_payload(guest, room, pax=3))
        # 即使其它字段也有问题，仍然先报容量
        with pytest.raises(CapacityError):
            service.create_booking(_payload(guest, room, check_in="2020-01-01T10:00", pax=3))
        with pytest.raises(CapacityError):
            service.create_booking(_payload(None, room, check_in=None, stay_hours=4, pax=5))

    def test_unknown_guest_or_room(self, service, room, guest):
        with pytest.raises(NotFoundError):
            service.create_booking(BookingCreate(
                guest_id=guest.id, room_id=9999, check_in="2030-01-01T12:00", stay_hours=3, pax=1
            ))
        with pytest.raises(NotFoundError):
            service.create_booking(BookingCreate(
                guest_id=9999, room_id=room.id, check_in="2030-01-01T12:00", stay_hours=3, pax=1
            ))

    def test_overlap_on_same_room_conflicts(self, service, room, guest, db_session):
        service.create_booking(_payload(guest, room, "2030-01-01T12:00", 3))

        with pytest.raises(ConflictError):
            service.create_booking(_payload(guest, room, "2030-01-01T14:00", 3))
        with pytest.raises(ConflictError):
            service.create_booking(_payload(guest, room, "2030-01-01T11:00", 3))

        assert db_session.query(Booking).count() == 1

    def test_adjacent_booking_is_allowed(self, service, room, guest):
        service.create_booking(_payload(guest, room, "2030-01-01T12:00", 3))
        after = service.create_booking(_payload(guest, room, "2030-01-01T15:00", 3))
        assert after.status == BookingStatus.RESERVED

    def test_cancelled_booking_frees_the_window(self, service, room, guest):
        first = service.create_booking(_payload(guest, room, "2030-01-01T12:00", 3))
        service.cancel(first.id)
        second = service.create_booking(_payload(guest, room, "2030-01-01T12:00", 3))
        assert second.id != first.id

    def test_other_room_is_independent(self, service, room, guest, db_session):
        other = _make_room(db_session, "102")
        service.create_booking(_payload(guest, room, "2030-01-01T12:00", 3))
        booking = service.create_booking(_payload(guest, other, "2030-01-01T12:00", 3))
        assert booking.room_id == other.id


# ── update ───────────────────────────────────────────────────────────

class TestUpdateBooking:

    def test_overlapping_own_window_is_not_a_conflict(self, service, room, guest):
        booking = service.create_booking(_payload(guest, room, "2030-01-01T12:00", 3))

        updated = service.update_booking(booking.id, BookingUpdate(
            guest_id=guest.id, room_id=room.id, check_in="2030-01-01T13:00", stay_hours=5, pax=2
        ))
        assert updated.check_in == datetime(2030, 1, 1, 5, 0)
        assert updated.check_out == datetime(2030, 1, 1, 10, 0)
        assert updated.stay_hours == 5
        assert updated.status == BookingStatus.RESERVED

    def test_conflict_with_another_booking(self, service, room, guest):
        service.create_booking(_payload(guest, room, "2030-01-01T12:00", 3))
        second = service.create_booking(_payload(guest, room, "2030-01-01T18:00", 3))

        with pytest.raises(ConflictError):
            service.update_booking(second.id, BookingUpdate(
                guest_id=guest.id, room_id=room.id, check_in="2030-01-01T13:00", stay_hours=3, pax=1
            ))

    def test_past_check_in_is_accepted(self, service, room, guest):
        booking = service.create_booking(_payload(guest, room, "2030-01-01T12:00", 3))
        updated = service.update_booking(booking.id, BookingUpdate(
            guest_id=guest.id, room_id=room.id, check_in="2029-12-31T08:00", stay_hours=3, pax=1
        ))
        assert updated.check_in == datetime(2029, 12, 31, 0, 0)
        assert updated.status == BookingStatus.RESERVED

    def test_status_and_room_state_untouched(self, service, room, guest, db_session):
        booking = service.create_booking(_payload(guest, room, "2030-01-01T10:00", 3))
        assert booking.status == BookingStatus.CHECKED_IN
        other = _make_room(db_session, "102")

        service.update_booking(booking.id, BookingUpdate(
            guest_id=guest.id, room_id=other.id, check_in="2030-01-02T10:00", stay_hours=3, pax=1
        ))
        db_session.refresh(booking)
        db_session.refresh(room)
        db_session.refresh(other)
        assert booking.status == BookingStatus.CHECKED_IN
        assert room.status == RoomStatus.OCCUPIED
        assert other.status == RoomStatus.VACANT

    def test_capacity_on_update(self, service, room, guest):
        booking = service.create_booking(_payload(guest, room))
        with pytest.raises(CapacityError):
            service.update_booking(booking.id, BookingUpdate(
                guest_id=guest.id, room_id=room.id, check_in="2030-01-01T12:00", stay_hours=3, pax=3
            ))

    def test_unknown_booking(self, service, room, guest):
        with pytest.raises(NotFoundError):
            service.update_booking(9999, BookingUpdate(**_payload(guest, room).model_dump()))


# ── lifecycle ────────────────────────────────────────────────────────

class TestLifecycle:

    def test_advance_due_reservations(self, service, room, guest, db_session):
        due = _make_booking(db_session, guest, room, NOW - timedelta(hours=1), 3)
        on_time = _make_booking(db_session, guest, _make_room(db_session, "102"), NOW, 3)
        future = _make_booking(db_session, guest, _make_room(db_session, "103"),
                               NOW + timedelta(hours=2), 3)

        assert service.advance_due_reservations() == 2

        for booking in (due, on_time, future):
            db_session.refresh(booking)
        assert due.status == BookingStatus.CHECKED_IN
        assert on_time.status == BookingStatus.CHECKED_IN
        assert future.status == BookingStatus.RESERVED
        db_session.refresh(room)
        assert room.status == RoomStatus.OCCUPIED

        assert service.advance_due_reservations() == 0

    def test_early_check_in_resets_window(self, service, room, guest, db_session):
        booking = service.create_booking(_payload(guest, room, "2030-01-01T20:00", 5))

        checked_in = service.check_in(booking.id)
        assert checked_in.status == BookingStatus.CHECKED_IN
        assert checked_in.check_in == NOW
        assert checked_in.check_out == NOW + timedelta(hours=5)
        db_session.refresh(room)
        assert room.status == RoomStatus.OCCUPIED

    def test_check_in_moved_window_conflicts(self, service, room, guest):
        service.create_booking(_payload(guest, room, "2030-01-01T11:00", 3))
        later = service.create_booking(_payload(guest, room, "2030-01-01T20:00", 3))

        with pytest.raises(ConflictError):
            service.check_in(later.id)

    def test_check_in_requires_reserved(self, service, room, guest):
        booking = service.create_booking(_payload(guest, room, "2030-01-01T10:00"))
        with pytest.raises(ValidationError):
            service.check_in(booking.id)

    def test_check_out_frees_room(self, service, room, guest, db_session):
        booking = service.create_booking(_payload(guest, room, "2030-01-01T10:00"))
        checked_out = service.check_out(booking.id)

        assert checked_out.status == BookingStatus.CHECKED_OUT
        db_session.refresh(room)
        assert room.status == RoomStatus.VACANT

    def test_check_out_requires_checked_in(self, service, room, guest):
        booking = service.create_booking(_payload(guest, room))
        with pytest.raises(ValidationError):
            service.check_out(booking.id)

    def test_cancel_reserved(self, service, room, guest, db_session):
        room.status = RoomStatus.MAINTENANCE
        db_session.commit()
        booking = service.create_booking(_payload(guest, room))

        cancelled = service.cancel(booking.id)
        assert cancelled.status == BookingStatus.CANCELLED
        db_session.refresh(room)
        assert room.status == RoomStatus.MAINTENANCE

    def test_terminal_states_do_not_move(self, service, room, guest):
        booking = service.create_booking(_payload(guest, room))
        service.cancel(booking.id)

        for action in (service.check_in, service.check_out, service.cancel):
            with pytest.raises(ValidationError):
                action(booking.id)

    def test_unknown_booking(self, service):
        for action in (service.check_in, service.check_out, service.cancel):
            with pytest.raises(NotFoundError):
                action(9999)


# ── extend ───────────────────────────────────────────────────────────

class TestExtend:

    def test_extend_adds_hours(self, service, room, guest):
        booking = service.create_booking(_payload(guest, room, "2030-01-01T12:00", 3))
        original_out = booking.check_out

        extended = service.extend(booking.id, 2)
        assert extended.check_out == original_out + timedelta(hours=2)
        assert extended.stay_hours == 5

    @pytest.mark.parametrize("hours", [None, 0, 25, -1, "x"])
    def test_hours_out_of_range(self, service, room, guest, hours):
        booking = service.create_booking(_payload(guest, room))
        with pytest.raises(ValidationError):
            service.extend(booking.id, hours)

    def test_unknown_booking(self, service):
        with pytest.raises(NotFoundError):
            service.extend(9999, 2)

    def test_inactive_booking(self, service, room, guest):
        booking = service.create_booking(_payload(guest, room))
        service.cancel(booking.id)
        with pytest.raises(ValidationError):
            service.extend(booking.id, 2)

    def test_extension_tail_conflicts(self, service, room, guest):
        booking = service.create_booking(_payload(guest, room, "2030-01-01T12:00", 3))
        service.create_booking(_payload(guest, room, "2030-01-01T17:00", 3))

        # 15:00 -> 17:00 刚好接上，不冲突
        service.extend(booking.id, 2)
        with pytest.raises(ConflictError):
            service.extend(booking.id, 1)

    def test_extension_past_last_representable_date(self, service, room, guest, db_session):
        # 离店为本地 9999-12-31 21:00
        booking = _make_booking(db_session, guest, room, datetime(9999, 12, 31, 10, 0), 3)
        with pytest.raises(ValidationError):
            service.extend(booking.id, 12)
        db_session.refresh(booking)
        assert booking.check_out == datetime(9999, 12, 31, 13, 0)
        assert booking.stay_hours == 3


# ── delete ───────────────────────────────────────────────────────────

class TestDeleteBooking:

    def test_admin_delete_frees_room(self, service, room, guest, db_session):
        admin = _make_user(db_session, "admin", StaffRole.ADMIN)
        booking = service.create_booking(_payload(guest, room, "2030-01-01T10:00"))

        result = service.delete_booking(booking.id, admin)
        assert result == {"outcome": "deleted", "id": booking.id}
        assert db_session.query(Booking).count() == 0
        db_session.refresh(room)
        assert room.status == RoomStatus.VACANT

    def test_admin_delete_of_reservation_warns_about_checked_in_stay(self, service, room, guest,
                                                                    db_session, caplog):
        admin = _make_user(db_session, "admin", StaffRole.ADMIN)
        other = _make_guest(db_session, "Maria Santos")
        _make_booking(db_session, other, room, NOW - timedelta(hours=1), 3,
                      status=BookingStatus.CHECKED_IN)
        room.status = RoomStatus.OCCUPIED
        db_session.commit()
        reserved = _make_booking(db_session, guest, room, NOW + timedelta(hours=5), 3)

        with caplog.at_level("WARNING", logger="hoteltrack.services.booking_service"):
            service.delete_booking(reserved.id, admin)

        assert any("is checked in" in r.getMessage() for r in caplog.records)
        db_session.refresh(room)
        assert room.status == RoomStatus.VACANT

    def test_staff_delete_files_request(self, service, room, guest, db_session):
        staff = _make_user(db_session, "front1", StaffRole.STAFF)
        booking = service.create_booking(_payload(guest, room))

        result = service.delete_booking(booking.id, staff)
        assert result["outcome"] == "requested"
        assert service.get_booking(booking.id) is not None

        request = db_session.query(ApprovalRequest).filter(
            ApprovalRequest.id == result["approval_request_id"]
        ).one()
        assert request.request_type == "booking_delete"
        assert request.entity_id == booking.id
        assert request.requested_by == staff.id
        assert request.status == ApprovalStatus.PENDING

    def test_delete_unknown(self, service, db_session):
        admin = _make_user(db_session, "admin", StaffRole.ADMIN)
        with pytest.raises(NotFoundError):
            service.delete_booking(9999, admin)


class TestQueries:

    def test_list_newest_check_in_first(self, service, room, guest):
        early = service.create_booking(_payload(guest, room, "2030-01-01T12:00", 3))
        late = service.create_booking(_payload(guest, room, "2030-01-02T12:00", 3))

        assert [b.id for b in service.get_bookings()] == [late.id, early.id]
        assert [b.id for b in service.get_bookings(BookingStatus.CHECKED_IN)] == []

    def test_detail_includes_names_and_local_times(self, service, room, guest):
        booking = service.create_booking(_payload(guest, room, "2030-01-01T14:30", 3))
        detail = service.get_booking_detail(booking)

        assert detail["guest_name"] == "Juan Dela Cruz"
        assert detail["room_number"] == "101"
        assert detail["check_in_display"] == "01/01/2030, 02:30 PM"
        assert detail["check_out_display"] == "01/01/2030, 05:30 PM"
        assert detail["check_in_input"] == "2030-01-01T14:30"
