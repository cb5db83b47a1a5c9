"""
可用房间服务

半开区间重叠判定：existing.check_in < check_out AND existing.check_out > check_in
只有 reserved / checked_in 的预订参与冲突
"""
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session

from hoteltrack.exceptions import ValidationError
from hoteltrack.models.ontology import (
    Booking, Room, RoomStatus, ACTIVE_BOOKING_STATUSES
)
from hoteltrack.services.time_service import parse_local, add_hours


def room_number_sort_key(room: Room):
    """数字房号按数值排序在前，其余按字典序"""
    number = room.room_number or ""
    if number.isdigit():
        return (0, int(number), number)
    return (1, 0, number)


def sort_rooms(rooms: List[Room]) -> List[Room]:
    return sorted(rooms, key=room_number_sort_key)


def _positive_int(value) -> Optional[int]:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    if isinstance(value, float) and value != number:
        return None
    return number if number > 0 else None


class AvailabilityService:
    """可用房间查询"""

    def __init__(self, db: Session):
        self.db = db

    def find_conflicts(self, room_id: int, start: datetime, end: datetime,
                       exclude_booking_id: Optional[int] = None) -> List[Booking]:
        """房间上与 [start, end) 重叠的有效预订"""
        query = self.db.query(Booking).filter(
            Booking.room_id == room_id,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES),
            Booking.check_in < end,
            Booking.check_out > start,
        )
        if exclude_booking_id is not None:
            query = query.filter(Booking.id != exclude_booking_id)
        return query.all()

    def has_conflict(self, room_id: int, start: datetime, end: datetime,
                     exclude_booking_id: Optional[int] = None) -> bool:
        return len(self.find_conflicts(room_id, start, end, exclude_booking_id)) > 0

    def busy_room_ids(self, start: datetime, end: datetime) -> List[int]:
        """与 [start, end) 重叠的有效预订所占用的房间"""
        rows = self.db.query(Booking.room_id).filter(
            Booking.status.in_(ACTIVE_BOOKING_STATUSES),
            Booking.check_in < end,
            Booking.check_out > start,
        ).distinct().all()
        return [row[0] for row in rows if row[0] is not None]

    def find_available_rooms(self, check_in_text: Optional[str], stay_hours,
                             pax) -> List[Room]:
        """
        查询可预订房间

        Args:
            check_in_text: 本地入住时间 YYYY-MM-DDTHH:MM
            stay_hours: 入住时长（小时，正整数）
            pax: 人数（正整数）

        Returns:
            未被占用、非维修状态且容量足够的房间，按房号排序
        """
        if not check_in_text or stay_hours in (None, "") or pax in (None, ""):
            raise ValidationError("Missing dates.")

        hours = _positive_int(stay_hours)
        guests = _positive_int(pax)
        check_in = parse_local(check_in_text)
        if check_in is None or hours is None or guests is None:
            raise ValidationError("Invalid dates.")

        try:
            check_out = add_hours(check_in, hours)
        except OverflowError:
            raise ValidationError("Invalid dates.")
        excluded = self.busy_room_ids(check_in, check_out)

        query = self.db.query(Room).filter(
            Room.status != RoomStatus.MAINTENANCE,
            Room.capacity >= guests,
        )
        if excluded:
            query = query.filter(Room.id.notin_(excluded))

        return sort_rooms(query.all())
