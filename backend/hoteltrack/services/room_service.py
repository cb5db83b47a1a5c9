"""
房间服务 - 本体操作层
管理 Room 对象：房号唯一、容量由房型推导、状态切换
"""
from typing import List, Optional
import logging
from sqlalchemy import func
from sqlalchemy.orm import Session

from hoteltrack.exceptions import (
    ValidationError, DuplicateError, InUseError, NotFoundError, CapacityError
)
from hoteltrack.models.ontology import (
    Room, RoomType, RoomStatus, Booking, BookingStatus, ACTIVE_BOOKING_STATUSES
)
from hoteltrack.models.schemas import RoomCreate, RoomUpdate
from hoteltrack.services.availability_service import sort_rooms

logger = logging.getLogger(__name__)

ROOM_CAPACITY = {
    RoomType.SINGLE.value: 1,
    RoomType.DOUBLE.value: 2,
    RoomType.FAMILY.value: 4,
}


def capacity_for(room_type: Optional[str]) -> int:
    """房型 -> 容量；未知房型直接报错，不允许容量为空"""
    if room_type not in ROOM_CAPACITY:
        raise ValidationError(
            f"Unknown room type '{room_type}'. Expected one of: {', '.join(ROOM_CAPACITY)}."
        )
    return ROOM_CAPACITY[room_type]


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


class RoomService:
    """房间服务"""

    def __init__(self, db: Session):
        self.db = db

    def get_rooms(self, status: Optional[RoomStatus] = None) -> List[Room]:
        """获取房间列表（按房号排序）"""
        query = self.db.query(Room)
        if status is not None:
            query = query.filter(Room.status == status)
        return sort_rooms(query.all())

    def get_room(self, room_id: int) -> Optional[Room]:
        """获取单个房间"""
        return self.db.query(Room).filter(Room.id == room_id).first()

    def get_room_by_number(self, room_number: str) -> Optional[Room]:
        return self.db.query(Room).filter(Room.room_number == room_number).first()

    def _require_room(self, room_id: int) -> Room:
        room = self.get_room(room_id)
        if not room:
            raise NotFoundError("Room not found.")
        return room

    def _active_bookings_query(self, room_id: int):
        return self.db.query(Booking).filter(
            Booking.room_id == room_id,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES)
        )

    def create_room(self, data: RoomCreate) -> Room:
        """创建房间"""
        room_number = _clean(data.room_number)
        room_type = _clean(data.room_type)
        if not room_number or not room_type:
            raise ValidationError()

        capacity = capacity_for(room_type)
        if self.get_room_by_number(room_number):
            raise DuplicateError("Room already exists.")

        room = Room(
            room_number=room_number,
            room_type=room_type,
            capacity=capacity,
            status=RoomStatus.VACANT,
        )
        self.db.add(room)
        self.db.commit()
        self.db.refresh(room)
        logger.info(f"Room {room.room_number} created ({room.room_type}, capacity {room.capacity})")
        return room

    def update_room(self, room_id: int, data: RoomUpdate) -> Room:
        """
        更新房间
        每次更新都按房型重新计算容量，新容量不能低于有效预订的人数
        """
        room_number = _clean(data.room_number)
        room_type = _clean(data.room_type)
        if not room_id or not room_number or not room_type or data.status is None:
            raise ValidationError()

        room = self._require_room(room_id)
        capacity = capacity_for(room_type)

        existing = self.db.query(Room).filter(
            Room.room_number == room_number,
            Room.id != room_id
        ).first()
        if existing:
            raise DuplicateError("Room already exists.")

        max_pax = self.db.query(func.max(Booking.pax)).filter(
            Booking.room_id == room_id,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES)
        ).scalar()
        if max_pax is not None and max_pax > capacity:
            raise CapacityError(
                f"Room type {room_type} holds {capacity} but an active booking has {max_pax} pax."
            )

        room.room_number = room_number
        room.room_type = room_type
        room.capacity = capacity
        room.status = data.status

        self.db.commit()
        self.db.refresh(room)
        return room

    def delete_room(self, room_id: int) -> bool:
        """删除房间；有效预订仍引用时拒绝"""
        room = self._require_room(room_id)

        if self._active_bookings_query(room_id).first():
            raise InUseError()

        # 历史预订保留，但解除与房间的关联
        self.db.query(Booking).filter(Booking.room_id == room_id).update(
            {Booking.room_id: None}, synchronize_session=False
        )
        self.db.delete(room)
        self.db.commit()
        logger.info(f"Room {room_id} deleted")
        return True

    def set_status(self, room_id: int, status: RoomStatus) -> Room:
        """
        直接覆盖房间状态
        设为维修时不检查在住预订，仅记录告警
        """
        room = self._require_room(room_id)
        old_status = room.status

        if status == RoomStatus.MAINTENANCE and self._active_bookings_query(room_id).filter(
            Booking.status == BookingStatus.CHECKED_IN
        ).first():
            logger.warning(f"Room {room.room_number} set to maintenance while a guest is checked in")

        room.status = status
        self.db.commit()
        self.db.refresh(room)
        logger.info(f"Room {room.room_number} status {old_status.value} -> {status.value}")
        return room

    def mark_status(self, room_id: Optional[int], status: RoomStatus) -> None:
        """预订生命周期的副作用：同步房态（不提交，由调用方提交）"""
        if room_id is None:
            return
        room = self.get_room(room_id)
        if room is not None:
            room.status = status
