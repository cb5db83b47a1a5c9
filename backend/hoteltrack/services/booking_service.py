"""
预订服务 - 本体操作层
管理 Booking 对象的完整生命周期：

    reserved ──check_in──> checked_in ──check_out──> checked_out
        └──────cancel──────> cancelled

终态 (checked_out / cancelled) 不再变化。
房态作为副作用同步：入住 -> occupied，退房 / 管理员删除 -> vacant。

同一房间的"冲突检查 + 写入"在进程内按房间 ID 串行执行。
"""
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple
import logging
import threading
from sqlalchemy.orm import Session

from hoteltrack.exceptions import (
    ValidationError, ParseError, PastDateError, CapacityError,
    ConflictError, NotFoundError
)
from hoteltrack.models.ontology import (
    Booking, BookingStatus, Guest, Room, RoomStatus, StaffUser,
    ApprovalRequestType, ACTIVE_BOOKING_STATUSES
)
from hoteltrack.models.schemas import BookingCreate, BookingUpdate
from hoteltrack.services.approval_service import ApprovalService
from hoteltrack.services.availability_service import AvailabilityService
from hoteltrack.services.room_service import RoomService
from hoteltrack.services.time_service import (
    utc_now, parse_local, add_hours, format_display, format_input
)

logger = logging.getLogger(__name__)

STAY_HOURS_OPTIONS = (3, 5, 8, 12, 24)
MIN_EXTEND_HOURS = 1
MAX_EXTEND_HOURS = 24


class RoomLockRegistry:
    """按房间 ID 分配的互斥锁"""

    def __init__(self):
        self._locks: Dict[int, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, room_id: int) -> threading.Lock:
        with self._guard:
            if room_id not in self._locks:
                self._locks[room_id] = threading.Lock()
            return self._locks[room_id]

    @contextmanager
    def hold(self, room_id: Optional[int]):
        if room_id is None:
            yield
            return
        with self._lock_for(room_id):
            yield


room_locks = RoomLockRegistry()


def _to_int(value) -> Optional[int]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    if isinstance(value, float) and value != number:
        return None
    return number


class BookingService:
    """
    预订服务

    支持依赖注入以便于测试：
    - clock: 返回当前 naive UTC 时间的函数
    """

    def __init__(self, db: Session, clock: Optional[Callable[[], datetime]] = None):
        self.db = db
        self._now = clock or utc_now
        self.availability = AvailabilityService(db)
        self.room_service = RoomService(db)

    # ============== 查询 ==============

    def get_bookings(self, status: Optional[BookingStatus] = None,
                     room_id: Optional[int] = None,
                     guest_id: Optional[int] = None) -> List[Booking]:
        """获取预订列表（入住时间倒序）"""
        query = self.db.query(Booking)
        if status is not None:
            query = query.filter(Booking.status == status)
        if room_id is not None:
            query = query.filter(Booking.room_id == room_id)
        if guest_id is not None:
            query = query.filter(Booking.guest_id == guest_id)
        return query.order_by(Booking.check_in.desc(), Booking.id.desc()).all()

    def get_booking(self, booking_id: int) -> Optional[Booking]:
        """获取单个预订"""
        return self.db.query(Booking).filter(Booking.id == booking_id).first()

    def get_upcoming(self, limit: int = 6) -> List[Booking]:
        """有效预订，按入住时间升序"""
        return self.db.query(Booking).filter(
            Booking.status.in_(ACTIVE_BOOKING_STATUSES)
        ).order_by(Booking.check_in.asc()).limit(limit).all()

    def _require_booking(self, booking_id: int) -> Booking:
        booking = self.get_booking(booking_id)
        if not booking:
            raise NotFoundError("Booking not found.")
        return booking

    # ============== 校验 ==============

    def _validate(self, data: BookingCreate, check_past: bool
                  ) -> Tuple[Guest, Room, datetime, datetime, int, int]:
        """
        创建 / 修改共用校验

        容量在房间和人数已知时最先检查：超员的请求总是报 CapacityError
        """
        guest_id = _to_int(data.guest_id)
        room_id = _to_int(data.room_id)
        stay_hours = _to_int(data.stay_hours)
        pax = _to_int(data.pax)

        room = self.room_service.get_room(room_id) if room_id else None
        if room is not None and pax is not None and pax > room.capacity:
            raise CapacityError()

        if not guest_id or not room_id or not data.check_in or not stay_hours or not pax or pax < 1:
            raise ValidationError()
        if stay_hours not in STAY_HOURS_OPTIONS:
            raise ValidationError(
                f"Stay must be one of {', '.join(str(h) for h in STAY_HOURS_OPTIONS)} hours."
            )

        check_in = parse_local(data.check_in)
        if check_in is None:
            raise ParseError()
        if check_past and check_in < self._now():
            raise PastDateError()

        if room is None:
            raise NotFoundError("Room not found.")
        guest = self.db.query(Guest).filter(Guest.id == guest_id).first()
        if guest is None:
            raise NotFoundError("Guest not found.")

        try:
            check_out = add_hours(check_in, stay_hours)
        except OverflowError:
            raise ParseError()

        return guest, room, check_in, check_out, stay_hours, pax

    def _ensure_free(self, room_id: int, start: datetime, end: datetime,
                     exclude_booking_id: Optional[int] = None) -> None:
        if self.availability.has_conflict(room_id, start, end, exclude_booking_id):
            raise ConflictError()

    # ============== 生命周期 ==============

    def create_booking(self, data: BookingCreate) -> Booking:
        """
        创建预订
        入住时间晚于当前时间为 reserved，否则立即 checked_in 并占用房间
        """
        with room_locks.hold(_to_int(data.room_id)):
            guest, room, check_in, check_out, stay_hours, pax = self._validate(data, check_past=True)
            self._ensure_free(room.id, check_in, check_out)

            status = BookingStatus.RESERVED if check_in > self._now() else BookingStatus.CHECKED_IN
            booking = Booking(
                guest_id=guest.id,
                room_id=room.id,
                check_in=check_in,
                check_out=check_out,
                stay_hours=stay_hours,
                pax=pax,
                status=status,
            )
            self.db.add(booking)
            if status == BookingStatus.CHECKED_IN:
                room.status = RoomStatus.OCCUPIED

            self.db.commit()
            self.db.refresh(booking)

        logger.info(f"Booking {booking.id} created for room {room.room_number} ({status.value})")
        return booking

    def update_booking(self, booking_id: int, data: BookingUpdate) -> Booking:
        """修改预订；不做过去时间校验，不改变状态和房态"""
        booking = self._require_booking(booking_id)

        with room_locks.hold(_to_int(data.room_id)):
            guest, room, check_in, check_out, stay_hours, pax = self._validate(data, check_past=False)
            self._ensure_free(room.id, check_in, check_out, exclude_booking_id=booking.id)

            booking.guest_id = guest.id
            booking.room_id = room.id
            booking.check_in = check_in
            booking.check_out = check_out
            booking.stay_hours = stay_hours
            booking.pax = pax

            self.db.commit()
            self.db.refresh(booking)

        return booking

    def advance_due_reservations(self) -> int:
        """
        到点自动入住
        入住时间已到的 reserved 预订转为 checked_in，房间置为 occupied

        Returns:
            本次推进的预订数
        """
        now = self._now()
        due = self.db.query(Booking).filter(
            Booking.status == BookingStatus.RESERVED,
            Booking.check_in <= now
        ).all()
        if not due:
            return 0

        for booking in due:
            booking.status = BookingStatus.CHECKED_IN
            self.room_service.mark_status(booking.room_id, RoomStatus.OCCUPIED)

        self.db.commit()
        logger.info(f"Advanced {len(due)} due reservation(s) to checked_in")
        return len(due)

    def check_in(self, booking_id: int) -> Booking:
        """
        提前入住
        入住时间重置为当前时间，离店时间 = 当前时间 + 时长
        """
        booking = self._require_booking(booking_id)
        if booking.status != BookingStatus.RESERVED:
            raise ValidationError(f"Only reserved bookings can be checked in (status: {booking.status.value}).")

        with room_locks.hold(booking.room_id):
            now = self._now()
            check_out = add_hours(now, booking.stay_hours)
            if booking.room_id is not None:
                self._ensure_free(booking.room_id, now, check_out, exclude_booking_id=booking.id)

            booking.status = BookingStatus.CHECKED_IN
            booking.check_in = now
            booking.check_out = check_out
            self.room_service.mark_status(booking.room_id, RoomStatus.OCCUPIED)

            self.db.commit()
            self.db.refresh(booking)

        logger.info(f"Booking {booking.id} checked in")
        return booking

    def check_out(self, booking_id: int) -> Booking:
        """退房，房间置为 vacant"""
        booking = self._require_booking(booking_id)
        if booking.status != BookingStatus.CHECKED_IN:
            raise ValidationError(f"Only checked-in bookings can be checked out (status: {booking.status.value}).")

        booking.status = BookingStatus.CHECKED_OUT
        self.room_service.mark_status(booking.room_id, RoomStatus.VACANT)

        self.db.commit()
        self.db.refresh(booking)
        logger.info(f"Booking {booking.id} checked out")
        return booking

    def cancel(self, booking_id: int) -> Booking:
        """取消尚未入住的预订"""
        booking = self._require_booking(booking_id)
        if booking.status != BookingStatus.RESERVED:
            raise ValidationError(f"Only reserved bookings can be cancelled (status: {booking.status.value}).")

        booking.status = BookingStatus.CANCELLED
        self.db.commit()
        self.db.refresh(booking)
        logger.info(f"Booking {booking.id} cancelled")
        return booking

    def extend(self, booking_id: int, extra_hours) -> Booking:
        """
        续住
        只检查新增的尾段 [当前离店时间, 新离店时间) 是否与其他预订冲突
        """
        hours = _to_int(extra_hours)
        if hours is None or hours < MIN_EXTEND_HOURS or hours > MAX_EXTEND_HOURS:
            raise ValidationError(f"Extension must be {MIN_EXTEND_HOURS}-{MAX_EXTEND_HOURS} hours.")

        booking = self._require_booking(booking_id)
        if not booking.is_active:
            raise ValidationError(f"Only active bookings can be extended (status: {booking.status.value}).")

        with room_locks.hold(booking.room_id):
            current_check_out = booking.check_out
            try:
                new_check_out = add_hours(current_check_out, hours)
            except OverflowError:
                raise ValidationError("Extension goes past the last supported date.")
            if booking.room_id is not None:
                self._ensure_free(booking.room_id, current_check_out, new_check_out,
                                  exclude_booking_id=booking.id)

            booking.check_out = new_check_out
            booking.stay_hours = (booking.stay_hours or 0) + hours

            self.db.commit()
            self.db.refresh(booking)

        logger.info(f"Booking {booking.id} extended by {hours}h")
        return booking

    def delete_booking(self, booking_id: int, actor: StaffUser) -> dict:
        """
        删除预订

        管理员：直接删除并释放房间
        普通员工：不删除，改为提交 booking_delete 审批请求
        """
        booking = self._require_booking(booking_id)

        if not actor.is_admin:
            request = ApprovalService(self.db).submit(
                ApprovalRequestType.BOOKING_DELETE.value, booking.id, actor
            )
            return {"outcome": "requested", "approval_request_id": request.id}

        room_id = booking.room_id
        if room_id is not None and booking.status != BookingStatus.CHECKED_IN:
            other_stay = self.db.query(Booking).filter(
                Booking.room_id == room_id,
                Booking.id != booking.id,
                Booking.status == BookingStatus.CHECKED_IN,
            ).first()
            if other_stay is not None:
                logger.warning(
                    f"Room {room_id} set to vacant by deleting booking {booking.id} "
                    f"while booking {other_stay.id} is checked in"
                )

        self.db.delete(booking)
        self.room_service.mark_status(room_id, RoomStatus.VACANT)
        self.db.commit()
        logger.info(f"Booking {booking_id} deleted by {actor.username}")
        return {"outcome": "deleted", "id": booking_id}

    def apply_approved_delete(self, booking_id: int) -> bool:
        """
        审批通过后的删除：只有已入住的预订才释放房间
        不提交事务，由审批服务统一提交

        Returns:
            预订是否存在
        """
        booking = self.get_booking(booking_id)
        if booking is None:
            return False

        room_id = booking.room_id
        was_checked_in = booking.status == BookingStatus.CHECKED_IN
        self.db.delete(booking)
        if was_checked_in:
            self.room_service.mark_status(room_id, RoomStatus.VACANT)
        self.db.flush()
        return True

    # ============== 展示 ==============

    def get_booking_detail(self, booking: Booking) -> dict:
        """预订详情（附带客人姓名与房号）"""
        return {
            'id': booking.id,
            'guest_id': booking.guest_id,
            'guest_name': booking.guest.full_name if booking.guest else None,
            'room_id': booking.room_id,
            'room_number': booking.room.room_number if booking.room else None,
            'check_in': booking.check_in,
            'check_out': booking.check_out,
            'check_in_display': format_display(booking.check_in),
            'check_out_display': format_display(booking.check_out),
            'check_in_input': format_input(booking.check_in),
            'stay_hours': booking.stay_hours,
            'pax': booking.pax,
            'status': booking.status,
            'created_at': booking.created_at,
        }


# ============== 审批操作 ==============

def _apply_booking_delete(db: Session, entity_id: int, payload: dict) -> bool:
    return BookingService(db).apply_approved_delete(entity_id)


def _describe_booking_delete(db: Session, entity_id: int, payload: dict) -> Tuple[str, str]:
    booking = db.query(Booking).filter(Booking.id == entity_id).first()
    label = "Booking delete request"
    if booking is None:
        return label, "Booking record not found"
    guest_name = booking.guest.full_name if booking.guest else "Guest"
    room_number = booking.room.room_number if booking.room else "-"
    return label, (
        f"{guest_name} • Room {room_number} • {format_display(booking.check_in)} "
        f"to {format_display(booking.check_out)}"
    )


def register_booking_actions(registry) -> None:
    registry.register(
        ApprovalRequestType.BOOKING_DELETE.value,
        apply=_apply_booking_delete,
        describe=_describe_booking_delete,
    )
