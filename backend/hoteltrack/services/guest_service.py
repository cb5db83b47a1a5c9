"""
客人服务 - 本体操作层
管理 Guest 对象；删除客人会级联结束其有效预订
"""
import re
from typing import List, Optional, Tuple
import logging
from sqlalchemy.orm import Session

from hoteltrack.exceptions import (
    ValidationError, AgeError, ContactFormatError, NotFoundError
)
from hoteltrack.models.ontology import (
    Guest, Booking, BookingStatus, RoomStatus, StaffUser, ApprovalRequestType
)
from hoteltrack.models.schemas import GuestCreate, GuestUpdate
from hoteltrack.services.approval_service import ApprovalService
from hoteltrack.services.room_service import RoomService

logger = logging.getLogger(__name__)

CONTACT_PATTERN = re.compile(r"^09\d{9}$")
MIN_GUEST_AGE = 18


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class GuestService:
    """客人服务"""

    def __init__(self, db: Session):
        self.db = db

    def get_guests(self, search: Optional[str] = None, limit: int = 500) -> List[Guest]:
        """获取客人列表（新建的在前）"""
        query = self.db.query(Guest)
        if search:
            query = query.filter(Guest.full_name.like(f"%{search}%"))
        return query.order_by(Guest.created_at.desc(), Guest.id.desc()).limit(limit).all()

    def get_guest(self, guest_id: int) -> Optional[Guest]:
        """获取单个客人"""
        return self.db.query(Guest).filter(Guest.id == guest_id).first()

    def _validate(self, data: GuestCreate) -> Tuple[str, int, Optional[str], Optional[str]]:
        full_name = (data.full_name or "").strip()
        if not full_name or data.age is None:
            raise ValidationError()
        if data.age < MIN_GUEST_AGE:
            raise AgeError()

        contact = _blank_to_none(data.contact)
        if contact is not None and not CONTACT_PATTERN.match(contact):
            raise ContactFormatError()

        return full_name, data.age, contact, _blank_to_none(data.email)

    def create_guest(self, data: GuestCreate) -> Guest:
        """创建客人"""
        full_name, age, contact, email = self._validate(data)
        guest = Guest(full_name=full_name, age=age, contact=contact, email=email)
        self.db.add(guest)
        self.db.commit()
        self.db.refresh(guest)
        logger.info(f"Guest {guest.id} created")
        return guest

    def update_guest(self, guest_id: int, data: GuestUpdate) -> Guest:
        """更新客人信息"""
        full_name, age, contact, email = self._validate(data)
        guest = self.get_guest(guest_id)
        if not guest:
            raise NotFoundError("Guest not found.")

        guest.full_name = full_name
        guest.age = age
        guest.contact = contact
        guest.email = email

        self.db.commit()
        self.db.refresh(guest)
        return guest

    def cascade_delete(self, guest_id: int) -> bool:
        """
        删除客人并结束其预订：
        checked_in -> checked_out（释放房间），reserved -> cancelled，
        之后所有预订解除与客人的关联

        不提交事务，由调用方提交

        Returns:
            客人是否存在
        """
        guest = self.get_guest(guest_id)
        if guest is None:
            return False

        room_service = RoomService(self.db)
        bookings = self.db.query(Booking).filter(Booking.guest_id == guest_id).all()
        closed = 0
        for booking in bookings:
            if booking.status == BookingStatus.CHECKED_IN:
                booking.status = BookingStatus.CHECKED_OUT
                room_service.mark_status(booking.room_id, RoomStatus.VACANT)
                closed += 1
            elif booking.status == BookingStatus.RESERVED:
                booking.status = BookingStatus.CANCELLED
                closed += 1
            booking.guest_id = None

        self.db.delete(guest)
        self.db.flush()
        logger.info(f"Guest {guest_id} removed, {closed} active booking(s) closed")
        return True

    def delete_guest(self, guest_id: int, actor: StaffUser) -> dict:
        """
        删除客人

        管理员：立即执行级联删除
        普通员工：提交 guest_delete 审批请求
        """
        guest = self.get_guest(guest_id)
        if not guest:
            raise NotFoundError("Guest not found.")

        if not actor.is_admin:
            request = ApprovalService(self.db).submit(
                ApprovalRequestType.GUEST_DELETE.value, guest.id, actor
            )
            return {"outcome": "requested", "approval_request_id": request.id}

        self.cascade_delete(guest_id)
        self.db.commit()
        return {"outcome": "deleted", "id": guest_id}


# ============== 审批操作 ==============

def _apply_guest_delete(db: Session, entity_id: int, payload: dict) -> bool:
    return GuestService(db).cascade_delete(entity_id)


def _describe_guest_delete(db: Session, entity_id: int, payload: dict) -> Tuple[str, str]:
    guest = db.query(Guest).filter(Guest.id == entity_id).first()
    label = "Guest delete request"
    if guest is None:
        return label, "Guest record not found"
    return label, f"{guest.full_name} • {guest.age} yrs • {guest.contact or '-'}"


def register_guest_actions(registry) -> None:
    registry.register(
        ApprovalRequestType.GUEST_DELETE.value,
        apply=_apply_guest_delete,
        describe=_describe_guest_delete,
    )
