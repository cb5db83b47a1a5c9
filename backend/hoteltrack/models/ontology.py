"""
本体对象定义 (Ontology Objects)
房间 / 客人 / 预订 / 员工 / 审批请求

时间字段统一存储为 naive UTC；展示时再转换为本地时区 (UTC+8)
"""
from datetime import datetime, timezone
from enum import Enum
from sqlalchemy import (
    Column, Integer, String, DateTime, ForeignKey, Text, Enum as SQLEnum, Boolean
)
from sqlalchemy.orm import relationship
from hoteltrack.database import Base


# ============== 枚举定义 ==============

class RoomType(str, Enum):
    """房型（决定容量）"""
    SINGLE = "Single"
    DOUBLE = "Double"
    FAMILY = "Family"


class RoomStatus(str, Enum):
    """房间状态"""
    VACANT = "vacant"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"


class BookingStatus(str, Enum):
    """预订状态：reserved → checked_in → checked_out；reserved → cancelled"""
    RESERVED = "reserved"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CANCELLED = "cancelled"


# 参与冲突检测和容量校验的"有效预订"
ACTIVE_BOOKING_STATUSES = (BookingStatus.RESERVED, BookingStatus.CHECKED_IN)


class StaffRole(str, Enum):
    """员工角色"""
    ADMIN = "admin"
    STAFF = "staff"


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ApprovalRequestType(str, Enum):
    """内置的延迟操作类型"""
    GUEST_DELETE = "guest_delete"
    BOOKING_DELETE = "booking_delete"


def utcnow() -> datetime:
    """当前时间点（naive UTC）"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ============== 本体对象定义 ==============

class Room(Base):
    """
    房间对象
    capacity 在每次写入时由 room_type 推导
    """
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, index=True)
    room_number = Column(String(20), unique=True, nullable=False)  # 房间号
    room_type = Column(String(20), nullable=False)                 # Single / Double / Family
    capacity = Column(Integer, nullable=False)                     # 最大入住人数
    status = Column(SQLEnum(RoomStatus), default=RoomStatus.VACANT, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # 链接
    bookings = relationship("Booking", back_populates="room")


class Guest(Base):
    """客人对象"""
    __tablename__ = "guests"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(100), nullable=False)
    age = Column(Integer, nullable=False)
    contact = Column(String(20))                         # 09 开头的 11 位手机号
    email = Column(String(100))
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # 链接
    bookings = relationship("Booking", back_populates="guest")


class Booking(Base):
    """
    预订对象
    占用半开区间 [check_in, check_out)
    """
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    guest_id = Column(Integer, ForeignKey("guests.id", ondelete="SET NULL"), nullable=True)
    room_id = Column(Integer, ForeignKey("rooms.id", ondelete="SET NULL"), nullable=True)
    check_in = Column(DateTime, nullable=False)
    check_out = Column(DateTime, nullable=False)
    stay_hours = Column(Integer, nullable=False)
    pax = Column(Integer, nullable=False, default=1)
    status = Column(SQLEnum(BookingStatus), default=BookingStatus.RESERVED, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # 链接（单个对象或 None）
    guest = relationship("Guest", back_populates="bookings")
    room = relationship("Room", back_populates="bookings")

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_BOOKING_STATUSES


class StaffUser(Base):
    """
    员工账号
    停用账号不能登录
    """
    __tablename__ = "staff_users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, nullable=False)
    full_name = Column(String(100), nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(SQLEnum(StaffRole), default=StaffRole.STAFF, nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == StaffRole.ADMIN


class ApprovalRequest(Base):
    """
    审批请求 - 延迟执行的特权操作
    request_type 为操作标签，payload 为可选 JSON 参数；只会被处理一次
    """
    __tablename__ = "approval_requests"

    id = Column(Integer, primary_key=True, index=True)
    request_type = Column(String(50), nullable=False)
    entity_id = Column(Integer, nullable=False)
    payload = Column(Text)
    requested_by = Column(Integer, ForeignKey("staff_users.id", ondelete="SET NULL"))
    status = Column(SQLEnum(ApprovalStatus), default=ApprovalStatus.PENDING, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    resolved_at = Column(DateTime)
    resolved_by = Column(Integer, ForeignKey("staff_users.id", ondelete="SET NULL"))

    # 链接
    requester = relationship("StaffUser", foreign_keys=[requested_by])
