"""
Pydantic 模式定义
用于 API 请求/响应验证

请求模型的业务字段大多为 Optional：缺失或取值不合法的字段由服务层报告为领域错误码；
类型本身不符（如 pax 传 "abc"）仍由 FastAPI 请求校验返回 422
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict
from hoteltrack.models.ontology import (
    RoomStatus, BookingStatus, StaffRole, ApprovalStatus
)


# ============== 房间 Schemas ==============

class RoomCreate(BaseModel):
    room_number: Optional[str] = Field(None, max_length=20)
    room_type: Optional[str] = None


class RoomUpdate(BaseModel):
    room_number: Optional[str] = Field(None, max_length=20)
    room_type: Optional[str] = None
    status: Optional[RoomStatus] = None


class RoomStatusUpdate(BaseModel):
    status: RoomStatus


class RoomResponse(BaseModel):
    id: int
    room_number: str
    room_type: str
    capacity: int
    status: RoomStatus
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class AvailableRoom(BaseModel):
    id: int
    room_number: str
    status: RoomStatus
    capacity: int
    model_config = ConfigDict(from_attributes=True)


class AvailableRoomsResponse(BaseModel):
    rooms: List[AvailableRoom]


# ============== 客人 Schemas ==============

class GuestBase(BaseModel):
    full_name: Optional[str] = Field(None, max_length=100)
    age: Optional[int] = None
    contact: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = Field(None, max_length=100)


class GuestCreate(GuestBase):
    pass


class GuestUpdate(GuestBase):
    pass


class GuestResponse(BaseModel):
    id: int
    full_name: str
    age: int
    contact: Optional[str] = None
    email: Optional[str] = None
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


# ============== 预订 Schemas ==============

class BookingBase(BaseModel):
    guest_id: Optional[int] = None
    room_id: Optional[int] = None
    check_in: Optional[str] = Field(None, description="本地时间 YYYY-MM-DDTHH:MM (UTC+8)")
    stay_hours: Optional[int] = None
    pax: Optional[int] = None


class BookingCreate(BookingBase):
    pass


class BookingUpdate(BookingBase):
    pass


class BookingExtend(BaseModel):
    extend_hours: Optional[int] = None


class BookingResponse(BaseModel):
    id: int
    guest_id: Optional[int] = None
    guest_name: Optional[str] = None
    room_id: Optional[int] = None
    room_number: Optional[str] = None
    check_in: datetime
    check_out: datetime
    check_in_display: str
    check_out_display: str
    check_in_input: str
    stay_hours: int
    pax: int
    status: BookingStatus
    created_at: Optional[datetime] = None


# ============== 审批 Schemas ==============

class ApprovalRequestResponse(BaseModel):
    id: int
    request_type: str
    entity_id: int
    status: ApprovalStatus
    requested_by: Optional[int] = None
    requester_name: Optional[str] = None
    label: str
    detail: str
    created_at: Optional[datetime] = None
    created_at_display: str
    resolved_at: Optional[datetime] = None


class ApprovalCountResponse(BaseModel):
    count: int


# ============== 员工 Schemas ==============

class StaffCreate(BaseModel):
    full_name: Optional[str] = Field(None, max_length=100)
    username: Optional[str] = Field(None, max_length=50)
    password: Optional[str] = None
    role: StaffRole = StaffRole.STAFF


class StaffUpdate(BaseModel):
    full_name: Optional[str] = Field(None, max_length=100)
    username: Optional[str] = Field(None, max_length=50)
    role: StaffRole = StaffRole.STAFF
    active: bool = True


class PasswordReset(BaseModel):
    new_password: str = Field(..., min_length=6)


class PasswordChange(BaseModel):
    old_password: str
    new_password: str = Field(..., min_length=6)


class StaffResponse(BaseModel):
    id: int
    username: str
    full_name: str
    role: StaffRole
    active: bool
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


# ============== 认证 Schemas ==============

class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: StaffResponse


# ============== 统计 Schemas ==============

class DashboardStats(BaseModel):
    total_rooms: int
    vacant_rooms: int
    occupied_rooms: int
    active_stays: int
    upcoming: List[BookingResponse]


# ============== 通用 ==============

class OutcomeResponse(BaseModel):
    """写操作结果：outcome 为前端可识别的结果码"""
    outcome: str
    id: Optional[int] = None
    approval_request_id: Optional[int] = None
