"""
房间管理路由
读取对所有登录员工开放，写操作仅限管理员
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from hoteltrack.database import get_db
from hoteltrack.exceptions import DomainError
from hoteltrack.models.ontology import StaffUser, RoomStatus
from hoteltrack.models.schemas import (
    RoomCreate, RoomUpdate, RoomStatusUpdate, RoomResponse, OutcomeResponse
)
from hoteltrack.services.room_service import RoomService
from hoteltrack.security.auth import get_current_user, require_admin

router = APIRouter(prefix="/rooms", tags=["房间管理"])


@router.get("", response_model=List[RoomResponse])
def list_rooms(
    status: Optional[RoomStatus] = None,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user)
):
    """获取房间列表（按房号排序）"""
    service = RoomService(db)
    return service.get_rooms(status)


@router.get("/{room_id}", response_model=RoomResponse)
def get_room(
    room_id: int,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user)
):
    """获取房间详情"""
    service = RoomService(db)
    room = service.get_room(room_id)
    if not room:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "notfound", "message": "Room not found."}
        )
    return room


@router.post("", response_model=OutcomeResponse)
def create_room(
    data: RoomCreate,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(require_admin)
):
    """创建房间"""
    service = RoomService(db)
    try:
        room = service.create_room(data)
        return OutcomeResponse(outcome="added", id=room.id)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.put("/{room_id}", response_model=OutcomeResponse)
def update_room(
    room_id: int,
    data: RoomUpdate,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(require_admin)
):
    """更新房间"""
    service = RoomService(db)
    try:
        room = service.update_room(room_id, data)
        return OutcomeResponse(outcome="updated", id=room.id)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.put("/{room_id}/status", response_model=OutcomeResponse)
def update_room_status(
    room_id: int,
    data: RoomStatusUpdate,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(require_admin)
):
    """直接设置房态"""
    service = RoomService(db)
    try:
        room = service.set_status(room_id, data.status)
        return OutcomeResponse(outcome="status", id=room.id)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.delete("/{room_id}", response_model=OutcomeResponse)
def delete_room(
    room_id: int,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(require_admin)
):
    """删除房间"""
    service = RoomService(db)
    try:
        service.delete_room(room_id)
        return OutcomeResponse(outcome="deleted", id=room_id)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())
