"""
客人管理路由
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from hoteltrack.database import get_db
from hoteltrack.exceptions import DomainError
from hoteltrack.models.ontology import StaffUser
from hoteltrack.models.schemas import GuestCreate, GuestUpdate, GuestResponse, OutcomeResponse
from hoteltrack.services.guest_service import GuestService
from hoteltrack.security.auth import get_current_user

router = APIRouter(prefix="/guests", tags=["客人管理"])


@router.get("", response_model=List[GuestResponse])
def list_guests(
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user)
):
    """获取客人列表"""
    service = GuestService(db)
    return service.get_guests(search)


@router.get("/{guest_id}", response_model=GuestResponse)
def get_guest(
    guest_id: int,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user)
):
    """获取客人详情"""
    service = GuestService(db)
    guest = service.get_guest(guest_id)
    if not guest:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "notfound", "message": "Guest not found."}
        )
    return guest


@router.post("", response_model=OutcomeResponse)
def create_guest(
    data: GuestCreate,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user)
):
    """登记客人"""
    service = GuestService(db)
    try:
        guest = service.create_guest(data)
        return OutcomeResponse(outcome="added", id=guest.id)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.put("/{guest_id}", response_model=OutcomeResponse)
def update_guest(
    guest_id: int,
    data: GuestUpdate,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user)
):
    """更新客人信息"""
    service = GuestService(db)
    try:
        guest = service.update_guest(guest_id, data)
        return OutcomeResponse(outcome="updated", id=guest.id)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.delete("/{guest_id}", response_model=OutcomeResponse)
def delete_guest(
    guest_id: int,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user)
):
    """删除客人（非管理员提交审批）"""
    service = GuestService(db)
    try:
        return OutcomeResponse(**service.delete_guest(guest_id, current_user))
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())
