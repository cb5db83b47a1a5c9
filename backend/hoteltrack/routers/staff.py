"""
员工账号管理路由（仅管理员）
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from hoteltrack.database import get_db
from hoteltrack.exceptions import DomainError
from hoteltrack.models.ontology import StaffUser, StaffRole
from hoteltrack.models.schemas import (
    StaffCreate, StaffUpdate, PasswordReset, StaffResponse, OutcomeResponse
)
from hoteltrack.services.staff_service import StaffService
from hoteltrack.security.auth import require_admin

router = APIRouter(prefix="/staff", tags=["员工管理"])


@router.get("", response_model=List[StaffResponse])
def list_staff(
    role: Optional[StaffRole] = None,
    active: Optional[bool] = None,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(require_admin)
):
    """获取员工列表"""
    service = StaffService(db)
    return service.get_staff_users(role, active)


@router.post("", response_model=OutcomeResponse)
def create_staff(
    data: StaffCreate,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(require_admin)
):
    """创建员工账号"""
    service = StaffService(db)
    try:
        user = service.create_staff_user(data)
        return OutcomeResponse(outcome="added", id=user.id)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.put("/{user_id}", response_model=OutcomeResponse)
def update_staff(
    user_id: int,
    data: StaffUpdate,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(require_admin)
):
    """更新员工账号"""
    service = StaffService(db)
    try:
        user = service.update_staff_user(user_id, data)
        return OutcomeResponse(outcome="updated", id=user.id)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.post("/{user_id}/reset-password", response_model=OutcomeResponse)
def reset_password(
    user_id: int,
    data: PasswordReset,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(require_admin)
):
    """重置密码"""
    service = StaffService(db)
    try:
        service.reset_password(user_id, data)
        return OutcomeResponse(outcome="updated", id=user_id)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.delete("/{user_id}", response_model=OutcomeResponse)
def delete_staff(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(require_admin)
):
    """删除员工账号"""
    service = StaffService(db)
    try:
        service.delete_staff_user(user_id, current_user)
        return OutcomeResponse(outcome="deleted", id=user_id)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())
