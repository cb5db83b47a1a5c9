"""
预订管理路由
预订生命周期：创建、修改、入住、退房、取消、续住、删除
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from hoteltrack.database import get_db
from hoteltrack.exceptions import DomainError
from hoteltrack.models.ontology import StaffUser, BookingStatus
from hoteltrack.models.schemas import (
    BookingCreate, BookingUpdate, BookingExtend, BookingResponse, OutcomeResponse
)
from hoteltrack.services.booking_service import BookingService
from hoteltrack.security.auth import get_current_user

router = APIRouter(prefix="/bookings", tags=["预订管理"])


@router.get("", response_model=List[BookingResponse])
def list_bookings(
    status: Optional[BookingStatus] = None,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user)
):
    """获取预订列表（先推进到点的预订）"""
    service = BookingService(db)
    service.advance_due_reservations()
    return [BookingResponse(**service.get_booking_detail(b)) for b in service.get_bookings(status)]


@router.post("/advance")
def advance_due_reservations(
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user)
):
    """到点预订自动入住"""
    service = BookingService(db)
    return {"advanced": service.advance_due_reservations()}


@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user)
):
    """获取预订详情"""
    service = BookingService(db)
    booking = service.get_booking(booking_id)
    if not booking:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "notfound", "message": "Booking not found."}
        )
    return BookingResponse(**service.get_booking_detail(booking))


@router.post("", response_model=OutcomeResponse)
def create_booking(
    data: BookingCreate,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user)
):
    """创建预订"""
    service = BookingService(db)
    try:
        booking = service.create_booking(data)
        return OutcomeResponse(outcome="added", id=booking.id)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.put("/{booking_id}", response_model=OutcomeResponse)
def update_booking(
    booking_id: int,
    data: BookingUpdate,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user)
):
    """修改预订"""
    service = BookingService(db)
    try:
        booking = service.update_booking(booking_id, data)
        return OutcomeResponse(outcome="updated", id=booking.id)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.post("/{booking_id}/check-in", response_model=OutcomeResponse)
def check_in(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user)
):
    """办理入住"""
    service = BookingService(db)
    try:
        booking = service.check_in(booking_id)
        return OutcomeResponse(outcome="status", id=booking.id)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.post("/{booking_id}/check-out", response_model=OutcomeResponse)
def check_out(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user)
):
    """办理退房"""
    service = BookingService(db)
    try:
        booking = service.check_out(booking_id)
        return OutcomeResponse(outcome="status", id=booking.id)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.post("/{booking_id}/cancel", response_model=OutcomeResponse)
def cancel_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user)
):
    """取消预订"""
    service = BookingService(db)
    try:
        booking = service.cancel(booking_id)
        return OutcomeResponse(outcome="status", id=booking.id)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.post("/{booking_id}/extend", response_model=OutcomeResponse)
def extend_booking(
    booking_id: int,
    data: BookingExtend,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user)
):
    """续住"""
    service = BookingService(db)
    try:
        booking = service.extend(booking_id, data.extend_hours)
        return OutcomeResponse(outcome="updated", id=booking.id)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.delete("/{booking_id}", response_model=OutcomeResponse)
def delete_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user)
):
    """删除预订（非管理员提交审批）"""
    service = BookingService(db)
    try:
        return OutcomeResponse(**service.delete_booking(booking_id, current_user))
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())
