"""
可用房间查询路由
"""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from hoteltrack.database import get_db
from hoteltrack.exceptions import DomainError
from hoteltrack.models.ontology import StaffUser
from hoteltrack.models.schemas import AvailableRoom, AvailableRoomsResponse
from hoteltrack.services.availability_service import AvailabilityService
from hoteltrack.security.auth import get_current_user

router = APIRouter(tags=["可用房间"])


@router.get("/available-rooms", response_model=AvailableRoomsResponse)
def available_rooms(
    check_in: Optional[str] = None,
    stay_hours: Optional[str] = None,
    pax: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user)
):
    """
    查询指定时段可预订的房间

    check_in 为本地时间 YYYY-MM-DDTHH:MM
    """
    service = AvailabilityService(db)
    try:
        rooms = service.find_available_rooms(check_in, stay_hours, pax)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())
    return AvailableRoomsResponse(rooms=[AvailableRoom.model_validate(r) for r in rooms])
