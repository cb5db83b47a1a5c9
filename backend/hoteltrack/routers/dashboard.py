"""
仪表盘路由
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from hoteltrack.database import get_db
from hoteltrack.models.ontology import StaffUser
from hoteltrack.models.schemas import DashboardStats
from hoteltrack.services.booking_service import BookingService
from hoteltrack.services.report_service import ReportService
from hoteltrack.security.auth import get_current_user

router = APIRouter(tags=["仪表盘"])


@router.get("/dashboard", response_model=DashboardStats)
def get_dashboard(
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user)
):
    """房态统计与即将到店的预订"""
    BookingService(db).advance_due_reservations()
    return ReportService(db).get_dashboard_stats()
