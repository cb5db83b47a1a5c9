"""
报表服务
提供仪表盘统计数据
"""
from sqlalchemy.orm import Session

from hoteltrack.models.ontology import Room, RoomStatus, Booking, BookingStatus
from hoteltrack.services.booking_service import BookingService

UPCOMING_LIMIT = 6


class ReportService:
    """报表服务"""

    def __init__(self, db: Session):
        self.db = db

    def get_dashboard_stats(self) -> dict:
        """获取仪表盘统计数据"""
        rooms = self.db.query(Room).all()
        total_rooms = len(rooms)
        vacant = len([r for r in rooms if r.status == RoomStatus.VACANT])
        occupied = len([r for r in rooms if r.status == RoomStatus.OCCUPIED])

        active_stays = self.db.query(Booking).filter(
            Booking.status == BookingStatus.CHECKED_IN
        ).count()

        booking_service = BookingService(self.db)
        upcoming = [
            booking_service.get_booking_detail(b)
            for b in booking_service.get_upcoming(UPCOMING_LIMIT)
        ]

        return {
            'total_rooms': total_rooms,
            'vacant_rooms': vacant,
            'occupied_rooms': occupied,
            'active_stays': active_stays,
            'upcoming': upcoming,
        }
