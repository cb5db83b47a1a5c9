# Business Services
from hoteltrack.services.room_service import RoomService
from hoteltrack.services.availability_service import AvailabilityService
from hoteltrack.services.approval_service import ApprovalService
from hoteltrack.services.booking_service import BookingService
from hoteltrack.services.guest_service import GuestService
from hoteltrack.services.staff_service import StaffService
from hoteltrack.services.report_service import ReportService

__all__ = [
    'RoomService', 'AvailabilityService', 'ApprovalService',
    'BookingService', 'GuestService', 'StaffService', 'ReportService'
]
