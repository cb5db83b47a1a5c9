# API Routers
from hoteltrack.routers import auth, rooms, guests, bookings, availability, approvals, staff, dashboard

__all__ = ['auth', 'rooms', 'guests', 'bookings', 'availability', 'approvals', 'staff', 'dashboard']
