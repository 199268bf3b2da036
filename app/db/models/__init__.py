from app.db.models.availability_rule import AvailabilityRule
from app.db.models.booking import Booking, BookingStatus
from app.db.models.category import Category
from app.db.models.event_type import EventType, PeriodType
from app.db.models.user import User, UserRole

__all__ = [
    "User",
    "UserRole",
    "Category",
    "EventType",
    "PeriodType",
    "AvailabilityRule",
    "Booking",
    "BookingStatus",
]
