"""
Pydantic models for Campus Transit.
"""

from transit.models.attendance import AttendanceMark, AttendanceOutcome, AttendanceRecord, AttendanceStatus
from transit.models.booking import Booking, BookingStatus
from transit.models.notification import (
    BroadcastRequest,
    BroadcastTarget,
    Notification,
    NotificationPriority,
    NotificationType,
    ReadStateUpdate,
)
from transit.models.trip import (
    TERMINAL_STATUSES,
    AttendanceSummary,
    BookingSummary,
    BusSummary,
    PaymentSummary,
    PersonSummary,
    RouteSummary,
    Trip,
    TripCreate,
    TripFilters,
    TripStatus,
    TripView,
    can_transition,
)
from transit.models.user import Bus, Payment, Route, User, UserRole

__all__ = [
    "AttendanceMark",
    "AttendanceOutcome",
    "AttendanceRecord",
    "AttendanceStatus",
    "AttendanceSummary",
    "Booking",
    "BookingStatus",
    "BookingSummary",
    "BroadcastRequest",
    "BroadcastTarget",
    "Bus",
    "BusSummary",
    "Notification",
    "NotificationPriority",
    "NotificationType",
    "Payment",
    "PaymentSummary",
    "PersonSummary",
    "ReadStateUpdate",
    "Route",
    "RouteSummary",
    "TERMINAL_STATUSES",
    "Trip",
    "TripCreate",
    "TripFilters",
    "TripStatus",
    "TripView",
    "User",
    "UserRole",
    "can_transition",
]
