from datetime import datetime
from enum import Enum

from transit.models.base import TransitModel


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class Booking(TransitModel):
    id: str
    trip_id: str
    student_id: str
    stop_id: str | None = None
    status: BookingStatus = BookingStatus.CONFIRMED
    created_at: datetime | None = None
    cancelled_at: datetime | None = None
    updated_at: datetime | None = None
