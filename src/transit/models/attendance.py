from datetime import datetime
from enum import Enum

from pydantic import Field

from transit.models.base import TransitModel
from transit.models.booking import Booking
from transit.models.notification import Notification


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"


class AttendanceRecord(TransitModel):
    """One append-only attendance entry; never updated after insert."""

    id: str
    student_id: str
    trip_id: str
    status: AttendanceStatus
    timestamp: datetime
    notes: str = ""


class AttendanceMark(TransitModel):
    student_id: str = Field(..., min_length=1)
    trip_id: str = Field(..., min_length=1)
    status: AttendanceStatus
    timestamp: datetime | None = None
    notes: str = Field(default="", max_length=500)


class AttendanceOutcome(TransitModel):
    """Result of an attendance mark, including any booking cascade."""

    attendance: AttendanceRecord
    booking: Booking | None = None
    booking_cancelled: bool = False
    notification: Notification | None = None
