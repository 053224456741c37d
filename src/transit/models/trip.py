from datetime import date as DateType, datetime as DateTimeType, time as TimeType
from enum import Enum

from pydantic import Field, model_validator

from transit.models.base import TransitModel


class TripStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in-progress"
    DELAYED = "delayed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset({TripStatus.COMPLETED, TripStatus.CANCELLED})

ALLOWED_TRANSITIONS: dict[TripStatus, frozenset[TripStatus]] = {
    TripStatus.SCHEDULED: frozenset({TripStatus.IN_PROGRESS, TripStatus.DELAYED, TripStatus.CANCELLED}),
    TripStatus.IN_PROGRESS: frozenset({TripStatus.COMPLETED, TripStatus.CANCELLED}),
    TripStatus.DELAYED: frozenset({TripStatus.IN_PROGRESS, TripStatus.CANCELLED}),
    TripStatus.COMPLETED: frozenset(),
    TripStatus.CANCELLED: frozenset(),
}


def can_transition(current: TripStatus, target: TripStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


class Trip(TransitModel):
    """Stored trip record.

    Date and clock times stay optional strings so records written by older
    clients with missing or malformed values still load; status derivation
    falls back to the persisted status for those.
    """

    id: str
    date: str | None = None
    departure_time: str | None = None
    arrival_time: str | None = None
    bus_id: str
    driver_id: str
    supervisor_id: str
    route_id: str | None = None
    status: TripStatus = TripStatus.SCHEDULED
    started_at: DateTimeType | None = None
    cancelled_at: DateTimeType | None = None
    created_at: DateTimeType | None = None
    updated_at: DateTimeType | None = None


class TripCreate(TransitModel):
    date: DateType
    departure_time: TimeType
    arrival_time: TimeType
    bus_id: str = Field(..., min_length=1)
    driver_id: str = Field(..., min_length=1)
    supervisor_id: str = Field(..., min_length=1)
    route_id: str | None = None

    @model_validator(mode="after")
    def distinct_clock_times(self) -> "TripCreate":
        if self.departure_time == self.arrival_time:
            raise ValueError("arrival_time must differ from departure_time")
        return self


class TripFilters(TransitModel):
    driver_id: str | None = None
    supervisor_id: str | None = None
    status: TripStatus | None = None
    date: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    route_id: str | None = None
    bus_id: str | None = None


class PersonSummary(TransitModel):
    id: str
    name: str
    email: str | None = None


class BusSummary(TransitModel):
    id: str
    number: str
    capacity: int | None = None


class RouteSummary(TransitModel):
    id: str
    name: str
    start_point: str
    end_point: str


class BookingSummary(TransitModel):
    total: int = 0
    confirmed: int = 0
    cancelled: int = 0
    completed: int = 0


class AttendanceSummary(TransitModel):
    """Counts over the latest attendance record per student."""

    present: int = 0
    absent: int = 0
    late: int = 0


class PaymentSummary(TransitModel):
    total: int = 0
    completed: int = 0
    pending: int = 0
    failed: int = 0
    revenue: float = 0.0


class TripView(TransitModel):
    """Trip as shown to callers: effective status plus joined display data.

    Joined entities are None when the reference is empty or the lookup could
    not resolve it; aggregate summaries fall back to all-zero counts.
    """

    id: str
    date: str | None = None
    departure_time: str | None = None
    arrival_time: str | None = None
    bus_id: str
    driver_id: str
    supervisor_id: str
    route_id: str | None = None
    status: TripStatus
    persisted_status: TripStatus
    started_at: DateTimeType | None = None
    created_at: DateTimeType | None = None
    updated_at: DateTimeType | None = None
    route: RouteSummary | None = None
    bus: BusSummary | None = None
    driver: PersonSummary | None = None
    supervisor: PersonSummary | None = None
    bookings: BookingSummary = Field(default_factory=BookingSummary)
    attendance: AttendanceSummary = Field(default_factory=AttendanceSummary)
    payments: PaymentSummary = Field(default_factory=PaymentSummary)
