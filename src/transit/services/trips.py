"""Trip creation, listing and explicit lifecycle actions."""

import logging
from collections import Counter
from collections.abc import Callable
from datetime import datetime, timedelta, timezone, tzinfo
from uuid import uuid4

from transit.errors import ErrorCode, InvalidTransitionError, NotFoundError, StaleRecordError
from transit.models.notification import Notification
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
from transit.models.user import User
from transit.services.attendance import latest_attendance
from transit.services.directory import Directory
from transit.services.notifications import Pusher, notify_trip_created
from transit.services.reconcile import Reconciler
from transit.services.status import derive_status
from transit.store import RecordStore

logger = logging.getLogger(__name__)

MAX_TRANSITION_ATTEMPTS = 3


def create_trip(
    store: RecordStore,
    payload: TripCreate,
    *,
    now: datetime | None = None,
    push: Pusher | None = None,
) -> tuple[Trip, list[Notification]]:
    """Store a new scheduled trip, then notify its driver and supervisor."""
    now = now or datetime.now(timezone.utc)
    trip = Trip(
        id=str(uuid4()),
        date=payload.date.isoformat(),
        departure_time=payload.departure_time.strftime("%H:%M"),
        arrival_time=payload.arrival_time.strftime("%H:%M"),
        bus_id=payload.bus_id,
        driver_id=payload.driver_id,
        supervisor_id=payload.supervisor_id,
        route_id=payload.route_id,
        status=TripStatus.SCHEDULED,
        created_at=now,
        updated_at=now,
    )
    store.put("trips", trip.to_record())
    logger.info("Created trip %s for %s %s", trip.id, trip.date, trip.departure_time)

    notifications = notify_trip_created(store, trip, now=now, push=push)
    return trip, notifications


def get_trip(store: RecordStore, trip_id: str) -> Trip:
    record = store.get("trips", trip_id)
    if record is None:
        raise NotFoundError(f"Trip {trip_id} not found", code=ErrorCode.TRIP_NOT_FOUND)
    return Trip.model_validate(record)


def _person(user: User | None) -> PersonSummary | None:
    if user is None:
        return None
    return PersonSummary(id=user.id, name=user.name, email=user.email)


def build_view(
    trip: Trip,
    directory: Directory,
    store: RecordStore,
    now: datetime,
    *,
    delay_grace: timedelta | None = None,
    tz: tzinfo = timezone.utc,
) -> TripView:
    route = directory.route(trip.route_id)
    bus = directory.bus(trip.bus_id)

    booking_counts = Counter(booking.get("status") for booking in directory.bookings_for_trip(trip.id))
    try:
        latest = latest_attendance(store, trip.id)
    except Exception:
        logger.exception("Attendance lookup for trip %s failed", trip.id)
        latest = {}
    attendance_counts = Counter(record.status.value for record in latest.values())
    payments = directory.payments_for_trip(trip.id)
    payment_counts = Counter(payment.get("status") for payment in payments)

    return TripView(
        **trip.model_dump(exclude={"status", "cancelled_at"}),
        status=derive_status(trip, now, delay_grace=delay_grace, tz=tz),
        persisted_status=trip.status,
        route=RouteSummary(**route.model_dump()) if route else None,
        bus=BusSummary(**bus.model_dump()) if bus else None,
        driver=_person(directory.user(trip.driver_id)),
        supervisor=_person(directory.user(trip.supervisor_id)),
        bookings=BookingSummary(
            total=sum(booking_counts.values()),
            confirmed=booking_counts["confirmed"],
            cancelled=booking_counts["cancelled"],
            completed=booking_counts["completed"],
        ),
        attendance=AttendanceSummary(
            present=attendance_counts["present"],
            absent=attendance_counts["absent"],
            late=attendance_counts["late"],
        ),
        payments=PaymentSummary(
            total=len(payments),
            completed=payment_counts["completed"],
            pending=payment_counts["pending"],
            failed=payment_counts["failed"],
            revenue=round(
                sum(float(p.get("amount") or 0) for p in payments if p.get("status") == "completed"),
                2,
            ),
        ),
    )


def list_trips(
    store: RecordStore,
    filters: TripFilters | None = None,
    *,
    now: datetime | None = None,
    reconciler: Reconciler | None = None,
    delay_grace: timedelta | None = None,
    tz: tzinfo = timezone.utc,
) -> list[TripView]:
    """Trips matching ``filters`` with effective status and joined display data.

    When a reconciler is given it runs first, so finished trips are stored
    as completed before anything is read. The status filter matches the
    effective status, not the stored one.
    """
    now = now or datetime.now(timezone.utc)
    filters = filters or TripFilters()
    if reconciler is not None:
        reconciler.reconcile(now)

    stored = {
        key: value
        for key, value in filters.model_dump(exclude={"status"}).items()
        if value is not None
    }
    trips = [Trip.model_validate(record) for record in store.scan("trips", **stored)]

    directory = Directory(store)
    views = [build_view(trip, directory, store, now, delay_grace=delay_grace, tz=tz) for trip in trips]
    if filters.status is not None:
        views = [view for view in views if view.status == filters.status]
    return sorted(views, key=lambda v: (v.date or "", v.departure_time or "", v.id))


def _transition(
    store: RecordStore,
    trip_id: str,
    apply: Callable[[Trip], Trip | None],
) -> Trip:
    """Read-check-write on a trip, retried if the stored status moved underneath.

    ``apply`` returns the updated trip, or None when there is nothing to do.
    """
    for _ in range(MAX_TRANSITION_ATTEMPTS):
        trip = get_trip(store, trip_id)
        updated = apply(trip)
        if updated is None:
            return trip
        try:
            store.put("trips", updated.to_record(), expected={"status": trip.status.value})
            return updated
        except StaleRecordError:
            logger.info("Trip %s changed concurrently, retrying", trip_id)

    raise StaleRecordError(f"Trip {trip_id} kept changing")


def cancel_trip(
    store: RecordStore,
    trip_id: str,
    *,
    now: datetime | None = None,
    tz: tzinfo = timezone.utc,
) -> Trip:
    """Cancel a trip that has not finished yet. Cancelling twice is a no-op."""
    now = now or datetime.now(timezone.utc)

    def apply(trip: Trip) -> Trip | None:
        if trip.status == TripStatus.CANCELLED:
            return None
        current = derive_status(trip, now, tz=tz)
        if not can_transition(current, TripStatus.CANCELLED):
            raise InvalidTransitionError(f"Trip {trip.id} is {current.value} and cannot be cancelled")
        return trip.model_copy(update={"status": TripStatus.CANCELLED, "cancelled_at": now, "updated_at": now})

    trip = _transition(store, trip_id, apply)
    logger.info("Trip %s cancelled", trip_id)
    return trip


def start_trip(
    store: RecordStore,
    trip_id: str,
    *,
    now: datetime | None = None,
    tz: tzinfo = timezone.utc,
) -> Trip:
    """Record that the driver started the trip. Starting twice is a no-op."""
    now = now or datetime.now(timezone.utc)

    def apply(trip: Trip) -> Trip | None:
        if trip.started_at is not None:
            return None
        current = derive_status(trip, now, tz=tz)
        if current in TERMINAL_STATUSES:
            raise InvalidTransitionError(f"Trip {trip.id} is {current.value} and cannot be started")
        return trip.model_copy(update={"status": TripStatus.IN_PROGRESS, "started_at": now, "updated_at": now})

    trip = _transition(store, trip_id, apply)
    logger.info("Trip %s started", trip_id)
    return trip
