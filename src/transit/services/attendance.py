"""Attendance log and the absence → booking cancellation cascade.

Attendance is append-only: re-marking a student adds a new record and the
latest timestamp wins for display. Cancelling the booking is guarded by a
compare-and-set on its status, which is what keeps a repeated or concurrent
``mark_absent`` from cancelling or notifying twice.
"""

import logging
from datetime import datetime, timezone
from uuid import uuid4

import pydantic

from transit.errors import ErrorCode, NotFoundError, StaleRecordError
from transit.models.attendance import AttendanceMark, AttendanceOutcome, AttendanceRecord, AttendanceStatus
from transit.models.booking import Booking, BookingStatus
from transit.models.notification import Notification, NotificationPriority, NotificationType
from transit.models.trip import Trip
from transit.services.notifications import Pusher, create_notification
from transit.store import RecordStore

logger = logging.getLogger(__name__)

MAX_CANCEL_ATTEMPTS = 3

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _load_trip(store: RecordStore, trip_id: str) -> Trip:
    record = store.get("trips", trip_id)
    if record is None:
        raise NotFoundError(f"Trip {trip_id} not found", code=ErrorCode.TRIP_NOT_FOUND)
    return Trip.model_validate(record)


def _load_booking(store: RecordStore, booking_id: str) -> Booking:
    record = store.get("bookings", booking_id)
    if record is None:
        raise NotFoundError(f"Booking {booking_id} not found", code=ErrorCode.BOOKING_NOT_FOUND)
    return Booking.model_validate(record)


def _append(
    store: RecordStore,
    student_id: str,
    trip_id: str,
    status: AttendanceStatus,
    timestamp: datetime,
    notes: str = "",
) -> AttendanceRecord:
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    record = AttendanceRecord(
        id=str(uuid4()),
        student_id=student_id,
        trip_id=trip_id,
        status=status,
        timestamp=timestamp,
        notes=notes,
    )
    store.put("attendance", record.to_record())
    return record


def record_attendance(
    store: RecordStore,
    student_id: str,
    trip_id: str,
    status: AttendanceStatus,
    *,
    timestamp: datetime | None = None,
    notes: str = "",
) -> AttendanceRecord:
    """Append an attendance record. Duplicates are accepted, so retrying is safe."""
    _load_trip(store, trip_id)
    return _append(store, student_id, trip_id, status, timestamp or datetime.now(timezone.utc), notes)


def latest_attendance(store: RecordStore, trip_id: str, student_id: str | None = None) -> dict[str, AttendanceRecord]:
    """Authoritative record per student for a trip: the one with the greatest timestamp."""
    filters = {"trip_id": trip_id}
    if student_id is not None:
        filters["student_id"] = student_id

    latest: dict[str, AttendanceRecord] = {}
    for raw in store.scan("attendance", **filters):
        try:
            record = AttendanceRecord.model_validate(raw)
        except pydantic.ValidationError:
            logger.warning("Skipping malformed attendance record %s", raw.get("id"))
            continue
        current = latest.get(record.student_id)
        if current is None or record.timestamp >= current.timestamp:
            latest[record.student_id] = record
    return latest


def _cancel_booking(store: RecordStore, booking: Booking, now: datetime) -> tuple[Booking, bool]:
    """Move the booking to cancelled unless it already is; returns (booking, changed)."""
    for _ in range(MAX_CANCEL_ATTEMPTS):
        if booking.status == BookingStatus.CANCELLED:
            return booking, False

        cancelled = booking.model_copy(
            update={"status": BookingStatus.CANCELLED, "cancelled_at": now, "updated_at": now}
        )
        try:
            store.put("bookings", cancelled.to_record(), expected={"status": booking.status.value})
            return cancelled, True
        except StaleRecordError:
            logger.info("Booking %s changed while cancelling, re-reading", booking.id)
            booking = _load_booking(store, booking.id)

    raise StaleRecordError(f"Booking {booking.id} kept changing while cancelling")


def _notify_absence(
    store: RecordStore,
    booking: Booking,
    trip: Trip,
    now: datetime,
    push: Pusher | None,
) -> Notification | None:
    try:
        return create_notification(
            store,
            booking.student_id,
            "Absent from trip",
            f"You were marked absent for trip {trip.id} on {trip.date}. Your booking has been cancelled.",
            type=NotificationType.ABSENCE,
            priority=NotificationPriority.HIGH,
            now=now,
            push=push,
            trip_id=trip.id,
            bus_id=trip.bus_id,
            route_id=trip.route_id,
        )
    except Exception:
        logger.exception("Failed to notify student %s about absence on trip %s", booking.student_id, trip.id)
        return None


def _absence_cascade(
    store: RecordStore,
    booking: Booking,
    trip: Trip,
    now: datetime,
    push: Pusher | None,
) -> tuple[Booking, bool, Notification | None]:
    booking, cancelled = _cancel_booking(store, booking, now)
    if not cancelled:
        logger.info("Booking %s already cancelled, absence cascade skipped", booking.id)
        return booking, False, None
    return booking, True, _notify_absence(store, booking, trip, now, push)


def mark_absent(
    store: RecordStore,
    booking_id: str,
    *,
    now: datetime | None = None,
    push: Pusher | None = None,
) -> AttendanceOutcome:
    now = now or datetime.now(timezone.utc)
    booking = _load_booking(store, booking_id)
    trip = _load_trip(store, booking.trip_id)

    attendance = _append(store, booking.student_id, trip.id, AttendanceStatus.ABSENT, now)
    booking, cancelled, notification = _absence_cascade(store, booking, trip, now, push)
    return AttendanceOutcome(
        attendance=attendance,
        booking=booking,
        booking_cancelled=cancelled,
        notification=notification,
    )


def mark_present(store: RecordStore, booking_id: str, *, now: datetime | None = None) -> AttendanceOutcome:
    now = now or datetime.now(timezone.utc)
    booking = _load_booking(store, booking_id)
    trip = _load_trip(store, booking.trip_id)

    attendance = _append(store, booking.student_id, trip.id, AttendanceStatus.PRESENT, now)
    return AttendanceOutcome(attendance=attendance, booking=booking)


def _booking_for(store: RecordStore, trip_id: str, student_id: str) -> Booking | None:
    """The student's booking on the trip, preferring one that is still active."""
    bookings = [
        Booking.model_validate(record)
        for record in store.scan("bookings", trip_id=trip_id, student_id=student_id)
    ]
    if not bookings:
        return None
    bookings.sort(key=lambda b: (b.status != BookingStatus.CANCELLED, b.created_at or _EPOCH))
    return bookings[-1]


def mark_attendance(
    store: RecordStore,
    mark: AttendanceMark,
    *,
    now: datetime | None = None,
    push: Pusher | None = None,
) -> AttendanceOutcome:
    """Record attendance by student and trip; ``absent`` also runs the booking cascade."""
    now = now or datetime.now(timezone.utc)
    trip = _load_trip(store, mark.trip_id)
    attendance = _append(store, mark.student_id, trip.id, mark.status, mark.timestamp or now, mark.notes)

    if mark.status != AttendanceStatus.ABSENT:
        return AttendanceOutcome(attendance=attendance)

    booking = _booking_for(store, trip.id, mark.student_id)
    if booking is None:
        logger.warning("Student %s marked absent on trip %s without a booking", mark.student_id, trip.id)
        return AttendanceOutcome(attendance=attendance)

    booking, cancelled, notification = _absence_cascade(store, booking, trip, now, push)
    return AttendanceOutcome(
        attendance=attendance,
        booking=booking,
        booking_cancelled=cancelled,
        notification=notification,
    )
