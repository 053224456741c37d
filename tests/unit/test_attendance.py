"""Unit tests for attendance recording and the absence cascade."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest

from transit.errors import ErrorCode, NotFoundError, StaleRecordError
from transit.models import AttendanceMark, AttendanceStatus, BookingStatus, NotificationType
from transit.services.attendance import (
    MAX_CANCEL_ATTEMPTS,
    latest_attendance,
    mark_absent,
    mark_attendance,
    mark_present,
    record_attendance,
)

NOW = datetime(2025, 1, 1, 8, 5, tzinfo=timezone.utc)


def test_mark_absent_cancels_booking_and_notifies(store):
    outcome = mark_absent(store, "bk1", now=NOW)

    records = store.scan("attendance", student_id="s1", trip_id="t1")
    assert len(records) == 1
    assert records[0]["status"] == "absent"

    assert store.get("bookings", "bk1")["status"] == "cancelled"
    assert outcome.booking_cancelled is True
    assert outcome.booking.status == BookingStatus.CANCELLED

    notifications = store.scan("notifications", user_id="s1")
    assert len(notifications) == 1
    assert notifications[0]["type"] == NotificationType.ABSENCE.value
    assert notifications[0]["trip_id"] == "t1"
    assert outcome.notification.id == notifications[0]["id"]


def test_mark_absent_leaves_other_bookings(store):
    mark_absent(store, "bk1", now=NOW)
    assert store.get("bookings", "bk2")["status"] == "confirmed"


def test_second_mark_absent_does_not_cancel_or_notify_again(store):
    mark_absent(store, "bk1", now=NOW)
    outcome = mark_absent(store, "bk1", now=NOW + timedelta(minutes=1))

    assert outcome.booking_cancelled is False
    assert outcome.notification is None
    assert len(store.scan("notifications", user_id="s1")) == 1
    assert len(store.scan("attendance", student_id="s1")) == 2


def test_mark_absent_unknown_booking(store):
    with pytest.raises(NotFoundError) as exc_info:
        mark_absent(store, "missing", now=NOW)

    assert exc_info.value.code == ErrorCode.BOOKING_NOT_FOUND
    assert store.scan("attendance") == []
    assert store.scan("notifications") == []


def test_mark_absent_booking_for_missing_trip(store):
    store.put("bookings", {"id": "bk9", "trip_id": "gone", "student_id": "s1", "status": "confirmed"})

    with pytest.raises(NotFoundError) as exc_info:
        mark_absent(store, "bk9", now=NOW)

    assert exc_info.value.code == ErrorCode.TRIP_NOT_FOUND
    assert store.get("bookings", "bk9")["status"] == "confirmed"
    assert store.scan("attendance") == []


def test_notification_failure_keeps_cancellation(store):
    with patch("transit.services.attendance.create_notification", side_effect=RuntimeError("down")):
        outcome = mark_absent(store, "bk1", now=NOW)

    assert outcome.booking_cancelled is True
    assert outcome.notification is None
    assert store.get("bookings", "bk1")["status"] == "cancelled"
    assert len(store.scan("attendance")) == 1


def test_push_failure_does_not_fail_absence(store):
    push = MagicMock(side_effect=RuntimeError("socket closed"))

    outcome = mark_absent(store, "bk1", now=NOW, push=push)

    push.assert_called_once()
    assert outcome.notification is not None


def test_cancel_retries_after_concurrent_change(store):
    original_put = store.put
    calls = {"n": 0}

    def flaky_put(collection, record, **kwargs):
        if collection == "bookings" and calls["n"] == 0:
            calls["n"] += 1
            raise StaleRecordError("raced")
        return original_put(collection, record, **kwargs)

    with patch.object(store, "put", side_effect=flaky_put):
        outcome = mark_absent(store, "bk1", now=NOW)

    assert outcome.booking_cancelled is True
    assert store.get("bookings", "bk1")["status"] == "cancelled"


def test_cancel_stops_when_concurrent_writer_already_cancelled(store):
    original_put = store.put

    def racing_put(collection, record, **kwargs):
        if collection == "bookings" and kwargs.get("expected"):
            current = store.get("bookings", record["id"])
            original_put("bookings", {**current, "status": "cancelled"})
        return original_put(collection, record, **kwargs)

    with patch.object(store, "put", side_effect=racing_put):
        outcome = mark_absent(store, "bk1", now=NOW)

    assert outcome.booking_cancelled is False
    assert store.scan("notifications") == []


def test_cancel_gives_up_after_max_attempts(store):
    original_put = store.put

    def always_stale(collection, record, **kwargs):
        if collection == "bookings":
            raise StaleRecordError("raced")
        return original_put(collection, record, **kwargs)

    with patch.object(store, "put", side_effect=always_stale) as put:
        with pytest.raises(StaleRecordError):
            mark_absent(store, "bk1", now=NOW)

    booking_puts = [c for c in put.call_args_list if c.args[0] == "bookings"]
    assert len(booking_puts) == MAX_CANCEL_ATTEMPTS


def test_mark_present_records_without_cascade(store):
    outcome = mark_present(store, "bk1", now=NOW)

    assert outcome.attendance.status == AttendanceStatus.PRESENT
    assert outcome.booking_cancelled is False
    assert store.get("bookings", "bk1")["status"] == "confirmed"
    assert store.scan("notifications") == []


def test_record_attendance_requires_trip(store):
    with pytest.raises(NotFoundError):
        record_attendance(store, "s1", "nope", AttendanceStatus.PRESENT, timestamp=NOW)


def test_record_attendance_accepts_duplicates(store):
    record_attendance(store, "s1", "t1", AttendanceStatus.PRESENT, timestamp=NOW)
    record_attendance(store, "s1", "t1", AttendanceStatus.PRESENT, timestamp=NOW)
    assert len(store.scan("attendance")) == 2


def test_latest_attendance_wins_by_timestamp(store):
    record_attendance(store, "s1", "t1", AttendanceStatus.LATE, timestamp=NOW + timedelta(minutes=5))
    record_attendance(store, "s1", "t1", AttendanceStatus.PRESENT, timestamp=NOW)
    record_attendance(store, "s2", "t1", AttendanceStatus.PRESENT, timestamp=NOW)

    latest = latest_attendance(store, "t1")

    assert latest["s1"].status == AttendanceStatus.LATE
    assert latest["s2"].status == AttendanceStatus.PRESENT
    assert set(latest_attendance(store, "t1", "s2")) == {"s2"}


def test_naive_timestamps_are_stored_as_utc(store):
    record = record_attendance(store, "s1", "t1", AttendanceStatus.PRESENT, timestamp=datetime(2025, 1, 1, 8, 0))
    assert record.timestamp.tzinfo is not None


def test_mark_attendance_absent_cascades(store):
    mark = AttendanceMark(student_id="s2", trip_id="t1", status=AttendanceStatus.ABSENT)

    outcome = mark_attendance(store, mark, now=NOW)

    assert outcome.booking.id == "bk2"
    assert outcome.booking_cancelled is True
    assert store.get("bookings", "bk2")["status"] == "cancelled"
    assert len(store.scan("notifications", user_id="s2")) == 1


def test_mark_attendance_prefers_active_booking(store):
    store.put(
        "bookings",
        {"id": "bk0", "trip_id": "t1", "student_id": "s1", "status": "cancelled",
         "created_at": "2025-01-01T07:00:00Z"},
    )
    mark = AttendanceMark(student_id="s1", trip_id="t1", status=AttendanceStatus.ABSENT)

    outcome = mark_attendance(store, mark, now=NOW)

    assert outcome.booking.id == "bk1"
    assert outcome.booking_cancelled is True


def test_mark_attendance_without_booking_records_only(store):
    mark = AttendanceMark(student_id="s9", trip_id="t1", status=AttendanceStatus.ABSENT, notes="walked in")

    outcome = mark_attendance(store, mark, now=NOW)

    assert outcome.booking is None
    assert outcome.attendance.notes == "walked in"
    assert len(store.scan("attendance")) == 1
    assert store.scan("notifications") == []


def test_mark_attendance_late_has_no_cascade(store):
    mark = AttendanceMark(student_id="s1", trip_id="t1", status=AttendanceStatus.LATE, timestamp=NOW)

    outcome = mark_attendance(store, mark)

    assert outcome.attendance.timestamp == NOW
    assert outcome.booking is None
    assert store.get("bookings", "bk1")["status"] == "confirmed"


def test_mark_attendance_unknown_trip(store):
    mark = AttendanceMark(student_id="s1", trip_id="nope", status=AttendanceStatus.ABSENT)

    with pytest.raises(NotFoundError) as exc_info:
        mark_attendance(store, mark, now=NOW)

    assert exc_info.value.code == ErrorCode.TRIP_NOT_FOUND
    assert store.scan("attendance") == []
