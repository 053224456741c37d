"""Integration tests for the DynamoDB record store against DynamoDB Local.

Run ``python scripts/create_local_tables.py`` first.
"""

from datetime import datetime, timezone

import pytest

from transit.errors import StaleRecordError
from transit.services.attendance import mark_absent
from transit.services.reconcile import StoreReconciler


@pytest.mark.integration
def test_put_and_get_payment(dynamo_store, unique_id):
    payment_id = unique_id("pay")
    dynamo_store.put("payments", {"id": payment_id, "trip_id": "t1", "amount": 12.5, "status": "completed"})

    record = dynamo_store.get("payments", payment_id)

    assert record["amount"] == 12.5
    assert record["status"] == "completed"


@pytest.mark.integration
def test_scan_by_field(dynamo_store, unique_id):
    trip_id = unique_id("trip")
    for n in range(3):
        dynamo_store.put(
            "bookings",
            {"id": unique_id("bk"), "trip_id": trip_id, "student_id": f"s{n}", "status": "confirmed"},
        )

    bookings = dynamo_store.scan("bookings", trip_id=trip_id)
    assert sorted(b["student_id"] for b in bookings) == ["s0", "s1", "s2"]
    assert len(dynamo_store.scan("bookings", trip_id=trip_id, student_id="s1")) == 1


@pytest.mark.integration
def test_conditional_put(dynamo_store, unique_id):
    booking_id = unique_id("bk")
    booking = {"id": booking_id, "trip_id": "t1", "student_id": "s1", "status": "confirmed"}
    dynamo_store.put("bookings", booking)

    dynamo_store.put("bookings", {**booking, "status": "cancelled"}, expected={"status": "confirmed"})
    with pytest.raises(StaleRecordError):
        dynamo_store.put("bookings", {**booking, "status": "completed"}, expected={"status": "confirmed"})

    assert dynamo_store.get("bookings", booking_id)["status"] == "cancelled"


@pytest.mark.integration
def test_conditional_put_on_missing_record(dynamo_store, unique_id):
    with pytest.raises(StaleRecordError):
        dynamo_store.put("bookings", {"id": unique_id("bk"), "status": "cancelled"}, expected={"status": "confirmed"})


@pytest.mark.integration
def test_mark_absent_end_to_end(dynamo_store, unique_id):
    trip_id = unique_id("trip")
    booking_id = unique_id("bk")
    student_id = unique_id("student")
    dynamo_store.put(
        "trips",
        {"id": trip_id, "date": "2025-01-01", "departure_time": "08:00", "arrival_time": "10:00",
         "bus_id": "b1", "driver_id": "5", "supervisor_id": "9", "status": "scheduled"},
    )
    dynamo_store.put("bookings", {"id": booking_id, "trip_id": trip_id, "student_id": student_id, "status": "confirmed"})

    outcome = mark_absent(dynamo_store, booking_id, now=datetime(2025, 1, 1, 8, 5, tzinfo=timezone.utc))

    assert outcome.booking_cancelled is True
    assert dynamo_store.get("bookings", booking_id)["status"] == "cancelled"
    assert len(dynamo_store.scan("notifications", user_id=student_id)) == 1
    assert len(dynamo_store.scan("attendance", trip_id=trip_id)) == 1


@pytest.mark.integration
def test_reconcile_persists_completion(dynamo_store, unique_id):
    trip_id = unique_id("trip")
    dynamo_store.put(
        "trips",
        {"id": trip_id, "date": "2025-01-01", "departure_time": "08:00", "arrival_time": "10:00",
         "bus_id": "b1", "driver_id": "5", "supervisor_id": "9", "status": "scheduled"},
    )

    StoreReconciler(dynamo_store).reconcile(datetime(2025, 1, 2, tzinfo=timezone.utc))

    assert dynamo_store.get("trips", trip_id)["status"] == "completed"
