"""Shared test fixtures for Campus Transit."""

import os
import sys
import uuid
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Load .env file for test configuration
load_dotenv()

# Unset AWS_PROFILE for local testing (DynamoDB Local doesn't need it)
if "AWS_PROFILE" in os.environ:
    del os.environ["AWS_PROFILE"]

# Add src directory to Python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))


def seed_records() -> dict[str, list[dict]]:
    return {
        "users": [
            {"id": "5", "name": "Karim Driver", "email": "karim@uni.test", "role": "driver"},
            {"id": "d2", "name": "Omar Driver", "role": "driver"},
            {"id": "d3", "name": "Hana Driver", "role": "driver"},
            {"id": "9", "name": "Salma Supervisor", "email": "salma@uni.test", "role": "supervisor"},
            {"id": "s1", "name": "Youssef Student", "role": "student"},
            {"id": "s2", "name": "Mona Student", "role": "student"},
            {"id": "a1", "name": "Admin", "role": "admin"},
        ],
        "buses": [{"id": "b1", "number": "BUS-101", "capacity": 40}],
        "routes": [{"id": "r1", "name": "Campus Loop", "start_point": "Main Gate", "end_point": "Library"}],
        "trips": [
            {
                "id": "t1",
                "date": "2025-01-01",
                "departure_time": "08:00",
                "arrival_time": "10:00",
                "bus_id": "b1",
                "driver_id": "5",
                "supervisor_id": "9",
                "route_id": "r1",
                "status": "scheduled",
            },
        ],
        "bookings": [
            {"id": "bk1", "trip_id": "t1", "student_id": "s1", "stop_id": "st1", "status": "confirmed"},
            {"id": "bk2", "trip_id": "t1", "student_id": "s2", "stop_id": "st2", "status": "confirmed"},
        ],
        "payments": [
            {"id": "p1", "trip_id": "t1", "amount": 12.5, "status": "completed"},
            {"id": "p2", "trip_id": "t1", "amount": 12.5, "status": "pending"},
        ],
    }


@pytest.fixture
def store():
    """In-memory store seeded with one trip, its people and two bookings."""
    from transit.store import InMemoryStore

    return InMemoryStore(seed_records())


@pytest.fixture
def empty_store():
    from transit.store import InMemoryStore

    return InMemoryStore()


# DynamoDB fixtures
@pytest.fixture
def dynamodb_resource():
    """Provide a DynamoDB resource for integration tests."""
    import boto3
    from transit.config import get_config

    config = get_config()

    resource = boto3.resource(
        "dynamodb",
        endpoint_url=config.dynamodb_endpoint,
        region_name=config.aws_region,
        aws_access_key_id="dummy",
        aws_secret_access_key="dummy",
    )

    return resource


@pytest.fixture
def dynamo_store(dynamodb_resource):
    """DynamoStore against DynamoDB Local; deletes whatever the test wrote."""
    from transit.config import get_config
    from transit.store import DynamoStore

    written: list[tuple[str, str]] = []
    store = DynamoStore(get_config(), dynamodb_resource)
    original_put = store.put

    def tracking_put(collection, record, **kwargs):
        original_put(collection, record, **kwargs)
        written.append((collection, str(record["id"])))

    store.put = tracking_put
    yield store

    for collection, record_id in written:
        store.delete(collection, record_id)


@pytest.fixture
def unique_id():
    return lambda prefix: f"{prefix}-{uuid.uuid4().hex[:8]}"
