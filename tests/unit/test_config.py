"""Unit tests for configuration management."""

import os
from datetime import timedelta
from unittest.mock import patch

import pydantic
import pytest

from transit.config import _reset_config, get_config


@pytest.fixture(autouse=True)
def _clear_config_cache():
    _reset_config()
    yield
    _reset_config()


def test_get_config_with_dynamodb_endpoint():
    """Test that get_config reads DYNAMODB_ENDPOINT when set."""
    with patch.dict(os.environ, {"DYNAMODB_ENDPOINT": "http://localhost:8000"}):
        config = get_config()
        assert config.dynamodb_endpoint == "http://localhost:8000"


def test_get_config_defaults():
    """Test that get_config provides sensible defaults."""
    with patch.dict(os.environ, {}, clear=True):
        config = get_config()
        assert config.aws_region == "us-east-1"
        assert config.dynamodb_endpoint is None
        assert config.store_backend == "dynamodb"
        assert config.trips_table == "Trips"
        assert config.local_timezone == "UTC"
        assert config.delay_grace is None
        assert config.reconcile_on_read is True
        assert config.environment == "local"


def test_delay_grace_from_env():
    with patch.dict(os.environ, {"DELAY_GRACE_MINUTES": "15"}, clear=True):
        assert get_config().delay_grace == timedelta(minutes=15)


def test_reconcile_on_read_flag():
    with patch.dict(os.environ, {"RECONCILE_ON_READ": "false"}, clear=True):
        assert get_config().reconcile_on_read is False


def test_local_timezone():
    with patch.dict(os.environ, {"LOCAL_TIMEZONE": "Africa/Cairo"}, clear=True):
        assert str(get_config().tz) == "Africa/Cairo"


def test_invalid_store_backend_rejected():
    with patch.dict(os.environ, {"STORE_BACKEND": "sqlite"}, clear=True):
        with pytest.raises(pydantic.ValidationError):
            get_config()


def test_table_for_collection():
    with patch.dict(os.environ, {"NOTIFICATIONS_TABLE": "TransitNotifications"}, clear=True):
        config = get_config()
        assert config.table_for("notifications") == "TransitNotifications"
        with pytest.raises(KeyError):
            config.table_for("policies")


def test_config_is_cached():
    with patch.dict(os.environ, {}, clear=True):
        assert get_config() is get_config()


def test_config_is_immutable():
    with patch.dict(os.environ, {}, clear=True):
        config = get_config()
        with pytest.raises(pydantic.ValidationError):
            config.aws_region = "eu-west-1"  # type: ignore[misc]
