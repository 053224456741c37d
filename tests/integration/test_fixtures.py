"""Test that integration test fixtures are working."""

import pytest

from transit.config import get_config
from transit.store import COLLECTIONS


@pytest.mark.integration
def test_dynamodb_resource_fixture(dynamodb_resource):
    """Test that every collection table and the connections table exist."""
    config = get_config()
    table_names = [table.name for table in dynamodb_resource.tables.all()]
    for collection in COLLECTIONS:
        assert config.table_for(collection) in table_names
    assert config.connections_table in table_names


@pytest.mark.integration
def test_collection_tables_keyed_by_id(dynamodb_resource):
    config = get_config()
    for collection in COLLECTIONS:
        table = dynamodb_resource.Table(config.table_for(collection))
        assert table.key_schema[0]["AttributeName"] == "id"


@pytest.mark.integration
def test_connections_table_fixture(dynamodb_resource):
    table = dynamodb_resource.Table(get_config().connections_table)
    assert table.key_schema[0]["AttributeName"] == "connectionId"
