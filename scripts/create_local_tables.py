#!/usr/bin/env python3
"""Create DynamoDB tables for local development.

Creates one table per entity collection (hash key ``id``) plus the WebSocket
connections table, against DynamoDB Local. Table names come from the same
environment variables the Lambdas read.

Usage:
    python scripts/create_local_tables.py
"""

import sys
from pathlib import Path

import boto3
from botocore.exceptions import ClientError

# Add src to path for config import
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from transit.config import get_config
from transit.store import COLLECTIONS


def create_table(dynamodb, table_name: str, key: str) -> None:
    try:
        dynamodb.create_table(
            TableName=table_name,
            KeySchema=[{"AttributeName": key, "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": key, "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )
        print(f"✓ Created {table_name} table")
    except ClientError as e:
        if e.response["Error"]["Code"] == "ResourceInUseException":
            print(f"✓ {table_name} table already exists")
        else:
            raise


def main():
    """Create all DynamoDB tables."""
    config = get_config()

    endpoint_url = config.dynamodb_endpoint or "http://localhost:8000"

    print(f"Creating DynamoDB tables at {endpoint_url}...")
    print()

    # For DynamoDB Local, use dummy credentials
    dynamodb = boto3.client(
        "dynamodb",
        endpoint_url=endpoint_url,
        region_name=config.aws_region,
        aws_access_key_id="dummy",
        aws_secret_access_key="dummy",
    )

    for collection in COLLECTIONS:
        create_table(dynamodb, config.table_for(collection), "id")
    create_table(dynamodb, config.connections_table, "connectionId")

    print()
    print("✅ All DynamoDB tables ready")


if __name__ == "__main__":
    main()
