"""Pytest configuration and fixtures for the saloon booking backend tests.

This module provides reusable fixtures for testing:
- DynamoDB mocking with moto
- Sample data fixtures (accounts, saloons, services, bookings)
- Singleton resets so every test starts from fresh settings and services
"""

import os
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any, Generator

import boto3
import pytest
from moto import mock_aws

# === Environment Setup ===

# Set environment variables for testing before imports
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-1")
os.environ.setdefault("DYNAMODB_TABLE_PREFIX", "test-salonbook")
os.environ.setdefault("NOTIFICATIONS_ENABLED", "false")
os.environ.setdefault("SERVICE_API_KEY", "test-service-key")

# Only set fake credentials for moto if no real credentials are present
if not os.environ.get("AWS_PROFILE") and not os.environ.get("AWS_ACCESS_KEY_ID"):
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

TABLE_PREFIX = "test-salonbook"
OWNER_ACCOUNT_ID = "acc-owner-0001"
CUSTOMER_ACCOUNT_ID = "acc-customer-0001"
SALOON_ID = "saloon-001"
SERVICE_ID = "svc-cut"


# === Singleton resets ===


@pytest.fixture(autouse=True)
def reset_singletons() -> Generator[None, None, None]:
    """Reset settings, DynamoDB and API service singletons around each test.

    Tests using mock_aws need a fresh DynamoDBService created inside the
    mock context, and tests that change environment variables need
    settings to be re-read.
    """
    from salonbook.services.service_key_store import get_service_key_store
    from salonbook_api.dependencies import reset_services

    reset_services()
    get_service_key_store.cache_clear()
    yield
    reset_services()
    get_service_key_store.cache_clear()


# === DynamoDB Fixtures ===


@pytest.fixture
def aws_credentials() -> None:
    """Mocked AWS Credentials for moto."""
    if not os.environ.get("AWS_PROFILE"):
        os.environ["AWS_ACCESS_KEY_ID"] = "testing"
        os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
        os.environ["AWS_SECURITY_TOKEN"] = "testing"
        os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "eu-west-1"


@pytest.fixture
def dynamodb_client(aws_credentials: None) -> Generator[Any, None, None]:
    """Create a mocked DynamoDB client."""
    with mock_aws():
        client = boto3.client("dynamodb", region_name="eu-west-1")
        yield client


def _table(name: str, key: str, gsis: tuple[str, ...] = ()) -> dict[str, Any]:
    attributes = [{"AttributeName": key, "AttributeType": "S"}]
    attributes += [{"AttributeName": g, "AttributeType": "S"} for g in gsis]
    table: dict[str, Any] = {
        "TableName": f"{TABLE_PREFIX}-{name}",
        "KeySchema": [{"AttributeName": key, "KeyType": "HASH"}],
        "AttributeDefinitions": attributes,
        "BillingMode": "PAY_PER_REQUEST",
    }
    if gsis:
        table["GlobalSecondaryIndexes"] = [
            {
                "IndexName": f"{g}-index",
                "KeySchema": [{"AttributeName": g, "KeyType": "HASH"}],
                "Projection": {"ProjectionType": "ALL"},
            }
            for g in gsis
        ]
    return table


@pytest.fixture
def create_tables(dynamodb_client: Any) -> None:
    """Create all required DynamoDB tables for testing."""
    tables = [
        _table("accounts", "account_id"),
        _table("account-constraints", "constraint_key"),
        _table("bookings", "booking_id", ("saloon_id", "account_id")),
        _table("saloons", "saloon_id"),
        _table("saloon-services", "service_id"),
    ]
    for table in tables:
        dynamodb_client.create_table(**table)


@pytest.fixture
def db(create_tables: None) -> Any:
    """DynamoDBService bound to the mocked tables."""
    from salonbook.services.dynamodb import DynamoDBService

    return DynamoDBService()


# === Sample Data Fixtures ===


def make_account_item(
    account_id: str,
    email: str,
    external_id: str | None = None,
    is_admin: bool = False,
    is_service_account: bool = False,
) -> dict[str, Any]:
    now = datetime.now(UTC).isoformat()
    item: dict[str, Any] = {
        "account_id": account_id,
        "email": email,
        "name": email.split("@")[0],
        "is_admin": is_admin,
        "is_service_account": is_service_account,
        "created_at": now,
        "updated_at": now,
    }
    if external_id:
        item["external_id"] = external_id
    return item


@pytest.fixture
def saloon_item() -> dict[str, Any]:
    return {
        "saloon_id": SALOON_ID,
        "owner_account_id": OWNER_ACCOUNT_ID,
        "name": "Studio Quesada",
        "address": "Calle Mayor 1, Ciudad Quesada",
        "email": "studio@example.com",
    }


@pytest.fixture
def service_item() -> dict[str, Any]:
    return {
        "service_id": SERVICE_ID,
        "saloon_id": SALOON_ID,
        "name": "Haircut",
        "price": 3500,
        "duration_minutes": 45,
    }


@pytest.fixture
def booking_item_factory() -> Callable[..., dict[str, Any]]:
    """Build booking items as DynamoDB would return them."""

    def factory(
        status: str = "pending",
        booking_id: str = "BKG-2025-ABCD1234",
        account_id: str | None = CUSTOMER_ACCOUNT_ID,
        **overrides: Any,
    ) -> dict[str, Any]:
        now = datetime(2025, 6, 1, 9, 0, tzinfo=UTC)
        item: dict[str, Any] = {
            "booking_id": booking_id,
            "service_id": SERVICE_ID,
            "saloon_id": SALOON_ID,
            "booking_time": (now + timedelta(days=14)).isoformat(),
            "total_amount": 3500,
            "status": status,
            "created_at": now.isoformat(),
            "updated_at": now.isoformat(),
        }
        if account_id:
            item["account_id"] = account_id
        item.update(overrides)
        return item

    return factory


@pytest.fixture
def account_item_factory() -> Callable[..., dict[str, Any]]:
    return make_account_item
