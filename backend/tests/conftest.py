"""Pytest configuration and fixtures for the parking backend tests.

This module provides reusable fixtures for testing:
- DynamoDB mocking with moto
- Service instances bound to the mocked tables
- Factories for pricing tiers, price requests and payments
"""

import datetime as dt
import os
from collections.abc import Callable
from typing import Any, Generator

import boto3
import pytest
from moto import mock_aws

# === Environment Setup ===

# Set environment variables for testing before imports
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-1")
os.environ.setdefault("DYNAMODB_TABLE_PREFIX", "test-parking")
os.environ.setdefault("PARKING_TIMEZONE", "UTC")

if not os.environ.get("AWS_PROFILE") and not os.environ.get("AWS_ACCESS_KEY_ID"):
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

from parking.models import (  # noqa: E402
    Payment,
    PaymentMethod,
    PaymentStatus,
    PriceRequest,
    PricingTier,
    PricingType,
    RefundRecord,
    RefundStatus,
    VehicleType,
)

TABLE_PREFIX = "test-parking"

# Tiers in tests are valid from well before any booking they price
LONG_AGO = dt.datetime(2020, 1, 1, tzinfo=dt.UTC)

# Tuesday 2025-07-15, 10:00 UTC (no surcharge applies)
WEEKDAY_MORNING = dt.datetime(2025, 7, 15, 10, 0, tzinfo=dt.UTC)

ADMIN_HEADERS = {"x-user-id": "admin-1", "x-user-role": "admin"}
ATTENDANT_HEADERS = {"x-user-id": "attendant-1", "x-user-role": "attendant"}
USER_HEADERS = {"x-user-id": "user-1", "x-user-role": "user"}


# === Singleton Reset ===


@pytest.fixture(autouse=True)
def reset_service_singletons() -> Generator[None, None, None]:
    """Reset cached services and the DynamoDB singleton around each test.

    Tests using mock_aws then get a fresh service instance inside the
    mock context rather than one created by a previous test.
    """
    from parking_api.dependencies import reset_services

    reset_services()
    yield
    reset_services()


# === DynamoDB Fixtures ===


@pytest.fixture
def aws_credentials() -> None:
    """Mocked AWS credentials for moto."""
    if not os.environ.get("AWS_PROFILE"):
        os.environ["AWS_ACCESS_KEY_ID"] = "testing"
        os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
        os.environ["AWS_SECURITY_TOKEN"] = "testing"
        os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "eu-west-1"
    os.environ["DYNAMODB_TABLE_PREFIX"] = TABLE_PREFIX


@pytest.fixture
def dynamodb_tables(aws_credentials: None) -> Generator[Any, None, None]:
    """Create the pricing-tiers and payments tables in a mocked DynamoDB."""
    with mock_aws():
        client = boto3.client("dynamodb", region_name="eu-west-1")

        client.create_table(
            TableName=f"{TABLE_PREFIX}-pricing-tiers",
            KeySchema=[{"AttributeName": "tier_id", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "tier_id", "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )
        client.create_table(
            TableName=f"{TABLE_PREFIX}-payments",
            KeySchema=[{"AttributeName": "payment_id", "KeyType": "HASH"}],
            AttributeDefinitions=[
                {"AttributeName": "payment_id", "AttributeType": "S"},
                {"AttributeName": "booking_id", "AttributeType": "S"},
            ],
            GlobalSecondaryIndexes=[
                {
                    "IndexName": "booking_id-index",
                    "KeySchema": [{"AttributeName": "booking_id", "KeyType": "HASH"}],
                    "Projection": {"ProjectionType": "ALL"},
                },
            ],
            BillingMode="PAY_PER_REQUEST",
        )

        yield client


@pytest.fixture
def db(dynamodb_tables: Any) -> Any:
    """DynamoDBService bound to the mocked tables."""
    from parking.services.dynamodb import DynamoDBService

    return DynamoDBService()


@pytest.fixture
def pricing_service(db: Any) -> Any:
    """PricingService using UTC as lot-local time."""
    from parking.services.pricing import PricingService

    return PricingService(db, timezone="UTC")


@pytest.fixture
def payment_service(db: Any) -> Any:
    """PaymentService bound to the mocked payments table."""
    from parking.services.payment_service import PaymentService

    return PaymentService(db)


# === Model Factories ===


@pytest.fixture
def make_tier() -> Callable[..., PricingTier]:
    """Factory for an active hourly all-vehicle tier, valid since 2020."""

    def _make(**overrides: Any) -> PricingTier:
        data: dict[str, Any] = {
            "name": "Standard",
            "vehicle_type": VehicleType.ALL,
            "base_price": 5.0,
            "pricing_type": PricingType.HOURLY,
            "valid_from": LONG_AGO,
            "created_at": LONG_AGO,
            "updated_at": LONG_AGO,
        }
        data.update(overrides)
        return PricingTier(**data)

    return _make


@pytest.fixture
def make_request() -> Callable[..., PriceRequest]:
    """Factory for a 3 hour car booking on a weekday morning."""

    def _make(**overrides: Any) -> PriceRequest:
        duration = overrides.get("duration", 3)
        start = overrides.get("start_time", WEEKDAY_MORNING)
        data: dict[str, Any] = {
            "vehicle_type": VehicleType.CAR,
            "duration": duration,
            "start_time": start,
            "end_time": start + dt.timedelta(hours=duration),
        }
        data.update(overrides)
        return PriceRequest(**data)

    return _make


@pytest.fixture
def make_payment() -> Callable[..., Payment]:
    """Factory for a completed card payment of 100.00."""

    def _make(*completed_refunds: float, **overrides: Any) -> Payment:
        data: dict[str, Any] = {
            "payment_id": "PAY-TEST00000001",
            "booking_id": "BKG-1",
            "user_id": "user-1",
            "amount": 100.0,
            "payment_method": PaymentMethod.CARD,
            "payment_status": PaymentStatus.COMPLETED,
            "refund_details": [
                RefundRecord(
                    refund_id=f"REF_{i}",
                    refund_amount=amount,
                    refund_reason="test",
                    refund_date=WEEKDAY_MORNING,
                    refund_status=RefundStatus.COMPLETED,
                )
                for i, amount in enumerate(completed_refunds)
            ],
            "created_at": WEEKDAY_MORNING,
            "updated_at": WEEKDAY_MORNING,
        }
        data.update(overrides)
        return Payment(**data)

    return _make
