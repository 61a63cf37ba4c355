#!/usr/bin/env python3
"""Seed development database with sample pricing tiers.

Creates a small set of tiers covering each pricing type, vehicle-specific
rates, peak/weekend/overnight surcharges and duration discounts, so price
quotes can be tried out against a fresh environment.

Usage:
    python scripts/seed_data.py --env dev
    python scripts/seed_data.py --env dev --clear-first
"""

import argparse
import os
import sys

from parking.models import (
    Discount,
    DiscountType,
    DurationRange,
    PricingTierCreate,
    PricingType,
    Surcharge,
    SurchargeType,
    TimeRange,
    VehicleType,
)
from parking.services.dynamodb import DynamoDBService
from parking.services.pricing import PricingService

SAMPLE_TIERS: list[PricingTierCreate] = [
    PricingTierCreate(
        name="Standard Hourly",
        description="Default hourly rate for any vehicle",
        vehicle_type=VehicleType.ALL,
        base_price=3.0,
        pricing_type=PricingType.HOURLY,
        duration_range=DurationRange(min=1, max=12),
        surcharges=[
            Surcharge(
                type=SurchargeType.PEAK_HOURS,
                multiplier=1.5,
                time_ranges=[
                    TimeRange(start="07:00", end="09:30"),
                    TimeRange(start="16:30", end="19:00"),
                ],
                description="Rush hour",
            ),
            Surcharge(type=SurchargeType.WEEKEND, multiplier=1.25, description="Weekend"),
        ],
        discounts=[
            Discount(
                type=DiscountType.PERCENTAGE,
                value=10,
                min_duration=6,
                description="10% off stays of 6 hours or more",
            ),
        ],
    ),
    PricingTierCreate(
        name="Car Hourly",
        description="Hourly rate for cars",
        vehicle_type=VehicleType.CAR,
        base_price=2.5,
        pricing_type=PricingType.HOURLY,
        duration_range=DurationRange(min=1, max=12),
        priority=10,
        surcharges=[
            Surcharge(type=SurchargeType.OVERNIGHT, multiplier=1.2, description="Overnight"),
        ],
    ),
    PricingTierCreate(
        name="Motorcycle Hourly",
        description="Reduced hourly rate for motorcycles",
        vehicle_type=VehicleType.MOTORCYCLE,
        base_price=1.0,
        pricing_type=PricingType.HOURLY,
        duration_range=DurationRange(min=0.5, max=12),
        priority=10,
    ),
    PricingTierCreate(
        name="Daily Pass",
        description="Per started day",
        vehicle_type=VehicleType.ALL,
        base_price=20.0,
        pricing_type=PricingType.DAILY,
        duration_range=DurationRange(min=4, max=168),
        discounts=[
            Discount(type=DiscountType.FIXED, value=5, min_duration=72, description="$5 off 3+ days"),
        ],
    ),
    PricingTierCreate(
        name="Weekly Pass",
        description="Per started week",
        vehicle_type=VehicleType.ALL,
        base_price=100.0,
        pricing_type=PricingType.WEEKLY,
        duration_range=DurationRange(min=72, max=720),
    ),
    PricingTierCreate(
        name="Monthly Permit",
        description="Per started 30 days",
        vehicle_type=VehicleType.ALL,
        base_price=350.0,
        pricing_type=PricingType.MONTHLY,
        duration_range=DurationRange(min=168, max=2160),
    ),
    PricingTierCreate(
        name="Truck Flat Rate",
        description="Flat fee for trucks up to 12 hours",
        vehicle_type=VehicleType.TRUCK,
        base_price=40.0,
        pricing_type=PricingType.FLAT,
        duration_range=DurationRange(min=1, max=12),
        priority=5,
    ),
]


def clear_table(db: DynamoDBService, table_name: str) -> int:
    """Clear all items from a table.

    Returns:
        Number of items deleted
    """
    table = db._get_table(table_name)
    key_attrs = [k["AttributeName"] for k in table.key_schema]
    items = db.scan(table_name)

    with table.batch_writer() as batch:
        for item in items:
            batch.delete_item(Key={k: item[k] for k in key_attrs if k in item})

    return len(items)


def seed_pricing_tiers(service: PricingService) -> int:
    """Create the sample tiers. Returns the number created."""
    print(f"Seeding pricing table: {service.db._table_name(service.TABLE)}")

    for data in SAMPLE_TIERS:
        tier = service.create_tier(data)
        print(
            f"  ✓ {tier.name} ({tier.vehicle_type.value}): "
            f"${tier.base_price:.2f} {tier.pricing_type.value}, priority {tier.priority}"
        )

    return len(SAMPLE_TIERS)


def main() -> int:
    """Run the seed script."""
    parser = argparse.ArgumentParser(description="Seed development database with pricing tiers")
    parser.add_argument(
        "--env",
        choices=["dev", "staging", "prod"],
        default="dev",
        help="Target environment (default: dev)",
    )
    parser.add_argument(
        "--region",
        default=os.environ.get("AWS_DEFAULT_REGION", "eu-west-1"),
        help="AWS region (default: eu-west-1 or AWS_DEFAULT_REGION env var)",
    )
    parser.add_argument(
        "--clear-first",
        action="store_true",
        help="Delete existing pricing tiers before seeding",
    )

    args = parser.parse_args()

    # boto3 picks the region up from the environment
    os.environ["AWS_DEFAULT_REGION"] = args.region

    if args.env == "prod":
        confirm = input("⚠️  WARNING: You are about to modify PRODUCTION data. Type 'yes' to continue: ")
        if confirm.lower() != "yes":
            print("Aborted.")
            return 1

    print(f"\n🌱 Seeding {args.env} environment (region: {args.region})\n")

    db = DynamoDBService(args.env)
    service = PricingService(db)

    if args.clear_first:
        count = clear_table(db, PricingService.TABLE)
        print(f"Cleared {count} items from {PricingService.TABLE}\n")

    try:
        seed_pricing_tiers(service)
    except Exception as e:
        print(f"  ❌ Failed to seed pricing tiers: {e}")
        return 1

    print("\n✅ Seed completed successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
