"""Pricing service: tier storage and price quotes."""

import datetime as dt
import os
from typing import TYPE_CHECKING, Any
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from parking.models import (
    ErrorCode,
    ParkingError,
    PriceQuote,
    PriceRequest,
    PricingTier,
    PricingTierCreate,
    PricingTierUpdate,
    PricingType,
    VehicleType,
)
from parking.utils.logging import get_logger, log_pricing_calculation

from . import pricing_engine
from .dynamodb import from_item, to_item

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)


def load_timezone(name: str) -> dt.tzinfo:
    """Resolve a timezone name, without needing tzdata for UTC."""
    if name.upper() == "UTC":
        return dt.UTC
    return ZoneInfo(name)


class PricingService:
    """Service for pricing tiers and price calculations."""

    TABLE = "pricing-tiers"

    def __init__(self, db: "DynamoDBService", timezone: str | None = None) -> None:
        """Initialize pricing service.

        Args:
            db: DynamoDB service instance
            timezone: Lot-local timezone name. Defaults to PARKING_TIMEZONE env var, then UTC.
        """
        self.db = db
        self.tz = load_timezone(timezone or os.getenv("PARKING_TIMEZONE", "UTC"))

    def get_all_tiers(self) -> list[PricingTier]:
        """Get every stored pricing tier, unsorted."""
        return [self._item_to_tier(item) for item in self.db.scan(self.TABLE)]

    def list_tiers(
        self,
        is_active: bool | None = None,
        vehicle_type: VehicleType | None = None,
        pricing_type: PricingType | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[PricingTier], int]:
        """List pricing tiers with optional filters.

        Args:
            is_active: Only tiers with this active flag
            vehicle_type: Only tiers for this vehicle type
            pricing_type: Only tiers with this pricing type
            page: 1-based page number
            limit: Page size

        Returns:
            Tuple of (tiers on the page, total matching count). Sorted by
            priority (highest first), then vehicle type and pricing type.
        """
        tiers = self.get_all_tiers()
        if is_active is not None:
            tiers = [t for t in tiers if t.is_active == is_active]
        if vehicle_type is not None:
            tiers = [t for t in tiers if t.vehicle_type == vehicle_type]
        if pricing_type is not None:
            tiers = [t for t in tiers if t.pricing_type == pricing_type]

        tiers.sort(key=lambda t: (-t.priority, t.vehicle_type.value, t.pricing_type.value))

        start = (page - 1) * limit
        return tiers[start : start + limit], len(tiers)

    def get_tier(self, tier_id: str) -> PricingTier | None:
        """Get a pricing tier by ID, or None if not found."""
        item = self.db.get_item(self.TABLE, {"tier_id": tier_id})
        return self._item_to_tier(item) if item else None

    def create_tier(self, data: PricingTierCreate) -> PricingTier:
        """Create a new pricing tier.

        Args:
            data: Tier creation data. valid_from defaults to now.

        Returns:
            The stored PricingTier
        """
        now = dt.datetime.now(dt.UTC)
        fields = data.model_dump(exclude={"valid_from"})
        tier = PricingTier(
            **fields,
            valid_from=data.valid_from or now,
            is_active=True,
            created_at=now,
            updated_at=now,
        )

        self.db.put_item(
            self.TABLE,
            self._tier_to_item(tier),
            condition_expression="attribute_not_exists(tier_id)",
        )
        logger.info("Created pricing tier %s (%s)", tier.tier_id, tier.name)
        return tier

    def update_tier(self, tier_id: str, data: PricingTierUpdate) -> PricingTier | None:
        """Apply a partial update to a pricing tier.

        Args:
            tier_id: Tier to update
            data: Fields to change (unset fields are kept)

        Returns:
            Updated tier, or None if the tier does not exist

        Raises:
            ParkingError: INVALID_TIER if the merged tier fails validation
        """
        existing = self.get_tier(tier_id)
        if existing is None:
            return None

        merged = existing.model_dump() | data.model_dump(exclude_unset=True)
        merged["updated_at"] = dt.datetime.now(dt.UTC)
        try:
            tier = PricingTier.model_validate(merged)
        except ValidationError as e:
            raise ParkingError(
                ErrorCode.INVALID_TIER,
                details={"tier_id": tier_id, "error": str(e)},
            ) from e

        self.db.put_item(self.TABLE, self._tier_to_item(tier))
        logger.info("Updated pricing tier %s", tier_id)
        return tier

    def delete_tier(self, tier_id: str) -> bool:
        """Delete a pricing tier. Returns False if it did not exist."""
        deleted = self.db.delete_item(self.TABLE, {"tier_id": tier_id})
        if deleted:
            logger.info("Deleted pricing tier %s", tier_id)
        return deleted

    def candidate_tiers(self, request: PriceRequest) -> list[PricingTier]:
        """Tiers valid at the booking start for its vehicle type (or all vehicles).

        Duration and slot checks are left to the pricing engine.
        """
        return [
            tier
            for tier in self.get_all_tiers()
            if pricing_engine.is_valid_at(tier, request.start_time, self.tz)
            and tier.vehicle_type in (request.vehicle_type, VehicleType.ALL)
        ]

    def calculate_quote(self, request: PriceRequest) -> PriceQuote | None:
        """Price a booking under every applicable tier.

        The highest-priority matching tier is the recommended price.

        Args:
            request: Booking to be priced

        Returns:
            PriceQuote, or None if no tier applies
        """
        options = pricing_engine.select_tiers(self.candidate_tiers(request), request, self.tz)

        best = options[0] if options else None
        log_pricing_calculation(
            logger,
            vehicle_type=request.vehicle_type.value,
            duration=request.duration,
            options=len(options),
            tier_id=best.tier_id if best else None,
            final_amount=best.final_amount if best else None,
        )

        if best is None:
            return None

        return PriceQuote(
            recommended_pricing=best,
            all_options=options,
            calculation_details=request,
        )

    # Conversion helpers

    def _tier_to_item(self, tier: PricingTier) -> dict[str, Any]:
        """Convert PricingTier model to DynamoDB item."""
        return to_item(tier.model_dump(mode="json"))

    def _item_to_tier(self, item: dict[str, Any]) -> PricingTier:
        """Convert DynamoDB item to PricingTier model."""
        return PricingTier.model_validate(from_item(item))
