"""Pricing tier models and price calculation results."""

import datetime as dt
import uuid
from typing import Self

from pydantic import Field, field_validator, model_validator

from .base import ParkingModel
from .enums import DiscountType, PricingType, SurchargeType, VehicleType, Weekday

# HH:mm, 00:00 through 23:59
TIME_OF_DAY_PATTERN = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"


def generate_tier_id() -> str:
    """Generate a unique pricing tier ID like TIER-3F2A9C0B1D4E."""
    return f"TIER-{uuid.uuid4().hex[:12].upper()}"


class TimeRange(ParkingModel):
    """Time-of-day window used by peak hour surcharges."""

    start: str = Field(..., pattern=TIME_OF_DAY_PATTERN, examples=["07:00"])
    end: str = Field(..., pattern=TIME_OF_DAY_PATTERN, examples=["09:30"])


class DurationRange(ParkingModel):
    """Inclusive range of booking durations (hours) a tier accepts."""

    min: float = Field(default=1, ge=0.5, description="Minimum hours")
    max: float = Field(default=24, ge=1, description="Maximum hours")

    @model_validator(mode="after")
    def check_bounds(self) -> Self:
        if self.min > self.max:
            raise ValueError("durationRange.min must not exceed durationRange.max")
        return self


class Discount(ParkingModel):
    """Price reduction applied after surcharges."""

    type: DiscountType
    value: float = Field(..., ge=0)
    min_duration: float | None = Field(
        default=None,
        ge=1,
        description="Only applies to bookings at least this many hours long",
    )
    description: str


class Surcharge(ParkingModel):
    """Multiplicative price increase keyed to time-of-day or day conditions."""

    type: SurchargeType
    multiplier: float = Field(..., ge=1, examples=[1.5])
    time_ranges: list[TimeRange] = Field(default_factory=list)
    days: list[Weekday] = Field(default_factory=list)
    description: str


class PricingTier(ParkingModel):
    """A named pricing rule-set applicable to a subset of bookings."""

    tier_id: str = Field(default_factory=generate_tier_id)
    name: str = Field(..., min_length=1)
    description: str = ""
    vehicle_type: VehicleType = VehicleType.ALL
    base_price: float = Field(..., ge=0)
    currency: str = "USD"
    pricing_type: PricingType = PricingType.HOURLY
    duration_range: DurationRange = Field(default_factory=DurationRange)
    discounts: list[Discount] = Field(default_factory=list)
    surcharges: list[Surcharge] = Field(default_factory=list)
    is_active: bool = True
    priority: int = Field(default=0, description="Higher priority tiers win")
    valid_from: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.UTC))
    valid_until: dt.datetime | None = None
    applicable_slots: list[str] = Field(
        default_factory=list,
        description="Slot IDs this tier is limited to (empty means all slots)",
    )
    created_at: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.UTC))
    updated_at: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.UTC))

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("name", "description")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return value.strip()


class PricingTierCreate(ParkingModel):
    """Data required to create a pricing tier."""

    name: str = Field(..., min_length=1, examples=["Standard Hourly"])
    description: str = ""
    vehicle_type: VehicleType = Field(..., examples=["car"])
    base_price: float = Field(..., ge=0, examples=[5.0])
    currency: str = "USD"
    pricing_type: PricingType = Field(..., examples=["hourly"])
    duration_range: DurationRange = Field(default_factory=DurationRange)
    discounts: list[Discount] = Field(default_factory=list)
    surcharges: list[Surcharge] = Field(default_factory=list)
    priority: int = 0
    valid_from: dt.datetime | None = None
    valid_until: dt.datetime | None = None
    applicable_slots: list[str] = Field(default_factory=list)


class PricingTierUpdate(ParkingModel):
    """Partial update of a pricing tier. Unset fields are left unchanged."""

    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    vehicle_type: VehicleType | None = None
    base_price: float | None = Field(default=None, ge=0)
    currency: str | None = None
    pricing_type: PricingType | None = None
    duration_range: DurationRange | None = None
    discounts: list[Discount] | None = None
    surcharges: list[Surcharge] | None = None
    is_active: bool | None = None
    priority: int | None = None
    valid_from: dt.datetime | None = None
    valid_until: dt.datetime | None = None
    applicable_slots: list[str] | None = None


class PriceRequest(ParkingModel):
    """A candidate booking to be priced."""

    vehicle_type: VehicleType = Field(..., examples=["car"])
    duration: float = Field(..., gt=0, description="Booking length in hours")
    start_time: dt.datetime = Field(..., examples=["2025-07-15T08:00:00Z"])
    end_time: dt.datetime = Field(..., examples=["2025-07-15T11:00:00Z"])
    slot_id: str | None = None

    @model_validator(mode="after")
    def check_window(self) -> Self:
        if (self.start_time.utcoffset() is None) != (self.end_time.utcoffset() is None):
            raise ValueError("startTime and endTime must both carry a UTC offset or both omit it")
        if self.end_time < self.start_time:
            raise ValueError("endTime must not be before startTime")
        return self


class PriceCalculation(ParkingModel):
    """Price of a booking under a single tier.

    The applied rule lists are for audit and display; they are not used to
    recompute the amount.
    """

    tier_id: str
    tier_name: str
    pricing_type: PricingType
    currency: str
    base_amount: float
    surcharge_multiplier: float
    final_amount: float
    applied_discounts: list[Discount] = Field(default_factory=list)
    applied_surcharges: list[Surcharge] = Field(default_factory=list)


class PriceQuote(ParkingModel):
    """All prices for a booking, best option first."""

    recommended_pricing: PriceCalculation
    all_options: list[PriceCalculation]
    calculation_details: PriceRequest
