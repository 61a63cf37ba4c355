"""Pricing engine for parking bookings.

Pure functions over PricingTier records:
- Tier validity and applicability checks
- Base amount from the tier's billing cadence (partial units round up)
- Surcharges: the highest applicable multiplier wins, they never stack
- Discounts: applied sequentially in configured order

Money arithmetic is done with Decimal and converted to float only when the
PriceCalculation is built. Weekday and hour-of-day are read in the lot's
local timezone; naive timestamps are taken to already be lot-local.
"""

import datetime as dt
import math
from decimal import Decimal

from parking.models import (
    Discount,
    DiscountType,
    PriceCalculation,
    PriceRequest,
    PricingTier,
    PricingType,
    Surcharge,
    SurchargeType,
    VehicleType,
    Weekday,
)
from parking.utils.money import ZERO, round_money, to_decimal

HOURS_PER_DAY = 24
HOURS_PER_WEEK = 24 * 7
HOURS_PER_MONTH = 24 * 30

OVERNIGHT_START_HOUR = 22
OVERNIGHT_END_HOUR = 6

WEEKEND_DAYS = frozenset({Weekday.SATURDAY, Weekday.SUNDAY})

NO_SURCHARGE = Decimal("1")


def _aware(moment: dt.datetime, tz: dt.tzinfo) -> dt.datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=tz)
    return moment


def _local(moment: dt.datetime, tz: dt.tzinfo) -> dt.datetime:
    return _aware(moment, tz).astimezone(tz)


def weekday_of(moment: dt.datetime) -> Weekday:
    """Day name of a (local) timestamp."""
    return list(Weekday)[moment.weekday()]


def parse_time_to_hours(time_str: str) -> float:
    """Convert an HH:mm string to fractional hours ("07:30" -> 7.5)."""
    hours, minutes = time_str.split(":")
    return int(hours) + int(minutes) / 60


def is_valid_at(tier: PricingTier, now: dt.datetime, tz: dt.tzinfo = dt.UTC) -> bool:
    """Check whether a tier is usable at a point in time.

    A tier is usable iff it is active, has started, and has not expired.
    A missing valid_until means the tier never expires.
    """
    if not tier.is_active:
        return False

    now = _aware(now, tz)
    if _aware(tier.valid_from, tz) > now:
        return False
    if tier.valid_until is not None and _aware(tier.valid_until, tz) < now:
        return False
    return True


def matches(tier: PricingTier, request: PriceRequest, tz: dt.tzinfo = dt.UTC) -> bool:
    """Check whether a tier applies to a candidate booking.

    Args:
        tier: Pricing tier to test
        request: Booking to be priced
        tz: Lot-local timezone for naive timestamps

    Returns:
        True if the tier can price the booking. A non-match is a normal
        outcome, never an error.
    """
    if not is_valid_at(tier, request.start_time, tz):
        return False

    if tier.vehicle_type != VehicleType.ALL and tier.vehicle_type != request.vehicle_type:
        return False

    # Slot restrictions only apply when the booking names a slot
    if (
        tier.applicable_slots
        and request.slot_id is not None
        and request.slot_id not in tier.applicable_slots
    ):
        return False

    duration_range = tier.duration_range
    if request.duration < duration_range.min or request.duration > duration_range.max:
        return False

    return True


def calculate_base_amount(tier: PricingTier, duration: float) -> Decimal:
    """Base amount before surcharges and discounts.

    Partial billing units round up: 25 hours on a daily tier bills 2 days,
    exactly 24 hours bills 1.
    """
    base_price = to_decimal(tier.base_price)
    hours = to_decimal(duration)

    if tier.pricing_type == PricingType.HOURLY:
        return base_price * hours
    if tier.pricing_type == PricingType.DAILY:
        return base_price * math.ceil(hours / HOURS_PER_DAY)
    if tier.pricing_type == PricingType.WEEKLY:
        return base_price * math.ceil(hours / HOURS_PER_WEEK)
    if tier.pricing_type == PricingType.MONTHLY:
        return base_price * math.ceil(hours / HOURS_PER_MONTH)
    # Flat pricing ignores duration
    return base_price


def applies_surcharge(
    surcharge: Surcharge,
    start_time: dt.datetime,
    end_time: dt.datetime,
    tz: dt.tzinfo = dt.UTC,
) -> bool:
    """Check whether a surcharge rule applies to a booking window.

    Only the wall-clock of the two endpoints is inspected, so a multi-day
    booking is judged on its start and end hour alone.
    """
    start = _local(start_time, tz)
    end = _local(end_time, tz)

    if surcharge.type == SurchargeType.WEEKEND:
        return weekday_of(start) in WEEKEND_DAYS or weekday_of(end) in WEEKEND_DAYS

    if surcharge.type == SurchargeType.PEAK_HOURS:
        if not surcharge.time_ranges:
            return False
        start_hour = start.hour + start.minute / 60
        end_hour = end.hour + end.minute / 60
        for time_range in surcharge.time_ranges:
            range_start = parse_time_to_hours(time_range.start)
            range_end = parse_time_to_hours(time_range.end)
            if (
                range_start <= start_hour <= range_end
                or range_start <= end_hour <= range_end
                or (start_hour <= range_start and end_hour >= range_end)
            ):
                return True
        return False

    if surcharge.type == SurchargeType.OVERNIGHT:
        return (
            start.hour >= OVERNIGHT_START_HOUR
            or end.hour <= OVERNIGHT_END_HOUR
            or (start.hour < end.hour and end.hour <= OVERNIGHT_END_HOUR)
        )

    # No holiday calendar is configured
    return False


def applicable_surcharges(
    tier: PricingTier,
    start_time: dt.datetime,
    end_time: dt.datetime,
    tz: dt.tzinfo = dt.UTC,
) -> list[Surcharge]:
    """Surcharge rules of a tier that apply to the booking window, in order."""
    return [s for s in tier.surcharges if applies_surcharge(s, start_time, end_time, tz)]


def surcharge_multiplier(surcharges: list[Surcharge]) -> Decimal:
    """Effective multiplier: the largest applicable one, never below 1."""
    multiplier = NO_SURCHARGE
    for surcharge in surcharges:
        multiplier = max(multiplier, to_decimal(surcharge.multiplier))
    return multiplier


def discount_applies(discount: Discount, duration: float) -> bool:
    """A discount applies when it has no minimum duration or the booking meets it."""
    return discount.min_duration is None or duration >= discount.min_duration


def apply_discounts(
    discounts: list[Discount],
    amount: Decimal,
    duration: float,
) -> tuple[Decimal, list[Discount]]:
    """Apply qualifying discounts sequentially in list order.

    Order matters: 10% then 5 off gives a different result than 5 off
    then 10%.

    Args:
        discounts: Discount rules in configured order
        amount: Running amount (base amount times surcharge multiplier)
        duration: Booking duration in hours

    Returns:
        Tuple of (discounted amount, discounts that applied)
    """
    applied: list[Discount] = []
    for discount in discounts:
        if not discount_applies(discount, duration):
            continue
        value = to_decimal(discount.value)
        if discount.type == DiscountType.PERCENTAGE:
            amount = amount * (1 - value / 100)
        else:
            amount = max(ZERO, amount - value)
        applied.append(discount)
    return amount, applied


def calculate_price(
    tier: PricingTier,
    request: PriceRequest,
    tz: dt.tzinfo = dt.UTC,
) -> PriceCalculation | None:
    """Price a booking under one tier.

    Args:
        tier: Pricing tier
        request: Booking to be priced
        tz: Lot-local timezone

    Returns:
        PriceCalculation, or None if the tier does not apply
    """
    if not matches(tier, request, tz):
        return None

    base_amount = calculate_base_amount(tier, request.duration)

    surcharges = applicable_surcharges(tier, request.start_time, request.end_time, tz)
    multiplier = surcharge_multiplier(surcharges)

    final_amount, discounts = apply_discounts(
        tier.discounts, base_amount * multiplier, request.duration
    )

    return PriceCalculation(
        tier_id=tier.tier_id,
        tier_name=tier.name,
        pricing_type=tier.pricing_type,
        currency=tier.currency,
        base_amount=float(base_amount),
        surcharge_multiplier=float(multiplier),
        final_amount=float(round_money(final_amount)),
        applied_discounts=discounts,
        applied_surcharges=surcharges,
    )


def _priority_key(tier: PricingTier) -> tuple[int, dt.datetime, str]:
    return (-tier.priority, _aware(tier.created_at, dt.UTC), tier.tier_id)


def rank_tiers(tiers: list[PricingTier]) -> list[PricingTier]:
    """Order tiers by priority (highest first), then oldest, then ID."""
    return sorted(tiers, key=_priority_key)


def select_tiers(
    tiers: list[PricingTier],
    request: PriceRequest,
    tz: dt.tzinfo = dt.UTC,
) -> list[PriceCalculation]:
    """Price a booking under every matching tier, best tier first.

    Returns:
        Calculations ordered by tier priority; empty if nothing matches.
    """
    results = []
    for tier in rank_tiers(tiers):
        calculation = calculate_price(tier, request, tz)
        if calculation is not None:
            results.append(calculation)
    return results
