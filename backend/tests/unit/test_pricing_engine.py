"""Unit tests for the pricing engine.

Tests verify the pure pricing functions:
- Tier validity windows and applicability to a booking
- Base amounts per pricing type, rounding partial units up
- Surcharge detection and the max-multiplier rule
- Sequential discounts
- Tier ranking by priority
"""

import datetime as dt
from decimal import Decimal

import pytest

from parking.models import (
    Discount,
    DiscountType,
    DurationRange,
    PricingType,
    Surcharge,
    SurchargeType,
    TimeRange,
    VehicleType,
    Weekday,
)
from parking.services import pricing_engine

LONG_AGO = dt.datetime(2020, 1, 1, tzinfo=dt.UTC)
WEEKDAY_MORNING = dt.datetime(2025, 7, 15, 10, 0, tzinfo=dt.UTC)
SATURDAY_NOON = dt.datetime(2025, 7, 19, 12, 0, tzinfo=dt.UTC)
TOKYO = dt.timezone(dt.timedelta(hours=9))


def _surcharge(kind: SurchargeType, multiplier: float = 1.5, **kwargs) -> Surcharge:
    return Surcharge(type=kind, multiplier=multiplier, description=kind.value, **kwargs)


def _percentage(value: float, **kwargs) -> Discount:
    return Discount(type=DiscountType.PERCENTAGE, value=value, description=f"{value}% off", **kwargs)


def _fixed(value: float, **kwargs) -> Discount:
    return Discount(type=DiscountType.FIXED, value=value, description=f"{value} off", **kwargs)


class TestIsValidAt:
    """Tests for tier validity windows."""

    @pytest.mark.parametrize(
        "moment",
        [
            LONG_AGO,
            WEEKDAY_MORNING,
            dt.datetime(2099, 1, 1, tzinfo=dt.UTC),
        ],
    )
    def test_inactive_tier_is_never_valid(self, make_tier, moment):
        """An inactive tier is invalid regardless of the date."""
        tier = make_tier(is_active=False)

        assert pricing_engine.is_valid_at(tier, moment) is False

    def test_active_tier_without_end_is_valid_after_start(self, make_tier):
        """A missing valid_until never expires."""
        tier = make_tier()

        assert pricing_engine.is_valid_at(tier, dt.datetime(2099, 1, 1, tzinfo=dt.UTC))

    def test_not_valid_before_valid_from(self, make_tier):
        """A tier is not usable before it starts."""
        tier = make_tier(valid_from=dt.datetime(2026, 1, 1, tzinfo=dt.UTC))

        assert pricing_engine.is_valid_at(tier, WEEKDAY_MORNING) is False

    def test_window_bounds_are_inclusive(self, make_tier):
        """valid_from and valid_until themselves are inside the window."""
        start = dt.datetime(2025, 7, 1, tzinfo=dt.UTC)
        end = dt.datetime(2025, 7, 31, tzinfo=dt.UTC)
        tier = make_tier(valid_from=start, valid_until=end)

        assert pricing_engine.is_valid_at(tier, start)
        assert pricing_engine.is_valid_at(tier, end)
        assert not pricing_engine.is_valid_at(tier, end + dt.timedelta(seconds=1))


class TestMatches:
    """Tests for tier applicability to a booking."""

    @pytest.mark.parametrize(
        ("duration", "expected"),
        [(1, False), (2, True), (3.5, True), (5, True), (6, False)],
    )
    def test_duration_must_fall_within_range(self, make_tier, make_request, duration, expected):
        """Duration bounds are inclusive; one hour outside either bound fails."""
        tier = make_tier(duration_range=DurationRange(min=2, max=5))

        assert pricing_engine.matches(tier, make_request(duration=duration)) is expected

    def test_all_vehicle_tier_matches_any_vehicle(self, make_tier, make_request):
        """A tier for all vehicles applies to every vehicle type."""
        tier = make_tier(vehicle_type=VehicleType.ALL)

        for vehicle in (VehicleType.CAR, VehicleType.TRUCK, VehicleType.MOTORCYCLE):
            assert pricing_engine.matches(tier, make_request(vehicle_type=vehicle))

    def test_vehicle_specific_tier_rejects_other_vehicles(self, make_tier, make_request):
        """A truck tier does not price a car."""
        tier = make_tier(vehicle_type=VehicleType.TRUCK)

        assert not pricing_engine.matches(tier, make_request(vehicle_type=VehicleType.CAR))
        assert pricing_engine.matches(tier, make_request(vehicle_type=VehicleType.TRUCK))

    def test_slot_restricted_tier(self, make_tier, make_request):
        """Slot-restricted tiers only match listed slots when a slot is given."""
        tier = make_tier(applicable_slots=["A-1", "A-2"])

        assert pricing_engine.matches(tier, make_request(slot_id="A-1"))
        assert not pricing_engine.matches(tier, make_request(slot_id="B-7"))
        assert pricing_engine.matches(tier, make_request())

    def test_unrestricted_tier_matches_any_slot(self, make_tier, make_request):
        """An empty slot list means every slot."""
        tier = make_tier()

        assert pricing_engine.matches(tier, make_request(slot_id="B-7"))
        assert pricing_engine.matches(tier, make_request())

    def test_validity_is_checked_at_booking_start(self, make_tier, make_request):
        """A tier expiring before the booking starts does not match."""
        tier = make_tier(valid_until=WEEKDAY_MORNING - dt.timedelta(days=1))

        assert not pricing_engine.matches(tier, make_request())


class TestCalculateBaseAmount:
    """Tests for base amounts per pricing type."""

    def test_hourly_multiplies_by_hours(self, make_tier):
        """Hourly 5.00 for 3 hours is 15.00."""
        tier = make_tier(base_price=5, pricing_type=PricingType.HOURLY)

        assert pricing_engine.calculate_base_amount(tier, 3) == Decimal("15")

    def test_hourly_bills_fractional_hours(self, make_tier):
        """Hourly pricing does not round partial hours."""
        tier = make_tier(base_price=4, pricing_type=PricingType.HOURLY)

        assert pricing_engine.calculate_base_amount(tier, 1.5) == Decimal("6")

    @pytest.mark.parametrize(("hours", "expected"), [(24, "20"), (25, "40"), (1, "20"), (48, "40")])
    def test_daily_rounds_partial_days_up(self, make_tier, hours, expected):
        """Daily 20.00: 24h bills one day, 25h bills two."""
        tier = make_tier(base_price=20, pricing_type=PricingType.DAILY)

        assert pricing_engine.calculate_base_amount(tier, hours) == Decimal(expected)

    @pytest.mark.parametrize(("hours", "expected"), [(168, "100"), (169, "200")])
    def test_weekly_rounds_partial_weeks_up(self, make_tier, hours, expected):
        """Weekly billing uses 168 hour units."""
        tier = make_tier(base_price=100, pricing_type=PricingType.WEEKLY)

        assert pricing_engine.calculate_base_amount(tier, hours) == Decimal(expected)

    @pytest.mark.parametrize(("hours", "expected"), [(720, "300"), (721, "600")])
    def test_monthly_uses_thirty_day_months(self, make_tier, hours, expected):
        """Monthly billing uses 720 hour units."""
        tier = make_tier(base_price=300, pricing_type=PricingType.MONTHLY)

        assert pricing_engine.calculate_base_amount(tier, hours) == Decimal(expected)

    def test_flat_ignores_duration(self, make_tier):
        """Flat pricing is the base price for any duration."""
        tier = make_tier(base_price=40, pricing_type=PricingType.FLAT)

        assert pricing_engine.calculate_base_amount(tier, 1) == Decimal("40")
        assert pricing_engine.calculate_base_amount(tier, 11) == Decimal("40")


class TestSurcharges:
    """Tests for surcharge detection and multiplier selection."""

    def test_weekend_applies_on_saturday(self):
        """Weekend surcharge applies when the booking starts on a Saturday."""
        surcharge = _surcharge(SurchargeType.WEEKEND)

        assert pricing_engine.applies_surcharge(
            surcharge, SATURDAY_NOON, SATURDAY_NOON + dt.timedelta(hours=2)
        )

    def test_weekend_applies_when_booking_ends_on_weekend(self):
        """A Friday evening booking ending on Saturday is surcharged."""
        friday = dt.datetime(2025, 7, 18, 20, 0, tzinfo=dt.UTC)
        surcharge = _surcharge(SurchargeType.WEEKEND)

        assert pricing_engine.applies_surcharge(surcharge, friday, friday + dt.timedelta(hours=6))

    def test_weekend_does_not_apply_midweek(self):
        """Tuesday bookings carry no weekend surcharge."""
        surcharge = _surcharge(SurchargeType.WEEKEND)

        assert not pricing_engine.applies_surcharge(
            surcharge, WEEKDAY_MORNING, WEEKDAY_MORNING + dt.timedelta(hours=3)
        )

    @pytest.mark.parametrize(
        ("start_hour", "end_hour", "expected"),
        [
            (8, 11, True),  # starts inside the range
            (5, 8, True),  # ends inside the range
            (6, 10, True),  # covers the whole range
            (10, 13, False),  # entirely after
            (4, 6, False),  # entirely before
        ],
    )
    def test_peak_hours(self, start_hour, end_hour, expected):
        """Peak hours apply when the booking touches a configured range."""
        surcharge = _surcharge(
            SurchargeType.PEAK_HOURS,
            time_ranges=[TimeRange(start="07:00", end="09:30")],
        )
        day = dt.datetime(2025, 7, 15, tzinfo=dt.UTC)

        assert (
            pricing_engine.applies_surcharge(
                surcharge,
                day.replace(hour=start_hour),
                day.replace(hour=end_hour),
            )
            is expected
        )

    def test_peak_hours_without_ranges_never_applies(self):
        """A peak surcharge with no ranges is inert."""
        surcharge = _surcharge(SurchargeType.PEAK_HOURS)

        assert not pricing_engine.applies_surcharge(
            surcharge, WEEKDAY_MORNING, WEEKDAY_MORNING + dt.timedelta(hours=3)
        )

    @pytest.mark.parametrize(
        ("start", "end", "expected"),
        [
            (dt.datetime(2025, 7, 15, 23, 0), dt.datetime(2025, 7, 16, 7, 0), True),
            (dt.datetime(2025, 7, 15, 3, 0), dt.datetime(2025, 7, 15, 5, 0), True),
            (dt.datetime(2025, 7, 15, 10, 0), dt.datetime(2025, 7, 15, 13, 0), False),
        ],
    )
    def test_overnight(self, start, end, expected):
        """Overnight applies for starts from 22:00 or ends by 06:00."""
        surcharge = _surcharge(SurchargeType.OVERNIGHT)

        assert pricing_engine.applies_surcharge(surcharge, start, end) is expected

    def test_holiday_never_applies(self):
        """Without a holiday calendar the holiday surcharge is inert."""
        surcharge = _surcharge(SurchargeType.HOLIDAY)

        assert not pricing_engine.applies_surcharge(
            surcharge, SATURDAY_NOON, SATURDAY_NOON + dt.timedelta(hours=1)
        )

    def test_highest_multiplier_wins(self):
        """1.5 and 2.0 both applicable gives 2.0, not 3.0."""
        surcharges = [
            _surcharge(SurchargeType.WEEKEND, 1.5),
            _surcharge(SurchargeType.WEEKEND, 2.0),
        ]

        assert pricing_engine.surcharge_multiplier(surcharges) == Decimal("2.0")

    def test_no_surcharges_means_multiplier_one(self):
        """No applicable surcharge leaves the amount unchanged."""
        assert pricing_engine.surcharge_multiplier([]) == Decimal("1")

    def test_weekday_is_read_in_lot_timezone(self):
        """Friday evening UTC is already Saturday morning in UTC+9."""
        start = dt.datetime(2025, 7, 18, 20, 0, tzinfo=dt.UTC)
        end = start + dt.timedelta(hours=1)
        surcharge = _surcharge(SurchargeType.WEEKEND)

        assert not pricing_engine.applies_surcharge(surcharge, start, end, dt.UTC)
        assert pricing_engine.applies_surcharge(surcharge, start, end, TOKYO)

    def test_naive_timestamps_are_lot_local(self):
        """Naive times are taken as wall-clock time at the lot."""
        saturday = dt.datetime(2025, 7, 19, 10, 0)

        assert pricing_engine.weekday_of(saturday) == Weekday.SATURDAY
        assert pricing_engine.applies_surcharge(
            _surcharge(SurchargeType.WEEKEND), saturday, saturday + dt.timedelta(hours=1), TOKYO
        )

    def test_parse_time_to_hours(self):
        """HH:mm converts to fractional hours."""
        assert pricing_engine.parse_time_to_hours("07:30") == 7.5
        assert pricing_engine.parse_time_to_hours("00:00") == 0
        assert pricing_engine.parse_time_to_hours("23:45") == 23.75


class TestApplyDiscounts:
    """Tests for sequential discount application."""

    def test_order_matters(self):
        """10% then 5 off on 100 is 85; 5 off then 10% is 85.5."""
        percentage_first, _ = pricing_engine.apply_discounts(
            [_percentage(10), _fixed(5)], Decimal("100"), 3
        )
        fixed_first, _ = pricing_engine.apply_discounts(
            [_fixed(5), _percentage(10)], Decimal("100"), 3
        )

        assert percentage_first == Decimal("85")
        assert fixed_first == Decimal("85.5")

    def test_fixed_discount_floors_at_zero(self):
        """A fixed discount larger than the amount yields zero, not a negative price."""
        amount, applied = pricing_engine.apply_discounts([_fixed(50)], Decimal("20"), 3)

        assert amount == Decimal("0")
        assert len(applied) == 1

    def test_min_duration_gates_discount(self):
        """A discount with min_duration only applies to long enough bookings."""
        discount = _percentage(10, min_duration=6)

        short, short_applied = pricing_engine.apply_discounts([discount], Decimal("100"), 5)
        long, long_applied = pricing_engine.apply_discounts([discount], Decimal("100"), 6)

        assert short == Decimal("100")
        assert short_applied == []
        assert long == Decimal("90")
        assert long_applied == [discount]


class TestCalculatePrice:
    """Tests for pricing a booking under one tier."""

    def test_hourly_price(self, make_tier, make_request):
        """5.00/hour for 3 hours on a quiet weekday costs 15.00."""
        calculation = pricing_engine.calculate_price(make_tier(), make_request(duration=3))

        assert calculation is not None
        assert calculation.base_amount == 15
        assert calculation.surcharge_multiplier == 1
        assert calculation.final_amount == 15
        assert calculation.applied_discounts == []
        assert calculation.applied_surcharges == []

    def test_surcharge_then_discounts(self, make_tier, make_request):
        """Surcharge multiplies the base before discounts apply."""
        weekend = _surcharge(SurchargeType.WEEKEND, 2.0)
        tier = make_tier(
            base_price=10,
            surcharges=[weekend, _surcharge(SurchargeType.OVERNIGHT, 1.5)],
            discounts=[_percentage(10), _fixed(4, min_duration=24)],
        )

        calculation = pricing_engine.calculate_price(
            tier, make_request(duration=2, start_time=SATURDAY_NOON)
        )

        assert calculation is not None
        assert calculation.base_amount == 20
        assert calculation.surcharge_multiplier == 2.0
        assert calculation.final_amount == 36
        assert calculation.applied_surcharges == [weekend]
        assert [d.value for d in calculation.applied_discounts] == [10]

    def test_final_amount_rounds_half_up(self, make_tier, make_request):
        """Final amounts are rounded to cents, halves up."""
        tier = make_tier(base_price=0.25, pricing_type=PricingType.FLAT, discounts=[_percentage(50)])

        calculation = pricing_engine.calculate_price(tier, make_request())

        assert calculation is not None
        assert calculation.final_amount == 0.13

    def test_non_matching_tier_returns_none(self, make_tier, make_request):
        """A tier that does not apply yields no calculation."""
        tier = make_tier(vehicle_type=VehicleType.BUS)

        assert pricing_engine.calculate_price(tier, make_request()) is None


class TestSelectTiers:
    """Tests for ranking matching tiers."""

    def test_highest_priority_first(self, make_tier, make_request):
        """The highest priority match is the recommended option."""
        low = make_tier(tier_id="TIER-LOW", base_price=1, priority=0)
        high = make_tier(tier_id="TIER-HIGH", base_price=9, priority=10)

        options = pricing_engine.select_tiers([low, high], make_request())

        assert [o.tier_id for o in options] == ["TIER-HIGH", "TIER-LOW"]

    def test_equal_priority_prefers_oldest_tier(self, make_tier, make_request):
        """Ties on priority go to the tier created first."""
        newer = make_tier(tier_id="TIER-A", created_at=dt.datetime(2024, 1, 1, tzinfo=dt.UTC))
        older = make_tier(tier_id="TIER-B", created_at=dt.datetime(2021, 1, 1, tzinfo=dt.UTC))

        options = pricing_engine.select_tiers([newer, older], make_request())

        assert [o.tier_id for o in options] == ["TIER-B", "TIER-A"]

    def test_non_matching_tiers_are_skipped(self, make_tier, make_request):
        """Only matching tiers appear in the options."""
        car = make_tier(tier_id="TIER-CAR", vehicle_type=VehicleType.CAR)
        truck = make_tier(tier_id="TIER-TRUCK", vehicle_type=VehicleType.TRUCK, priority=50)

        options = pricing_engine.select_tiers([car, truck], make_request())

        assert [o.tier_id for o in options] == ["TIER-CAR"]

    def test_no_match_returns_empty_list(self, make_tier, make_request):
        """Nothing matching is a normal, empty result."""
        tier = make_tier(is_active=False)

        assert pricing_engine.select_tiers([tier], make_request()) == []
