"""Pydantic models for parking pricing and payment entities."""

from .enums import (
    DiscountType,
    PaymentGateway,
    PaymentMethod,
    PaymentStatus,
    PricingType,
    RefundStatus,
    SurchargeType,
    UserRole,
    VehicleType,
    Weekday,
)
from .errors import (
    ERROR_MESSAGES,
    ERROR_RECOVERY,
    ErrorCode,
    ErrorResponse,
    ParkingError,
)
from .payment import (
    Payment,
    PaymentCreate,
    PaymentDetails,
    PaymentMetadata,
    PaymentStatistics,
    PaymentUpdate,
    RefundCreate,
    RefundEntry,
    RefundRecord,
    RefundResult,
    RefundStatistics,
    RefundStatusUpdate,
)
from .pricing import (
    Discount,
    DurationRange,
    PriceCalculation,
    PriceQuote,
    PriceRequest,
    PricingTier,
    PricingTierCreate,
    PricingTierUpdate,
    Surcharge,
    TimeRange,
)

__all__ = [
    # Enums
    "DiscountType",
    "PaymentGateway",
    "PaymentMethod",
    "PaymentStatus",
    "PricingType",
    "RefundStatus",
    "SurchargeType",
    "UserRole",
    "VehicleType",
    "Weekday",
    # Pricing
    "Discount",
    "DurationRange",
    "PriceCalculation",
    "PriceQuote",
    "PriceRequest",
    "PricingTier",
    "PricingTierCreate",
    "PricingTierUpdate",
    "Surcharge",
    "TimeRange",
    # Payment
    "Payment",
    "PaymentCreate",
    "PaymentDetails",
    "PaymentMetadata",
    "PaymentStatistics",
    "PaymentUpdate",
    "RefundCreate",
    "RefundEntry",
    "RefundRecord",
    "RefundResult",
    "RefundStatistics",
    "RefundStatusUpdate",
    # Errors
    "ERROR_MESSAGES",
    "ERROR_RECOVERY",
    "ErrorCode",
    "ErrorResponse",
    "ParkingError",
]
