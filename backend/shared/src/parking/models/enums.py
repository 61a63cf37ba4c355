"""Enumeration types for parking data models."""

from enum import Enum


class VehicleType(str, Enum):
    """Vehicle categories a pricing tier can target."""

    CAR = "car"
    MOTORCYCLE = "motorcycle"
    TRUCK = "truck"
    VAN = "van"
    SUV = "suv"
    BUS = "bus"
    ALL = "all"  # Tier applies to every vehicle


class PricingType(str, Enum):
    """Billing cadence of a pricing tier."""

    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    FLAT = "flat"


class DiscountType(str, Enum):
    """How a discount reduces the running amount."""

    PERCENTAGE = "percentage"
    FIXED = "fixed"


class SurchargeType(str, Enum):
    """Conditions under which a surcharge multiplier applies."""

    PEAK_HOURS = "peak_hours"
    WEEKEND = "weekend"
    HOLIDAY = "holiday"
    OVERNIGHT = "overnight"


class Weekday(str, Enum):
    """Day names used by surcharge rules."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


class PaymentStatus(str, Enum):
    """Status of a payment record."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    PARTIALLY_REFUNDED = "partially_refunded"


class PaymentMethod(str, Enum):
    """Supported payment methods."""

    CASH = "cash"
    CARD = "card"
    MOBILE = "mobile"
    ONLINE = "online"
    STRIPE = "stripe"
    PAYPAL = "paypal"


class PaymentGateway(str, Enum):
    """Payment processing gateways."""

    STRIPE = "stripe"
    PAYPAL = "paypal"
    LOCAL = "local"


class RefundStatus(str, Enum):
    """Status of a single refund record."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class UserRole(str, Enum):
    """Roles carried by the gateway-injected identity headers."""

    USER = "user"
    ADMIN = "admin"
    ATTENDANT = "attendant"
