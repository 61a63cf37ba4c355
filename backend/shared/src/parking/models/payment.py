"""Payment model for transaction records and their refunds."""

import datetime as dt

from pydantic import Field, field_validator

from .base import ParkingModel
from .enums import PaymentGateway, PaymentMethod, PaymentStatus, RefundStatus


class RefundRecord(ParkingModel):
    """A partial or full refund against a payment."""

    refund_id: str = Field(..., examples=["REF_1752566400000_K3J9QX2ZP"])
    refund_amount: float = Field(..., ge=0)
    refund_reason: str
    refund_date: dt.datetime
    refund_status: RefundStatus = RefundStatus.PENDING


class PaymentDetails(ParkingModel):
    """Gateway-reported details of how the payment was made."""

    card_last4: str | None = None
    card_brand: str | None = None
    payment_method_type: str | None = None
    receipt_url: str | None = None
    failure_reason: str | None = None


class PaymentMetadata(ParkingModel):
    """Booking context copied onto the payment for reporting."""

    slot_number: str | None = None
    vehicle_number: str | None = None
    duration: float | None = None
    processing_time: float | None = None


class Payment(ParkingModel):
    """A payment for a parking booking.

    Amounts are currency units (not cents), rounded to 2 decimals by callers.
    """

    payment_id: str = Field(..., description="Unique payment ID")
    booking_id: str = Field(..., description="Reference to the booking")
    user_id: str = Field(..., description="Reference to the paying user")
    amount: float = Field(..., ge=0)
    currency: str = "USD"
    payment_method: PaymentMethod
    payment_status: PaymentStatus = PaymentStatus.PENDING
    transaction_id: str | None = None
    stripe_payment_intent_id: str | None = None
    paypal_order_id: str | None = None
    payment_gateway: PaymentGateway | None = None
    payment_details: PaymentDetails = Field(default_factory=PaymentDetails)
    refund_details: list[RefundRecord] = Field(default_factory=list)
    metadata: PaymentMetadata = Field(default_factory=PaymentMetadata)
    description: str = ""
    created_at: dt.datetime
    updated_at: dt.datetime

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, value: str) -> str:
        return value.strip().upper()


class PaymentCreate(ParkingModel):
    """Data required to record a new payment."""

    booking_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    currency: str = "USD"
    payment_method: PaymentMethod
    payment_gateway: PaymentGateway | None = None
    description: str | None = None
    transaction_id: str | None = None
    metadata: PaymentMetadata = Field(default_factory=PaymentMetadata)


class PaymentUpdate(ParkingModel):
    """Status or metadata change on an existing payment."""

    payment_status: PaymentStatus | None = None
    transaction_id: str | None = None
    stripe_payment_intent_id: str | None = None
    paypal_order_id: str | None = None
    payment_details: PaymentDetails | None = None
    metadata: PaymentMetadata | None = None


class RefundCreate(ParkingModel):
    """Request to refund part or all of a completed payment."""

    payment_id: str = Field(..., min_length=1)
    refund_amount: float = Field(..., gt=0)
    refund_reason: str = Field(..., min_length=1)


class RefundResult(ParkingModel):
    """Outcome of a refund request."""

    refund_id: str
    refund_amount: float
    refund_status: RefundStatus
    payment: Payment


class RefundStatusUpdate(ParkingModel):
    """Change the status of a single refund record."""

    payment_id: str = Field(..., min_length=1)
    refund_id: str = Field(..., min_length=1)
    refund_status: RefundStatus


class RefundEntry(RefundRecord):
    """A refund flattened together with its payment context."""

    payment_id: str
    original_amount: float
    booking_id: str
    user_id: str
    currency: str


class PaymentStatistics(ParkingModel):
    """Aggregate counts over all payments."""

    total_payments: int = 0
    total_amount: float = 0
    successful_payments: int = 0
    pending_payments: int = 0
    failed_payments: int = 0
    refunded_payments: int = 0


class RefundStatistics(ParkingModel):
    """Aggregate counts over refund records."""

    total_refunds: int = 0
    total_refund_amount: float = 0
    avg_refund_amount: float = 0
    pending_refunds: int = 0
    completed_refunds: int = 0
    failed_refunds: int = 0
