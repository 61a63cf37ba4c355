"""Refund bookkeeping on payment records.

Pure functions; callers persist the returned Payment. The refundable amount
is the payment amount minus completed refunds, and only completed payments
can be refunded. Once a refund is recorded the payment moves to
partially_refunded or refunded, so a payment accepts a single refund
request.
"""

import datetime as dt
import secrets
import string
from decimal import Decimal

from parking.models import (
    ErrorCode,
    ParkingError,
    Payment,
    PaymentStatus,
    RefundRecord,
    RefundStatus,
)
from parking.utils.money import ZERO, to_decimal

_ID_ALPHABET = string.digits + string.ascii_uppercase
_ID_SUFFIX_LENGTH = 9


def _random_suffix() -> str:
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_SUFFIX_LENGTH))


def _epoch_millis(now: dt.datetime) -> int:
    return int(now.timestamp() * 1000)


def generate_refund_id(now: dt.datetime | None = None) -> str:
    """Generate a refund ID like REF_1752566400000_K3J9QX2ZP."""
    now = now or dt.datetime.now(dt.UTC)
    return f"REF_{_epoch_millis(now)}_{_random_suffix()}"


def generate_transaction_id(now: dt.datetime | None = None) -> str:
    """Generate a transaction ID like TXN_1752566400000_7YH2M0QWE."""
    now = now or dt.datetime.now(dt.UTC)
    return f"TXN_{_epoch_millis(now)}_{_random_suffix()}"


def total_refunded_amount(payment: Payment) -> Decimal:
    """Sum of completed refunds. Pending and failed refunds do not count."""
    return sum(
        (
            to_decimal(refund.refund_amount)
            for refund in payment.refund_details
            if refund.refund_status == RefundStatus.COMPLETED
        ),
        ZERO,
    )


def refundable_amount(payment: Payment) -> Decimal:
    """Amount still refundable; zero unless the payment is completed."""
    if payment.payment_status != PaymentStatus.COMPLETED:
        return ZERO
    return max(ZERO, to_decimal(payment.amount) - total_refunded_amount(payment))


def can_refund(payment: Payment, amount: float | None = None) -> bool:
    """Check whether a payment can be refunded.

    Args:
        payment: Payment to check
        amount: Specific amount to refund (optional)

    Returns:
        False unless the payment is completed; False if amount exceeds the
        refundable amount; otherwise True when anything is left to refund.
    """
    if payment.payment_status != PaymentStatus.COMPLETED:
        return False

    refundable = refundable_amount(payment)
    if amount is not None and to_decimal(amount) > refundable:
        return False
    return refundable > 0


def add_refund(
    payment: Payment,
    refund_id: str,
    refund_amount: float,
    refund_reason: str,
    now: dt.datetime | None = None,
) -> Payment:
    """Record a pending refund against a payment.

    The new status counts completed refunds plus this one: refunded when
    that covers the payment amount, otherwise partially_refunded.

    Args:
        payment: Payment being refunded (not modified)
        refund_id: Identifier for the new refund record
        refund_amount: Amount to refund
        refund_reason: Reason shown to administrators
        now: Refund timestamp (defaults to current UTC time)

    Returns:
        Updated copy of the payment

    Raises:
        ParkingError: REFUND_NOT_ALLOWED if can_refund() is False
    """
    if not can_refund(payment, refund_amount):
        raise ParkingError(
            ErrorCode.REFUND_NOT_ALLOWED,
            details={
                "payment_id": payment.payment_id,
                "payment_status": payment.payment_status.value,
                "refundable_amount": str(refundable_amount(payment)),
                "requested_amount": str(refund_amount),
            },
        )

    now = now or dt.datetime.now(dt.UTC)
    record = RefundRecord(
        refund_id=refund_id,
        refund_amount=refund_amount,
        refund_reason=refund_reason,
        refund_date=now,
        refund_status=RefundStatus.PENDING,
    )

    total_after = total_refunded_amount(payment) + to_decimal(refund_amount)
    if total_after >= to_decimal(payment.amount):
        status = PaymentStatus.REFUNDED
    else:
        status = PaymentStatus.PARTIALLY_REFUNDED

    return payment.model_copy(
        update={
            "refund_details": [*payment.refund_details, record],
            "payment_status": status,
            "updated_at": now,
        }
    )
