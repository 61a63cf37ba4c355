"""Payment service for payment records and refunds.

Payments are created pending and moved through their lifecycle by status
updates. Refund states (refunded, partially_refunded) are only reached
through create_refund(), which delegates the bookkeeping rules to
refund_ledger.
"""

import datetime as dt
import uuid
from typing import TYPE_CHECKING, Any

from parking.models import (
    ErrorCode,
    ParkingError,
    Payment,
    PaymentCreate,
    PaymentMethod,
    PaymentStatistics,
    PaymentStatus,
    PaymentUpdate,
    RefundEntry,
    RefundRecord,
    RefundStatistics,
    RefundStatus,
)
from parking.utils.logging import get_logger, log_payment_operation
from parking.utils.money import round_money, to_decimal

from . import refund_ledger
from .dynamodb import from_item, to_item

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)

# Status changes accepted by update_payment(). Refund states are excluded.
ALLOWED_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset(
        {
            PaymentStatus.PROCESSING,
            PaymentStatus.COMPLETED,
            PaymentStatus.FAILED,
            PaymentStatus.CANCELLED,
        }
    ),
    PaymentStatus.PROCESSING: frozenset(
        {PaymentStatus.COMPLETED, PaymentStatus.FAILED, PaymentStatus.CANCELLED}
    ),
    PaymentStatus.COMPLETED: frozenset(),
    PaymentStatus.FAILED: frozenset(),
    PaymentStatus.CANCELLED: frozenset(),
    PaymentStatus.REFUNDED: frozenset(),
    PaymentStatus.PARTIALLY_REFUNDED: frozenset(),
}


class PaymentService:
    """Service for recording payments and managing refunds."""

    PAYMENTS_TABLE = "payments"
    BOOKING_INDEX = "booking_id-index"

    def __init__(self, db: "DynamoDBService") -> None:
        """Initialize payment service.

        Args:
            db: DynamoDB service instance
        """
        self.db = db

    def _generate_payment_id(self) -> str:
        """Generate a unique payment ID like PAY-ABC123DEF456."""
        return f"PAY-{uuid.uuid4().hex[:12].upper()}"

    def create_payment(self, data: PaymentCreate) -> Payment:
        """Record a new pending payment.

        Args:
            data: Payment creation data

        Returns:
            Created Payment with PENDING status
        """
        now = dt.datetime.now(dt.UTC)
        payment = Payment(
            payment_id=self._generate_payment_id(),
            booking_id=data.booking_id,
            user_id=data.user_id,
            amount=data.amount,
            currency=data.currency,
            payment_method=data.payment_method,
            payment_status=PaymentStatus.PENDING,
            payment_gateway=data.payment_gateway,
            transaction_id=data.transaction_id,
            metadata=data.metadata,
            description=data.description or f"Payment for booking {data.booking_id}",
            created_at=now,
            updated_at=now,
        )

        self.db.put_item(self.PAYMENTS_TABLE, self._payment_to_item(payment))

        log_payment_operation(
            logger,
            "create_payment",
            payment_id=payment.payment_id,
            booking_id=payment.booking_id,
            amount=payment.amount,
            status=payment.payment_status.value,
        )
        return payment

    def get_payment(self, payment_id: str) -> Payment | None:
        """Get a payment by ID, or None if not found."""
        item = self.db.get_item(self.PAYMENTS_TABLE, {"payment_id": payment_id})
        return self._item_to_payment(item) if item else None

    def get_payments_for_booking(self, booking_id: str) -> list[Payment]:
        """Get all payments for a booking, newest first."""
        items = self.db.query_by_gsi(
            self.PAYMENTS_TABLE,
            self.BOOKING_INDEX,
            "booking_id",
            booking_id,
        )
        payments = [self._item_to_payment(item) for item in items]
        return sorted(payments, key=lambda p: p.created_at, reverse=True)

    def get_all_payments(self) -> list[Payment]:
        """Get every stored payment, unsorted."""
        return [self._item_to_payment(item) for item in self.db.scan(self.PAYMENTS_TABLE)]

    def list_payments(
        self,
        status: PaymentStatus | None = None,
        method: PaymentMethod | None = None,
        user_id: str | None = None,
        booking_id: str | None = None,
        date_from: dt.datetime | None = None,
        date_to: dt.datetime | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Payment], int]:
        """List payments with optional filters, newest first.

        Returns:
            Tuple of (payments on the page, total matching count)
        """
        if booking_id:
            payments = self.get_payments_for_booking(booking_id)
        else:
            payments = self.get_all_payments()

        if status is not None:
            payments = [p for p in payments if p.payment_status == status]
        if method is not None:
            payments = [p for p in payments if p.payment_method == method]
        if user_id:
            payments = [p for p in payments if p.user_id == user_id]
        if date_from is not None:
            payments = [p for p in payments if p.created_at >= _utc(date_from)]
        if date_to is not None:
            payments = [p for p in payments if p.created_at <= _utc(date_to)]

        payments.sort(key=lambda p: p.created_at, reverse=True)

        start = (page - 1) * limit
        return payments[start : start + limit], len(payments)

    def get_statistics(self) -> PaymentStatistics:
        """Aggregate counts and total amount over all payments."""
        payments = self.get_all_payments()
        statuses = [p.payment_status for p in payments]
        total = sum((to_decimal(p.amount) for p in payments), to_decimal(0))

        return PaymentStatistics(
            total_payments=len(payments),
            total_amount=float(round_money(total)),
            successful_payments=statuses.count(PaymentStatus.COMPLETED),
            pending_payments=statuses.count(PaymentStatus.PENDING),
            failed_payments=statuses.count(PaymentStatus.FAILED),
            refunded_payments=(
                statuses.count(PaymentStatus.REFUNDED)
                + statuses.count(PaymentStatus.PARTIALLY_REFUNDED)
            ),
        )

    def update_payment(self, payment_id: str, data: PaymentUpdate) -> Payment:
        """Update status, gateway references or metadata of a payment.

        A transaction ID is generated when a payment becomes completed
        without one.

        Args:
            payment_id: Payment to update
            data: Fields to change

        Returns:
            Updated Payment

        Raises:
            ParkingError: PAYMENT_NOT_FOUND, INVALID_STATUS_TRANSITION or
                CONCURRENT_MODIFICATION
        """
        payment = self._require_payment(payment_id)
        now = dt.datetime.now(dt.UTC)
        changes: dict[str, Any] = data.model_dump(exclude_unset=True, exclude_none=True)

        new_status = data.payment_status
        if new_status is not None and new_status != payment.payment_status:
            if new_status not in ALLOWED_TRANSITIONS[payment.payment_status]:
                raise ParkingError(
                    ErrorCode.INVALID_STATUS_TRANSITION,
                    details={
                        "payment_id": payment_id,
                        "from_status": payment.payment_status.value,
                        "to_status": new_status.value,
                    },
                )

        updated = Payment.model_validate(payment.model_dump() | changes | {"updated_at": now})
        if updated.payment_status == PaymentStatus.COMPLETED and not updated.transaction_id:
            updated = updated.model_copy(
                update={"transaction_id": refund_ledger.generate_transaction_id(now)}
            )

        self._save_if_unchanged(updated, payment)

        log_payment_operation(
            logger,
            "update_payment",
            payment_id=payment_id,
            booking_id=updated.booking_id,
            status=updated.payment_status.value,
        )
        return updated

    def delete_payment(self, payment_id: str) -> bool:
        """Delete a payment. Returns False if it did not exist."""
        deleted = self.db.delete_item(self.PAYMENTS_TABLE, {"payment_id": payment_id})
        if deleted:
            log_payment_operation(logger, "delete_payment", payment_id=payment_id)
        return deleted

    def create_refund(
        self,
        payment_id: str,
        refund_amount: float,
        refund_reason: str,
    ) -> tuple[str, Payment]:
        """Record a refund against a completed payment.

        Args:
            payment_id: Payment to refund
            refund_amount: Amount to refund
            refund_reason: Reason for the refund

        Returns:
            Tuple of (generated refund ID, updated Payment)

        Raises:
            ParkingError: PAYMENT_NOT_FOUND, REFUND_NOT_ALLOWED or
                CONCURRENT_MODIFICATION
        """
        payment = self._require_payment(payment_id)
        now = dt.datetime.now(dt.UTC)
        refund_id = refund_ledger.generate_refund_id(now)

        try:
            updated = refund_ledger.add_refund(
                payment,
                refund_id=refund_id,
                refund_amount=refund_amount,
                refund_reason=refund_reason,
                now=now,
            )
        except ParkingError as e:
            log_payment_operation(
                logger,
                "create_refund",
                payment_id=payment_id,
                amount=refund_amount,
                status=payment.payment_status.value,
                error=e.message,
            )
            raise

        self._save_if_unchanged(updated, payment)

        log_payment_operation(
            logger,
            "create_refund",
            payment_id=payment_id,
            booking_id=updated.booking_id,
            amount=refund_amount,
            status=updated.payment_status.value,
            refund_id=refund_id,
        )
        return refund_id, updated

    def list_refunds(
        self,
        user_id: str | None = None,
        payment_id: str | None = None,
        refund_status: RefundStatus | None = None,
        start_date: dt.datetime | None = None,
        end_date: dt.datetime | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[RefundEntry], int]:
        """List refund records across payments, newest first.

        Args:
            user_id: Only refunds on this user's payments
            payment_id: Only refunds on this payment
            refund_status: Only refunds with this status
            start_date: Only refunds dated on or after this time
            end_date: Only refunds dated on or before this time
            page: 1-based page number
            limit: Page size

        Returns:
            Tuple of (refunds on the page, total matching count)
        """
        entries = self._filtered_refunds(user_id, payment_id, refund_status, start_date, end_date)
        start = (page - 1) * limit
        return entries[start : start + limit], len(entries)

    def get_refund_statistics(
        self,
        user_id: str | None = None,
        payment_id: str | None = None,
        refund_status: RefundStatus | None = None,
        start_date: dt.datetime | None = None,
        end_date: dt.datetime | None = None,
    ) -> RefundStatistics:
        """Aggregate counts and amounts over the refunds list_refunds() would return."""
        entries = self._filtered_refunds(user_id, payment_id, refund_status, start_date, end_date)
        if not entries:
            return RefundStatistics()

        total = sum((to_decimal(e.refund_amount) for e in entries), to_decimal(0))
        statuses = [e.refund_status for e in entries]
        return RefundStatistics(
            total_refunds=len(entries),
            total_refund_amount=float(round_money(total)),
            avg_refund_amount=float(round_money(total / len(entries))),
            pending_refunds=statuses.count(RefundStatus.PENDING),
            completed_refunds=statuses.count(RefundStatus.COMPLETED),
            failed_refunds=statuses.count(RefundStatus.FAILED),
        )

    def update_refund_status(
        self,
        payment_id: str,
        refund_id: str,
        refund_status: RefundStatus,
    ) -> RefundRecord:
        """Change the status of one refund record.

        The payment status is left as it is.

        Raises:
            ParkingError: PAYMENT_NOT_FOUND, REFUND_NOT_FOUND or
                CONCURRENT_MODIFICATION
        """
        payment = self._require_payment(payment_id)

        refund = next((r for r in payment.refund_details if r.refund_id == refund_id), None)
        if refund is None:
            raise ParkingError(
                ErrorCode.REFUND_NOT_FOUND,
                details={"payment_id": payment_id, "refund_id": refund_id},
            )

        updated_refund = refund.model_copy(update={"refund_status": refund_status})
        updated = payment.model_copy(
            update={
                "refund_details": [
                    updated_refund if r.refund_id == refund_id else r
                    for r in payment.refund_details
                ],
                "updated_at": dt.datetime.now(dt.UTC),
            }
        )
        self._save_if_unchanged(updated, payment)

        log_payment_operation(
            logger,
            "update_refund_status",
            payment_id=payment_id,
            status=refund_status.value,
            refund_id=refund_id,
        )
        return updated_refund

    # Internal helpers

    def _require_payment(self, payment_id: str) -> Payment:
        payment = self.get_payment(payment_id)
        if payment is None:
            raise ParkingError(ErrorCode.PAYMENT_NOT_FOUND, details={"payment_id": payment_id})
        return payment

    def _save_if_unchanged(self, payment: Payment, previous: Payment) -> None:
        """Write a payment only if nobody else wrote it since it was read.

        Single-item conditional write; no locking or retries.
        """
        saved = self.db.put_item(
            self.PAYMENTS_TABLE,
            self._payment_to_item(payment),
            condition_expression="updated_at = :previous",
            expression_attribute_values={":previous": self._payment_to_item(previous)["updated_at"]},
        )
        if not saved:
            raise ParkingError(
                ErrorCode.CONCURRENT_MODIFICATION,
                details={"payment_id": payment.payment_id},
            )

    def _filtered_refunds(
        self,
        user_id: str | None,
        payment_id: str | None,
        refund_status: RefundStatus | None,
        start_date: dt.datetime | None,
        end_date: dt.datetime | None,
    ) -> list[RefundEntry]:
        if payment_id:
            payment = self.get_payment(payment_id)
            payments = [payment] if payment else []
        else:
            payments = self.get_all_payments()

        entries: list[RefundEntry] = []
        for payment in payments:
            if user_id and payment.user_id != user_id:
                continue
            for refund in payment.refund_details:
                if refund_status is not None and refund.refund_status != refund_status:
                    continue
                if start_date is not None and refund.refund_date < _utc(start_date):
                    continue
                if end_date is not None and refund.refund_date > _utc(end_date):
                    continue
                entries.append(
                    RefundEntry(
                        **refund.model_dump(),
                        payment_id=payment.payment_id,
                        original_amount=payment.amount,
                        booking_id=payment.booking_id,
                        user_id=payment.user_id,
                        currency=payment.currency,
                    )
                )

        entries.sort(key=lambda e: e.refund_date, reverse=True)
        return entries

    # Conversion helpers

    def _payment_to_item(self, payment: Payment) -> dict[str, Any]:
        """Convert Payment model to DynamoDB item."""
        return to_item(payment.model_dump(mode="json"))

    def _item_to_payment(self, item: dict[str, Any]) -> Payment:
        """Convert DynamoDB item to Payment model."""
        return Payment.model_validate(from_item(item))


def _utc(moment: dt.datetime) -> dt.datetime:
    """Treat naive filter timestamps as UTC so they compare with stored ones."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=dt.UTC)
    return moment
