"""Payment endpoints for payment records and refunds.

Provides REST endpoints for:
- Recording payments and moving them through their lifecycle
- Listing payments and aggregate statistics
- Creating refunds, listing them and updating their status

Caller identity comes from gateway headers (see parking_api.auth).
Regular users only see their own payments and refunds.
"""

import datetime as dt

from fastapi import APIRouter, Depends, Query
from starlette.status import HTTP_201_CREATED

from parking.models import (
    ErrorCode,
    ParkingError,
    Payment,
    PaymentCreate,
    PaymentMethod,
    PaymentStatistics,
    PaymentStatus,
    PaymentUpdate,
    RefundCreate,
    RefundRecord,
    RefundResult,
    RefundStatus,
    RefundStatusUpdate,
)
from parking.services.payment_service import PaymentService
from parking_api.auth import Caller, get_caller, require_admin, require_staff
from parking_api.dependencies import get_payment_service
from parking_api.models.common import Pagination, SuccessMessage
from parking_api.models.payments import PaymentList, RefundList

router = APIRouter(tags=["payments"])


def _check_owner(caller: Caller, user_id: str) -> None:
    if not caller.is_admin and caller.user_id != user_id:
        raise ParkingError(
            ErrorCode.FORBIDDEN,
            details={"message": "You can only access your own payments"},
        )


@router.get(
    "/payments",
    summary="List payments",
    description="""
List payments, newest first.

**Requires authentication.**
Regular users only see their own payments; `userId` is ignored for them.
""",
    response_description="One page of payments",
    response_model=PaymentList,
    responses={
        200: {"description": "Payments retrieved successfully"},
        401: {"description": "Caller identity missing"},
    },
)
async def list_payments(
    status: PaymentStatus | None = Query(None, description="Filter by payment status"),
    method: PaymentMethod | None = Query(None, description="Filter by payment method"),
    user_id: str | None = Query(None, alias="userId", description="Filter by user (admin only)"),
    booking_id: str | None = Query(None, alias="bookingId", description="Filter by booking"),
    date_from: dt.datetime | None = Query(None, alias="dateFrom", description="Created on or after"),
    date_to: dt.datetime | None = Query(None, alias="dateTo", description="Created on or before"),
    page: int = Query(1, ge=1, description="Page number (1-based)"),
    limit: int = Query(10, ge=1, le=100, description="Page size"),
    caller: Caller = Depends(get_caller),
    service: PaymentService = Depends(get_payment_service),
) -> PaymentList:
    """List payments visible to the caller."""
    payments, total = service.list_payments(
        status=status,
        method=method,
        user_id=user_id if caller.is_admin else caller.user_id,
        booking_id=booking_id,
        date_from=date_from,
        date_to=date_to,
        page=page,
        limit=limit,
    )
    return PaymentList(items=payments, pagination=Pagination.build(page, limit, total))


@router.post(
    "/payments",
    summary="Record payment",
    description="""
Record a new payment for a booking.

**Requires authentication.**
Regular users can only record payments under their own user ID.

**Notes:**
- Payments start in `pending` status
- Amounts are in currency units, not cents
""",
    response_description="Created payment",
    response_model=Payment,
    status_code=HTTP_201_CREATED,
    responses={
        201: {"description": "Payment recorded"},
        401: {"description": "Caller identity missing"},
        403: {"description": "Payment belongs to another user"},
    },
)
async def create_payment(
    body: PaymentCreate,
    caller: Caller = Depends(get_caller),
    service: PaymentService = Depends(get_payment_service),
) -> Payment:
    """Record a pending payment."""
    _check_owner(caller, body.user_id)
    return service.create_payment(body)


@router.get(
    "/payments/stats",
    summary="Payment statistics",
    description="""
Aggregate counts and total amount over all payments.

**Requires admin role.**
`refundedPayments` counts both refunded and partially refunded payments.
""",
    response_model=PaymentStatistics,
    responses={
        200: {"description": "Statistics computed"},
        401: {"description": "Caller identity missing"},
        403: {"description": "Admin role required"},
    },
)
async def get_payment_statistics(
    caller: Caller = Depends(require_admin),
    service: PaymentService = Depends(get_payment_service),
) -> PaymentStatistics:
    """Get payment statistics."""
    return service.get_statistics()


@router.post(
    "/payments/refunds",
    summary="Create refund",
    description="""
Refund part or all of a completed payment.

**Requires admin role.**

**Notes:**
- The refund is recorded as `pending`
- The payment moves to `refunded` or `partially_refunded`, so further
  refunds on it are rejected
""",
    response_description="Refund ID and updated payment",
    response_model=RefundResult,
    status_code=HTTP_201_CREATED,
    responses={
        201: {"description": "Refund recorded"},
        400: {"description": "Payment cannot be refunded for this amount"},
        401: {"description": "Caller identity missing"},
        403: {"description": "Admin role required"},
        404: {"description": "Payment not found"},
        409: {"description": "Payment changed by a concurrent request"},
    },
)
async def create_refund(
    body: RefundCreate,
    caller: Caller = Depends(require_admin),
    service: PaymentService = Depends(get_payment_service),
) -> RefundResult:
    """Create a refund for a payment."""
    refund_id, payment = service.create_refund(
        body.payment_id,
        refund_amount=body.refund_amount,
        refund_reason=body.refund_reason,
    )
    return RefundResult(
        refund_id=refund_id,
        refund_amount=body.refund_amount,
        refund_status=RefundStatus.PENDING,
        payment=payment,
    )


@router.get(
    "/payments/refunds",
    summary="List refunds",
    description="""
List refund records across payments, newest first.

**Requires authentication.**
Regular users only see refunds on their own payments. Administrators
also receive statistics over the filtered refunds.
""",
    response_description="One page of refunds",
    response_model=RefundList,
    responses={
        200: {"description": "Refunds retrieved successfully"},
        401: {"description": "Caller identity missing"},
    },
)
async def list_refunds(
    payment_id: str | None = Query(None, alias="paymentId"),
    refund_status: RefundStatus | None = Query(None, alias="refundStatus"),
    start_date: dt.datetime | None = Query(None, alias="startDate"),
    end_date: dt.datetime | None = Query(None, alias="endDate"),
    page: int = Query(1, ge=1, description="Page number (1-based)"),
    limit: int = Query(10, ge=1, le=100, description="Page size"),
    caller: Caller = Depends(get_caller),
    service: PaymentService = Depends(get_payment_service),
) -> RefundList:
    """List refunds visible to the caller."""
    filters = {
        "user_id": None if caller.is_admin else caller.user_id,
        "payment_id": payment_id,
        "refund_status": refund_status,
        "start_date": start_date,
        "end_date": end_date,
    }
    refunds, total = service.list_refunds(**filters, page=page, limit=limit)
    statistics = service.get_refund_statistics(**filters) if caller.is_admin else None

    return RefundList(
        items=refunds,
        pagination=Pagination.build(page, limit, total),
        statistics=statistics,
    )


@router.patch(
    "/payments/refunds",
    summary="Update refund status",
    description="""
Change the status of a single refund record.

**Requires admin role.**
The payment status is not recomputed.
""",
    response_description="Updated refund record",
    response_model=RefundRecord,
    responses={
        200: {"description": "Refund updated"},
        401: {"description": "Caller identity missing"},
        403: {"description": "Admin role required"},
        404: {"description": "Payment or refund not found"},
        409: {"description": "Payment changed by a concurrent request"},
    },
)
async def update_refund_status(
    body: RefundStatusUpdate,
    caller: Caller = Depends(require_admin),
    service: PaymentService = Depends(get_payment_service),
) -> RefundRecord:
    """Update a refund's status."""
    return service.update_refund_status(body.payment_id, body.refund_id, body.refund_status)


@router.get(
    "/payments/{payment_id}",
    summary="Get payment",
    description="""
Get a single payment with its refunds.

**Requires authentication.** Regular users can only read their own payments.
""",
    response_model=Payment,
    responses={
        200: {"description": "Payment found"},
        401: {"description": "Caller identity missing"},
        403: {"description": "Payment belongs to another user"},
        404: {"description": "Payment not found"},
    },
)
async def get_payment(
    payment_id: str,
    caller: Caller = Depends(get_caller),
    service: PaymentService = Depends(get_payment_service),
) -> Payment:
    """Get a payment."""
    payment = service.get_payment(payment_id)
    if payment is None:
        raise ParkingError(ErrorCode.PAYMENT_NOT_FOUND, details={"payment_id": payment_id})
    _check_owner(caller, payment.user_id)
    return payment


@router.patch(
    "/payments/{payment_id}",
    summary="Update payment",
    description="""
Update a payment's status, gateway references or metadata.

**Requires admin or attendant role.**

**Notes:**
- Allowed status changes: pending to processing/completed/failed/cancelled,
  processing to completed/failed/cancelled
- Refund states can only be reached through `POST /payments/refunds`
- A transaction ID is generated when a payment is completed without one
""",
    response_model=Payment,
    responses={
        200: {"description": "Payment updated"},
        400: {"description": "Status change not allowed"},
        401: {"description": "Caller identity missing"},
        403: {"description": "Admin or attendant role required"},
        404: {"description": "Payment not found"},
        409: {"description": "Payment changed by a concurrent request"},
    },
)
async def update_payment(
    payment_id: str,
    body: PaymentUpdate,
    caller: Caller = Depends(require_staff),
    service: PaymentService = Depends(get_payment_service),
) -> Payment:
    """Update a payment."""
    return service.update_payment(payment_id, body)


@router.delete(
    "/payments/{payment_id}",
    summary="Delete payment",
    description="""
Delete a payment record.

**Requires admin role.**
""",
    response_model=SuccessMessage,
    responses={
        200: {"description": "Payment deleted"},
        401: {"description": "Caller identity missing"},
        403: {"description": "Admin role required"},
        404: {"description": "Payment not found"},
    },
)
async def delete_payment(
    payment_id: str,
    caller: Caller = Depends(require_admin),
    service: PaymentService = Depends(get_payment_service),
) -> SuccessMessage:
    """Delete a payment."""
    if not service.delete_payment(payment_id):
        raise ParkingError(ErrorCode.PAYMENT_NOT_FOUND, details={"payment_id": payment_id})
    return SuccessMessage(message="Payment deleted successfully")
