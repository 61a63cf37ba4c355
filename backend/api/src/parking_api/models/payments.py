"""API models for payment and refund endpoints."""

from pydantic import Field

from parking.models import Payment, RefundEntry, RefundStatistics
from parking.models.base import ParkingModel

from .common import Pagination


class PaymentList(ParkingModel):
    """One page of payments, newest first."""

    items: list[Payment] = Field(default_factory=list)
    pagination: Pagination


class RefundList(ParkingModel):
    """One page of refunds, newest first.

    Statistics over the whole filtered set are included for administrators.
    """

    items: list[RefundEntry] = Field(default_factory=list)
    pagination: Pagination
    statistics: RefundStatistics | None = None
