"""API models for pricing endpoints."""

from pydantic import Field

from parking.models import PricingTier
from parking.models.base import ParkingModel

from .common import Pagination


class PricingTierList(ParkingModel):
    """One page of pricing tiers."""

    items: list[PricingTier] = Field(default_factory=list)
    pagination: Pagination
