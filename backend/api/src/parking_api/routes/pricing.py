"""Pricing endpoints for tier management and price calculation.

Provides REST endpoints for:
- Listing pricing tiers with filters and pagination
- Creating, updating and deleting tiers (admin only)
- Calculating a price quote for a booking

Amounts are in currency units (e.g., 12.5 = $12.50).
"""

import datetime as dt

from fastapi import APIRouter, Depends, Query
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from starlette.status import HTTP_201_CREATED

from parking.models import (
    ErrorCode,
    ParkingError,
    PriceQuote,
    PriceRequest,
    PricingTier,
    PricingTierCreate,
    PricingTierUpdate,
    PricingType,
    VehicleType,
)
from parking.services.pricing import PricingService
from parking_api.auth import Caller, require_admin
from parking_api.dependencies import get_pricing_service
from parking_api.models.common import Pagination, SuccessMessage
from parking_api.models.pricing import PricingTierList

router = APIRouter(tags=["pricing"])


def _quote_or_404(service: PricingService, request: PriceRequest) -> PriceQuote:
    quote = service.calculate_quote(request)
    if quote is None:
        raise ParkingError(
            ErrorCode.NO_APPLICABLE_PRICING,
            details={
                "vehicle_type": request.vehicle_type.value,
                "duration": str(request.duration),
            },
        )
    return quote


@router.get(
    "/pricing",
    summary="List pricing tiers",
    description="""
List pricing tiers, highest priority first.

**Notes:**
- Filters are optional and combine with AND
- Ties on priority are ordered by vehicle type, then pricing type
""",
    response_description="One page of pricing tiers",
    response_model=PricingTierList,
    responses={
        200: {"description": "Pricing tiers retrieved successfully"},
    },
)
async def list_pricing_tiers(
    is_active: bool | None = Query(None, alias="isActive", description="Filter by active flag"),
    vehicle_type: VehicleType | None = Query(
        None, alias="vehicleType", description="Filter by vehicle type"
    ),
    pricing_type: PricingType | None = Query(
        None, alias="pricingType", description="Filter by pricing type"
    ),
    page: int = Query(1, ge=1, description="Page number (1-based)"),
    limit: int = Query(10, ge=1, le=100, description="Page size"),
    service: PricingService = Depends(get_pricing_service),
) -> PricingTierList:
    """List pricing tiers with optional filters."""
    tiers, total = service.list_tiers(
        is_active=is_active,
        vehicle_type=vehicle_type,
        pricing_type=pricing_type,
        page=page,
        limit=limit,
    )
    return PricingTierList(items=tiers, pagination=Pagination.build(page, limit, total))


@router.post(
    "/pricing",
    summary="Create pricing tier",
    description="""
Create a new pricing tier.

**Requires admin role.**

**Notes:**
- `validFrom` defaults to the creation time
- An empty `applicableSlots` list makes the tier apply to every slot
""",
    response_description="Created pricing tier",
    response_model=PricingTier,
    status_code=HTTP_201_CREATED,
    responses={
        201: {"description": "Pricing tier created"},
        401: {"description": "Caller identity missing"},
        403: {"description": "Admin role required"},
    },
)
async def create_pricing_tier(
    body: PricingTierCreate,
    caller: Caller = Depends(require_admin),
    service: PricingService = Depends(get_pricing_service),
) -> PricingTier:
    """Create a pricing tier."""
    return service.create_tier(body)


@router.post(
    "/pricing/calculate",
    summary="Calculate parking price",
    description="""
Price a booking under every applicable tier.

Tiers are matched on validity at `startTime`, vehicle type, slot and
duration. Surcharges use the lot's local time (PARKING_TIMEZONE).

**Notes:**
- `recommendedPricing` is the highest-priority matching tier
- `allOptions` lists every match in the same order
""",
    response_description="Price quote",
    response_model=PriceQuote,
    responses={
        200: {
            "description": "Price calculated successfully",
            "content": {
                "application/json": {
                    "example": {
                        "recommendedPricing": {
                            "tierId": "TIER-4F2A9C1B7D3E",
                            "tierName": "Standard Car",
                            "pricingType": "hourly",
                            "currency": "USD",
                            "baseAmount": 15.0,
                            "surchargeMultiplier": 1.0,
                            "finalAmount": 15.0,
                            "appliedDiscounts": [],
                            "appliedSurcharges": [],
                        },
                    }
                }
            },
        },
        404: {"description": "No applicable pricing found"},
    },
)
async def calculate_price(
    body: PriceRequest,
    service: PricingService = Depends(get_pricing_service),
) -> PriceQuote:
    """Calculate a price quote from a JSON body."""
    return _quote_or_404(service, body)


@router.get(
    "/pricing/calculate",
    summary="Estimate parking price",
    description="""
Same as `POST /pricing/calculate` with the booking passed as query parameters.
""",
    response_description="Price quote",
    response_model=PriceQuote,
    responses={
        200: {"description": "Price calculated successfully"},
        404: {"description": "No applicable pricing found"},
    },
)
async def estimate_price(
    vehicle_type: VehicleType = Query(..., alias="vehicleType", examples=["car"]),
    duration: float = Query(..., gt=0, description="Duration in hours", examples=[3]),
    start_time: dt.datetime = Query(
        ..., alias="startTime", examples=["2025-07-15T09:00:00Z"]
    ),
    end_time: dt.datetime = Query(..., alias="endTime", examples=["2025-07-15T12:00:00Z"]),
    slot_id: str | None = Query(None, alias="slotId"),
    service: PricingService = Depends(get_pricing_service),
) -> PriceQuote:
    """Calculate a price quote from query parameters."""
    try:
        request = PriceRequest(
            vehicle_type=vehicle_type,
            duration=duration,
            start_time=start_time,
            end_time=end_time,
            slot_id=slot_id,
        )
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False, include_context=False)) from e
    return _quote_or_404(service, request)


@router.get(
    "/pricing/{tier_id}",
    summary="Get pricing tier",
    description="Get a single pricing tier by ID.",
    response_description="Pricing tier",
    response_model=PricingTier,
    responses={
        200: {"description": "Pricing tier found"},
        404: {"description": "Pricing tier not found"},
    },
)
async def get_pricing_tier(
    tier_id: str,
    service: PricingService = Depends(get_pricing_service),
) -> PricingTier:
    """Get a pricing tier."""
    tier = service.get_tier(tier_id)
    if tier is None:
        raise ParkingError(ErrorCode.TIER_NOT_FOUND, details={"tier_id": tier_id})
    return tier


@router.patch(
    "/pricing/{tier_id}",
    summary="Update pricing tier",
    description="""
Partially update a pricing tier.

**Requires admin role.**

Only fields present in the body change. The merged tier is validated
again, so e.g. a `durationRange` with `min > max` is rejected.
""",
    response_description="Updated pricing tier",
    response_model=PricingTier,
    responses={
        200: {"description": "Pricing tier updated"},
        400: {"description": "Merged tier is invalid"},
        401: {"description": "Caller identity missing"},
        403: {"description": "Admin role required"},
        404: {"description": "Pricing tier not found"},
    },
)
async def update_pricing_tier(
    tier_id: str,
    body: PricingTierUpdate,
    caller: Caller = Depends(require_admin),
    service: PricingService = Depends(get_pricing_service),
) -> PricingTier:
    """Update a pricing tier."""
    tier = service.update_tier(tier_id, body)
    if tier is None:
        raise ParkingError(ErrorCode.TIER_NOT_FOUND, details={"tier_id": tier_id})
    return tier


@router.delete(
    "/pricing/{tier_id}",
    summary="Delete pricing tier",
    description="""
Delete a pricing tier.

**Requires admin role.**
""",
    response_model=SuccessMessage,
    responses={
        200: {"description": "Pricing tier deleted"},
        401: {"description": "Caller identity missing"},
        403: {"description": "Admin role required"},
        404: {"description": "Pricing tier not found"},
    },
)
async def delete_pricing_tier(
    tier_id: str,
    caller: Caller = Depends(require_admin),
    service: PricingService = Depends(get_pricing_service),
) -> SuccessMessage:
    """Delete a pricing tier."""
    if not service.delete_tier(tier_id):
        raise ParkingError(ErrorCode.TIER_NOT_FOUND, details={"tier_id": tier_id})
    return SuccessMessage(message="Pricing tier deleted successfully")
