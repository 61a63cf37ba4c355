"""FastAPI dependency providers for shared services.

Services are created lazily and cached with @lru_cache so every request
reuses the same instances (and the DynamoDB singleton underneath).

Usage in routes:
    from parking_api.dependencies import get_pricing_service

    @router.get("/pricing")
    async def list_tiers(service: PricingService = Depends(get_pricing_service)):
        ...

Testing:
    Use reset_services() to clear cached instances between tests.
"""

from functools import lru_cache

from parking.services.dynamodb import get_dynamodb_service, reset_dynamodb_service
from parking.services.payment_service import PaymentService
from parking.services.pricing import PricingService


@lru_cache
def get_pricing_service() -> PricingService:
    """Get cached PricingService instance."""
    return PricingService(db=get_dynamodb_service())


@lru_cache
def get_payment_service() -> PaymentService:
    """Get cached PaymentService instance."""
    return PaymentService(db=get_dynamodb_service())


def reset_services() -> None:
    """Clear all cached service instances and the DynamoDB singleton.

    Example:
        @pytest.fixture(autouse=True)
        def reset_state():
            yield
            reset_services()
    """
    get_pricing_service.cache_clear()
    get_payment_service.cache_clear()
    reset_dynamodb_service()
