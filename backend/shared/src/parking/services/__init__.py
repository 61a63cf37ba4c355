"""Backend services for parking pricing and payments."""

from .dynamodb import DynamoDBService, get_dynamodb_service, reset_dynamodb_service
from .payment_service import PaymentService
from .pricing import PricingService

__all__ = [
    "DynamoDBService",
    "get_dynamodb_service",
    "reset_dynamodb_service",
    "PaymentService",
    "PricingService",
]
