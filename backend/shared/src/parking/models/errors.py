"""Standard error codes for the parking backend.

Services raise ParkingError with one of these codes; the API layer maps
each code to an HTTP status and renders an ErrorResponse body.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Standard error codes."""

    # Pricing error codes (ERR_PRICING_001-ERR_PRICING_003)
    TIER_NOT_FOUND = "ERR_PRICING_001"
    NO_APPLICABLE_PRICING = "ERR_PRICING_002"
    INVALID_TIER = "ERR_PRICING_003"

    # Payment error codes (ERR_PAYMENT_001-ERR_PAYMENT_005)
    PAYMENT_NOT_FOUND = "ERR_PAYMENT_001"
    REFUND_NOT_ALLOWED = "ERR_PAYMENT_002"
    REFUND_NOT_FOUND = "ERR_PAYMENT_003"
    INVALID_STATUS_TRANSITION = "ERR_PAYMENT_004"
    CONCURRENT_MODIFICATION = "ERR_PAYMENT_005"

    # Authentication error codes (ERR_AUTH_001-ERR_AUTH_002)
    AUTH_REQUIRED = "ERR_AUTH_001"
    FORBIDDEN = "ERR_AUTH_002"


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.TIER_NOT_FOUND: "Pricing tier not found",
    ErrorCode.NO_APPLICABLE_PRICING: "No applicable pricing found for the given parameters",
    ErrorCode.INVALID_TIER: "Pricing tier data is invalid",
    ErrorCode.PAYMENT_NOT_FOUND: "Payment not found",
    ErrorCode.REFUND_NOT_ALLOWED: "Cannot process refund: insufficient refundable amount",
    ErrorCode.REFUND_NOT_FOUND: "Refund not found",
    ErrorCode.INVALID_STATUS_TRANSITION: "Payment status change is not allowed",
    ErrorCode.CONCURRENT_MODIFICATION: "Payment was modified by another request",
    ErrorCode.AUTH_REQUIRED: "Authentication required to perform this action",
    ErrorCode.FORBIDDEN: "Not authorized to perform this action",
}

# Recovery suggestions for API clients
ERROR_RECOVERY: dict[ErrorCode, str] = {
    ErrorCode.TIER_NOT_FOUND: "Verify the pricing tier ID",
    ErrorCode.NO_APPLICABLE_PRICING: "Try a different vehicle type, duration or time window",
    ErrorCode.INVALID_TIER: "Check the tier fields and try again",
    ErrorCode.PAYMENT_NOT_FOUND: "Verify the payment ID",
    ErrorCode.REFUND_NOT_ALLOWED: "Only completed payments with a remaining refundable amount can be refunded",
    ErrorCode.REFUND_NOT_FOUND: "Verify the refund ID",
    ErrorCode.INVALID_STATUS_TRANSITION: "Refund states are reached through the refunds endpoint",
    ErrorCode.CONCURRENT_MODIFICATION: "Reload the payment and try again",
    ErrorCode.AUTH_REQUIRED: "Sign in and retry the request",
    ErrorCode.FORBIDDEN: "Ask an administrator to perform this action",
}


class ErrorResponse(BaseModel):
    """Standard error response body."""

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: ErrorCode
    message: str
    recovery: str
    details: Optional[dict[str, str]] = None

    @classmethod
    def from_code(
        cls,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
    ) -> "ErrorResponse":
        """Create an ErrorResponse from an error code.

        Args:
            code: The error code
            details: Optional additional context about the error

        Returns:
            An ErrorResponse with the message and recovery hint for the code.
        """
        return cls(
            error_code=code,
            message=ERROR_MESSAGES[code],
            recovery=ERROR_RECOVERY[code],
            details=details,
        )


class ParkingError(Exception):
    """Exception raised by pricing and payment operations."""

    def __init__(
        self,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
    ):
        self.code = code
        self.message = ERROR_MESSAGES[code]
        self.recovery = ERROR_RECOVERY[code]
        self.details = details
        super().__init__(self.message)

    def to_error_response(self) -> ErrorResponse:
        """Convert this exception to an ErrorResponse."""
        return ErrorResponse.from_code(self.code, self.details)
