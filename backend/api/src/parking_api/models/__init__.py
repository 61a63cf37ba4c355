"""API-specific request/response models.

Domain models (PricingTier, Payment, ...) live in parking.models and are
reused directly as request bodies and responses. This package adds the
HTTP-layer wrappers around them.

Modules:
- common: pagination and success message wrappers
- pricing: pricing tier list response
- payments: payment and refund list responses
"""

__all__: list[str] = []
