"""REST API for parking pricing tiers, price quotes, payments and refunds."""
