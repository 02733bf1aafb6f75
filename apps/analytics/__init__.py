"""Analytics app: admin dashboard aggregations and health checks."""
