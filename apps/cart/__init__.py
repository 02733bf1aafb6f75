"""Cart app: a persistent per-user cart checked out into reservations."""
