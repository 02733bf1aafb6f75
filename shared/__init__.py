"""Building blocks used by every CampSpot app: domain base types, the event bus and API plumbing."""
