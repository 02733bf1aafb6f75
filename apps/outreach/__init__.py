"""Outreach app: newsletter subscriptions and contact forms."""
