"""Notifications app package.

In-app notifications (per user or system-wide), realtime pushes to the
user's room and outgoing email through Celery.
"""
