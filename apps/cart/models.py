"""Model definition for the shopping cart.

Each user has one ``Cart`` holding a list of priced items. Items are
plain JSON so a client-side cart can be migrated into it unchanged;
nothing is reserved until checkout.
"""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore


class Cart(models.Model):
    """A user's pending selection of campsites, activities and gear."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='cart'
    )
    items = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"Cart of user {self.user_id} ({len(self.items)} items)"

    def find(self, item_id: str) -> dict | None:
        return next((item for item in self.items if item.get('id') == item_id), None)
