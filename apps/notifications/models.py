"""Notification models.

A notification is either addressed to a single user or, when ``user``
is empty, broadcast to everybody registered before it was created.
Read state of broadcasts is tracked per user with :class:`NotificationRead`.
"""

from __future__ import annotations

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Notification(models.Model):
    """A message sent to a user (or to everybody) about some event."""

    class Type(models.TextChoices):
        INFO = "info", _("Info")
        SUCCESS = "success", _("Success")
        WARNING = "warning", _("Warning")
        ERROR = "error", _("Error")
        CAMPSITE = "campsite", _("Campsite")
        BOOKING = "booking", _("Booking")
        USER = "user", _("User")
        ADMIN = "admin", _("Admin")

    user = models.ForeignKey(
        'users.User',
        on_delete=models.CASCADE,
        related_name='notifications',
        null=True,
        blank=True,
        help_text=_('Empty for system-wide notifications.'),
    )
    title = models.CharField(max_length=200)
    message = models.TextField(max_length=1000)
    type = models.CharField(max_length=20, choices=Type.choices, default=Type.INFO)
    metadata = models.JSONField(default=dict, blank=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'is_read']),
            models.Index(fields=['type']),
            models.Index(fields=['-created_at']),
        ]

    def __str__(self) -> str:
        target = self.user_id or "all"
        return f"Notification to {target}: {self.title}"

    @property
    def is_system(self) -> bool:
        return self.user_id is None


class NotificationRead(models.Model):
    """Per-user read receipt for a system-wide notification."""

    notification = models.ForeignKey(Notification, on_delete=models.CASCADE, related_name='receipts')
    user = models.ForeignKey('users.User', on_delete=models.CASCADE, related_name='notification_receipts')
    read_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('notification', 'user')

    def __str__(self) -> str:
        return f"{self.user_id} read {self.notification_id}"
