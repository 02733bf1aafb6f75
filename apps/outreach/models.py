"""Newsletter subscriptions."""

from __future__ import annotations

from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class NewsletterSubscriber(models.Model):
    email = models.EmailField(unique=True)
    is_active = models.BooleanField(default=True)
    source = models.CharField(
        max_length=50,
        default='website',
        help_text=_('Where the visitor subscribed from (footer, about page, ...)'),
    )
    subscribed_at = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Newsletter subscriber')
        verbose_name_plural = _('Newsletter subscribers')
        ordering = ['-subscribed_at']

    def __str__(self) -> str:
        return self.email
