"""Models for the review domain.

Defines the ``Review`` entity: a rating and optional comment left by a
user for a campsite, activity or equipment item. One user can leave at
most one review per item.
"""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.catalog.models import ResourceKind, get_resource_model


class Review(models.Model):
    """Represents a review left by a user for a bookable item."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='reviews'
    )
    kind = models.CharField(max_length=20, choices=ResourceKind.choices)
    target_id = models.PositiveBigIntegerField()
    rating = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(5)],
        help_text=_('Rating from 1 to 5')
    )
    comment = models.TextField(max_length=1000, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Review')
        verbose_name_plural = _('Reviews')
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'kind', 'target_id'],
                name='review_one_per_user_and_item',
            ),
        ]
        indexes = [
            models.Index(fields=['kind', 'target_id']),
        ]

    def __str__(self) -> str:
        return f'Review by {self.user} for {self.kind} #{self.target_id}'

    @property
    def target(self):
        return get_resource_model(self.kind).objects.filter(pk=self.target_id).first()
