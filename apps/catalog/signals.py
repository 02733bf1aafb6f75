"""Model signal handlers for catalog response cache invalidation."""

from django.db.models.signals import post_delete, post_save  # type: ignore
from django.dispatch import receiver  # type: ignore

from shared.infrastructure.cache import invalidate_response_cache

from .models import Activity, CampingSite, Equipment


@receiver([post_save, post_delete], sender=CampingSite)
@receiver([post_save, post_delete], sender=Activity)
@receiver([post_save, post_delete], sender=Equipment)
def catalog_cache_invalidator(sender, **_: object) -> None:
    """Drop cached list/detail responses of the family that changed."""
    invalidate_response_cache(sender.cache_family)
