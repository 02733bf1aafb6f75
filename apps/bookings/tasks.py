"""Celery tasks for the reservation ledger."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from apps.catalog.models import CampingSite

from . import services

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (run by Celery Beat)
# ============================================================================

@shared_task(name="bookings.complete_finished_reservations")
def complete_finished_reservations() -> dict[str, int]:
    """
    Complete approved, paid reservations whose end date has passed.

    Runs every hour.

    Returns:
        dict: {"completed": number of reservations closed}
    """
    completed = services.complete_finished_reservations()
    if completed > 0:
        logger.info(f"Completed {completed} finished reservations")
    return {"completed": completed}


@shared_task(name="bookings.refresh_site_availability")
def refresh_site_availability() -> dict[str, int]:
    """
    Recompute the available/limited band of every active campsite.

    Bookings ending drop out of the upcoming count without any event, so
    sites are re-checked every six hours.

    Returns:
        dict: {"changed": number of sites whose band moved}
    """
    changed = 0
    sites = CampingSite.objects.filter(status=CampingSite.Status.ACTIVE).exclude(
        availability=CampingSite.Availability.UNAVAILABLE
    )
    for site in sites.only("id", "availability"):
        try:
            if services.refresh_site_availability(site.pk) != site.availability:
                changed += 1
        except Exception as e:
            logger.error(f"Error refreshing availability of campsite {site.pk}: {e}", exc_info=True)

    if changed > 0:
        logger.info(f"Availability band changed for {changed} campsites")
    return {"changed": changed}
