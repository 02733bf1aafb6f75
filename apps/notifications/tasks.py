"""Celery tasks for outgoing email."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

logger = logging.getLogger(__name__)


@shared_task(name="notifications.send_email")
def send_email(recipient_email: str, subject: str, message: str) -> bool:
    """Send one plain-text email through the configured backend."""
    from .services import send_email_notification

    return send_email_notification(recipient_email, subject, message)


@shared_task(name="notifications.send_reservation_email")
def send_reservation_email(reservation_id: int, template: str) -> bool:
    """Email the reservation owner about a status change."""
    from apps.bookings.models import Reservation

    from .services import send_email_notification

    try:
        reservation = Reservation.objects.select_related("user").get(pk=reservation_id)
    except Reservation.DoesNotExist:
        logger.error(f"Reservation {reservation_id} not found for {template} email")
        return False

    subjects = {
        "created": f"Booking {reservation.reference} received",
        "approved": f"Booking {reservation.reference} approved",
        "rejected": f"Booking {reservation.reference} rejected",
        "cancelled": f"Booking {reservation.reference} cancelled",
    }
    subject = subjects.get(template, f"Booking {reservation.reference} updated")
    lines = [
        f"Hello {reservation.user.name},",
        "",
        f"Booking: {reservation.reference}",
        f"Item: {reservation.resource_name}",
        f"Dates: {reservation.start_date:%d/%m/%Y} - {reservation.end_date:%d/%m/%Y}",
        f"Status: {reservation.get_status_display()}",
        f"Total: {reservation.total_price} EUR",
    ]
    if template == "rejected" and reservation.rejection_reason:
        lines.append(f"Reason: {reservation.rejection_reason}")
    if template == "cancelled" and reservation.refund_amount:
        lines.append(f"Refund: {reservation.refund_amount} EUR")
    lines += ["", "The CampSpot team"]

    return send_email_notification(reservation.user.email, subject, "\n".join(lines))
