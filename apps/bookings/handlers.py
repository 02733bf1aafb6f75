"""Side effects of reservation events.

Every handler is best-effort: the message bus logs failures and the
request that produced the event has already committed.
"""

from __future__ import annotations

import logging

from apps.catalog.models import ResourceKind
from apps.notifications import services as notifications
from apps.notifications.tasks import send_reservation_email
from shared.application.message_bus import MessageBus
from shared.infrastructure import realtime

from . import events
from .models import Reservation

logger = logging.getLogger(__name__)


def _load(event: events.ReservationEvent) -> Reservation | None:
    reservation = Reservation.objects.select_related("user").filter(pk=event.reservation_id).first()
    if reservation is None:
        logger.warning(f"Reservation {event.reservation_id} vanished before {type(event).__name__} was handled")
    return reservation


def _snapshot(reservation: Reservation) -> dict:
    return {
        "id": reservation.pk,
        "reference": reservation.reference,
        "kind": reservation.kind,
        "resource_id": reservation.resource_id,
        "resource_name": reservation.resource_name,
        "start_date": reservation.start_date,
        "end_date": reservation.end_date,
        "status": reservation.status,
        "payment_status": reservation.payment_status,
        "total_price": reservation.total_price,
    }


def _queue_email(reservation_id: int, template: str) -> None:
    try:
        send_reservation_email.delay(reservation_id, template)
    except Exception as e:
        logger.error(f"Could not queue {template} email for reservation {reservation_id}: {e}", exc_info=True)


# ===== Notifications =====

def notify_created(event: events.ReservationCreated) -> None:
    reservation = _load(event)
    if reservation is None:
        return
    notifications.notify_reservation_created(reservation)
    notifications.notify_admins_new_reservation(reservation)


def notify_approved(event: events.ReservationApproved) -> None:
    reservation = _load(event)
    if reservation is not None:
        notifications.notify_reservation_approved(reservation)


def notify_rejected(event: events.ReservationRejected) -> None:
    reservation = _load(event)
    if reservation is not None:
        notifications.notify_reservation_rejected(reservation)


def notify_cancelled(event: events.ReservationCancelled) -> None:
    reservation = _load(event)
    if reservation is not None:
        notifications.notify_reservation_cancelled(reservation)


def notify_completed(event: events.ReservationCompleted) -> None:
    reservation = _load(event)
    if reservation is not None:
        notifications.notify_reservation_completed(reservation)


def notify_paid(event: events.ReservationPaid) -> None:
    # Checkout sends one summary notification for the whole cart
    if event.source == Reservation.Source.CART:
        return
    reservation = _load(event)
    if reservation is not None:
        notifications.notify_payment_completed(reservation.user, reservation.total_price, 1)


# ===== Realtime =====

def push_created(event: events.ReservationCreated) -> None:
    reservation = _load(event)
    if reservation is None:
        return
    payload = _snapshot(reservation)
    realtime.push_to_admins("booking:new", payload)
    realtime.push_to_user(reservation.user_id, "booking:new", payload)


def push_status_change(event: events.ReservationEvent) -> None:
    reservation = _load(event)
    if reservation is None:
        return
    payload = _snapshot(reservation)
    name = "booking:cancelled" if isinstance(event, events.ReservationCancelled) else "booking:updated"
    realtime.push_to_user(reservation.user_id, name, payload)
    realtime.push_to_admins("booking:admin-update", payload)


# ===== Email =====

def email_created(event: events.ReservationCreated) -> None:
    _queue_email(event.reservation_id, "created")


def email_approved(event: events.ReservationApproved) -> None:
    _queue_email(event.reservation_id, "approved")


def email_rejected(event: events.ReservationRejected) -> None:
    _queue_email(event.reservation_id, "rejected")


def email_cancelled(event: events.ReservationCancelled) -> None:
    _queue_email(event.reservation_id, "cancelled")


# ===== Availability band =====

def refresh_campsite_band(event: events.ReservationEvent) -> None:
    if event.kind != ResourceKind.CAMPSITE:
        return
    from .services import refresh_site_availability

    refresh_site_availability(event.resource_id)


def register_handlers(bus: MessageBus) -> None:
    """Wire reservation events to their side effects."""
    bus.register_event_handler(events.ReservationCreated, notify_created)
    bus.register_event_handler(events.ReservationCreated, push_created)
    bus.register_event_handler(events.ReservationCreated, email_created)
    bus.register_event_handler(events.ReservationCreated, refresh_campsite_band)

    bus.register_event_handler(events.ReservationUpdated, push_status_change)

    bus.register_event_handler(events.ReservationApproved, notify_approved)
    bus.register_event_handler(events.ReservationApproved, push_status_change)
    bus.register_event_handler(events.ReservationApproved, email_approved)

    bus.register_event_handler(events.ReservationRejected, notify_rejected)
    bus.register_event_handler(events.ReservationRejected, push_status_change)
    bus.register_event_handler(events.ReservationRejected, email_rejected)
    bus.register_event_handler(events.ReservationRejected, refresh_campsite_band)

    bus.register_event_handler(events.ReservationCancelled, notify_cancelled)
    bus.register_event_handler(events.ReservationCancelled, push_status_change)
    bus.register_event_handler(events.ReservationCancelled, email_cancelled)
    bus.register_event_handler(events.ReservationCancelled, refresh_campsite_band)

    bus.register_event_handler(events.ReservationCompleted, notify_completed)
    bus.register_event_handler(events.ReservationCompleted, push_status_change)

    bus.register_event_handler(events.ReservationPaid, notify_paid)
    bus.register_event_handler(events.ReservationPaid, push_status_change)
