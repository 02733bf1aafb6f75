"""Notification services: in-app notifications, realtime pushes and email."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable

from django.conf import settings  # type: ignore
from django.contrib.auth import get_user_model  # type: ignore
from django.core.mail import send_mail  # type: ignore
from django.db.models import BooleanField, Case, Exists, F, OuterRef, Q, QuerySet, When  # type: ignore
from django.utils.html import strip_tags  # type: ignore

from shared.infrastructure import realtime

from .models import Notification, NotificationRead

if TYPE_CHECKING:  # pragma: no cover
    from apps.bookings.models import Reservation
    from apps.users.models import User

logger = logging.getLogger(__name__)

NotificationType = Notification.Type


# ============================================================================
# EMAIL NOTIFICATIONS
# ============================================================================

def send_email_notification(
    recipient_email: str,
    subject: str,
    message: str,
    *,
    html_message: str | None = None,
) -> bool:
    """
    Send a single email.

    Returns:
        bool: True if the email was handed to the backend
    """
    try:
        text_message = strip_tags(html_message) if html_message else message

        send_mail(
            subject=subject,
            message=text_message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient_email],
            html_message=html_message,
            fail_silently=False,
        )

        logger.info(f"Email sent successfully to {recipient_email}: {subject}")
        return True

    except Exception as e:
        logger.error(f"Failed to send email to {recipient_email}: {e}", exc_info=True)
        return False


def queue_email(recipient_email: str, subject: str, message: str) -> None:
    """Hand an email to the Celery worker; logged and dropped if the broker is down."""
    from .tasks import send_email

    try:
        send_email.delay(recipient_email, subject, message)
    except Exception as e:
        logger.error(f"Could not queue email to {recipient_email}: {e}", exc_info=True)


# ============================================================================
# IN-APP NOTIFICATIONS
# ============================================================================

def _payload(notification: Notification) -> dict[str, Any]:
    return {
        "id": notification.id,
        "title": notification.title,
        "message": notification.message,
        "type": notification.type,
        "metadata": notification.metadata,
        "created_at": notification.created_at,
    }


def create_user_notification(
    user: "User",
    title: str,
    message: str,
    type: str = NotificationType.INFO,
    metadata: dict[str, Any] | None = None,
) -> Notification | None:
    """Create a notification for one user and push it to their room."""
    try:
        notification = Notification.objects.create(
            user=user,
            title=title[:200],
            message=message[:1000],
            type=type,
            metadata=metadata or {},
        )
    except Exception as e:
        logger.error(f"Failed to create notification for {user.email}: {e}", exc_info=True)
        return None

    realtime.push_to_user(user.id, "notification:new", _payload(notification))
    logger.info(f"In-app notification created for {user.email}: {title}")
    return notification


def create_system_notification(
    title: str,
    message: str,
    type: str = NotificationType.INFO,
    metadata: dict[str, Any] | None = None,
) -> Notification:
    """Broadcast notification visible to every existing user."""
    notification = Notification.objects.create(
        user=None,
        title=title[:200],
        message=message[:1000],
        type=type,
        metadata=metadata or {},
    )
    realtime.push_event("all", "notification:new", _payload(notification))
    logger.info(f"System notification created: {title}")
    return notification


def create_bulk_notifications(
    users: Iterable["User"],
    title: str,
    message: str,
    type: str = NotificationType.INFO,
    metadata: dict[str, Any] | None = None,
) -> list[Notification]:
    created = []
    for user in users:
        notification = create_user_notification(user, title, message, type, metadata)
        if notification is not None:
            created.append(notification)
    return created


def create_admin_notification(
    title: str,
    message: str,
    type: str = NotificationType.ADMIN,
    metadata: dict[str, Any] | None = None,
) -> list[Notification]:
    """One notification per active admin."""
    admins = get_user_model().objects.active_admins()
    return create_bulk_notifications(admins, title, message, type, metadata)


# ============================================================================
# QUERIES
# ============================================================================

def visible_notifications(user: "User") -> QuerySet:
    """Own notifications plus broadcasts created after the user registered.

    Each row is annotated with ``seen``: the per-user read state.
    """
    receipts = NotificationRead.objects.filter(notification=OuterRef("pk"), user=user)
    return (
        Notification.objects.filter(
            Q(user=user) | Q(user__isnull=True, created_at__gte=user.date_joined)
        )
        .annotate(
            seen=Case(
                When(user__isnull=True, then=Exists(receipts)),
                default=F("is_read"),
                output_field=BooleanField(),
            )
        )
        .order_by("-created_at")
    )


def unread_count(user: "User") -> int:
    return visible_notifications(user).filter(seen=False).count()


def mark_read(notification: Notification, user: "User") -> None:
    if notification.is_system:
        NotificationRead.objects.get_or_create(notification=notification, user=user)
        return
    if not notification.is_read:
        notification.is_read = True
        notification.save(update_fields=["is_read", "updated_at"])


def mark_all_read(user: "User") -> int:
    """Mark every visible notification read. Returns how many changed."""
    unread = list(visible_notifications(user).filter(seen=False).values_list("id", "user_id"))
    own_ids = [pk for pk, owner in unread if owner is not None]
    system_ids = [pk for pk, owner in unread if owner is None]
    Notification.objects.filter(id__in=own_ids).update(is_read=True)
    NotificationRead.objects.bulk_create(
        [NotificationRead(notification_id=pk, user=user) for pk in system_ids],
        ignore_conflicts=True,
    )
    return len(unread)


# ============================================================================
# DOMAIN HELPERS
# ============================================================================

def _reservation_metadata(reservation: "Reservation") -> dict[str, Any]:
    return {
        "reservation_id": reservation.id,
        "reference": reservation.reference,
        "kind": reservation.kind,
        "resource_id": reservation.resource_id,
    }


def notify_reservation_created(reservation: "Reservation") -> None:
    create_user_notification(
        reservation.user,
        title="Booking Received",
        message=(
            f"Your booking for {reservation.resource_name} from {reservation.start_date:%d/%m/%Y} "
            f"has been received and is pending approval."
        ),
        type=NotificationType.BOOKING,
        metadata=_reservation_metadata(reservation),
    )


def notify_admins_new_reservation(reservation: "Reservation") -> None:
    create_admin_notification(
        title="New Booking Request",
        message=(
            f"{reservation.user.name} requested {reservation.resource_name} "
            f"from {reservation.start_date:%d/%m/%Y} to {reservation.end_date:%d/%m/%Y}."
        ),
        type=NotificationType.ADMIN,
        metadata=_reservation_metadata(reservation),
    )


def notify_reservation_approved(reservation: "Reservation") -> None:
    create_user_notification(
        reservation.user,
        title="Booking Approved",
        message=f"Your booking for {reservation.resource_name} has been approved.",
        type=NotificationType.SUCCESS,
        metadata=_reservation_metadata(reservation),
    )


def notify_reservation_rejected(reservation: "Reservation") -> None:
    create_user_notification(
        reservation.user,
        title="Booking Rejected",
        message=(
            f"Your booking for {reservation.resource_name} was rejected. "
            f"Reason: {reservation.rejection_reason}"
        ),
        type=NotificationType.ERROR,
        metadata=_reservation_metadata(reservation),
    )


def notify_reservation_cancelled(reservation: "Reservation") -> None:
    message = f"Your booking for {reservation.resource_name} has been cancelled."
    if reservation.refund_amount:
        message += f" A refund of {reservation.refund_amount} EUR will be issued."
    create_user_notification(
        reservation.user,
        title="Booking Cancelled",
        message=message,
        type=NotificationType.WARNING,
        metadata=_reservation_metadata(reservation),
    )


def notify_reservation_completed(reservation: "Reservation") -> None:
    create_user_notification(
        reservation.user,
        title="Thanks for staying with us",
        message=f"We hope you enjoyed {reservation.resource_name}. Leave a review to help other campers.",
        type=NotificationType.SUCCESS,
        metadata=_reservation_metadata(reservation),
    )


def notify_payment_completed(user: "User", amount, item_count: int = 1) -> None:
    create_user_notification(
        user,
        title="Payment Successful",
        message=f"Your payment of {amount} EUR for {item_count} item(s) was processed successfully.",
        type=NotificationType.SUCCESS,
        metadata={"amount": str(amount), "items": item_count},
    )


def notify_welcome_user(user: "User") -> None:
    create_user_notification(
        user,
        title="Welcome to CampSpot!",
        message=f"Hi {user.name}, start exploring campsites, activities and gear for your next adventure.",
        type=NotificationType.SUCCESS,
    )


def notify_new_campsite(site) -> None:
    create_system_notification(
        title="New Campsite Available!",
        message=f"{site.name} in {site.location} is now open for bookings.",
        type=NotificationType.CAMPSITE,
        metadata={"campsite_id": site.id},
    )


def notify_campsite_update(site) -> None:
    create_system_notification(
        title="Campsite Updated",
        message=f"{site.name} has been updated. Check out the latest details.",
        type=NotificationType.CAMPSITE,
        metadata={"campsite_id": site.id},
    )
