"""Newsletter and contact form workflows."""

from __future__ import annotations

import logging

from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore

from apps.notifications.services import queue_email
from shared.domain.exceptions import DomainError

from .models import NewsletterSubscriber

logger = logging.getLogger(__name__)

WELCOME_SUBJECT = "Welcome to the CampSpot newsletter!"
WELCOME_MESSAGE = (
    "Thanks for subscribing!\n\n"
    "You'll be the first to hear about new campsites, seasonal deals and camping tips.\n\n"
    "The CampSpot team"
)


class AlreadySubscribed(DomainError):
    code = "already_subscribed"


class SubscriberNotFound(DomainError):
    status_code = 404
    code = "subscriber_not_found"


def subscribe(email: str, source: str = "website") -> tuple[NewsletterSubscriber, bool]:
    """Subscribe ``email``.

    Returns:
        (subscriber, reactivated): ``reactivated`` is True when a previous
        subscription was switched back on.
    """
    email = email.strip().lower()
    subscriber = NewsletterSubscriber.objects.filter(email=email).first()
    reactivated = False
    if subscriber is not None:
        if subscriber.is_active:
            raise AlreadySubscribed("This email is already subscribed to our newsletter.")
        subscriber.is_active = True
        subscriber.subscribed_at = timezone.now()
        subscriber.save(update_fields=["is_active", "subscribed_at", "updated_at"])
        reactivated = True
        logger.info(f"Newsletter subscription reactivated: {email}")
    else:
        subscriber = NewsletterSubscriber.objects.create(email=email, source=source or "website")
        logger.info(f"New newsletter subscription: {email}")

    queue_email(email, WELCOME_SUBJECT, WELCOME_MESSAGE)
    return subscriber, reactivated


def unsubscribe(email: str) -> NewsletterSubscriber:
    email = email.strip().lower()
    subscriber = NewsletterSubscriber.objects.filter(email=email).first()
    if subscriber is None:
        raise SubscriberNotFound("Email not found in our newsletter list.")
    subscriber.is_active = False
    subscriber.save(update_fields=["is_active", "updated_at"])
    logger.info(f"Newsletter unsubscribed: {email}")
    return subscriber


def submit_contact_form(
    *,
    name: str,
    email: str,
    message: str,
    phone: str = "",
    equipment_interest: str = "None",
) -> None:
    """Forward a contact form to the site admin and confirm to the sender."""
    body = "\n".join(
        [
            f"Name: {name}",
            f"Email: {email}",
            f"Phone: {phone or '-'}",
            f"Equipment interest: {equipment_interest or 'None'}",
            "",
            message,
        ]
    )
    queue_email(settings.ADMIN_NOTIFICATION_EMAIL, f"New contact form submission from {name}", body)
    queue_email(
        email,
        "We received your message",
        f"Hi {name},\n\nThank you for contacting CampSpot. We will get back to you soon.\n\n"
        f"Your message:\n{message}",
    )
    logger.info(f"Contact form submission from {email}")


def submit_booking_support(*, reference: str, name: str, email: str, message: str) -> None:
    """Support request about an existing booking."""
    reference = reference.strip().upper()
    queue_email(
        settings.ADMIN_NOTIFICATION_EMAIL,
        f"[BOOKING SUPPORT] {reference}",
        f"Booking: {reference}\nName: {name}\nEmail: {email}\n\n{message}",
    )
    queue_email(
        email,
        f"Regarding booking {reference}",
        f"Hi {name},\n\nWe received your request about booking {reference} and will reply shortly.",
    )
    logger.info(f"Booking support request from {email} for {reference}")
