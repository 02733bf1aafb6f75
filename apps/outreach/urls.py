"""URL routing for newsletter and contact endpoints."""

from django.urls import path  # type: ignore

from .views import BookingSupportView, ContactView, SubscribeView, SubscriberListView, UnsubscribeView

urlpatterns = [
    path("newsletter/subscribe/", SubscribeView.as_view(), name="newsletter-subscribe"),
    path("newsletter/unsubscribe/", UnsubscribeView.as_view(), name="newsletter-unsubscribe"),
    path("newsletter/subscribers/", SubscriberListView.as_view(), name="newsletter-subscribers"),
    path("contact/", ContactView.as_view(), name="contact"),
    path("contact/booking-support/", BookingSupportView.as_view(), name="contact-booking-support"),
]
