from unittest import mock

from django.core import mail
from django.core.cache import cache
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.outreach.models import NewsletterSubscriber
from apps.users.models import User
from shared.infrastructure.throttling import AuthRateThrottle


class NewsletterAPITestCase(APITestCase):
    def test_subscribe_sends_welcome_email(self):
        response = self.client.post(
            reverse("newsletter-subscribe"), {"email": "Reader@Example.com"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertTrue(NewsletterSubscriber.objects.filter(email="reader@example.com", is_active=True).exists())
        self.assertEqual(mail.outbox[-1].to, ["reader@example.com"])

    def test_double_subscription_is_rejected(self):
        NewsletterSubscriber.objects.create(email="reader@example.com")

        response = self.client.post(reverse("newsletter-subscribe"), {"email": "reader@example.com"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "already_subscribed")

    def test_unsubscribe_then_reactivate(self):
        NewsletterSubscriber.objects.create(email="reader@example.com")

        response = self.client.post(reverse("newsletter-unsubscribe"), {"email": "reader@example.com"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(NewsletterSubscriber.objects.get(email="reader@example.com").is_active)

        response = self.client.post(reverse("newsletter-subscribe"), {"email": "reader@example.com"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertTrue(NewsletterSubscriber.objects.get(email="reader@example.com").is_active)

    def test_unsubscribe_unknown_email(self):
        response = self.client.post(reverse("newsletter-unsubscribe"), {"email": "nobody@example.com"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_subscriber_list_for_admins(self):
        NewsletterSubscriber.objects.create(email="a@example.com")
        NewsletterSubscriber.objects.create(email="b@example.com", is_active=False)
        url = reverse("newsletter-subscribers")

        self.assertEqual(self.client.get(url).status_code, status.HTTP_401_UNAUTHORIZED)

        admin = User.objects.create_user(
            email="admin@example.com", password="secret1", name="Admin", role=User.Role.ADMIN
        )
        self.client.force_authenticate(user=admin)
        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row["email"] for row in response.data["results"]], ["a@example.com"])


class ContactAPITestCase(APITestCase):
    def setUp(self):
        cache.clear()

    def test_contact_form_emails_admin_and_sender(self):
        response = self.client.post(
            reverse("contact"),
            {
                "name": "Ana",
                "email": "ana@example.com",
                "phone": "+386 40 123 456",
                "message": "Do you rent tents for groups of ten?",
                "equipment_interest": "Tents",
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertTrue(response.data["submitted"])
        recipients = [message.to[0] for message in mail.outbox]
        self.assertIn("admin@campspot.local", recipients)
        self.assertIn("ana@example.com", recipients)

    def test_contact_form_validation(self):
        response = self.client.post(
            reverse("contact"),
            {"name": "A", "email": "ana@example.com", "phone": "call me", "message": "short", "equipment_interest": "Boats"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        for field in ("name", "phone", "message", "equipment_interest"):
            self.assertIn(field, response.data)

    def test_booking_support(self):
        response = self.client.post(
            reverse("contact-booking-support"),
            {"reference": "ab12cd34", "name": "Ana", "email": "ana@example.com", "message": "Can I arrive late?"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertTrue(any(message.subject == "[BOOKING SUPPORT] AB12CD34" for message in mail.outbox))

    def test_contact_form_is_rate_limited(self):
        payload = {"name": "Ana", "email": "ana@example.com", "message": "Is the lake swimmable?"}

        with mock.patch.object(AuthRateThrottle, "THROTTLE_RATES", {"auth": "2/15m"}):
            statuses = [self.client.post(reverse("contact"), payload, format="json").status_code for _ in range(3)]

        self.assertEqual(statuses, [status.HTTP_200_OK, status.HTTP_200_OK, status.HTTP_429_TOO_MANY_REQUESTS])
