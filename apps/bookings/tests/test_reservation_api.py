from datetime import timedelta
from decimal import Decimal

from django.core import mail
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Reservation
from apps.catalog.models import Activity, CampingSite
from apps.notifications.models import Notification
from apps.users.models import User


def _day(offset: int) -> str:
    return (timezone.localdate() + timedelta(days=offset)).isoformat()


class ReservationAPITestCase(APITestCase):
    def setUp(self):
        self.camper = User.objects.create_user(
            email="camper@example.com",
            password="secret1",
            name="Camper",
            instagram_url="https://instagram.com/camper",
        )
        self.other = User.objects.create_user(
            email="other@example.com",
            password="secret1",
            name="Other Camper",
            instagram_url="https://instagram.com/other",
        )
        self.admin = User.objects.create_user(
            email="admin@example.com",
            password="secret1",
            name="Admin",
            role=User.Role.ADMIN,
        )
        self.site = CampingSite.objects.create(
            name="Pine Ridge",
            description="Shaded pitch under the pines.",
            location="Triglav",
            price=Decimal("40.00"),
            image="https://img.example.com/pine.jpg",
            capacity=4,
        )
        self.activity = Activity.objects.create(
            name="Canyoning",
            description="Half day in the gorge.",
            price=Decimal("30.00"),
            icon="C",
            duration="4 hours",
            difficulty=Activity.Difficulty.INTERMEDIATE,
            category="Adventure",
            max_participants=6,
        )
        self.list_url = reverse("reservation-list")

    def _book_site(self, user=None, start=5, end=8, quantity=2):
        self.client.force_authenticate(user=user or self.camper)
        return self.client.post(
            self.list_url,
            {
                "kind": "campsite",
                "resource_id": self.site.id,
                "start_date": _day(start),
                "end_date": _day(end),
                "quantity": quantity,
            },
            format="json",
        )

    def test_create_campsite_reservation(self):
        response = self._book_site()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["status"], "pending")
        self.assertEqual(response.data["payment_status"], "pending")
        self.assertEqual(response.data["total_price"], "120.00")
        self.assertEqual(response.data["duration"], 3)
        self.assertEqual(response.data["user"]["email"], "camper@example.com")
        self.assertEqual(len(response.data["reference"]), 8)

    def test_create_requires_authentication(self):
        response = self.client.post(self.list_url, {"kind": "campsite"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_overlapping_campsite_returns_conflict(self):
        self.assertEqual(self._book_site().status_code, status.HTTP_201_CREATED)

        response = self._book_site(user=self.other, start=6, end=9)

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT, response.data)
        self.assertEqual(response.data["code"], "reservation_conflict")

    def test_end_date_must_follow_start(self):
        response = self._book_site(start=8, end=8)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("end_date", response.data)

    def test_unknown_resource_returns_404(self):
        self.client.force_authenticate(user=self.camper)
        response = self.client.post(
            self.list_url,
            {"kind": "campsite", "resource_id": 9999, "start_date": _day(3), "end_date": _day(4)},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_activity_booking_needs_time_slot(self):
        self.client.force_authenticate(user=self.camper)
        payload = {"kind": "activity", "resource_id": self.activity.id, "start_date": _day(4), "quantity": 2}

        response = self.client.post(self.list_url, payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("time_slot", response.data)

        response = self.client.post(self.list_url, {**payload, "time_slot": "10:00"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["end_date"], _day(5))
        self.assertEqual(response.data["total_price"], "60.00")

    def test_users_only_see_their_own_reservations(self):
        self._book_site()
        self._book_site(user=self.other, start=10, end=12)

        self.client.force_authenticate(user=self.camper)
        response = self.client.get(self.list_url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 1)

        self.client.force_authenticate(user=self.admin)
        response = self.client.get(self.list_url)
        self.assertEqual(response.data["count"], 2)

        response = self.client.get(self.list_url, {"user": self.other.id})
        self.assertEqual(response.data["count"], 1)

        response = self.client.get(self.list_url, {"mine": "true"})
        self.assertEqual(response.data["count"], 0)

    def test_other_users_reservation_is_hidden(self):
        reservation_id = self._book_site().data["id"]

        self.client.force_authenticate(user=self.other)
        response = self.client.get(reverse("reservation-detail", args=[reservation_id]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_admin_approves_and_owner_is_notified(self):
        reservation_id = self._book_site().data["id"]

        self.client.force_authenticate(user=self.admin)
        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.patch(
                reverse("reservation-approve", args=[reservation_id]),
                {"admin_notes": "See you soon"},
                format="json",
            )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "approved")
        self.assertEqual(response.data["admin_notes"], "See you soon")
        self.assertTrue(
            Notification.objects.filter(user=self.camper, title="Booking Approved").exists()
        )
        self.assertTrue(any("approved" in message.subject for message in mail.outbox))

    def test_creation_notifies_owner_and_admins(self):
        with self.captureOnCommitCallbacks(execute=True):
            self._book_site()

        self.assertTrue(Notification.objects.filter(user=self.camper, title="Booking Received").exists())
        self.assertTrue(Notification.objects.filter(user=self.admin, title="New Booking Request").exists())

    def test_owner_cannot_approve(self):
        reservation_id = self._book_site().data["id"]

        response = self.client.patch(reverse("reservation-approve", args=[reservation_id]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_reject_requires_reason(self):
        reservation_id = self._book_site().data["id"]
        self.client.force_authenticate(user=self.admin)
        url = reverse("reservation-reject", args=[reservation_id])

        response = self.client.patch(url, {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.patch(url, {"reason": "Fully booked group event"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "rejected")
        self.assertEqual(response.data["rejection_reason"], "Fully booked group event")

    def test_terminal_reservation_cannot_change(self):
        reservation_id = self._book_site().data["id"]
        self.client.patch(reverse("reservation-cancel", args=[reservation_id]))

        self.client.force_authenticate(user=self.admin)
        response = self.client.patch(reverse("reservation-approve", args=[reservation_id]))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "invalid_transition")

    def test_pay_then_cancel_refunds(self):
        reservation_id = self._book_site(start=10, end=12).data["id"]

        response = self.client.post(reverse("reservation-pay", args=[reservation_id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["payment_status"], "paid")

        response = self.client.post(reverse("reservation-cancel", args=[reservation_id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "cancelled")
        self.assertEqual(response.data["payment_status"], "refunded")
        self.assertEqual(response.data["refund_amount"], "80.00")

    def test_complete_flow(self):
        reservation_id = self._book_site().data["id"]
        self.client.post(reverse("reservation-pay", args=[reservation_id]))

        self.client.force_authenticate(user=self.admin)
        self.client.patch(reverse("reservation-approve", args=[reservation_id]))
        response = self.client.patch(reverse("reservation-complete", args=[reservation_id]))

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "completed")

    def test_update_pending_reservation(self):
        reservation_id = self._book_site().data["id"]

        response = self.client.patch(
            reverse("reservation-detail", args=[reservation_id]),
            {"end_date": _day(10), "special_requests": "Near the river please"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["total_price"], "200.00")
        self.assertEqual(response.data["special_requests"], "Near the river please")

    def test_delete_only_after_cancellation(self):
        reservation_id = self._book_site().data["id"]
        url = reverse("reservation-detail", args=[reservation_id])

        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        self.client.patch(reverse("reservation-cancel", args=[reservation_id]))
        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Reservation.objects.filter(pk=reservation_id).exists())

    def test_receipt(self):
        reservation_id = self._book_site().data["id"]

        response = self.client.get(reverse("reservation-receipt", args=[reservation_id]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["item"], "Pine Ridge")
        self.assertEqual(response.data["duration"], 3)
        self.assertEqual(response.data["total"], Decimal("120.00"))

    def test_stats_for_admins_only(self):
        self._book_site()

        response = self.client.get(reverse("reservation-stats"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.admin)
        response = self.client.get(reverse("reservation-stats"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["total"], 1)
        self.assertEqual(response.data["by_status"]["pending"]["count"], 1)

    def test_check_availability_is_public(self):
        self._book_site()
        self.client.force_authenticate(user=None)
        url = reverse("reservation-check-availability")

        response = self.client.get(
            url,
            {"kind": "campsite", "resource_id": self.site.id, "start_date": _day(6), "end_date": _day(7)},
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertFalse(response.data["available"])

        response = self.client.post(
            url,
            {"kind": "campsite", "resource_id": self.site.id, "start_date": _day(8), "end_date": _day(9)},
            format="json",
        )
        self.assertTrue(response.data["available"])
        self.assertEqual(response.data["total_price"], Decimal("40.00"))
