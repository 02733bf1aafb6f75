import uuid
from datetime import timedelta
from decimal import Decimal

from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Reservation
from apps.catalog.models import Activity, CampingSite, Equipment
from apps.notifications.models import Notification
from apps.users.models import User


def _day(offset: int):
    return timezone.localdate() + timedelta(days=offset)


class CatalogAPITestCase(APITestCase):
    def setUp(self):
        self.camper = User.objects.create_user(email="camper@example.com", password="secret1", name="Camper")
        self.admin = User.objects.create_user(
            email="admin@example.com", password="secret1", name="Admin", role=User.Role.ADMIN
        )
        self.lake = CampingSite.objects.create(
            name="Lake Pitch",
            description="By the lake.",
            location="Bled",
            price=Decimal("40.00"),
            image="https://img.example.com/lake.jpg",
            capacity=4,
            features=["WiFi", "Fire pit"],
            type=CampingSite.SiteType.TENT,
            address={"city": "Bled", "state": "Gorenjska"},
        )
        self.cabin = CampingSite.objects.create(
            name="Forest Cabin",
            description="Wooden cabin.",
            location="Kranjska Gora",
            price=Decimal("120.00"),
            image="https://img.example.com/cabin.jpg",
            capacity=6,
            features=["WiFi", "Kitchen"],
            type=CampingSite.SiteType.CABIN,
        )
        self.hidden = CampingSite.objects.create(
            name="Closed Meadow",
            description="Closed for the season.",
            location="Bovec",
            price=Decimal("20.00"),
            image="https://img.example.com/meadow.jpg",
            capacity=2,
            status=CampingSite.Status.INACTIVE,
        )
        self.list_url = reverse("campsite-list")

    def test_public_list_hides_inactive_sites(self):
        response = self.client.get(self.list_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 2)
        names = {item["name"] for item in response.data["results"]}
        self.assertNotIn("Closed Meadow", names)

    def test_admin_sees_inactive_sites(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.get(self.list_url)
        self.assertEqual(response.data["count"], 3)

    def test_filters(self):
        response = self.client.get(self.list_url, {"type": "cabin"})
        self.assertEqual([item["name"] for item in response.data["results"]], ["Forest Cabin"])

        response = self.client.get(self.list_url, {"guests": 5})
        self.assertEqual(response.data["count"], 1)

        response = self.client.get(self.list_url, {"price_max": "50"})
        self.assertEqual([item["name"] for item in response.data["results"]], ["Lake Pitch"])

        response = self.client.get(self.list_url, {"features": "wifi,kitchen"})
        self.assertEqual([item["name"] for item in response.data["results"]], ["Forest Cabin"])

        response = self.client.get(self.list_url, {"location": "gorenjska"})
        self.assertEqual([item["name"] for item in response.data["results"]], ["Lake Pitch"])

    def test_features_match_whole_entries(self):
        response = self.client.get(self.list_url, {"features": "fire"})
        self.assertEqual(response.data["count"], 0)

        response = self.client.get(self.list_url, {"features": "fire pit"})
        self.assertEqual([item["name"] for item in response.data["results"]], ["Lake Pitch"])

    def test_page_size_param(self):
        response = self.client.get(self.list_url, {"page_size": 1, "ordering": "name"})

        self.assertEqual(response.data["count"], 2)
        self.assertEqual(response.data["total_pages"], 2)
        self.assertEqual([item["name"] for item in response.data["results"]], ["Forest Cabin"])

        response = self.client.get(self.list_url, {"page_size": 1, "page": 2, "ordering": "name"})
        self.assertEqual(response.data["page"], 2)
        self.assertEqual([item["name"] for item in response.data["results"]], ["Lake Pitch"])

    def test_search_and_ordering(self):
        response = self.client.get(self.list_url, {"search": "cabin"})
        self.assertEqual(response.data["count"], 1)

        response = self.client.get(self.list_url, {"ordering": "-price"})
        self.assertEqual(response.data["results"][0]["name"], "Forest Cabin")

    def test_date_filter_excludes_booked_sites(self):
        Reservation.objects.create(
            user=self.camper,
            kind="campsite",
            resource_id=self.lake.pk,
            resource_name=self.lake.name,
            start_date=_day(5),
            end_date=_day(8),
        )

        response = self.client.get(
            self.list_url, {"start_date": _day(6).isoformat(), "end_date": _day(7).isoformat()}
        )
        self.assertEqual([item["name"] for item in response.data["results"]], ["Forest Cabin"])

        response = self.client.get(
            self.list_url, {"start_date": _day(8).isoformat(), "end_date": _day(9).isoformat()}
        )
        self.assertEqual(response.data["count"], 2)

    def test_create_requires_admin(self):
        payload = {
            "name": "River Spot",
            "description": "Next to the river.",
            "location": "Soca",
            "price": "35.00",
            "image": "https://img.example.com/river.jpg",
            "capacity": 3,
            "features": ["Fishing"],
        }

        self.client.force_authenticate(user=self.camper)
        response = self.client.post(self.list_url, payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.admin)
        response = self.client.post(self.list_url, payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["rating"], "0.0")
        self.assertTrue(
            Notification.objects.filter(user__isnull=True, title="New Campsite Available!").exists()
        )

    def test_capacity_bounds(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.patch(
            reverse("campsite-detail", args=[self.lake.pk]), {"capacity": 51}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("capacity", response.data)

    def test_categories(self):
        response = self.client.get(reverse("campsite-categories"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, ["cabin", "tent"])

    def test_stats_for_admins(self):
        response = self.client.get(reverse("campsite-stats"))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

        self.client.force_authenticate(user=self.admin)
        response = self.client.get(reverse("campsite-stats"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["total"], 3)
        self.assertEqual(response.data["by_status"], {"active": 2, "inactive": 1})

    def test_campsite_availability_lists_booked_ranges(self):
        Reservation.objects.create(
            user=self.camper,
            kind="campsite",
            resource_id=self.lake.pk,
            resource_name=self.lake.name,
            start_date=_day(5),
            end_date=_day(8),
        )
        url = reverse("campsite-availability", args=[self.lake.pk])

        response = self.client.get(url, {"start_date": _day(6).isoformat(), "end_date": _day(9).isoformat()})

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertFalse(response.data["available"])
        self.assertEqual(len(response.data["booked_ranges"]), 1)
        self.assertEqual(response.data["booked_ranges"][0]["start_date"], _day(5))

    def test_reviews_action(self):
        url = reverse("campsite-reviews", args=[self.lake.pk])

        response = self.client.post(url, {"rating": 5}, format="json")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

        self.client.force_authenticate(user=self.camper)
        response = self.client.post(url, {"rating": 4, "comment": "Lovely views"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)

        response = self.client.post(url, {"rating": 2}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "duplicate_review")

        self.client.force_authenticate(user=self.admin)
        self.client.post(url, {"rating": 5}, format="json")
        self.lake.refresh_from_db()
        self.assertEqual(self.lake.rating, Decimal("4.5"))
        self.assertEqual(self.lake.review_count, 2)

        response = self.client.get(url)
        self.assertEqual(response.data["count"], 2)


class ActivityAndEquipmentAPITestCase(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(
            email="admin@example.com", password="secret1", name="Admin", role=User.Role.ADMIN
        )
        self.hike = Activity.objects.create(
            name="Sunrise Hike",
            description="Early start.",
            price=Decimal("15.00"),
            icon="H",
            duration="2 hours",
            difficulty=Activity.Difficulty.EASY,
            category="Hiking",
            max_participants=8,
        )
        self.rafting = Activity.objects.create(
            name="Rafting",
            description="White water.",
            price=Decimal("55.00"),
            icon="R",
            duration="3 hours",
            difficulty=Activity.Difficulty.ADVANCED,
            category="Water",
            max_participants=6,
        )
        self.stove = Equipment.objects.create(
            name="Camp stove",
            description="Gas stove.",
            price=Decimal("8.00"),
            category="Cooking",
            image="https://img.example.com/stove.jpg",
            quantity=12,
        )

    def test_activity_filters(self):
        url = reverse("activity-list")

        response = self.client.get(url, {"difficulty": "Easy,Beginner"})
        self.assertEqual([item["name"] for item in response.data["results"]], ["Sunrise Hike"])

        response = self.client.get(url, {"participants": 7})
        self.assertEqual(response.data["count"], 1)

    def test_activity_schedule_validation(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.patch(
            reverse("activity-detail", args=[self.hike.pk]),
            {"schedule": [{"start_time": "10:00", "end_time": "09:00", "days": ["monday"]}]},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_activity_schedule_rejects_malformed_entries(self):
        self.client.force_authenticate(user=self.admin)
        url = reverse("activity-detail", args=[self.hike.pk])

        for schedule in (
            [{"start_time": 900, "end_time": "11:00", "days": ["monday"]}],
            [{"start_time": "09:00", "end_time": None, "days": ["monday"]}],
            [{"start_time": "09:00", "end_time": "11:00", "days": "monday"}],
        ):
            response = self.client.patch(url, {"schedule": schedule}, format="json")
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, schedule)
            self.assertIn("schedule", response.data)

    def test_activity_availability_per_slot(self):
        url = reverse("activity-availability", args=[self.rafting.pk])

        response = self.client.get(
            url, {"start_date": _day(3).isoformat(), "time_slot": "09:00", "quantity": 2}
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertTrue(response.data["available"])
        self.assertEqual(response.data["capacity"], 6)
        self.assertEqual(response.data["total_price"], Decimal("110.00"))

    def test_equipment_availability_band_follows_stock(self):
        self.assertEqual(self.stove.availability, Equipment.Availability.AVAILABLE)

        self.client.force_authenticate(user=self.admin)
        response = self.client.patch(
            reverse("equipment-detail", args=[self.stove.pk]), {"quantity": 3}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["availability"], "Limited")

    def test_equipment_categories(self):
        response = self.client.get(reverse("equipment-categories"))
        self.assertEqual(response.data, ["Cooking"])


class UploadImagesTestCase(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(
            email="admin@example.com", password="secret1", name="Admin", role=User.Role.ADMIN
        )
        self.url = reverse("upload-images")

    def _image(self, name="photo.png", content_type="image/png", size=64):
        return SimpleUploadedFile(name, b"\x89PNG" + b"0" * size, content_type=content_type)

    def test_upload_requires_admin(self):
        camper = User.objects.create_user(email="camper@example.com", password="secret1")
        self.client.force_authenticate(user=camper)
        response = self.client.post(self.url, {"images": [self._image()]}, format="multipart")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_upload_images(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(
            self.url, {"images": [self._image(), self._image("second.jpg", "image/jpeg")]}, format="multipart"
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["count"], 2)
        self.assertTrue(all("/uploads/" in url for url in response.data["urls"]))

    def test_rejects_non_images(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(
            self.url, {"image": self._image("notes.txt", "text/plain")}, format="multipart"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_rejects_oversized_files(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(
            self.url, {"image": self._image(size=5 * 1024 * 1024 + 1)}, format="multipart"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class UploadedFilesTestCase(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(
            email="admin@example.com", password="secret1", name="Admin", role=User.Role.ADMIN
        )
        override = self.settings(UPLOAD_DIR=f"uploads/{uuid.uuid4().hex}")
        override.enable()
        self.addCleanup(override.disable)
        self.client.force_authenticate(user=self.admin)

    def _upload(self, *names):
        files = [SimpleUploadedFile(name, b"\x89PNG" + b"0" * 32, content_type="image/png") for name in names]
        response = self.client.post(reverse("upload-images"), {"images": files}, format="multipart")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        return [url.rsplit("/", 1)[1] for url in response.data["urls"]]

    def test_list_uploaded_files(self):
        response = self.client.get(reverse("upload-files"))
        self.assertEqual(response.data, {"files": [], "count": 0})

        stored = self._upload("a.png", "b.png")

        response = self.client.get(reverse("upload-files"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 2)
        self.assertEqual({item["filename"] for item in response.data["files"]}, set(stored))

    def test_file_info(self):
        filename = self._upload("a.png")[0]

        response = self.client.get(reverse("upload-file-detail", args=[filename]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["filename"], filename)
        self.assertEqual(response.data["size"], 36)
        self.assertTrue(response.data["url"].endswith(filename))

    def test_delete_file(self):
        filename = self._upload("a.png")[0]
        url = reverse("upload-file-detail", args=[filename])

        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(self.client.get(reverse("upload-files")).data["count"], 0)

        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_hidden_names_are_rejected(self):
        response = self.client.get(reverse("upload-file-detail", args=[".env"]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_file_management_requires_admin(self):
        camper = User.objects.create_user(email="camper@example.com", password="secret1")
        self.client.force_authenticate(user=camper)

        self.assertEqual(self.client.get(reverse("upload-files")).status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.delete(reverse("upload-file-detail", args=["a.png"]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
