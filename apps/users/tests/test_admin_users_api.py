import pytest
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from apps.users.models import User


@pytest.fixture
def admin():
    return User.objects.create_user(
        email="admin@example.com", password="secret1", name="Admin", role=User.Role.ADMIN
    )


@pytest.fixture
def camper():
    return User.objects.create_user(email="camper@example.com", password="secret1", name="Camper Joe")


@pytest.fixture
def admin_client(admin):
    client = APIClient()
    client.force_authenticate(user=admin)
    return client


@pytest.mark.django_db
def test_regular_users_cannot_manage_users(camper):
    client = APIClient()
    client.force_authenticate(user=camper)

    response = client.get(reverse("user-list"))

    assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
def test_admin_lists_and_searches_users(admin_client, camper):
    response = admin_client.get(reverse("user-list"))
    assert response.status_code == status.HTTP_200_OK
    assert response.data["count"] == 2

    response = admin_client.get(reverse("user-list"), {"search": "joe"})
    assert [row["email"] for row in response.data["results"]] == ["camper@example.com"]

    response = admin_client.get(reverse("user-list"), {"role": "admin"})
    assert response.data["count"] == 1


@pytest.mark.django_db
def test_admin_creates_admin_user(admin_client):
    response = admin_client.post(
        reverse("user-list"),
        {
            "email": "Staff@Example.com",
            "password": "secret12",
            "name": "Staff",
            "instagram_url": "https://instagram.com/staff",
            "role": "admin",
        },
        format="json",
    )

    assert response.status_code == status.HTTP_201_CREATED, response.data
    user = User.objects.get(email="staff@example.com")
    assert user.is_staff
    assert user.check_password("secret12")


@pytest.mark.django_db
def test_toggle_status(admin_client, admin, camper):
    url = reverse("user-toggle-status", args=[camper.pk])

    response = admin_client.patch(url)
    assert response.status_code == status.HTTP_200_OK
    assert response.data["is_active"] is False

    response = admin_client.patch(reverse("user-toggle-status", args=[admin.pk]))
    assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
def test_admin_cannot_delete_or_demote_self(admin_client, admin):
    url = reverse("user-detail", args=[admin.pk])

    assert admin_client.delete(url).status_code == status.HTTP_400_BAD_REQUEST

    response = admin_client.patch(url, {"role": "user"}, format="json")
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "role" in response.data


@pytest.mark.django_db
def test_admin_deletes_user(admin_client, camper):
    response = admin_client.delete(reverse("user-detail", args=[camper.pk]))

    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert not User.objects.filter(pk=camper.pk).exists()
