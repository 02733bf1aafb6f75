from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from apps.bookings import tasks
from apps.bookings.models import Reservation
from apps.catalog.models import CampingSite
from apps.users.models import User
from config.celery import app


@pytest.fixture
def camper():
    return User.objects.create_user(email="camper@example.com", password="secret1", name="Camper")


def _site(name: str, **extra) -> CampingSite:
    return CampingSite.objects.create(
        name=name,
        description="Pitch",
        location="Bohinj",
        price=Decimal("30.00"),
        image="https://img.example.com/pitch.jpg",
        capacity=2,
        **extra,
    )


def _reservation(user, site, start: int, end: int, **extra) -> Reservation:
    today = timezone.localdate()
    return Reservation.objects.create(
        user=user,
        kind="campsite",
        resource_id=site.pk,
        resource_name=site.name,
        start_date=today + timedelta(days=start),
        end_date=today + timedelta(days=end),
        total_price=Decimal("60.00"),
        **extra,
    )


def test_beat_schedule_runs_housekeeping():
    scheduled = {entry["task"] for entry in app.conf.beat_schedule.values()}
    assert "bookings.complete_finished_reservations" in scheduled
    assert "bookings.refresh_site_availability" in scheduled


@pytest.mark.django_db
def test_complete_finished_reservations_task(camper):
    site = _site("Finished")
    done = _reservation(
        camper,
        site,
        -3,
        0,
        status=Reservation.Status.APPROVED,
        payment_status=Reservation.PaymentStatus.PAID,
    )
    _reservation(camper, site, -3, 0, status=Reservation.Status.PENDING)
    _reservation(
        camper,
        site,
        -1,
        2,
        status=Reservation.Status.APPROVED,
        payment_status=Reservation.PaymentStatus.PAID,
    )

    result = tasks.complete_finished_reservations()

    assert result == {"completed": 1}
    done.refresh_from_db()
    assert done.status == Reservation.Status.COMPLETED


@pytest.mark.django_db
def test_refresh_site_availability_task(camper, settings):
    settings.CAMPSPOT = {**settings.CAMPSPOT, "SITE_LIMITED_THRESHOLD": 1}
    busy = _site("Busy")
    quiet = _site("Quiet", availability=CampingSite.Availability.LIMITED)
    closed = _site("Closed", availability=CampingSite.Availability.UNAVAILABLE)
    _reservation(camper, busy, 3, 5)
    _reservation(camper, closed, 3, 5)

    assert tasks.refresh_site_availability() == {"changed": 2}

    busy.refresh_from_db()
    quiet.refresh_from_db()
    closed.refresh_from_db()
    assert busy.availability == CampingSite.Availability.LIMITED
    assert quiet.availability == CampingSite.Availability.AVAILABLE
    assert closed.availability == CampingSite.Availability.UNAVAILABLE
