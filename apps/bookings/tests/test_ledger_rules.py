from datetime import timedelta
from decimal import Decimal

import pytest
from django.db import transaction
from django.utils import timezone

from apps.bookings import ledger, services
from apps.bookings.ledger import Actor
from apps.bookings.models import Reservation
from apps.catalog.models import Activity, CampingSite, Equipment
from apps.users.models import User
from shared.domain.value_objects import DateRange


def _day(offset: int):
    return timezone.localdate() + timedelta(days=offset)


def _period(start: int, end: int) -> DateRange:
    return DateRange(_day(start), _day(end))


@pytest.fixture
def camper():
    return User.objects.create_user(email="camper@example.com", password="secret1", name="Camper")


@pytest.fixture
def other_camper():
    return User.objects.create_user(email="other@example.com", password="secret1", name="Other")


@pytest.fixture
def admin():
    return User.objects.create_user(
        email="admin@example.com", password="secret1", name="Admin", role=User.Role.ADMIN
    )


@pytest.fixture
def site():
    return CampingSite.objects.create(
        name="Lakeside Pitch",
        description="Flat pitch by the water.",
        location="Lake Bled",
        price=Decimal("40.00"),
        image="https://img.example.com/pitch.jpg",
        capacity=4,
    )


@pytest.fixture
def kayaking():
    return Activity.objects.create(
        name="Kayaking",
        description="Guided tour on the lake.",
        price=Decimal("25.00"),
        icon="K",
        duration="3 hours",
        difficulty=Activity.Difficulty.BEGINNER,
        category="Water",
        max_participants=5,
    )


@pytest.fixture
def tents():
    return Equipment.objects.create(
        name="Two-person tent",
        description="Light tent.",
        price=Decimal("12.00"),
        category="Tents",
        image="https://img.example.com/tent.jpg",
        quantity=4,
    )


# ===== Status machine =====

@pytest.mark.parametrize(
    "current,target,actor",
    [
        (Reservation.Status.PENDING, Reservation.Status.APPROVED, Actor.ADMIN),
        (Reservation.Status.PENDING, Reservation.Status.REJECTED, Actor.ADMIN),
        (Reservation.Status.PENDING, Reservation.Status.CANCELLED, Actor.OWNER),
        (Reservation.Status.APPROVED, Reservation.Status.CANCELLED, Actor.OWNER),
        (Reservation.Status.APPROVED, Reservation.Status.COMPLETED, Actor.ADMIN),
        (Reservation.Status.APPROVED, Reservation.Status.COMPLETED, Actor.SYSTEM),
    ],
)
def test_allowed_transitions(current, target, actor):
    ledger.assert_transition(current, target, actor)


@pytest.mark.parametrize(
    "current",
    [Reservation.Status.COMPLETED, Reservation.Status.CANCELLED, Reservation.Status.REJECTED],
)
def test_terminal_statuses_cannot_change(current):
    for target in Reservation.Status.values:
        with pytest.raises(ledger.InvalidTransition):
            ledger.assert_transition(current, target, Actor.ADMIN)


def test_pending_cannot_jump_to_completed():
    with pytest.raises(ledger.InvalidTransition):
        ledger.assert_transition(Reservation.Status.PENDING, Reservation.Status.COMPLETED, Actor.ADMIN)


def test_owner_cannot_approve():
    with pytest.raises(ledger.TransitionForbidden):
        ledger.assert_transition(Reservation.Status.PENDING, Reservation.Status.APPROVED, Actor.OWNER)


def test_admin_cannot_cancel_for_owner():
    with pytest.raises(ledger.TransitionForbidden):
        ledger.assert_transition(Reservation.Status.APPROVED, Reservation.Status.CANCELLED, Actor.ADMIN)


# ===== Campsite capacity =====

@pytest.mark.django_db
def test_overlapping_campsite_stay_is_rejected(camper, other_camper, site):
    services.create_reservation(camper, site, _period(5, 8), 2)

    with pytest.raises(ledger.ReservationConflict):
        services.create_reservation(other_camper, site, _period(7, 9), 2)


@pytest.mark.django_db
def test_back_to_back_stays_do_not_clash(camper, other_camper, site):
    services.create_reservation(camper, site, _period(5, 8), 2)
    second = services.create_reservation(other_camper, site, _period(8, 10), 2)

    assert second.status == Reservation.Status.PENDING
    assert Reservation.objects.count() == 2


@pytest.mark.django_db
def test_cancelled_stay_frees_the_site(camper, other_camper, site):
    first = services.create_reservation(camper, site, _period(5, 8), 2)
    services.cancel_reservation(first, camper)

    second = services.create_reservation(other_camper, site, _period(6, 7), 1)
    assert second.pk != first.pk


@pytest.mark.django_db
def test_guests_above_site_capacity(camper, site):
    with pytest.raises(ledger.CapacityExceeded):
        services.create_reservation(camper, site, _period(5, 8), 5)


@pytest.mark.django_db
def test_start_in_the_past_is_rejected(camper, site):
    with pytest.raises(ledger.ResourceUnavailable):
        services.create_reservation(camper, site, _period(-2, 1), 1)


@pytest.mark.django_db
def test_unavailable_site_cannot_be_booked(camper, site):
    site.availability = CampingSite.Availability.UNAVAILABLE
    site.save()

    with pytest.raises(ledger.ResourceUnavailable):
        services.create_reservation(camper, site, _period(5, 6), 1)


# ===== Activity capacity =====

@pytest.mark.django_db
def test_activity_participants_add_up_per_slot(camper, other_camper, kayaking):
    day = DateRange.single_day(_day(3))
    services.create_reservation(camper, kayaking, day, 3, time_slot="09:00")
    services.create_reservation(other_camper, kayaking, day, 2, time_slot="09:00")

    with pytest.raises(ledger.ReservationConflict):
        services.create_reservation(other_camper, kayaking, day, 1, time_slot="09:00")

    afternoon = services.create_reservation(other_camper, kayaking, day, 5, time_slot="14:00")
    assert afternoon.quantity == 5


@pytest.mark.django_db
def test_activity_requires_scheduled_slot(camper, kayaking):
    kayaking.schedule = [{"start_time": "09:00", "end_time": "12:00", "days": []}]
    kayaking.save()

    with pytest.raises(ledger.ResourceUnavailable):
        services.create_reservation(camper, kayaking, DateRange.single_day(_day(3)), 1, time_slot="15:00")


@pytest.mark.django_db
def test_activity_participants_above_limit(camper, kayaking):
    with pytest.raises(ledger.CapacityExceeded):
        services.create_reservation(camper, kayaking, DateRange.single_day(_day(3)), 6, time_slot="09:00")


# ===== Equipment capacity =====

@pytest.mark.django_db
def test_equipment_units_limited_by_stock(camper, other_camper, tents):
    services.create_reservation(camper, tents, _period(5, 8), 3)
    services.create_reservation(other_camper, tents, _period(6, 7), 1)

    with pytest.raises(ledger.ReservationConflict):
        services.create_reservation(other_camper, tents, _period(6, 7), 1)

    returned = services.create_reservation(other_camper, tents, _period(8, 10), 4)
    assert returned.quantity == 4


@pytest.mark.django_db
def test_equipment_counts_busiest_day_only(camper, other_camper, tents):
    services.create_reservation(camper, tents, _period(5, 6), 3)
    services.create_reservation(camper, tents, _period(7, 8), 3)

    availability = ledger.check_availability(tents, _period(5, 8), 1)
    assert availability.booked == 3
    assert availability.available


# ===== Workflows =====

@pytest.mark.django_db
def test_update_rechecks_capacity_without_counting_itself(camper, site):
    reservation = services.create_reservation(camper, site, _period(5, 8), 2)

    updated = services.update_reservation(reservation, camper, start_date=_day(6), end_date=_day(9))

    assert updated.start_date == _day(6)
    assert updated.total_price == Decimal("120.00")


@pytest.mark.django_db
def test_only_pending_reservation_can_be_updated(camper, admin, site):
    reservation = services.create_reservation(camper, site, _period(5, 8), 2)
    services.approve_reservation(reservation, admin)

    with pytest.raises(ledger.InvalidTransition):
        services.update_reservation(reservation, camper, quantity=3)


@pytest.mark.django_db
def test_reject_requires_reason(camper, admin, site):
    reservation = services.create_reservation(camper, site, _period(5, 8), 2)

    with pytest.raises(ledger.ReservationError):
        services.reject_reservation(reservation, admin, "  ")

    rejected = services.reject_reservation(reservation, admin, "Site closed for maintenance")
    assert rejected.status == Reservation.Status.REJECTED
    assert rejected.decided_by == admin


@pytest.mark.django_db
def test_complete_requires_payment(camper, admin, site):
    reservation = services.create_reservation(camper, site, _period(5, 8), 2)
    services.approve_reservation(reservation, admin)

    with pytest.raises(ledger.ReservationError):
        services.complete_reservation(reservation, admin)

    services.pay_reservation(reservation, camper)
    completed = services.complete_reservation(reservation, admin)
    assert completed.status == Reservation.Status.COMPLETED
    assert completed.completed_at is not None


@pytest.mark.django_db
def test_cancel_paid_reservation_refunds_in_full_far_ahead(camper, site):
    reservation = services.create_reservation(camper, site, _period(10, 12), 2)
    services.pay_reservation(reservation, camper)

    cancelled = services.cancel_reservation(reservation, camper)

    assert cancelled.payment_status == Reservation.PaymentStatus.REFUNDED
    assert cancelled.refund_amount == Decimal("80.00")


@pytest.mark.django_db
def test_cancel_paid_reservation_between_one_and_two_days_ahead_refunds_half(camper, site):
    reservation = services.create_reservation(camper, site, _period(2, 4), 2)
    services.pay_reservation(reservation, camper)

    cancelled = services.cancel_reservation(reservation, camper)

    assert cancelled.payment_status == Reservation.PaymentStatus.REFUNDED
    assert cancelled.refund_amount == Decimal("40.00")
    cancelled.refresh_from_db()
    assert cancelled.refund_amount == Decimal("40.00")


@pytest.mark.django_db
def test_cancel_paid_reservation_within_a_day_keeps_payment(camper, site):
    reservation = services.create_reservation(camper, site, _period(1, 3), 2)
    services.pay_reservation(reservation, camper)

    cancelled = services.cancel_reservation(reservation, camper)

    assert cancelled.status == Reservation.Status.CANCELLED
    assert cancelled.refund_amount == Decimal("0.00")
    assert cancelled.payment_status == Reservation.PaymentStatus.PAID
    cancelled.refresh_from_db()
    assert cancelled.payment_status == Reservation.PaymentStatus.PAID


@pytest.mark.django_db
def test_pay_twice_is_rejected(camper, site):
    reservation = services.create_reservation(camper, site, _period(5, 8), 2)
    services.pay_reservation(reservation, camper)

    with pytest.raises(ledger.ReservationError):
        services.pay_reservation(reservation, camper)


@pytest.mark.django_db
def test_only_owner_can_cancel(camper, other_camper, site):
    reservation = services.create_reservation(camper, site, _period(5, 8), 2)

    with pytest.raises(ledger.TransitionForbidden):
        services.cancel_reservation(reservation, other_camper)


@pytest.mark.django_db
def test_scheduler_completes_finished_paid_stays(camper, admin, site):
    reservation = services.create_reservation(camper, site, _period(1, 3), 2)
    services.pay_reservation(reservation, camper)
    services.approve_reservation(reservation, admin)
    unpaid = services.create_reservation(camper, site, _period(3, 4), 1)
    services.approve_reservation(unpaid, admin)
    Reservation.objects.filter(pk__in=[reservation.pk, unpaid.pk]).update(
        start_date=_day(-4), end_date=_day(-1)
    )

    assert services.complete_finished_reservations() == 1

    reservation.refresh_from_db()
    unpaid.refresh_from_db()
    assert reservation.status == Reservation.Status.COMPLETED
    assert unpaid.status == Reservation.Status.APPROVED


@pytest.mark.django_db
def test_site_switches_to_limited_when_busy(camper, site, settings):
    settings.CAMPSPOT = {**settings.CAMPSPOT, "SITE_LIMITED_THRESHOLD": 2}
    services.create_reservation(camper, site, _period(2, 3), 1)
    services.create_reservation(camper, site, _period(4, 5), 1)

    assert services.refresh_site_availability(site.pk) == CampingSite.Availability.LIMITED

    Reservation.objects.filter(start_date=_day(4)).update(status=Reservation.Status.CANCELLED)
    assert services.refresh_site_availability(site.pk) == CampingSite.Availability.AVAILABLE


@pytest.mark.django_db(transaction=True)
def test_lock_if_possible_only_locks_inside_a_transaction():
    queryset = Reservation.objects.all()

    assert ledger.lock_if_possible(queryset).query.select_for_update is False

    with transaction.atomic():
        assert ledger.lock_if_possible(queryset).query.select_for_update is True
