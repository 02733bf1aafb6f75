"""Reservation workflows.

Every state change goes through here: the service locks what it needs,
applies the ledger rules, persists, and queues domain events that fire
once the surrounding transaction commits.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from django.conf import settings  # type: ignore
from django.db import transaction  # type: ignore
from django.db.models import Count, QuerySet, Sum  # type: ignore
from django.utils import timezone  # type: ignore

from apps.catalog.models import Bookable, CampingSite, ResourceKind, get_resource_model
from apps.users.permissions import is_admin_user
from shared.application.message_bus import message_bus
from shared.domain.value_objects import DateRange

from . import ledger, pricing
from .events import (
    ReservationApproved,
    ReservationCancelled,
    ReservationCompleted,
    ReservationCreated,
    ReservationPaid,
    ReservationRejected,
    ReservationUpdated,
)
from .ledger import Actor, ReservationError
from .models import Reservation

if TYPE_CHECKING:  # pragma: no cover
    from apps.users.models import User

logger = logging.getLogger(__name__)

Status = Reservation.Status
PaymentStatus = Reservation.PaymentStatus


# ============================================================================
# HELPERS
# ============================================================================

def _event_fields(reservation: Reservation) -> dict[str, Any]:
    return {
        "aggregate_id": reservation.pk,
        "reservation_id": reservation.pk,
        "user_id": reservation.user_id,
        "kind": reservation.kind,
        "resource_id": reservation.resource_id,
    }


def _locked(reservation: Reservation) -> Reservation:
    """Re-read the reservation under a row lock."""
    qs = ledger.lock_if_possible(Reservation.objects.filter(pk=reservation.pk))
    return qs.select_related("user").get()


def _require_owner(reservation: Reservation, user: "User") -> None:
    if reservation.user_id != user.pk:
        raise ledger.TransitionForbidden("Only the booking owner may do that.")


def _require_admin(user: "User") -> None:
    if not is_admin_user(user):
        raise ledger.TransitionForbidden("Admin privileges required.")


def _ensure_not_in_past(period: DateRange) -> None:
    if period.start_date < timezone.localdate():
        raise ledger.ResourceUnavailable("Start date cannot be in the past.")


def resolve_resource(kind: str, resource_id: int) -> Bookable:
    try:
        model = get_resource_model(kind)
    except ValueError as e:
        raise ledger.ResourceNotFound(str(e))
    resource = model.objects.filter(pk=resource_id).first()
    if resource is None:
        raise ledger.ResourceNotFound(f"{ResourceKind(kind).label} not found.")
    return resource


def build_period(resource: Bookable, start_date, end_date=None) -> DateRange:
    """Activities take one day; everything else needs an end after the start."""
    if resource.reservation_kind == ResourceKind.ACTIVITY:
        return DateRange.single_day(start_date)
    if end_date is None:
        raise ledger.ResourceUnavailable("End date is required.")
    try:
        return DateRange(start_date, end_date)
    except ValueError:
        raise ledger.ResourceUnavailable("End date must be after start date.")


# ============================================================================
# CREATE / UPDATE
# ============================================================================

def create_reservation(
    user: "User",
    resource: Bookable,
    period: DateRange,
    quantity: int = 1,
    *,
    time_slot: str = "",
    special_requests: str = "",
    details: dict | None = None,
    source: str = Reservation.Source.WEB,
    paid: bool = False,
) -> Reservation:
    """Put a new pending reservation into the ledger.

    Raises:
        ReservationError: when the resource cannot take the request
    """
    ledger.validate_request(resource, period, quantity, time_slot)
    _ensure_not_in_past(period)

    with transaction.atomic():
        ledger.ensure_capacity(resource, period, quantity, time_slot=time_slot)
        total = pricing.quote(resource, period, quantity)
        now = timezone.now()
        reservation = Reservation.objects.create(
            user=user,
            kind=resource.reservation_kind,
            resource_id=resource.pk,
            resource_name=resource.name,
            start_date=period.start_date,
            end_date=period.end_date,
            time_slot=time_slot if resource.reservation_kind == ResourceKind.ACTIVITY else "",
            quantity=quantity,
            unit_price=pricing.unit_price(resource),
            total_price=total.amount,
            currency=total.currency,
            special_requests=special_requests,
            details=details or {},
            source=source,
            payment_status=PaymentStatus.PAID if paid else PaymentStatus.PENDING,
            paid_at=now if paid else None,
        )

        events = [ReservationCreated(source=source, **_event_fields(reservation))]
        if paid:
            events.append(
                ReservationPaid(amount=str(reservation.total_price), source=source, **_event_fields(reservation))
            )
        message_bus.publish_on_commit(*events)

    logger.info(
        f"Reservation {reservation.reference} created by {user.email}: "
        f"{reservation.kind} #{reservation.resource_id} {period} x{quantity}"
    )
    return reservation


def update_reservation(
    reservation: Reservation,
    user: "User",
    *,
    start_date=None,
    end_date=None,
    quantity: int | None = None,
    time_slot: str | None = None,
    special_requests: str | None = None,
) -> Reservation:
    """Change a pending reservation and re-price it."""
    _require_owner(reservation, user)

    with transaction.atomic():
        reservation = _locked(reservation)
        if reservation.status != Status.PENDING:
            raise ledger.InvalidTransition("Only pending bookings can be modified.")

        resource = resolve_resource(reservation.kind, reservation.resource_id)
        period = build_period(
            resource,
            start_date or reservation.start_date,
            end_date or reservation.end_date,
        )
        new_quantity = quantity if quantity is not None else reservation.quantity
        new_slot = time_slot if time_slot is not None else reservation.time_slot

        if period != reservation.period or new_quantity != reservation.quantity or new_slot != reservation.time_slot:
            ledger.validate_request(resource, period, new_quantity, new_slot)
            _ensure_not_in_past(period)
            ledger.ensure_capacity(
                resource, period, new_quantity, time_slot=new_slot, exclude_id=reservation.pk
            )

        total = pricing.quote(resource, period, new_quantity)
        reservation.start_date = period.start_date
        reservation.end_date = period.end_date
        reservation.quantity = new_quantity
        reservation.time_slot = new_slot
        reservation.unit_price = pricing.unit_price(resource)
        reservation.total_price = total.amount
        if special_requests is not None:
            reservation.special_requests = special_requests
        reservation.save()

        message_bus.publish_on_commit(ReservationUpdated(**_event_fields(reservation)))

    logger.info(f"Reservation {reservation.reference} updated by {user.email}")
    return reservation


# ============================================================================
# STATUS TRANSITIONS
# ============================================================================

def approve_reservation(reservation: Reservation, admin: "User", notes: str = "") -> Reservation:
    _require_admin(admin)
    with transaction.atomic():
        reservation = _locked(reservation)
        ledger.assert_transition(reservation.status, Status.APPROVED, Actor.ADMIN)
        reservation.status = Status.APPROVED
        reservation.decided_by = admin
        reservation.decided_at = timezone.now()
        if notes:
            reservation.admin_notes = notes
        reservation.save(update_fields=["status", "decided_by", "decided_at", "admin_notes", "updated_at"])
        message_bus.publish_on_commit(ReservationApproved(decided_by_id=admin.pk, **_event_fields(reservation)))

    logger.info(f"Reservation {reservation.reference} approved by {admin.email}")
    return reservation


def reject_reservation(reservation: Reservation, admin: "User", reason: str) -> Reservation:
    _require_admin(admin)
    reason = (reason or "").strip()
    if not reason:
        raise ReservationError("A rejection reason is required.", code="reason_required")

    with transaction.atomic():
        reservation = _locked(reservation)
        ledger.assert_transition(reservation.status, Status.REJECTED, Actor.ADMIN)
        reservation.status = Status.REJECTED
        reservation.rejection_reason = reason
        reservation.decided_by = admin
        reservation.decided_at = timezone.now()
        reservation.save(
            update_fields=["status", "rejection_reason", "decided_by", "decided_at", "updated_at"]
        )
        message_bus.publish_on_commit(ReservationRejected(decided_by_id=admin.pk, reason=reason, **_event_fields(reservation)))

    logger.info(f"Reservation {reservation.reference} rejected by {admin.email}: {reason}")
    return reservation


def cancel_reservation(reservation: Reservation, user: "User") -> Reservation:
    """Owner cancellation. Paid reservations are refunded per the refund windows."""
    _require_owner(reservation, user)

    with transaction.atomic():
        reservation = _locked(reservation)
        ledger.assert_transition(reservation.status, Status.CANCELLED, Actor.OWNER)
        now = timezone.now()
        reservation.status = Status.CANCELLED
        reservation.cancelled_by = user
        reservation.cancelled_at = now
        if reservation.is_paid:
            reservation.refund_amount = pricing.refund_amount(reservation.total_price, reservation.start_date, now)
            if reservation.refund_amount > 0:
                reservation.payment_status = PaymentStatus.REFUNDED
        reservation.save(
            update_fields=[
                "status",
                "cancelled_by",
                "cancelled_at",
                "refund_amount",
                "payment_status",
                "updated_at",
            ]
        )
        message_bus.publish_on_commit(ReservationCancelled(refund_amount=str(reservation.refund_amount), **_event_fields(reservation)))

    logger.info(
        f"Reservation {reservation.reference} cancelled by {user.email}, refund {reservation.refund_amount}"
    )
    return reservation


def complete_reservation(reservation: Reservation, admin: "User" | None = None) -> Reservation:
    """Close an approved, paid reservation. ``admin=None`` means the scheduler."""
    actor = Actor.SYSTEM
    if admin is not None:
        _require_admin(admin)
        actor = Actor.ADMIN

    with transaction.atomic():
        reservation = _locked(reservation)
        ledger.assert_transition(reservation.status, Status.COMPLETED, actor)
        if not reservation.is_paid:
            raise ReservationError("Only paid bookings can be completed.", code="payment_required")
        reservation.status = Status.COMPLETED
        reservation.completed_at = timezone.now()
        reservation.save(update_fields=["status", "completed_at", "updated_at"])
        message_bus.publish_on_commit(ReservationCompleted(**_event_fields(reservation)))

    logger.info(f"Reservation {reservation.reference} completed by {actor.value}")
    return reservation


def pay_reservation(reservation: Reservation, user: "User") -> Reservation:
    """Simulated payment: marks the reservation paid."""
    _require_owner(reservation, user)

    with transaction.atomic():
        reservation = _locked(reservation)
        if reservation.status not in (Status.PENDING, Status.APPROVED):
            raise ledger.InvalidTransition(f"A {reservation.status} booking cannot be paid.")
        if reservation.payment_status != PaymentStatus.PENDING:
            raise ReservationError("Booking is already paid.", code="already_paid")
        reservation.payment_status = PaymentStatus.PAID
        reservation.paid_at = timezone.now()
        reservation.save(update_fields=["payment_status", "paid_at", "updated_at"])
        message_bus.publish_on_commit(
            ReservationPaid(
                amount=str(reservation.total_price),
                source=reservation.source,
                **_event_fields(reservation),
            )
        )

    logger.info(f"Reservation {reservation.reference} paid by {user.email}: {reservation.total_price}")
    return reservation


def delete_reservation(reservation: Reservation, user: "User") -> None:
    _require_owner(reservation, user)
    if reservation.status not in (Status.CANCELLED, Status.REJECTED):
        raise ledger.InvalidTransition("Only cancelled or rejected bookings can be deleted.")
    reference = reservation.reference
    reservation.delete()
    logger.info(f"Reservation {reference} deleted by {user.email}")


# ============================================================================
# READ MODELS
# ============================================================================

def availability_report(
    resource: Bookable,
    period: DateRange,
    quantity: int = 1,
    time_slot: str = "",
) -> dict[str, Any]:
    """Availability and price for a prospective reservation, without booking."""
    report: dict[str, Any] = {
        "kind": resource.reservation_kind,
        "resource_id": resource.pk,
        "start_date": period.start_date,
        "end_date": period.end_date,
        "time_slot": time_slot,
        "quantity": quantity,
    }
    try:
        ledger.validate_request(resource, period, quantity, time_slot)
        _ensure_not_in_past(period)
    except ReservationError as e:
        report.update({"available": False, "reason": e.message})
        return report

    availability = ledger.check_availability(resource, period, quantity, time_slot=time_slot)
    report.update(availability.to_dict())
    report["total_price"] = pricing.quote(resource, period, quantity).amount
    if not availability.available:
        report["reason"] = "Not enough capacity for the selected period."
    return report


def receipt(reservation: Reservation) -> dict[str, Any]:
    refund_preview = Decimal("0.00")
    if reservation.is_paid and reservation.status in (Status.PENDING, Status.APPROVED):
        refund_preview = pricing.refund_amount(reservation.total_price, reservation.start_date)
    return {
        "reference": reservation.reference,
        "kind": reservation.kind,
        "item": reservation.resource_name,
        "start_date": reservation.start_date,
        "end_date": reservation.end_date,
        "time_slot": reservation.time_slot,
        "duration": reservation.duration,
        "quantity": reservation.quantity,
        "unit_price": reservation.unit_price,
        "subtotal": reservation.total_price,
        "total": reservation.total_price,
        "currency": reservation.currency,
        "status": reservation.status,
        "payment_status": reservation.payment_status,
        "paid_at": reservation.paid_at,
        "refund": {
            "amount": reservation.refund_amount,
            "refund_if_cancelled_now": refund_preview,
        },
        "created_at": reservation.created_at,
    }


def reservation_stats(queryset: QuerySet | None = None) -> dict[str, Any]:
    """Count and revenue per status."""
    qs = Reservation.objects.all() if queryset is None else queryset
    rows = {
        row["status"]: row
        for row in qs.values("status").annotate(count=Count("id"), revenue=Sum("total_price"))
    }
    by_status = {}
    for status in Status.values:
        row = rows.get(status, {})
        by_status[status] = {
            "count": row.get("count", 0),
            "revenue": row.get("revenue") or Decimal("0.00"),
        }
    return {
        "total": sum(item["count"] for item in by_status.values()),
        "by_status": by_status,
        "paid_revenue": qs.filter(payment_status=PaymentStatus.PAID).aggregate(
            total=Sum("total_price")
        )["total"] or Decimal("0.00"),
    }


# ============================================================================
# HOUSEKEEPING
# ============================================================================

def refresh_site_availability(site_id: int) -> str | None:
    """Move a campsite between available and limited based on upcoming demand.

    ``unavailable`` is set by admins only and left untouched.
    """
    site = CampingSite.objects.filter(pk=site_id).first()
    if site is None or site.availability == CampingSite.Availability.UNAVAILABLE:
        return None

    threshold = settings.CAMPSPOT["SITE_LIMITED_THRESHOLD"]
    upcoming = Reservation.objects.filter(
        kind=ResourceKind.CAMPSITE,
        resource_id=site.pk,
        status__in=Reservation.BLOCKING_STATUSES,
        end_date__gt=timezone.localdate(),
    ).count()

    target = site.availability
    if upcoming >= threshold:
        target = CampingSite.Availability.LIMITED
    elif site.availability == CampingSite.Availability.LIMITED:
        target = CampingSite.Availability.AVAILABLE

    if target != site.availability:
        site.availability = target
        site.save(update_fields=["availability", "updated_at"])
        logger.info(f"Campsite {site.pk} availability -> {target} ({upcoming} upcoming bookings)")
    return site.availability


def complete_finished_reservations() -> int:
    """Complete approved, paid reservations whose end date has passed."""
    today = timezone.localdate()
    due = Reservation.objects.filter(
        status=Status.APPROVED,
        payment_status=PaymentStatus.PAID,
        end_date__lte=today,
    )
    completed = 0
    for reservation in due:
        try:
            complete_reservation(reservation)
            completed += 1
        except ReservationError as e:
            logger.warning(f"Skipping reservation {reservation.reference}: {e}")
    return completed
