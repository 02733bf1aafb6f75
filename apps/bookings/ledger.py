"""
Reservation Ledger

The consistency rules every reservation goes through, whatever kind of
resource it targets.

Capacity invariant:
    For one resource, the combined demand of blocking reservations
    (pending, approved, completed) whose ranges overlap must never exceed
    the resource's capacity. Ranges are half-open, so a stay ending on
    the 5th does not clash with one starting on the 5th.

    - campsite:  capacity 1, every reservation demands 1
    - activity:  capacity max_participants per date and time slot,
                 demand = participants
    - equipment: capacity quantity in stock, demand = units rented

Status machine:
    pending  -> approved   (admin)
    pending  -> rejected   (admin)
    pending  -> cancelled  (owner)
    approved -> cancelled  (owner)
    approved -> completed  (admin, or the system once the stay is over)
    completed, cancelled and rejected are terminal.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

from django.db import transaction  # type: ignore
from django.db.models import QuerySet, Sum  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore

from apps.catalog.models import Activity, Bookable, CampingSite, Equipment, ResourceKind
from shared.domain.exceptions import DomainError
from shared.domain.value_objects import DateRange

from .models import Reservation

if TYPE_CHECKING:  # pragma: no cover
    from datetime import date

Status = Reservation.Status


# ============================================================================
# ERRORS
# ============================================================================

class ReservationError(DomainError):
    """Base class for ledger rule violations."""

    code = "reservation_error"


class InvalidTransition(ReservationError):
    code = "invalid_transition"


class TransitionForbidden(ReservationError):
    status_code = 403
    code = "transition_forbidden"


class ReservationConflict(ReservationError):
    """The requested period would push demand above capacity."""

    status_code = 409
    code = "reservation_conflict"


class CapacityExceeded(ReservationError):
    """A single request asks for more than the resource can ever hold."""

    code = "capacity_exceeded"


class ResourceUnavailable(ReservationError):
    code = "resource_unavailable"


class ResourceNotFound(ReservationError):
    status_code = 404
    code = "resource_not_found"


# ============================================================================
# STATUS MACHINE
# ============================================================================

class Actor(enum.Enum):
    OWNER = "owner"
    ADMIN = "admin"
    SYSTEM = "system"


TRANSITIONS: dict[str, dict[str, frozenset[Actor]]] = {
    Status.PENDING: {
        Status.APPROVED: frozenset({Actor.ADMIN}),
        Status.REJECTED: frozenset({Actor.ADMIN}),
        Status.CANCELLED: frozenset({Actor.OWNER}),
    },
    Status.APPROVED: {
        Status.CANCELLED: frozenset({Actor.OWNER}),
        Status.COMPLETED: frozenset({Actor.ADMIN, Actor.SYSTEM}),
    },
}

TERMINAL_STATUSES = frozenset({Status.COMPLETED, Status.CANCELLED, Status.REJECTED})


def assert_transition(current: str, target: str, actor: Actor) -> None:
    """Raise unless ``actor`` may move a reservation from ``current`` to ``target``."""
    targets = TRANSITIONS.get(current, {})
    if target not in targets:
        if current in TERMINAL_STATUSES:
            raise InvalidTransition(f"Booking is already {current} and can no longer change.")
        raise InvalidTransition(f"Cannot change a {current} booking to {target}.")
    if actor not in targets[target]:
        raise TransitionForbidden(f"Only the {' or '.join(sorted(a.value for a in targets[target]))} may do that.")


# ============================================================================
# CAPACITY
# ============================================================================

@dataclass(frozen=True)
class Availability:
    """Answer to "can ``requested`` more units fit into this period?"."""

    capacity: int
    booked: int
    requested: int

    @property
    def remaining(self) -> int:
        return max(self.capacity - self.booked, 0)

    @property
    def available(self) -> bool:
        return self.requested <= self.remaining

    def to_dict(self) -> dict:
        return {
            "available": self.available,
            "capacity": self.capacity,
            "booked": self.booked,
            "remaining": self.remaining,
            "requested": self.requested,
        }


def lock_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


def demand_units(kind: str, quantity: int) -> int:
    """How much capacity one reservation of ``quantity`` consumes."""
    if kind == ResourceKind.CAMPSITE:
        return 1
    return quantity


def overlapping_reservations(
    kind: str,
    resource_id: int,
    period: DateRange,
    *,
    time_slot: str = "",
    exclude_id: int | None = None,
) -> QuerySet:
    """Blocking reservations of a resource that intersect ``period``."""
    qs = Reservation.objects.filter(
        kind=kind,
        resource_id=resource_id,
        status__in=Reservation.BLOCKING_STATUSES,
        start_date__lt=period.end_date,
        end_date__gt=period.start_date,
    )
    if kind == ResourceKind.ACTIVITY:
        qs = qs.filter(time_slot=time_slot)
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    return qs


def booked_units(
    kind: str,
    resource_id: int,
    period: DateRange,
    *,
    time_slot: str = "",
    exclude_id: int | None = None,
) -> int:
    qs = overlapping_reservations(kind, resource_id, period, time_slot=time_slot, exclude_id=exclude_id)
    if kind == ResourceKind.CAMPSITE:
        return qs.count()
    if kind == ResourceKind.EQUIPMENT:
        return _peak_equipment_units(qs, period)
    return qs.aggregate(total=Sum("quantity"))["total"] or 0


def _peak_equipment_units(qs: QuerySet, period: DateRange) -> int:
    """Largest number of units out on any single day of ``period``.

    Two rentals inside the period that never overlap each other do not
    add up, so the busiest day is what counts against stock.
    """
    rentals = list(qs.values_list("start_date", "end_date", "quantity"))
    if not rentals:
        return 0
    peak = 0
    for day in period.dates():
        out = sum(quantity for start, end, quantity in rentals if start <= day < end)
        peak = max(peak, out)
    return peak


def check_availability(
    resource: Bookable,
    period: DateRange,
    quantity: int = 1,
    *,
    time_slot: str = "",
    exclude_id: int | None = None,
) -> Availability:
    kind = resource.reservation_kind
    return Availability(
        capacity=resource.ledger_capacity(),
        booked=booked_units(kind, resource.pk, period, time_slot=time_slot, exclude_id=exclude_id),
        requested=demand_units(kind, quantity),
    )


def validate_request(resource: Bookable, period: DateRange, quantity: int, time_slot: str = "") -> None:
    """Checks that do not depend on other reservations."""
    if quantity < 1:
        raise CapacityExceeded("Quantity must be at least 1.")
    if not resource.is_bookable():
        raise ResourceUnavailable(f"{resource.name} is not available for booking.")

    if isinstance(resource, CampingSite):
        if quantity > resource.capacity:
            raise CapacityExceeded(f"Number of guests exceeds site capacity ({resource.capacity}).")
    elif isinstance(resource, Activity):
        if len(period) != 1:
            raise ResourceUnavailable("Activities are booked for a single date.")
        if not time_slot:
            raise ResourceUnavailable("A time slot is required for activities.")
        if not resource.offers_slot(period.start_date, time_slot):
            raise ResourceUnavailable(f"{resource.name} does not run at {time_slot} on that day.")
        if quantity > resource.max_participants:
            raise CapacityExceeded(f"Maximum {resource.max_participants} participants allowed.")
    elif isinstance(resource, Equipment):
        if quantity > resource.quantity:
            raise CapacityExceeded(f"Only {resource.quantity} units of {resource.name} exist.")


def ensure_capacity(
    resource: Bookable,
    period: DateRange,
    quantity: int,
    *,
    time_slot: str = "",
    exclude_id: int | None = None,
) -> Availability:
    """Lock the resource row and raise if the demand does not fit.

    Must run inside ``transaction.atomic()`` so the lock is held until the
    reservation row is written; concurrent bookings of the same resource
    then queue up behind each other.
    """
    lock_if_possible(type(resource).objects.filter(pk=resource.pk)).first()

    availability = check_availability(
        resource, period, quantity, time_slot=time_slot, exclude_id=exclude_id
    )
    if not availability.available:
        if resource.reservation_kind == ResourceKind.CAMPSITE:
            raise ReservationConflict("Campsite is not available for the selected dates.")
        raise ReservationConflict(
            f"Only {availability.remaining} of {availability.capacity} left for the selected "
            f"{'slot' if resource.reservation_kind == ResourceKind.ACTIVITY else 'dates'}."
        )
    return availability


def busy_resource_ids(kind: str, period: DateRange) -> Iterable[int]:
    """Resources with at least one blocking reservation in ``period``."""
    return (
        Reservation.objects.filter(
            kind=kind,
            status__in=Reservation.BLOCKING_STATUSES,
            start_date__lt=period.end_date,
            end_date__gt=period.start_date,
        )
        .values_list("resource_id", flat=True)
        .distinct()
    )


def booked_ranges(kind: str, resource_id: int, *, since: "date") -> list[dict]:
    """Upcoming blocking ranges of a resource, oldest first."""
    return list(
        Reservation.objects.filter(
            kind=kind,
            resource_id=resource_id,
            status__in=Reservation.BLOCKING_STATUSES,
            end_date__gt=since,
        )
        .order_by("start_date", "end_date")
        .values("start_date", "end_date", "time_slot", "quantity")
    )
