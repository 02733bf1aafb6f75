"""Price quotes and refund policy for reservations."""

from __future__ import annotations

from datetime import datetime, time, timedelta
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore

from apps.catalog.models import Activity, Bookable, CampingSite, Equipment
from shared.domain.value_objects import DateRange, Money, quantize_money

HOURS_PER_DAY = Decimal("24")
DAYS_PER_WEEK = Decimal("7")


def campspot_setting(name: str):
    return settings.CAMPSPOT[name]


def currency() -> str:
    return campspot_setting("CURRENCY")


def daily_rate(equipment: Equipment) -> Decimal:
    """Equipment price normalised to one rental day."""
    if equipment.period == Equipment.Period.HOUR:
        return equipment.price * HOURS_PER_DAY
    if equipment.period == Equipment.Period.WEEK:
        return equipment.price / DAYS_PER_WEEK
    return equipment.price


def unit_price(resource: Bookable) -> Decimal:
    if isinstance(resource, Equipment):
        return quantize_money(daily_rate(resource))
    return quantize_money(resource.price)


def quote(resource: Bookable, period: DateRange, quantity: int = 1) -> Money:
    """Total for reserving ``quantity`` of ``resource`` over ``period``.

    Campsites are charged per night regardless of the party size, activities
    per participant and equipment per unit and rental day.
    """
    days = max(len(period), 1)
    if isinstance(resource, CampingSite):
        amount = resource.price * days
    elif isinstance(resource, Activity):
        amount = resource.price * quantity
    elif isinstance(resource, Equipment):
        amount = daily_rate(resource) * days * quantity
    else:
        raise TypeError(f"Cannot price {type(resource).__name__}")
    return Money(amount, currency()).rounded()


def hours_until(start_date, now: datetime | None = None) -> float:
    now = now or timezone.now()
    starts_at = timezone.make_aware(datetime.combine(start_date, time.min), timezone.get_current_timezone())
    return (starts_at - now) / timedelta(hours=1)


def refund_rate(start_date, now: datetime | None = None) -> Decimal:
    """Share of the paid amount returned when cancelling now.

    More than 48 hours ahead: full refund; more than 24: half; otherwise none.
    """
    hours = hours_until(start_date, now)
    if hours > campspot_setting("FULL_REFUND_HOURS"):
        return Decimal("1")
    if hours > campspot_setting("PARTIAL_REFUND_HOURS"):
        return campspot_setting("PARTIAL_REFUND_RATE")
    return Decimal("0")


def refund_amount(total: Decimal, start_date, now: datetime | None = None) -> Decimal:
    return quantize_money(total * refund_rate(start_date, now))


def cart_totals(subtotal: Decimal) -> dict[str, Decimal]:
    """Tax and service fee on top of a cart subtotal."""
    subtotal = quantize_money(subtotal)
    tax = quantize_money(subtotal * campspot_setting("TAX_RATE"))
    service_fee = quantize_money(campspot_setting("SERVICE_FEE")) if subtotal > 0 else Decimal("0.00")
    return {
        "subtotal": subtotal,
        "tax": tax,
        "service_fee": service_fee,
        "total": quantize_money(subtotal + tax + service_fee),
    }
