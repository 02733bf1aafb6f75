"""Cart operations and checkout.

Items are validated and priced with the same rules as a direct
reservation. Checkout turns every item into a paid reservation inside
one transaction, so a single conflict cancels the whole order.
"""

from __future__ import annotations

import logging
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Iterable

from django.db import transaction  # type: ignore
from django.utils.dateparse import parse_date  # type: ignore

from apps.bookings import ledger, pricing
from apps.bookings import services as bookings
from apps.bookings.models import Reservation
from apps.catalog.models import ResourceKind
from apps.notifications import services as notifications
from shared.domain.exceptions import DomainError
from shared.domain.value_objects import quantize_money

from .models import Cart

if TYPE_CHECKING:  # pragma: no cover
    from apps.users.models import User

logger = logging.getLogger(__name__)


class CartError(DomainError):
    code = "cart_error"


class CartItemNotFound(CartError):
    status_code = 404
    code = "cart_item_not_found"


class EmptyCart(CartError):
    code = "cart_empty"


def item_key(kind: str, resource_id: int, start_date, end_date, time_slot: str = "") -> str:
    """Stable id of a cart line: one per resource, period and slot."""
    parts = [kind, str(resource_id), str(start_date), str(end_date)]
    if time_slot:
        parts.append(time_slot.replace(":", ""))
    return "-".join(parts)


def get_cart(user: "User") -> Cart:
    cart, _ = Cart.objects.get_or_create(user=user)
    return cart


def price_item(data: dict[str, Any]) -> dict[str, Any]:
    """Validate one requested line and return it priced.

    ``data`` carries kind, resource_id, start_date, optional end_date,
    quantity and time_slot.
    """
    resource = bookings.resolve_resource(data["kind"], data["resource_id"])
    period = bookings.build_period(resource, data["start_date"], data.get("end_date"))
    quantity = data.get("quantity", 1)
    time_slot = data.get("time_slot", "") if resource.reservation_kind == ResourceKind.ACTIVITY else ""
    ledger.validate_request(resource, period, quantity, time_slot)

    total = pricing.quote(resource, period, quantity)
    return {
        "id": item_key(resource.reservation_kind, resource.pk, period.start_date, period.end_date, time_slot),
        "kind": resource.reservation_kind,
        "resource_id": resource.pk,
        "name": resource.name,
        "image": getattr(resource, "image", "") or "",
        "start_date": period.start_date.isoformat(),
        "end_date": period.end_date.isoformat(),
        "time_slot": time_slot,
        "quantity": quantity,
        "unit_price": str(pricing.unit_price(resource)),
        "total_price": str(total.amount),
    }


def add_item(user: "User", data: dict[str, Any]) -> Cart:
    """Add a line; adding the same line again replaces it."""
    item = price_item(data)
    cart = get_cart(user)
    cart.items = [existing for existing in cart.items if existing.get("id") != item["id"]] + [item]
    cart.save(update_fields=["items", "updated_at"])
    logger.info(f"Item {item['id']} added to cart for user {user.pk}")
    return cart


def update_item(user: "User", item_id: str, quantity: int) -> Cart:
    cart = get_cart(user)
    current = cart.find(item_id)
    if current is None:
        raise CartItemNotFound("Item not found in cart.")
    updated = price_item({**_as_request(current), "quantity": quantity})
    cart.items = [updated if existing.get("id") == item_id else existing for existing in cart.items]
    cart.save(update_fields=["items", "updated_at"])
    return cart


def remove_item(user: "User", item_id: str) -> Cart:
    cart = get_cart(user)
    if cart.find(item_id) is None:
        raise CartItemNotFound("Item not found in cart.")
    cart.items = [existing for existing in cart.items if existing.get("id") != item_id]
    cart.save(update_fields=["items", "updated_at"])
    logger.info(f"Item {item_id} removed from cart for user {user.pk}")
    return cart


def clear_cart(user: "User") -> Cart:
    cart = get_cart(user)
    cart.items = []
    cart.save(update_fields=["items", "updated_at"])
    logger.info(f"Cart cleared for user {user.pk}")
    return cart


def migrate_cart(user: "User", items: Iterable[dict[str, Any]]) -> tuple[Cart, int, list[str]]:
    """Merge a client-side cart into the stored one.

    Lines already in the cart are kept as they are; lines that fail
    validation are skipped and reported.

    Returns:
        (cart, number of lines added, error messages)
    """
    cart = get_cart(user)
    known = {existing.get("id") for existing in cart.items}
    added = 0
    errors: list[str] = []
    for data in items:
        try:
            item = price_item(data)
        except DomainError as e:
            errors.append(f"{data.get('kind')} #{data.get('resource_id')}: {e.message}")
            continue
        if item["id"] in known:
            continue
        cart.items.append(item)
        known.add(item["id"])
        added += 1
    cart.save(update_fields=["items", "updated_at"])
    logger.info(f"Migrated {added} items into cart for user {user.pk}")
    return cart, added, errors


def summarize(items: list[dict[str, Any]]) -> dict[str, Any]:
    """Totals with tax and service fee, plus a per-kind breakdown."""
    by_kind: dict[str, dict[str, Any]] = {}
    subtotal = Decimal("0")
    for item in items:
        amount = Decimal(str(item.get("total_price", "0")))
        subtotal += amount
        group = by_kind.setdefault(item.get("kind", ""), {"count": 0, "subtotal": Decimal("0")})
        group["count"] += 1
        group["subtotal"] += amount
    for group in by_kind.values():
        group["subtotal"] = quantize_money(group["subtotal"])

    summary: dict[str, Any] = pricing.cart_totals(subtotal)
    summary.update(
        {
            "currency": pricing.currency(),
            "item_count": len(items),
            "by_kind": by_kind,
        }
    )
    return summary


def _as_request(item: dict[str, Any]) -> dict[str, Any]:
    return {
        "kind": item["kind"],
        "resource_id": item["resource_id"],
        "start_date": parse_date(item["start_date"]),
        "end_date": parse_date(item["end_date"]) if item.get("end_date") else None,
        "quantity": item.get("quantity", 1),
        "time_slot": item.get("time_slot", ""),
    }


def checkout(user: "User") -> dict[str, Any]:
    """Simulated payment of the whole cart.

    Raises:
        EmptyCart: nothing to pay for
        ReservationError: any line no longer fits; nothing is booked
    """
    cart = get_cart(user)
    if not cart.items:
        raise EmptyCart("Cart is empty.")

    with transaction.atomic():
        cart = Cart.objects.select_for_update().get(pk=cart.pk)
        reservations: list[Reservation] = []
        for item in cart.items:
            data = _as_request(item)
            resource = bookings.resolve_resource(data["kind"], data["resource_id"])
            period = bookings.build_period(resource, data["start_date"], data["end_date"])
            reservations.append(
                bookings.create_reservation(
                    user,
                    resource,
                    period,
                    data["quantity"],
                    time_slot=data["time_slot"],
                    source=Reservation.Source.CART,
                    paid=True,
                )
            )
        cart.items = []
        cart.save(update_fields=["items", "updated_at"])

    summary = summarize(
        [{"kind": r.kind, "total_price": str(r.total_price)} for r in reservations]
    )
    notifications.notify_payment_completed(user, summary["total"], len(reservations))
    transaction_id = f"txn_{uuid.uuid4().hex[:16]}"
    logger.info(
        f"Checkout {transaction_id} by {user.email}: {len(reservations)} reservations, total {summary['total']}"
    )
    return {
        "transaction_id": transaction_id,
        "payment_status": Reservation.PaymentStatus.PAID,
        "reservations": reservations,
        "summary": summary,
    }
