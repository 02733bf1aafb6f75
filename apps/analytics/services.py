"""Aggregations behind the admin dashboard."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from typing import Any

from django.contrib.auth import get_user_model  # type: ignore
from django.db.models import Avg, Count, Q, Sum  # type: ignore
from django.db.models.functions import TruncDate  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.models import Reservation
from apps.catalog.models import Activity, CampingSite, Equipment

User = get_user_model()

REVENUE_PERIODS = {"7d": 7, "30d": 30, "90d": 90, "1y": 365}
EARNING_STATUSES = (Reservation.Status.APPROVED, Reservation.Status.COMPLETED)


def _counts(qs, field: str) -> dict[str, int]:
    return {row[field]: row["count"] for row in qs.values(field).annotate(count=Count("id")).order_by()}


def dashboard_stats() -> dict[str, Any]:
    users = User.objects.aggregate(
        total=Count("id"),
        active=Count("id", filter=Q(is_active=True)),
        admins=Count("id", filter=Q(role=User.Role.ADMIN)),
    )
    users["inactive"] = users["total"] - users["active"]

    campsites: dict[str, Any] = CampingSite.objects.aggregate(total=Count("id"), average_rating=Avg("rating"))
    campsites["by_availability"] = _counts(CampingSite.objects.all(), "availability")

    activities: dict[str, Any] = Activity.objects.aggregate(
        total=Count("id"),
        active=Count("id", filter=Q(status=Activity.Status.ACTIVE)),
        average_price=Avg("price"),
    )
    activities["categories"] = _counts(Activity.objects.all(), "category")

    equipment: dict[str, Any] = Equipment.objects.aggregate(total=Count("id"))
    equipment["by_availability"] = _counts(Equipment.objects.all(), "availability")
    equipment["categories"] = _counts(Equipment.objects.all(), "category")

    reservations: dict[str, Any] = {"total": Reservation.objects.count()}
    reservations["by_status"] = _counts(Reservation.objects.all(), "status")
    reservations["by_kind"] = _counts(Reservation.objects.all(), "kind")

    return {
        "users": users,
        "campsites": campsites,
        "activities": activities,
        "equipment": equipment,
        "reservations": reservations,
    }


def recent_activity(limit: int = 10) -> list[dict[str, Any]]:
    """Latest reservations and registrations, newest first."""
    feed: list[dict[str, Any]] = []
    for reservation in Reservation.objects.select_related("user").order_by("-created_at")[:limit]:
        feed.append(
            {
                "type": "reservation",
                "id": reservation.pk,
                "title": f"{reservation.user.name} booked {reservation.resource_name}",
                "status": reservation.status,
                "kind": reservation.kind,
                "amount": reservation.total_price,
                "timestamp": reservation.created_at,
            }
        )
    for user in User.objects.order_by("-date_joined")[:limit]:
        feed.append(
            {
                "type": "registration",
                "id": user.pk,
                "title": f"{user.name or user.email} joined",
                "timestamp": user.date_joined,
            }
        )
    feed.sort(key=lambda item: item["timestamp"], reverse=True)
    return feed[:limit]


def revenue_analytics(period: str = "30d") -> dict[str, Any]:
    days = REVENUE_PERIODS[period]
    since = timezone.now() - timedelta(days=days)
    qs = Reservation.objects.filter(status__in=EARNING_STATUSES, created_at__gte=since)
    daily = [
        {"date": row["day"], "revenue": row["revenue"] or Decimal("0.00"), "reservations": row["count"]}
        for row in qs.annotate(day=TruncDate("created_at"))
        .values("day")
        .annotate(revenue=Sum("total_price"), count=Count("id"))
        .order_by("day")
    ]
    totals = qs.aggregate(revenue=Sum("total_price"), count=Count("id"))
    return {
        "period": period,
        "since": since,
        "daily": daily,
        "total_revenue": totals["revenue"] or Decimal("0.00"),
        "total_reservations": totals["count"],
        "by_kind": {
            row["kind"]: row["revenue"]
            for row in qs.values("kind").annotate(revenue=Sum("total_price")).order_by()
        },
    }


def user_analytics(days: int = 30) -> dict[str, Any]:
    since = timezone.now() - timedelta(days=days)
    registrations = [
        {"date": row["day"], "count": row["count"]}
        for row in User.objects.filter(date_joined__gte=since)
        .annotate(day=TruncDate("date_joined"))
        .values("day")
        .annotate(count=Count("id"))
        .order_by("day")
    ]
    return {
        "days": days,
        "registrations": registrations,
        "new_users": sum(row["count"] for row in registrations),
        "roles": _counts(User.objects.all(), "role"),
    }
