"""Admin registration for reservations."""

from __future__ import annotations

from django.contrib import admin

from .models import Reservation


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    list_display = (
        "reference",
        "kind",
        "resource_name",
        "user",
        "status",
        "payment_status",
        "start_date",
        "end_date",
        "quantity",
        "total_price",
        "created_at",
    )
    list_filter = ("kind", "status", "payment_status", "source", "start_date")
    search_fields = ("reference", "resource_name", "user__email", "user__name")
    readonly_fields = (
        "reference",
        "unit_price",
        "total_price",
        "refund_amount",
        "decided_by",
        "decided_at",
        "cancelled_by",
        "cancelled_at",
        "paid_at",
        "completed_at",
        "created_at",
        "updated_at",
    )
