"""Reservation ledger model for CampSpot.

A single :class:`Reservation` covers campsite stays, activity seats and
equipment rentals. It points at its resource through ``kind`` and
``resource_id`` and always occupies the half-open range
``[start_date, end_date)``; activity bookings take exactly one day.
"""

from __future__ import annotations

import secrets
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.catalog.models import ResourceKind, get_resource_model
from shared.domain.value_objects import DateRange


class Reservation(models.Model):
    """A claim on part of a resource's capacity for a period."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        APPROVED = "approved", _("Approved")
        REJECTED = "rejected", _("Rejected")
        CANCELLED = "cancelled", _("Cancelled")
        COMPLETED = "completed", _("Completed")

    class PaymentStatus(models.TextChoices):
        PENDING = "pending", _("Pending")
        PAID = "paid", _("Paid")
        REFUNDED = "refunded", _("Refunded")

    class Source(models.TextChoices):
        WEB = "web", _("Web")
        CART = "cart", _("Cart checkout")

    BLOCKING_STATUSES = (Status.PENDING, Status.APPROVED, Status.COMPLETED)

    reference = models.CharField(max_length=8, unique=True, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="reservations",
    )
    kind = models.CharField(max_length=20, choices=ResourceKind.choices)
    resource_id = models.PositiveBigIntegerField()
    resource_name = models.CharField(
        max_length=100,
        help_text=_("Name of the resource at booking time."),
    )
    start_date = models.DateField()
    end_date = models.DateField(help_text=_("Exclusive."))
    time_slot = models.CharField(max_length=5, blank=True, help_text=_("HH:MM, activities only."))
    quantity = models.PositiveIntegerField(
        default=1,
        help_text=_("Guests, participants or rented units."),
    )
    unit_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    total_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="EUR")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    refund_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    source = models.CharField(max_length=10, choices=Source.choices, default=Source.WEB)
    special_requests = models.TextField(max_length=500, blank=True)
    details = models.JSONField(
        default=dict,
        blank=True,
        help_text=_("Extra equipment and activities requested with a site booking."),
    )
    admin_notes = models.TextField(max_length=1000, blank=True)
    rejection_reason = models.CharField(max_length=500, blank=True)
    decided_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="decided_reservations",
    )
    decided_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="cancelled_reservations",
    )
    cancelled_at = models.DateTimeField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Reservation")
        verbose_name_plural = _("Reservations")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_date__gt=models.F("start_date")),
                name="reservation_valid_dates",
            ),
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="reservation_positive_quantity",
            ),
        ]
        indexes = [
            models.Index(fields=["kind", "resource_id", "start_date", "end_date"]),
            models.Index(fields=["user", "status"]),
            models.Index(fields=["status", "payment_status"]),
        ]

    def __str__(self) -> str:
        return f"Reservation {self.reference} ({self.kind} #{self.resource_id}, {self.status})"

    def save(self, *args, **kwargs):  # type: ignore
        if self._state.adding and not self.reference:
            self.reference = self.generate_reference()
        super().save(*args, **kwargs)

    @classmethod
    def generate_reference(cls) -> str:
        while True:
            reference = secrets.token_hex(4).upper()
            if not cls.objects.filter(reference=reference).exists():
                return reference

    @property
    def resource(self):
        model = get_resource_model(self.kind)
        return model.objects.filter(pk=self.resource_id).first()

    @property
    def period(self) -> DateRange:
        return DateRange(self.start_date, self.end_date)

    @property
    def duration(self) -> int:
        return len(self.period)

    @property
    def is_blocking(self) -> bool:
        return self.status in self.BLOCKING_STATUSES

    @property
    def is_paid(self) -> bool:
        return self.payment_status == self.PaymentStatus.PAID
