"""Catalog models: everything a user can reserve.

Three resource families share the :class:`Bookable` base. Each one
tells the reservation ledger how much concurrent demand it can absorb
through :meth:`Bookable.ledger_capacity`.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class ResourceKind(models.TextChoices):
    CAMPSITE = "campsite", _("Campsite")
    ACTIVITY = "activity", _("Activity")
    EQUIPMENT = "equipment", _("Equipment")


class Bookable(models.Model):
    """Fields and behaviour shared by every reservable resource."""

    reservation_kind: str = ""
    cache_family: str = ""

    name = models.CharField(max_length=100)
    description = models.TextField(max_length=2000)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    rating = models.DecimalField(
        max_digits=2,
        decimal_places=1,
        default=Decimal("0.0"),
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("5"))],
    )
    review_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.name

    def is_bookable(self) -> bool:
        return self.status == "active"  # type: ignore[attr-defined]

    def ledger_capacity(self) -> int:
        """Units of demand that may overlap at any moment."""
        raise NotImplementedError


class CampingSite(Bookable):
    """A pitch, cabin or glamping tent rented per night."""

    reservation_kind = ResourceKind.CAMPSITE
    cache_family = "campsites"

    class Availability(models.TextChoices):
        AVAILABLE = "available", _("Available")
        LIMITED = "limited", _("Limited")
        UNAVAILABLE = "unavailable", _("Unavailable")

    class SiteType(models.TextChoices):
        TENT = "tent", _("Tent")
        RV = "rv", _("RV")
        CABIN = "cabin", _("Cabin")
        GLAMPING = "glamping", _("Glamping")

    class Status(models.TextChoices):
        ACTIVE = "active", _("Active")
        INACTIVE = "inactive", _("Inactive")

    location = models.CharField(max_length=200)
    features = models.JSONField(default=list, blank=True)
    image = models.CharField(max_length=500)
    images = models.JSONField(default=list, blank=True)
    capacity = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(50)],
        help_text=_("Maximum number of guests."),
    )
    availability = models.CharField(
        max_length=20,
        choices=Availability.choices,
        default=Availability.AVAILABLE,
    )
    type = models.CharField(max_length=20, choices=SiteType.choices, default=SiteType.TENT)
    coordinates = models.JSONField(null=True, blank=True, help_text=_('{"lat": .., "lng": ..}'))
    address = models.JSONField(default=dict, blank=True, help_text=_("street, city, state, zip_code"))
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)

    class Meta(Bookable.Meta):
        verbose_name = _("Camping site")
        verbose_name_plural = _("Camping sites")
        indexes = [
            models.Index(fields=["status", "availability"]),
            models.Index(fields=["type"]),
            models.Index(fields=["price"]),
            models.Index(fields=["-rating"]),
        ]

    def is_bookable(self) -> bool:
        return self.status == self.Status.ACTIVE and self.availability != self.Availability.UNAVAILABLE

    def ledger_capacity(self) -> int:
        # One party per site at a time
        return 1


class Activity(Bookable):
    """Guided activity booked per participant for a date and time slot."""

    reservation_kind = ResourceKind.ACTIVITY
    cache_family = "activities"

    class Difficulty(models.TextChoices):
        EASY = "Easy", _("Easy")
        BEGINNER = "Beginner", _("Beginner")
        INTERMEDIATE = "Intermediate", _("Intermediate")
        ADVANCED = "Advanced", _("Advanced")

    class Status(models.TextChoices):
        ACTIVE = "active", _("Active")
        INACTIVE = "inactive", _("Inactive")
        FULL = "full", _("Full")

    icon = models.CharField(max_length=10)
    duration = models.CharField(max_length=50)
    difficulty = models.CharField(max_length=20, choices=Difficulty.choices)
    category = models.CharField(max_length=50)
    max_participants = models.PositiveSmallIntegerField(
        default=10,
        validators=[MinValueValidator(1), MaxValueValidator(100)],
    )
    equipment = models.JSONField(default=list, blank=True)
    images = models.JSONField(default=list, blank=True)
    location = models.CharField(max_length=200, blank=True)
    schedule = models.JSONField(
        default=list,
        blank=True,
        help_text=_('[{"start_time": "09:00", "end_time": "12:00", "days": ["monday"]}]'),
    )
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)

    class Meta(Bookable.Meta):
        verbose_name = _("Activity")
        verbose_name_plural = _("Activities")
        indexes = [
            models.Index(fields=["category", "status"]),
            models.Index(fields=["difficulty"]),
            models.Index(fields=["price"]),
        ]

    def ledger_capacity(self) -> int:
        return self.max_participants

    def offers_slot(self, day, time_slot: str) -> bool:
        """True when ``time_slot`` matches the schedule for ``day``.

        Activities without a schedule accept any slot.
        """
        if not self.schedule:
            return True
        weekday = day.strftime("%A").lower()
        for entry in self.schedule:
            days = [d.lower() for d in entry.get("days", [])]
            if days and weekday not in days:
                continue
            if entry.get("start_time") == time_slot:
                return True
        return False


class Equipment(Bookable):
    """Rental gear with a stock of identical units."""

    reservation_kind = ResourceKind.EQUIPMENT
    cache_family = "equipment"
    LIMITED_STOCK = 5

    class Period(models.TextChoices):
        HOUR = "hour", _("Hour")
        DAY = "day", _("Day")
        WEEK = "week", _("Week")

    class Availability(models.TextChoices):
        AVAILABLE = "Available", _("Available")
        LIMITED = "Limited", _("Limited")
        UNAVAILABLE = "Unavailable", _("Unavailable")

    class Condition(models.TextChoices):
        EXCELLENT = "Excellent", _("Excellent")
        GOOD = "Good", _("Good")
        FAIR = "Fair", _("Fair")

    class Status(models.TextChoices):
        ACTIVE = "active", _("Active")
        INACTIVE = "inactive", _("Inactive")
        MAINTENANCE = "maintenance", _("Maintenance")

    category = models.CharField(max_length=50)
    period = models.CharField(max_length=10, choices=Period.choices, default=Period.DAY)
    features = models.JSONField(default=list, blank=True)
    image = models.CharField(max_length=500)
    availability = models.CharField(
        max_length=20,
        choices=Availability.choices,
        default=Availability.AVAILABLE,
        editable=False,
    )
    quantity = models.PositiveIntegerField(default=1)
    condition = models.CharField(max_length=20, choices=Condition.choices, default=Condition.EXCELLENT)
    specifications = models.JSONField(
        default=dict,
        blank=True,
        help_text=_("weight, dimensions, material, capacity, brand, model"),
    )
    maintenance = models.JSONField(
        default=dict,
        blank=True,
        help_text=_("last_service, next_service, notes"),
    )
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)

    class Meta(Bookable.Meta):
        verbose_name = _("Equipment")
        verbose_name_plural = _("Equipment")
        indexes = [
            models.Index(fields=["category", "status"]),
            models.Index(fields=["availability"]),
            models.Index(fields=["price"]),
        ]

    def save(self, *args, **kwargs):  # type: ignore
        self.availability = self.availability_for_quantity(self.quantity)
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "quantity" in update_fields:
            kwargs["update_fields"] = set(update_fields) | {"availability"}
        super().save(*args, **kwargs)

    @classmethod
    def availability_for_quantity(cls, quantity: int) -> str:
        if quantity <= 0:
            return cls.Availability.UNAVAILABLE
        if quantity <= cls.LIMITED_STOCK:
            return cls.Availability.LIMITED
        return cls.Availability.AVAILABLE

    def is_bookable(self) -> bool:
        return self.status == self.Status.ACTIVE and self.quantity > 0

    def ledger_capacity(self) -> int:
        return self.quantity


RESOURCE_MODELS: dict[str, type[Bookable]] = {
    ResourceKind.CAMPSITE: CampingSite,
    ResourceKind.ACTIVITY: Activity,
    ResourceKind.EQUIPMENT: Equipment,
}


def get_resource_model(kind: str) -> type[Bookable]:
    try:
        return RESOURCE_MODELS[kind]
    except KeyError:
        raise ValueError(f"Unknown resource kind: {kind}")
