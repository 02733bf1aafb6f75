"""User domain models for CampSpot.

The marketplace knows two roles: regular users who browse and book,
and admins who manage inventory and moderate reservations. Every user
logs in with an email address and must link an Instagram profile.
"""

from __future__ import annotations

from typing import Any

from django.contrib.auth.models import AbstractUser, BaseUserManager  # type: ignore
from django.core.validators import RegexValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


PHONE_VALIDATOR = RegexValidator(
    regex=r"^[\d\s\-+()]{6,20}$",
    message=_("Enter a valid phone number."),
)

INSTAGRAM_VALIDATOR = RegexValidator(
    regex=r"^https?://(www\.)?instagram\.com/.+",
    message=_("Please provide a valid Instagram URL."),
)


def default_preferences() -> dict[str, Any]:
    return {
        "notifications": True,
        "location": "",
        "preferred_sites": [],
        "equipment": [],
    }


class UserManager(BaseUserManager):
    """Manager using the email address as the login."""

    use_in_migrations = True

    def _create_user(self, email: str, password: str | None, **extra_fields: Any):
        if not email:
            raise ValueError("Email is required.")
        email = self.normalize_email(email).lower()

        phone = extra_fields.get("phone")
        if phone:
            extra_fields["phone"] = self.normalize_phone(phone)

        user = self.model(email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_user(self, email: str, password: str | None = None, **extra_fields: Any):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        extra_fields.setdefault("role", User.Role.USER)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email: str, password: str | None = None, **extra_fields: Any):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("role", User.Role.ADMIN)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self._create_user(email, password, **extra_fields)

    @staticmethod
    def normalize_phone(phone: str) -> str:
        return phone.strip()

    def active_admins(self):
        return self.filter(role=User.Role.ADMIN, is_active=True)


class User(AbstractUser):
    """Marketplace account."""

    class Role(models.TextChoices):
        USER = "user", _("User")
        ADMIN = "admin", _("Admin")

    username = models.CharField(_("Display name"), max_length=150, blank=True)
    email = models.EmailField(_("Email"), unique=True)
    name = models.CharField(_("Name"), max_length=100)
    phone = models.CharField(_("Phone"), max_length=20, blank=True, validators=[PHONE_VALIDATOR])
    avatar = models.ImageField(_("Avatar"), upload_to="avatars/", blank=True, null=True)
    location = models.CharField(_("Location"), max_length=100, blank=True)
    bio = models.TextField(_("Bio"), max_length=500, blank=True)
    instagram_url = models.URLField(_("Instagram"), validators=[INSTAGRAM_VALIDATOR])
    role = models.CharField(_("Role"), max_length=10, choices=Role.choices, default=Role.USER)
    preferences = models.JSONField(default=default_preferences, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["name", "instagram_url"]

    class Meta:
        verbose_name = _("User")
        verbose_name_plural = _("Users")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["role", "is_active"]),
        ]

    def __str__(self) -> str:
        return f"{self.email} ({self.get_role_display()})"

    def is_admin(self) -> bool:
        return self.role == self.Role.ADMIN or self.is_superuser

    def touch_last_login(self) -> None:
        self.last_login = timezone.now()
        self.save(update_fields=["last_login"])

    def toggle_active(self) -> bool:
        self.is_active = not self.is_active
        self.save(update_fields=["is_active", "updated_at"])
        return self.is_active
