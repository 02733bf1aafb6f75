"""Django admin for CampSpot accounts."""

from __future__ import annotations

from django.contrib import admin  # type: ignore
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    ordering = ("email",)
    list_display = ("email", "name", "role", "is_active", "last_login", "created_at")
    list_filter = ("role", "is_active")
    search_fields = ("email", "name", "phone")
    readonly_fields = ("created_at", "updated_at", "date_joined", "last_login")

    fieldsets = (
        (None, {"fields": ("email", "password", "role", "is_active")}),
        (_("Camper profile"), {"fields": ("name", "phone", "avatar", "location", "bio", "instagram_url")}),
        (_("Preferences"), {"fields": ("preferences",)}),
        (_("Django access"), {"classes": ("collapse",), "fields": ("is_staff", "is_superuser", "groups", "user_permissions")}),
        (_("Timestamps"), {"fields": ("last_login", "date_joined", "created_at", "updated_at")}),
    )
    add_fieldsets = (
        (None, {"classes": ("wide",), "fields": ("email", "name", "instagram_url", "role", "password1", "password2")}),
    )
