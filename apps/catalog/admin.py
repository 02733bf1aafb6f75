"""Admin registration for catalog resources."""

from __future__ import annotations

from django.contrib import admin

from .models import Activity, CampingSite, Equipment


@admin.register(CampingSite)
class CampingSiteAdmin(admin.ModelAdmin):
    list_display = ("name", "location", "type", "price", "capacity", "availability", "status", "rating")
    list_filter = ("type", "availability", "status")
    search_fields = ("name", "location", "description")
    readonly_fields = ("rating", "review_count", "created_at", "updated_at")


@admin.register(Activity)
class ActivityAdmin(admin.ModelAdmin):
    list_display = ("name", "category", "difficulty", "price", "max_participants", "status", "rating")
    list_filter = ("category", "difficulty", "status")
    search_fields = ("name", "description", "category")
    readonly_fields = ("rating", "review_count", "created_at", "updated_at")


@admin.register(Equipment)
class EquipmentAdmin(admin.ModelAdmin):
    list_display = ("name", "category", "price", "period", "quantity", "availability", "condition", "status")
    list_filter = ("category", "period", "availability", "condition", "status")
    search_fields = ("name", "description", "category")
    readonly_fields = ("availability", "rating", "review_count", "created_at", "updated_at")
