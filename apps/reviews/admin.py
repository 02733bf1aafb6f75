from django.contrib import admin

from .models import Review


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ("id", "kind", "target_id", "user", "rating", "created_at")
    list_filter = ("kind", "rating")
    search_fields = ("user__email", "comment")
