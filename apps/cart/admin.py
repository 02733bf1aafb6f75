from django.contrib import admin

from .models import Cart


@admin.register(Cart)
class CartAdmin(admin.ModelAdmin):
    list_display = ("user", "item_count", "updated_at")
    search_fields = ("user__email",)
    readonly_fields = ("created_at", "updated_at")

    @admin.display(description="Items")
    def item_count(self, obj: Cart) -> int:
        return len(obj.items)
