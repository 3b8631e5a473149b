from django.contrib import admin

from .models import Coupon
from .services import delete_coupon


@admin.register(Coupon)
class CouponAdmin(admin.ModelAdmin):
    list_display = ("id", "code", "prize_type", "used", "used_at", "created_at")
    list_filter = ("used", "prize_type")
    search_fields = ("code",)
    ordering = ("-created_at", "-id")
    readonly_fields = ("used", "used_at", "created_at")

    def has_delete_permission(self, request, obj=None):
        if obj is not None and obj.used:
            return False
        return super().has_delete_permission(request, obj)

    def delete_model(self, request, obj):
        delete_coupon(obj.pk)

    def get_actions(self, request):
        # Bulk deletion would bypass the used-coupon check.
        actions = super().get_actions(request)
        actions.pop("delete_selected", None)
        return actions
