from django.contrib import admin

from .models import Participant


@admin.register(Participant)
class ParticipantAdmin(admin.ModelAdmin):
    list_display = ("id", "email", "first_name", "last_name", "redeemed_coupon", "registered_at")
    list_filter = ("newsletter",)
    list_select_related = ("redeemed_coupon",)
    search_fields = ("email", "first_name", "last_name", "redeemed_coupon__code")
    ordering = ("-registered_at",)
    readonly_fields = ("redeemed_coupon", "registered_at")
