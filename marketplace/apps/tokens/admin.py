from django.contrib import admin
from .models import ShareToken, ShareBalance, ShareEvent


@admin.register(ShareToken)
class ShareTokenAdmin(admin.ModelAdmin):
    list_display = ("symbol", "total_supply", "updated_at")


@admin.register(ShareBalance)
class ShareBalanceAdmin(admin.ModelAdmin):
    list_display = ("user", "balance", "updated_at")
    search_fields = ("user__address", "user__username")


@admin.register(ShareEvent)
class ShareEventAdmin(admin.ModelAdmin):
    list_display = ("user", "kind", "amount", "reason", "created_at")
    list_filter = ("kind", "reason")
    search_fields = ("user__address",)
    date_hierarchy = "created_at"
