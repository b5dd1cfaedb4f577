from django.contrib import admin
from .models import LedgerBalance, LedgerEntry


@admin.register(LedgerBalance)
class LedgerBalanceAdmin(admin.ModelAdmin):
    list_display = ("user", "balance", "updated_at")
    search_fields = ("user__address", "user__username")


@admin.register(LedgerEntry)
class LedgerEntryAdmin(admin.ModelAdmin):
    list_display = ("user", "kind", "amount", "reason", "reference", "tx_hash", "created_at")
    list_filter = ("kind", "reason")
    search_fields = ("user__address", "reference", "tx_hash")
    date_hierarchy = "created_at"
