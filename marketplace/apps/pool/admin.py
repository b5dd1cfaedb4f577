from django.contrib import admin
from .models import (
    SimpleStakePool,
    SimpleStakeAccount,
    CompoundStakeVault,
    StakeEvent,
    PoolSnapshot,
)


@admin.register(SimpleStakePool)
class SimpleStakePoolAdmin(admin.ModelAdmin):
    list_display = ("accrual_index_scaled", "total_principal", "updated_at")


@admin.register(SimpleStakeAccount)
class SimpleStakeAccountAdmin(admin.ModelAdmin):
    list_display = ("user", "principal", "earned", "accrual_snapshot", "updated_at")
    search_fields = ("user__address", "user__username")


@admin.register(CompoundStakeVault)
class CompoundStakeVaultAdmin(admin.ModelAdmin):
    list_display = ("total_pooled", "updated_at")


@admin.register(StakeEvent)
class StakeEventAdmin(admin.ModelAdmin):
    list_display = ("user", "pool", "kind", "amount", "shares", "interest_out", "created_at")
    list_filter = ("pool", "kind")
    search_fields = ("user__address",)
    date_hierarchy = "created_at"


@admin.register(PoolSnapshot)
class PoolSnapshotAdmin(admin.ModelAdmin):
    list_display = (
        "at",
        "simple_total_principal",
        "accrual_index_scaled",
        "compound_total_pooled",
        "compound_total_supply",
    )
