from django.contrib import admin
from .models import MarketUser


@admin.register(MarketUser)
class MarketUserAdmin(admin.ModelAdmin):
    list_display = ("address", "username", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("address", "username")
