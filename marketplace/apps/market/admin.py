from django.contrib import admin
from .models import Listing, Sale


@admin.register(Listing)
class ListingAdmin(admin.ModelAdmin):
    list_display = ("collection", "token_id", "seller", "price", "updated_at")
    search_fields = ("collection", "seller__address")


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "seller",
        "buyer",
        "price",
        "fee",
        "simple_fee",
        "compound_fee",
        "shares_minted",
        "seller_proceeds",
        "created_at",
    )
    search_fields = ("id", "seller__address", "buyer", "payment_tx_hash", "transfer_tx_hash")
    date_hierarchy = "created_at"
