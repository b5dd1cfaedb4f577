# marketplace/market/models.py
import uuid
from django.db import models
from marketplace.apps.users.models import MarketUser
from marketplace.apps.tokens.fields import Uint256Field


class Listing(models.Model):
    """Off-chain mirror of a listed item. A zero price means not listed."""

    collection = models.CharField(max_length=42, db_index=True)  # ERC721 contract address
    token_id = Uint256Field()
    seller = models.ForeignKey(MarketUser, on_delete=models.CASCADE, related_name="listings")
    price = Uint256Field()  # WETH wei
    updated_at = models.DateTimeField(auto_now=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = [("collection", "token_id")]

    @property
    def is_listed(self) -> bool:
        return self.price > 0


class Sale(models.Model):
    """One settled purchase with its complete fee split."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    listing = models.ForeignKey(
        Listing, on_delete=models.SET_NULL, null=True, blank=True, related_name="sales"
    )
    seller = models.ForeignKey(MarketUser, on_delete=models.CASCADE, related_name="sales")
    buyer = models.CharField(max_length=42, blank=True, default="", db_index=True)
    payment_token = models.CharField(max_length=42, blank=True, default="")
    price = Uint256Field()
    fee = Uint256Field()
    simple_fee = Uint256Field()
    compound_fee = Uint256Field()
    shares_minted = Uint256Field()
    seller_proceeds = Uint256Field()
    payment_tx_hash = models.CharField(max_length=128, null=True, blank=True, db_index=True)
    transfer_tx_hash = models.CharField(max_length=128, null=True, blank=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [models.Index(fields=["seller", "created_at"])]
