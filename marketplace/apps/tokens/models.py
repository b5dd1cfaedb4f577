# marketplace/tokens/models.py
import uuid
from django.db import models
from marketplace.apps.users.models import MarketUser
from .fields import Uint256Field


class ShareToken(models.Model):
    """Compound vault receipt token (singleton). Tracks the circulating supply."""

    SINGLETON_ID = 1

    symbol = models.CharField(max_length=16, default="cMKT")
    total_supply = Uint256Field()
    updated_at = models.DateTimeField(auto_now=True)

    @classmethod
    def load(cls, lock: bool = False) -> "ShareToken":
        qs = cls.objects.select_for_update() if lock else cls.objects
        token, _ = qs.get_or_create(pk=cls.SINGLETON_ID)
        return token

    def __str__(self):
        return self.symbol


class ShareBalance(models.Model):
    """Current share balance of one holder."""

    user = models.OneToOneField(MarketUser, on_delete=models.CASCADE, related_name="share_balance")
    balance = Uint256Field()
    updated_at = models.DateTimeField(auto_now=True)


class ShareEvent(models.Model):
    """Mint/Burn audit trail; balances are derived from these rows."""

    KIND = [("mint", "Mint"), ("burn", "Burn")]
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(MarketUser, on_delete=models.CASCADE, related_name="share_events")
    kind = models.CharField(max_length=8, choices=KIND, db_index=True)
    amount = Uint256Field()
    reason = models.CharField(max_length=64, blank=True, default="")  # e.g., stake, sale_fee, unstake
    meta = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [models.Index(fields=["user", "kind", "created_at"])]
