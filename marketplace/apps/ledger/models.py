# marketplace/ledger/models.py
import uuid
from django.db import models
from marketplace.apps.users.models import MarketUser
from marketplace.apps.tokens.fields import Uint256Field


class LedgerBalance(models.Model):
    """Withdrawable base-asset balance (created on first credit, kept at zero afterwards)."""

    user = models.OneToOneField(MarketUser, on_delete=models.CASCADE, related_name="ledger_balance")
    balance = Uint256Field()
    updated_at = models.DateTimeField(auto_now=True)


class LedgerEntry(models.Model):
    """Credit/debit audit trail; LedgerBalance is derived from these rows."""

    KIND = [("credit", "Credit"), ("debit", "Debit")]
    REASON = [
        ("sale_proceeds", "Sale proceeds"),
        ("simple_unstake", "Simple pool unstake"),
        ("compound_unstake", "Compound vault unstake"),
        ("withdrawal", "Withdrawal to native asset"),
    ]
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(MarketUser, on_delete=models.CASCADE, related_name="ledger_entries")
    kind = models.CharField(max_length=8, choices=KIND, db_index=True)
    amount = Uint256Field()
    reason = models.CharField(max_length=32, choices=REASON, db_index=True)
    reference = models.CharField(max_length=64, blank=True, default="")  # e.g., sale id
    tx_hash = models.CharField(max_length=128, null=True, blank=True, db_index=True)  # payout tx for debits
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [models.Index(fields=["user", "kind", "created_at"])]
