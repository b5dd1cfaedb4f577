# marketplace/pool/models.py
import uuid
from django.db import models
from marketplace.apps.users.models import MarketUser
from marketplace.apps.tokens.fields import Uint256Field
from .accounting import SimplePoolState, StakeCheckpoint, VaultState


class SingletonModel(models.Model):
    SINGLETON_ID = 1

    class Meta:
        abstract = True

    @classmethod
    def load(cls, lock: bool = False):
        qs = cls.objects.select_for_update() if lock else cls.objects
        obj, _ = qs.get_or_create(pk=cls.SINGLETON_ID)
        return obj


class SimpleStakePool(SingletonModel):
    """Global accrual index and principal of the simple-interest pool."""

    accrual_index_scaled = Uint256Field()
    total_principal = Uint256Field()
    updated_at = models.DateTimeField(auto_now=True)

    def to_state(self) -> SimplePoolState:
        return SimplePoolState(
            accrual_index_scaled=self.accrual_index_scaled,
            total_principal=self.total_principal,
        )

    def apply_state(self, state: SimplePoolState) -> None:
        self.accrual_index_scaled = state.accrual_index_scaled
        self.total_principal = state.total_principal
        self.save(update_fields=["accrual_index_scaled", "total_principal", "updated_at"])


class SimpleStakeAccount(models.Model):
    """Each staker's principal/snapshot/earned view of the simple pool."""

    user = models.OneToOneField(MarketUser, on_delete=models.CASCADE, related_name="simple_stake")
    principal = Uint256Field()
    accrual_snapshot = Uint256Field()
    earned = Uint256Field()
    updated_at = models.DateTimeField(auto_now=True)

    def to_checkpoint(self) -> StakeCheckpoint:
        return StakeCheckpoint(
            principal=self.principal,
            accrual_snapshot=self.accrual_snapshot,
            earned=self.earned,
        )

    def apply_checkpoint(self, checkpoint: StakeCheckpoint) -> None:
        self.principal = checkpoint.principal
        self.accrual_snapshot = checkpoint.accrual_snapshot
        self.earned = checkpoint.earned
        self.save(update_fields=["principal", "accrual_snapshot", "earned", "updated_at"])


class CompoundStakeVault(SingletonModel):
    """Base asset backing all outstanding vault shares."""

    total_pooled = Uint256Field()
    updated_at = models.DateTimeField(auto_now=True)

    def to_state(self) -> VaultState:
        return VaultState(total_pooled=self.total_pooled)

    def apply_state(self, state: VaultState) -> None:
        self.total_pooled = state.total_pooled
        self.save(update_fields=["total_pooled", "updated_at"])


class StakeEvent(models.Model):
    """Stake/unstake audit trail for both pools."""

    POOL = [("simple", "Simple"), ("compound", "Compound")]
    KIND = [("stake", "Stake"), ("unstake", "Unstake")]
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(MarketUser, on_delete=models.CASCADE, related_name="stake_events")
    pool = models.CharField(max_length=8, choices=POOL, db_index=True)
    kind = models.CharField(max_length=8, choices=KIND, db_index=True)
    amount = Uint256Field()  # base asset in (stake) or principal/assets out (unstake)
    shares = Uint256Field()  # compound only
    interest_out = Uint256Field()  # simple unstake only
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [models.Index(fields=["user", "pool", "created_at"])]


class PoolSnapshot(models.Model):
    """Periodic snapshot (Celery beat) for reporting & reconciliation."""
    at = models.DateTimeField(primary_key=True)
    simple_total_principal = Uint256Field()
    accrual_index_scaled = Uint256Field()
    compound_total_pooled = Uint256Field()
    compound_total_supply = Uint256Field()
