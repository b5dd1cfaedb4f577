"""
Simple-interest staking pool service.

Loads the pool singleton and the account row under row locks, applies one
accounting operation and writes both back in the same transaction.
"""

from dataclasses import dataclass
from typing import Optional
import logging
from django.db import transaction

from marketplace.exceptions import InvalidAmountError
from marketplace.apps.ledger.services import SettlementLedgerService
from marketplace.apps.users.models import MarketUser
from .. import accounting
from ..models import SimpleStakeAccount, SimpleStakePool, StakeEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimpleAccountView:
    principal: int
    earned: int
    pending: int
    accrual_snapshot: int

    @property
    def claimable_interest(self) -> int:
        return self.earned + self.pending


class SimpleStakePoolService:
    """Stake, unstake, settle and fee accrual for the simple pool."""

    def __init__(self, ledger: Optional[SettlementLedgerService] = None):
        self.ledger = ledger or SettlementLedgerService()

    def _lock_account(self, user: MarketUser, create: bool = True) -> Optional[SimpleStakeAccount]:
        if not create:
            return SimpleStakeAccount.objects.select_for_update().filter(user=user).first()
        account, _ = SimpleStakeAccount.objects.select_for_update().get_or_create(user=user)
        return account

    def stake(self, user: MarketUser, amount: int) -> SimpleStakeAccount:
        with transaction.atomic():
            pool = SimpleStakePool.load(lock=True)
            account = self._lock_account(user)
            pool_state, checkpoint = pool.to_state(), account.to_checkpoint()

            accounting.stake(pool_state, checkpoint, amount)

            pool.apply_state(pool_state)
            account.apply_checkpoint(checkpoint)
            StakeEvent.objects.create(user=user, pool="simple", kind="stake", amount=amount)

        logger.info(
            f"Simple stake {amount} by {user.address}: principal={checkpoint.principal} "
            f"total={pool_state.total_principal}"
        )
        return account

    def unstake(self, user: MarketUser, amount: int) -> int:
        """Returns principal plus prorated interest credited to the ledger."""
        with transaction.atomic():
            pool = SimpleStakePool.load(lock=True)
            account = self._lock_account(user, create=False)
            if account is None:
                raise InvalidAmountError(f"{user.address} has no simple stake to withdraw {amount} from")
            pool_state, checkpoint = pool.to_state(), account.to_checkpoint()

            principal_out, interest_out = accounting.unstake(pool_state, checkpoint, amount)

            pool.apply_state(pool_state)
            account.apply_checkpoint(checkpoint)
            payout = principal_out + interest_out
            event = StakeEvent.objects.create(
                user=user,
                pool="simple",
                kind="unstake",
                amount=principal_out,
                interest_out=interest_out,
            )
            self.ledger.credit(user, payout, reason="simple_unstake", reference=str(event.id))

        logger.info(
            f"Simple unstake {principal_out} (+{interest_out} interest) by {user.address}"
        )
        return payout

    def settle(self, user: MarketUser) -> int:
        """Crystallise the account's pending interest; returns the amount settled."""
        with transaction.atomic():
            pool = SimpleStakePool.load(lock=True)
            account = self._lock_account(user, create=False)
            if account is None:
                return 0
            checkpoint = account.to_checkpoint()
            settled = accounting.settle(pool.to_state(), checkpoint)
            account.apply_checkpoint(checkpoint)
        return settled

    def accrue(self, fee: int) -> bool:
        """Route a fee into the pool. No-op (False) while the pool holds no principal."""
        with transaction.atomic():
            pool = SimpleStakePool.load(lock=True)
            pool_state = pool.to_state()
            accrued = accounting.accrue(pool_state, fee)
            if accrued:
                pool.apply_state(pool_state)

        if accrued:
            logger.info(f"Accrued fee {fee}: index={pool_state.accrual_index_scaled}")
        else:
            logger.warning(f"Skipped accrual of fee {fee}: simple pool has no principal")
        return accrued

    def total_principal(self) -> int:
        return SimpleStakePool.load().total_principal

    def account_view(self, user: MarketUser) -> SimpleAccountView:
        pool_state = SimpleStakePool.load().to_state()
        account = SimpleStakeAccount.objects.filter(user=user).first()
        checkpoint = account.to_checkpoint() if account else accounting.StakeCheckpoint()
        return SimpleAccountView(
            principal=checkpoint.principal,
            earned=checkpoint.earned,
            pending=accounting.pending_interest(pool_state, checkpoint),
            accrual_snapshot=checkpoint.accrual_snapshot,
        )
