"""
Compound (share-based) staking vault service.
"""

from dataclasses import dataclass
from typing import Optional
import logging
from django.db import transaction

from marketplace.apps.ledger.services import SettlementLedgerService
from marketplace.apps.tokens.services.share_token import ShareTokenLedger
from marketplace.apps.users.models import MarketUser
from .. import accounting
from ..models import CompoundStakeVault, StakeEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VaultView:
    total_pooled: int
    total_supply: int


class CompoundVaultService:
    """Deposits mint shares against pooled assets; withdrawals burn them."""

    def __init__(
        self,
        ledger: Optional[SettlementLedgerService] = None,
        share_token: Optional[ShareTokenLedger] = None,
    ):
        self.ledger = ledger or SettlementLedgerService()
        self.share_token = share_token or ShareTokenLedger()

    def deposit(self, user: MarketUser, amount: int, reason: str = "stake") -> int:
        """Pool `amount` on behalf of `user`; returns the shares minted to them."""
        with transaction.atomic():
            vault = CompoundStakeVault.load(lock=True)
            total_supply = self.share_token.total_supply(lock=True)
            state = vault.to_state()

            shares = accounting.deposit(state, total_supply, amount)
            if shares == 0:
                logger.warning(
                    f"Deposit of {amount} by {user.address} mints no shares "
                    f"(pooled={vault.total_pooled}, supply={total_supply})"
                )

            self.share_token.mint(user, shares, reason=reason)
            vault.apply_state(state)
            StakeEvent.objects.create(
                user=user, pool="compound", kind="stake", amount=amount, shares=shares
            )

        logger.info(
            f"Vault deposit {amount} by {user.address} -> {shares} shares "
            f"(pooled={state.total_pooled}, supply={total_supply + shares})"
        )
        return shares

    def withdraw(self, user: MarketUser, shares: int) -> int:
        """Burn `shares`; the redeemed assets are credited to the ledger and returned."""
        with transaction.atomic():
            vault = CompoundStakeVault.load(lock=True)
            total_supply = self.share_token.total_supply(lock=True)
            state = vault.to_state()

            amount = accounting.withdraw(state, total_supply, shares)

            self.share_token.burn(user, shares, reason="unstake")
            vault.apply_state(state)
            event = StakeEvent.objects.create(
                user=user, pool="compound", kind="unstake", amount=amount, shares=shares
            )
            self.ledger.credit(user, amount, reason="compound_unstake", reference=str(event.id))

        logger.info(f"Vault withdraw {shares} shares by {user.address} -> {amount}")
        return amount

    def share_value(self, shares: int) -> int:
        """Base-asset value of `shares` at the current ratio (truncated)."""
        view = self.vault_view()
        return accounting.assets_for_shares(
            accounting.VaultState(total_pooled=view.total_pooled), view.total_supply, shares
        )

    def vault_view(self) -> VaultView:
        return VaultView(
            total_pooled=CompoundStakeVault.load().total_pooled,
            total_supply=self.share_token.total_supply(),
        )
