"""
Settlement ledger: per-account withdrawable base-asset balance.

Credited by sales (seller proceeds) and by unstakes from either pool; debited by
withdrawals that pay the balance out in native currency.
"""

from typing import Optional
import logging
from django.db import transaction

from marketplace.exceptions import ExceedsBalanceError, InvalidAmountError
from marketplace.apps.users.models import MarketUser
from ..models import LedgerBalance, LedgerEntry

logger = logging.getLogger(__name__)


class SettlementLedgerService:
    def __init__(self, native_payout=None):
        self._native_payout = native_payout

    @property
    def native_payout(self):
        if self._native_payout is None:
            from marketplace.apps.tokens.services.collaborators import Web3NativePayout

            self._native_payout = Web3NativePayout()
        return self._native_payout

    def balance_of(self, user: MarketUser) -> int:
        bal = LedgerBalance.objects.filter(user=user).first()
        return bal.balance if bal else 0

    def credit(self, user: MarketUser, amount: int, reason: str, reference: str = "") -> Optional[LedgerEntry]:
        """Credit `amount` to the user. Zero credits leave no entry."""
        if amount < 0:
            raise InvalidAmountError(f"cannot credit {amount}")
        if amount == 0:
            return None
        entry = LedgerEntry.objects.create(
            user=user, kind="credit", amount=amount, reason=reason, reference=reference
        )
        logger.info(f"Ledger credit {amount} to {user.address} ({reason})")
        return entry

    def withdraw(self, user: MarketUser, value: int) -> Optional[LedgerEntry]:
        """
        Convert `value` of ledger credit to native currency sent to the user.

        The debit and the payout succeed or fail together. A zero withdrawal is
        a no-op and returns None, like a zero credit.
        """
        if value < 0:
            raise InvalidAmountError(f"cannot withdraw {value}")
        if value == 0:
            return None

        with transaction.atomic():
            bal = LedgerBalance.objects.select_for_update().filter(user=user).first()
            available = bal.balance if bal else 0
            if value > available:
                raise ExceedsBalanceError(f"withdrawal of {value} exceeds balance {available}")
            entry = LedgerEntry.objects.create(
                user=user, kind="debit", amount=value, reason="withdrawal"
            )
            entry.tx_hash = self.native_payout.pay(user.address, value)
            entry.save(update_fields=["tx_hash"])

        logger.info(f"Ledger withdrawal {value} by {user.address} (tx: {entry.tx_hash})")
        return entry
