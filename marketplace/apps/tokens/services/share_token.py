"""
Share token ledger: the fungible receipt minted/burned by the compound vault.
Exposes the mint / burn / total_supply contract the vault relies on.
"""

from typing import Optional
import logging
from django.db import transaction

from marketplace.exceptions import InvalidAmountError
from marketplace.apps.users.models import MarketUser
from ..models import ShareBalance, ShareEvent, ShareToken

logger = logging.getLogger(__name__)


class ShareTokenLedger:
    """DB-backed share token. Balances move only through ShareEvent rows."""

    def total_supply(self, lock: bool = False) -> int:
        return ShareToken.load(lock=lock).total_supply

    def balance_of(self, user: MarketUser) -> int:
        bal = ShareBalance.objects.filter(user=user).first()
        return bal.balance if bal else 0

    def mint(self, user: MarketUser, amount: int, reason: str = "", meta: Optional[dict] = None) -> None:
        if amount < 0:
            raise InvalidAmountError(f"cannot mint {amount} shares")
        with transaction.atomic():
            ShareEvent.objects.create(user=user, kind="mint", amount=amount, reason=reason, meta=meta or {})
        logger.info(f"Minted {amount} shares to {user.address} ({reason})")

    def burn(self, user: MarketUser, amount: int, reason: str = "", meta: Optional[dict] = None) -> None:
        with transaction.atomic():
            bal = ShareBalance.objects.select_for_update().filter(user=user).first()
            held = bal.balance if bal else 0
            if amount <= 0 or amount > held:
                raise InvalidAmountError(f"cannot burn {amount} shares, holder has {held}")
            ShareEvent.objects.create(user=user, kind="burn", amount=amount, reason=reason, meta=meta or {})
        logger.info(f"Burned {amount} shares from {user.address} ({reason})")
