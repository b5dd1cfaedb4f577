"""
WETH Contract Service
The marketplace base asset: every sale settles in WETH, ledger withdrawals unwrap it
"""

from typing import Dict, Any
from django.conf import settings
import logging
from .erc20 import ERC20TokenService

logger = logging.getLogger(__name__)


class WETHService(ERC20TokenService):
    """Wrapped ether: ERC20 plus deposit/withdraw of native currency"""

    def __init__(self, **kwargs):
        super().__init__(
            token_address=settings.WETH_ADDRESS,
            abi_path=settings.WETH_ABI_PATH,
            **kwargs,
        )

    def unwrap(self, amount: int) -> Dict[str, Any]:
        """withdraw(amount): burn operator WETH for native currency"""
        logger.info(f"Unwrapping {amount} wei of WETH")
        function = self.contract.functions.withdraw(amount)
        return self.transact(function)

    def pay_native(self, to_address: str, amount: int) -> Dict[str, Any]:
        """Unwrap `amount` and forward it as native currency to `to_address`"""
        self.unwrap(amount)
        result = self.send_native(to_address, amount)
        logger.info(f"Paid {amount} wei to {to_address} (tx: {result['tx_hash']})")
        return result
