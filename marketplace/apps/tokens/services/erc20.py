"""
ERC20 Contract Service
Balances, allowances and operator-driven pulls of payment tokens
"""

from typing import Optional, Dict, Any
from django.conf import settings
import logging
from .base_contract import BaseContractService

logger = logging.getLogger(__name__)


class ERC20TokenService(BaseContractService):
    """Service for interacting with an arbitrary ERC20 payment token"""

    def __init__(self, token_address: str, abi_path: Optional[str] = None, **kwargs):
        super().__init__(
            contract_address=token_address,
            abi_path=abi_path or settings.ERC20_ABI_PATH,
            **kwargs,
        )

    # ============================================================
    # READ-ONLY FUNCTIONS
    # ============================================================

    def get_balance(self, address: str) -> int:
        """Raw token balance (smallest unit) of an address"""
        return self.call_read_function('balanceOf', self.checksum_address(address))

    def get_allowance(self, owner: str, spender: str) -> int:
        """Raw allowance granted by owner to spender"""
        return self.call_read_function(
            'allowance', self.checksum_address(owner), self.checksum_address(spender)
        )

    # ============================================================
    # WRITE FUNCTIONS (Operator)
    # ============================================================

    def pull_from(self, owner: str, amount: int) -> Dict[str, Any]:
        """
        transferFrom(owner -> operator) using the operator key.
        The owner must have approved the operator for at least `amount`.

        Args:
            owner: Address the tokens are pulled from
            amount: Raw token amount

        Returns:
            Transaction details
        """
        owner = self.checksum_address(owner)
        logger.info(f"Pulling {amount} of {self.contract_address} from {owner}")
        function = self.contract.functions.transferFrom(owner, self.checksum_address(settings.OPERATOR_ADDRESS), amount)
        return self.transact(function)

    def approve(self, spender: str, amount: int) -> Dict[str, Any]:
        """Approve `spender` to move the operator's tokens"""
        function = self.contract.functions.approve(self.checksum_address(spender), amount)
        return self.transact(function)

    def transfer(self, to_address: str, amount: int) -> Dict[str, Any]:
        """transfer(operator -> to_address), used to hand tokens back to buyers"""
        to_address = self.checksum_address(to_address)
        logger.info(f"Sending {amount} of {self.contract_address} to {to_address}")
        function = self.contract.functions.transfer(to_address, amount)
        return self.transact(function)
