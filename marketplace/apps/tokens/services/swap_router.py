"""
Swap Router Contract Service
Quotes and exact-output swaps of payment tokens into WETH (UniswapV2-style router)
"""

from typing import List, Dict, Any
from django.conf import settings
import logging
from .base_contract import BaseContractService

logger = logging.getLogger(__name__)


class SwapRouterService(BaseContractService):
    """Service for interacting with the swap router"""

    def __init__(self, **kwargs):
        super().__init__(
            contract_address=settings.SWAP_ROUTER_ADDRESS,
            abi_path=settings.SWAP_ROUTER_ABI_PATH,
            **kwargs,
        )

    def quote_amount_in(self, amount_out: int, path: List[str]) -> int:
        """Input amount required on path[0] to receive exactly `amount_out` of path[-1]"""
        path = [self.checksum_address(p) for p in path]
        amounts = self.call_read_function('getAmountsIn', amount_out, path)
        return amounts[0]

    def swap_for_exact(self, amount_out: int, amount_in_max: int, path: List[str]) -> Dict[str, Any]:
        """
        swapTokensForExactTokens to the operator

        Args:
            amount_out: Exact amount of path[-1] to receive
            amount_in_max: Upper bound of path[0] to spend (slippage bound)
            path: Token route

        Returns:
            Transaction details
        """
        path = [self.checksum_address(p) for p in path]
        deadline = self.get_block_timestamp() + settings.PAYMENT_SWAP_DEADLINE_SECONDS
        logger.info(f"Swapping up to {amount_in_max} of {path[0]} for {amount_out} of {path[-1]}")
        function = self.contract.functions.swapTokensForExactTokens(
            amount_out,
            amount_in_max,
            path,
            self.checksum_address(settings.OPERATOR_ADDRESS),
            deadline,
        )
        return self.transact(function)
