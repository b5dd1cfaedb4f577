"""
On-chain collaborators used by settlement and ledger withdrawals.

Each collaborator is a small protocol plus a web3-backed implementation. Any
failure is re-raised as the matching ExternalOperationError subclass so the
caller's database transaction rolls back.
"""

from dataclasses import dataclass
from typing import Optional, Protocol
import logging

from django.conf import settings
from web3.exceptions import Web3Exception

from marketplace.exceptions import PaymentFailedError, PayoutFailedError, TransferFailedError
from .erc20 import ERC20TokenService
from .nft import ERC721Service
from .swap_router import SwapRouterService
from .weth import WETHService

logger = logging.getLogger(__name__)

# Errors a web3 call can surface: RPC/contract errors, reverted receipts,
# provider connection problems and nonce conflicts.
CHAIN_ERRORS = (Web3Exception, RuntimeError, ConnectionError, ValueError, TimeoutError)


@dataclass(frozen=True)
class PaymentReceipt:
    amount: int  # base asset (WETH wei) actually collected
    tx_hash: Optional[str] = None
    payment_token_spent: Optional[int] = None


class PaymentCollector(Protocol):
    def collect(self, buyer: str, payment_token: str, price: int) -> PaymentReceipt:
        ...

    def refund(self, buyer: str, receipt: PaymentReceipt) -> Optional[str]:
        ...


class NftTransfer(Protocol):
    def transfer(self, collection: str, token_id: int, seller: str, buyer: str) -> Optional[str]:
        ...


class NativePayout(Protocol):
    def pay(self, address: str, value: int) -> Optional[str]:
        ...


class Web3PaymentCollector:
    """Collects `price` WETH from the buyer, swapping the payment token when needed."""

    def __init__(self, weth: Optional[WETHService] = None, router: Optional[SwapRouterService] = None):
        self.weth = weth
        self.router = router
        self.slippage_bps = settings.PAYMENT_SLIPPAGE_BPS

    def collect(self, buyer: str, payment_token: str, price: int) -> PaymentReceipt:
        try:
            weth = self.weth or WETHService()
            if payment_token.lower() == weth.contract_address.lower():
                result = weth.pull_from(buyer, price)
                return PaymentReceipt(amount=price, tx_hash=result["tx_hash"], payment_token_spent=price)
            return self._collect_by_swap(weth, buyer, payment_token, price)
        except CHAIN_ERRORS as e:
            logger.error(f"Payment collection from {buyer} in {payment_token} failed: {e}")
            raise PaymentFailedError(str(e)) from e

    def _collect_by_swap(self, weth: WETHService, buyer: str, payment_token: str, price: int) -> PaymentReceipt:
        """
        Pull the quoted input plus slippage, swap it for exactly `price` WETH and
        send whatever the router did not spend back to the buyer.
        """
        operator = settings.OPERATOR_ADDRESS
        router = self.router or SwapRouterService(web3=weth.web3)
        path = [payment_token, weth.contract_address]
        quoted_in = router.quote_amount_in(price, path)
        max_in = quoted_in + quoted_in * self.slippage_bps // 10_000

        token = ERC20TokenService(payment_token, web3=weth.web3)
        token_before = token.get_balance(operator)
        token.pull_from(buyer, max_in)
        try:
            token.approve(router.contract_address, max_in)
            weth_before = weth.get_balance(operator)
            result = router.swap_for_exact(price, max_in, path)
            collected = weth.get_balance(operator) - weth_before
        except CHAIN_ERRORS:
            self._return_tokens(token, buyer, token.get_balance(operator) - token_before)
            raise

        spent = token_before + max_in - token.get_balance(operator)
        token.approve(router.contract_address, 0)
        self._return_tokens(token, buyer, max_in - spent)
        logger.info(f"Swapped {spent} of {payment_token} (max {max_in}) into {collected} WETH for {buyer}")
        return PaymentReceipt(amount=collected, tx_hash=result["tx_hash"], payment_token_spent=spent)

    @staticmethod
    def _return_tokens(token: ERC20TokenService, buyer: str, amount: int) -> None:
        if amount > 0:
            token.transfer(buyer, amount)

    def refund(self, buyer: str, receipt: PaymentReceipt) -> Optional[str]:
        """Send the collected WETH back to the buyer (swapped payments come back as WETH)"""
        try:
            weth = self.weth or WETHService()
            result = weth.transfer(buyer, receipt.amount)
        except CHAIN_ERRORS as e:
            logger.error(f"Refund of {receipt.amount} WETH to {buyer} failed: {e}")
            raise PaymentFailedError(str(e)) from e
        return result["tx_hash"]


class Web3NftTransfer:
    def __init__(self, web3=None):
        self.web3 = web3

    def transfer(self, collection: str, token_id: int, seller: str, buyer: str) -> Optional[str]:
        try:
            nft = ERC721Service(collection, web3=self.web3)
            result = nft.safe_transfer(seller, buyer, token_id)
        except CHAIN_ERRORS as e:
            logger.error(f"Transfer of {collection}#{token_id} to {buyer} failed: {e}")
            raise TransferFailedError(str(e)) from e
        return result["tx_hash"]


class Web3NativePayout:
    """Unwraps WETH and sends native currency to the account."""

    def __init__(self, weth: Optional[WETHService] = None):
        self.weth = weth

    def pay(self, address: str, value: int) -> Optional[str]:
        try:
            weth = self.weth or WETHService()
            result = weth.pay_native(address, value)
        except CHAIN_ERRORS as e:
            logger.error(f"Native payout of {value} to {address} failed: {e}")
            raise PayoutFailedError(str(e)) from e
        return result["tx_hash"]
