from .base_contract import BaseContractService
from .erc20 import ERC20TokenService
from .weth import WETHService
from .nft import ERC721Service
from .swap_router import SwapRouterService
from .share_token import ShareTokenLedger
from .collaborators import (
    PaymentReceipt,
    Web3PaymentCollector,
    Web3NftTransfer,
    Web3NativePayout,
)

__all__ = [
    "BaseContractService",
    "ERC20TokenService",
    "WETHService",
    "ERC721Service",
    "SwapRouterService",
    "ShareTokenLedger",
    "PaymentReceipt",
    "Web3PaymentCollector",
    "Web3NftTransfer",
    "Web3NativePayout",
]
