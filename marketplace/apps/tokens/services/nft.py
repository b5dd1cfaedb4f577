"""
ERC721 Contract Service
Custody moves of sold items, executed by the approved marketplace operator
"""

from typing import Optional, Dict, Any
from django.conf import settings
import logging
from .base_contract import BaseContractService

logger = logging.getLogger(__name__)


class ERC721Service(BaseContractService):
    """Service for interacting with one ERC721 collection"""

    def __init__(self, collection_address: str, abi_path: Optional[str] = None, **kwargs):
        super().__init__(
            contract_address=collection_address,
            abi_path=abi_path or settings.ERC721_ABI_PATH,
            **kwargs,
        )

    def owner_of(self, token_id: int) -> str:
        return self.call_read_function('ownerOf', token_id)

    def is_operator_approved(self, owner: str) -> bool:
        return self.call_read_function(
            'isApprovedForAll',
            self.checksum_address(owner),
            self.checksum_address(settings.OPERATOR_ADDRESS),
        )

    def safe_transfer(self, from_address: str, to_address: str, token_id: int) -> Dict[str, Any]:
        """
        safeTransferFrom(from, to, tokenId) sent by the operator

        Args:
            from_address: Current owner (seller)
            to_address: Recipient (buyer)
            token_id: Token id within this collection

        Returns:
            Transaction details
        """
        from_address = self.checksum_address(from_address)
        to_address = self.checksum_address(to_address)
        logger.info(f"Transferring {self.contract_address}#{token_id} {from_address} -> {to_address}")
        function = self.contract.functions.safeTransferFrom(from_address, to_address, token_id)
        return self.transact(function)
