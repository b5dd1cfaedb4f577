"""
Purchase settlement: ties one NFT sale to both staking pools.

For every sale the fee is computed once and applied twice: it is accrued into
the simple pool (only while that pool holds principal) and deposited into the
compound vault on behalf of the seller. The seller's ledger receives what is
left. Everything happens in one database transaction, so a failure at any step
leaves no trace of the sale.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional
import logging
from django.db import transaction

from marketplace.exceptions import (
    ExternalOperationError,
    InvalidAmountError,
    NotListedError,
    PaymentFailedError,
    ZeroAmountError,
)
from marketplace.apps.ledger.services import SettlementLedgerService
from marketplace.apps.pool.models import SimpleStakePool
from marketplace.apps.pool.services import CompoundVaultService, SimpleStakePoolService
from marketplace.apps.users.models import MarketUser
from ..fees import FeeRate, MARKETPLACE_FEE_RATE
from ..models import Listing, Sale

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SettlementResult:
    sale_id: str
    price: int
    fee: int
    simple_fee: int
    compound_fee: int
    shares_minted: int
    seller_proceeds: int

    def as_dict(self) -> Dict[str, Any]:
        # uint256 values as strings keep JSON consumers exact
        return {k: (v if isinstance(v, str) else str(v)) for k, v in asdict(self).items()}


class PurchaseSettlementService:
    """Fee split and seller credit for completed sales."""

    def __init__(
        self,
        simple_pool: Optional[SimpleStakePoolService] = None,
        vault: Optional[CompoundVaultService] = None,
        ledger: Optional[SettlementLedgerService] = None,
        fee_rate: FeeRate = MARKETPLACE_FEE_RATE,
        payment_collector=None,
        nft_transfer=None,
    ):
        # The fee is taken twice from the price, so it must not exceed half of it.
        if 2 * fee_rate.significand > 10**fee_rate.fraction_digits:
            raise ValueError(f"fee rate {fee_rate} leaves the seller negative proceeds")
        self.fee_rate = fee_rate
        self.ledger = ledger or SettlementLedgerService()
        self.simple_pool = simple_pool or SimpleStakePoolService(ledger=self.ledger)
        self.vault = vault or CompoundVaultService(ledger=self.ledger)
        self._payment_collector = payment_collector
        self._nft_transfer = nft_transfer

    @property
    def payment_collector(self):
        if self._payment_collector is None:
            from marketplace.apps.tokens.services.collaborators import Web3PaymentCollector

            self._payment_collector = Web3PaymentCollector()
        return self._payment_collector

    @property
    def nft_transfer(self):
        if self._nft_transfer is None:
            from marketplace.apps.tokens.services.collaborators import Web3NftTransfer

            self._nft_transfer = Web3NftTransfer()
        return self._nft_transfer

    def settle_purchase(
        self,
        price: int,
        seller: MarketUser,
        *,
        listing: Optional[Listing] = None,
        buyer: str = "",
        payment_token: str = "",
        payment_tx_hash: Optional[str] = None,
        transfer_tx_hash: Optional[str] = None,
    ) -> SettlementResult:
        """
        Split the fee on `price` between both pools and credit the seller.

        Pre: price > 0
        Post: simple pool index += fee * MANTISSA / total_principal (only if total_principal > 0)
        Post: vault pooled += fee, seller receives the minted shares
        Post: seller ledger += price - simple_fee - compound_fee
        """
        if price == 0:
            raise ZeroAmountError("sale price must be greater than zero")
        if price < 0:
            raise InvalidAmountError(f"negative sale price {price}")

        fee = self.fee_rate.fee(price)

        with transaction.atomic():
            pool = SimpleStakePool.load(lock=True)
            simple_fee = 0
            if pool.total_principal != 0:
                simple_fee = fee
                self.simple_pool.accrue(simple_fee)

            # Always applied; an empty vault bootstraps at 1:1.
            compound_fee = fee
            shares = 0
            if compound_fee > 0:
                shares = self.vault.deposit(seller, compound_fee, reason="sale_fee")

            proceeds = price - simple_fee - compound_fee
            sale = Sale.objects.create(
                listing=listing,
                seller=seller,
                buyer=buyer,
                payment_token=payment_token,
                price=price,
                fee=fee,
                simple_fee=simple_fee,
                compound_fee=compound_fee,
                shares_minted=shares,
                seller_proceeds=proceeds,
                payment_tx_hash=payment_tx_hash,
                transfer_tx_hash=transfer_tx_hash,
            )
            self.ledger.credit(seller, proceeds, reason="sale_proceeds", reference=str(sale.id))

        logger.info(
            f"Settled sale {sale.id}: price={price} fee={fee} simple={simple_fee} "
            f"compound={compound_fee} shares={shares} proceeds={proceeds} seller={seller.address}"
        )
        return SettlementResult(
            sale_id=str(sale.id),
            price=price,
            fee=fee,
            simple_fee=simple_fee,
            compound_fee=compound_fee,
            shares_minted=shares,
            seller_proceeds=proceeds,
        )

    def purchase(self, listing_id: int, buyer: str, payment_token: str) -> SettlementResult:
        """
        Full sale of a listed item: resolve price, collect payment, move the NFT,
        settle, delist.

        The payment is refunded to the buyer when any later step fails.
        """
        with transaction.atomic():
            listing = (
                Listing.objects.select_for_update()
                .select_related("seller")
                .filter(pk=listing_id)
                .first()
            )
            if listing is None or not listing.is_listed:
                raise NotListedError(f"listing {listing_id} is not listed")
            price = listing.price

            receipt = self.payment_collector.collect(buyer, payment_token, price)
            # From here on the buyer has paid; any failure hands the payment back.
            try:
                if receipt.amount < price:
                    raise PaymentFailedError(
                        f"collected {receipt.amount} of base asset, price is {price}"
                    )
                if receipt.amount > price:
                    logger.warning(
                        f"Collected {receipt.amount - price} above price for listing {listing_id}"
                    )

                transfer_tx_hash = self.nft_transfer.transfer(
                    listing.collection, listing.token_id, listing.seller.address, buyer
                )
                result = self.settle_purchase(
                    price,
                    listing.seller,
                    listing=listing,
                    buyer=buyer,
                    payment_token=payment_token,
                    payment_tx_hash=receipt.tx_hash,
                    transfer_tx_hash=transfer_tx_hash,
                )

                listing.price = 0
                listing.save(update_fields=["price", "updated_at"])
            except Exception as e:
                self._refund(buyer, receipt, listing_id, e)
                raise

        return result

    def _refund(self, buyer: str, receipt, listing_id: int, cause: Exception) -> None:
        """Return a collected payment after the sale could not complete"""
        if receipt.amount == 0:
            return
        logger.error(f"Purchase of listing {listing_id} failed after payment ({cause}), refunding {buyer}")
        try:
            tx_hash = self.payment_collector.refund(buyer, receipt)
        except ExternalOperationError:
            # The original failure is the one the caller sees; the refund needs manual follow-up.
            logger.exception(
                f"Refund of {receipt.amount} to {buyer} for listing {listing_id} failed "
                f"(payment tx {receipt.tx_hash})"
            )
            return
        logger.info(f"Refunded {receipt.amount} to {buyer} for listing {listing_id}: {tx_hash}")
