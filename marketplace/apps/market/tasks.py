from __future__ import annotations

import logging

from celery import shared_task

from marketplace.exceptions import MarketplaceError
from .services import PurchaseSettlementService, SettlementStatusStore

logger = logging.getLogger(__name__)


@shared_task(queue="settlement", bind=True)
def process_purchase(self, listing_id: int, buyer: str, payment_token: str, task_id: str = None) -> dict:
    """
    Collect payment, transfer the NFT and settle the sale for one listing.
    The settlement queue has a single worker, so sales are applied one at a time.
    Progress is mirrored to the status store for the polling endpoint.
    """
    task_id = task_id or self.request.id
    status_store = SettlementStatusStore()

    try:
        status_store.update_stage(task_id, "settling")
        result = PurchaseSettlementService().purchase(listing_id, buyer, payment_token)
    except MarketplaceError as e:
        logger.error(f"Purchase of listing {listing_id} by {buyer} failed: {e.code}: {e}")
        status_store.set_error(task_id, str(e), code=e.code)
        raise
    except Exception as e:
        logger.exception(f"Purchase of listing {listing_id} by {buyer} crashed")
        status_store.set_error(task_id, str(e))
        raise

    data = result.as_dict()
    status_store.set_success(task_id, data)
    return data
