from __future__ import annotations

import logging

from celery import shared_task
from django.db import transaction
from django.utils import timezone

from marketplace.apps.tokens.models import ShareToken
from .models import CompoundStakeVault, PoolSnapshot, SimpleStakePool

logger = logging.getLogger(__name__)


@shared_task(queue="settlement")
def snapshot_pools() -> dict:
    """
    Record pool totals for reporting & reconciliation.
    Runs on the settlement queue so it never observes a half-applied sale.
    """
    with transaction.atomic():
        simple = SimpleStakePool.load(lock=True)
        vault = CompoundStakeVault.load(lock=True)
        token = ShareToken.load()
        snapshot = PoolSnapshot.objects.create(
            at=timezone.now(),
            simple_total_principal=simple.total_principal,
            accrual_index_scaled=simple.accrual_index_scaled,
            compound_total_pooled=vault.total_pooled,
            compound_total_supply=token.total_supply,
        )

    logger.info(f"Pool snapshot at {snapshot.at.isoformat()}")
    # uint256 values as strings keep the task result JSON-safe
    return {
        "at": snapshot.at.isoformat(),
        "simple_total_principal": str(snapshot.simple_total_principal),
        "accrual_index_scaled": str(snapshot.accrual_index_scaled),
        "compound_total_pooled": str(snapshot.compound_total_pooled),
        "compound_total_supply": str(snapshot.compound_total_supply),
    }
