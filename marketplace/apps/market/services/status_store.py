"""
Redis-based store for tracking asynchronous purchase settlement.
"""

import json
import time
from typing import Optional, Dict, Any
from redis import Redis
from django.conf import settings


KEY_PREFIX = "settlement:status:"


class SettlementStatusStore:
    """Stage and outcome of a queued purchase, keyed by Celery task id."""

    def __init__(self, redis_client: Optional[Redis] = None, ttl: Optional[int] = None):
        self.redis = redis_client or Redis.from_url(
            getattr(settings, "CELERY_BROKER_URL", "redis://redis:6379/0")
        )
        self.ttl = ttl or settings.SETTLEMENT_STATUS_TTL

    def _key(self, task_id: str) -> str:
        return f"{KEY_PREFIX}{task_id}"

    def _load(self, task_id: str) -> Optional[Dict[str, Any]]:
        raw = self.redis.get(self._key(task_id))
        if not raw:
            return None
        return json.loads(raw)

    def _save(self, task_id: str, data: Dict[str, Any]) -> None:
        data["updated_at"] = int(time.time())
        self.redis.setex(self._key(task_id), self.ttl, json.dumps(data))

    def create(self, task_id: str, listing_id: int, buyer: str, payment_token: str) -> None:
        now = int(time.time())
        data = {
            "task_id": task_id,
            "listing_id": listing_id,
            "buyer": buyer,
            "payment_token": payment_token,
            "status": "pending",
            "stage": "queued",
            "created_at": now,
            "error": None,
            "error_code": None,
        }
        self._save(task_id, data)

    def update_stage(self, task_id: str, stage: str, **kwargs) -> None:
        data = self._load(task_id)
        if data is None:
            return
        data["stage"] = stage
        data.update(kwargs)
        self._save(task_id, data)

    def set_success(self, task_id: str, result: Dict[str, Any]) -> None:
        data = self._load(task_id)
        if data is None:
            return
        data.update({"status": "success", "stage": "completed"})
        data.update(result)
        self._save(task_id, data)

    def set_error(self, task_id: str, error: str, code: Optional[str] = None) -> None:
        data = self._load(task_id)
        if data is None:
            return
        data.update({"status": "error", "error": error, "error_code": code})
        self._save(task_id, data)

    def get(self, task_id: str) -> Optional[Dict[str, Any]]:
        return self._load(task_id)

    def delete(self, task_id: str) -> None:
        self.redis.delete(self._key(task_id))
