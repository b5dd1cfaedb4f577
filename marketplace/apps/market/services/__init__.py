from .settlement import PurchaseSettlementService, SettlementResult
from .status_store import SettlementStatusStore

__all__ = ["PurchaseSettlementService", "SettlementResult", "SettlementStatusStore"]
