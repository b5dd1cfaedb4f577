from .settlement_ledger import SettlementLedgerService

__all__ = ["SettlementLedgerService"]
