"""
Named failures for marketplace operations.

Every rejected precondition maps to one taxonomy ``code`` so callers (HTTP views,
Celery tasks, management commands) can tell failures apart without parsing
messages.
"""


class MarketplaceError(Exception):
    """Base class for every marketplace failure."""

    code = "marketplace-error"


class ZeroAmountError(MarketplaceError, ValueError):
    """A stake, deposit or sale was requested with a zero quantity."""

    code = "zero-amount"


class InvalidAmountError(MarketplaceError, ValueError):
    """An unstake/withdraw asked for more than is available, or for nothing."""

    code = "invalid-amount"


class ExceedsBalanceError(MarketplaceError, ValueError):
    """A ledger withdrawal asked for more than the credited balance."""

    code = "exceeds-balance"


class NotListedError(MarketplaceError, LookupError):
    """The listing resolved to a zero price."""

    code = "not-listed"


class ExternalOperationError(MarketplaceError, RuntimeError):
    """A collaborator (payment, swap, transfer, payout) reported failure."""

    code = "external-operation-failure"


class PaymentFailedError(ExternalOperationError):
    code = "payment-failure"


class TransferFailedError(ExternalOperationError):
    code = "transfer-failure"


class PayoutFailedError(ExternalOperationError):
    code = "payout-failure"
