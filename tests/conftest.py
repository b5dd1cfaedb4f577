import pytest

from marketplace.exceptions import PaymentFailedError, PayoutFailedError, TransferFailedError
from marketplace.apps.ledger.services import SettlementLedgerService
from marketplace.apps.market.services import PurchaseSettlementService
from marketplace.apps.market.services import status_store
from marketplace.apps.pool.services import CompoundVaultService, SimpleStakePoolService
from marketplace.apps.tokens.services.collaborators import PaymentReceipt
from marketplace.apps.users.models import MarketUser

SELLER = "0x00000000000000000000000000000000000000a1"
BUYER = "0x00000000000000000000000000000000000000b2"
STAKER = "0x00000000000000000000000000000000000000c3"
COLLECTION = "0x00000000000000000000000000000000000000d4"
WETH = "0x00000000000000000000000000000000000000e5"


class FakePaymentCollector:
    def __init__(self, shortfall: int = 0, fail: bool = False, refund_fails: bool = False):
        self.shortfall = shortfall
        self.fail = fail
        self.refund_fails = refund_fails
        self.calls = []
        self.refunds = []

    def collect(self, buyer, payment_token, price):
        self.calls.append((buyer, payment_token, price))
        if self.fail:
            raise PaymentFailedError("swap reverted")
        return PaymentReceipt(amount=price - self.shortfall, tx_hash="0xpay", payment_token_spent=price)

    def refund(self, buyer, receipt):
        if self.refund_fails:
            raise PaymentFailedError("refund reverted")
        self.refunds.append((buyer, receipt.amount))
        return "0xrefund"


class FakeNftTransfer:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = []

    def transfer(self, collection, token_id, seller, buyer):
        self.calls.append((collection, token_id, seller, buyer))
        if self.fail:
            raise TransferFailedError("not approved")
        return "0xnft"


class FakeNativePayout:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = []

    def pay(self, address, value):
        self.calls.append((address, value))
        if self.fail:
            raise PayoutFailedError("insufficient operator balance")
        return "0xpayout"


class FakeRedis:
    """Just enough of redis-py for the status store."""

    def __init__(self):
        self.data = {}
        self.ttls = {}

    def get(self, key):
        return self.data.get(key)

    def setex(self, key, ttl, value):
        self.data[key] = value.encode() if isinstance(value, str) else value
        self.ttls[key] = ttl

    def delete(self, key):
        self.data.pop(key, None)
        self.ttls.pop(key, None)


@pytest.fixture
def make_user(db):
    def _make(address: str, **kwargs) -> MarketUser:
        return MarketUser.objects.create(address=address, **kwargs)

    return _make


@pytest.fixture
def seller(make_user):
    return make_user(SELLER, username="seller")


@pytest.fixture
def staker(make_user):
    return make_user(STAKER)


@pytest.fixture
def native_payout():
    return FakeNativePayout()


@pytest.fixture
def ledger(native_payout):
    return SettlementLedgerService(native_payout=native_payout)


@pytest.fixture
def simple_pool(ledger):
    return SimpleStakePoolService(ledger=ledger)


@pytest.fixture
def vault(ledger):
    return CompoundVaultService(ledger=ledger)


@pytest.fixture
def payment_collector():
    return FakePaymentCollector()


@pytest.fixture
def nft_transfer():
    return FakeNftTransfer()


@pytest.fixture
def settlement(ledger, simple_pool, vault, payment_collector, nft_transfer):
    return PurchaseSettlementService(
        simple_pool=simple_pool,
        vault=vault,
        ledger=ledger,
        payment_collector=payment_collector,
        nft_transfer=nft_transfer,
    )


@pytest.fixture
def fake_redis(monkeypatch):
    client = FakeRedis()

    class _Redis:
        @staticmethod
        def from_url(url):
            return client

    monkeypatch.setattr(status_store, "Redis", _Redis)
    return client
