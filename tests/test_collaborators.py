import pytest
from web3.exceptions import ContractLogicError

from marketplace.exceptions import PaymentFailedError, PayoutFailedError, TransferFailedError
from marketplace.apps.tokens.services import collaborators
from marketplace.apps.tokens.services.collaborators import (
    PaymentReceipt,
    Web3NativePayout,
    Web3NftTransfer,
    Web3PaymentCollector,
)

from .conftest import BUYER, COLLECTION, SELLER, WETH

TOKEN = "0x00000000000000000000000000000000000000f6"


class FakeWeth:
    contract_address = WETH
    web3 = object()

    def __init__(self, received=0, fail=False):
        self.received = received
        self.fail = fail
        self.balance = 1000
        self.pulled = []
        self.sent = []

    def pull_from(self, owner, amount):
        if self.fail:
            raise ContractLogicError("execution reverted: insufficient allowance")
        self.pulled.append((owner, amount))
        return {"tx_hash": "0xweth"}

    def get_balance(self, address):
        return self.balance

    def transfer(self, to_address, amount):
        if self.fail:
            raise RuntimeError("Transaction failed: 0xdead")
        self.sent.append((to_address, amount))
        return {"tx_hash": "0xrefund"}

    def pay_native(self, to_address, amount):
        if self.fail:
            raise RuntimeError("Transaction failed: 0xdead")
        return {"tx_hash": "0xnative"}


class FakeToken:
    """Payment token whose operator balance moves with pulls, swaps and transfers."""

    instances = []

    def __init__(self, address, web3=None):
        self.address = address
        self.balance = 50
        self.calls = []
        FakeToken.instances.append(self)

    def get_balance(self, address):
        return self.balance

    def pull_from(self, owner, amount):
        self.calls.append(("pull", owner, amount))
        self.balance += amount

    def approve(self, spender, amount):
        self.calls.append(("approve", spender, amount))

    def transfer(self, to_address, amount):
        self.calls.append(("transfer", to_address, amount))
        self.balance -= amount


class FakeRouter:
    contract_address = "0x0000000000000000000000000000000000000777"

    def __init__(self, weth, quote=200, spend=None, fail=False):
        self.weth = weth
        self.quote = quote
        self.spend = quote if spend is None else spend
        self.fail = fail
        self.swaps = []

    def quote_amount_in(self, amount_out, path):
        return self.quote

    def swap_for_exact(self, amount_out, amount_in_max, path):
        if self.fail:
            raise ContractLogicError("execution reverted: EXCESSIVE_INPUT_AMOUNT")
        self.swaps.append((amount_out, amount_in_max, path))
        FakeToken.instances[-1].balance -= self.spend
        self.weth.balance += amount_out
        return {"tx_hash": "0xswap"}


@pytest.fixture
def fake_token(monkeypatch):
    FakeToken.instances = []
    monkeypatch.setattr(collaborators, "ERC20TokenService", FakeToken)
    return FakeToken


class TestWeb3PaymentCollector:
    def test_weth_is_pulled_directly(self):
        weth = FakeWeth()
        receipt = Web3PaymentCollector(weth=weth).collect(BUYER, WETH.replace("e5", "E5"), 500)
        assert (receipt.amount, receipt.tx_hash) == (500, "0xweth")
        assert weth.pulled == [(BUYER, 500)]

    def test_other_tokens_are_swapped_with_slippage_bound(self, settings, fake_token):
        settings.PAYMENT_SLIPPAGE_BPS = 100
        weth = FakeWeth()
        router = FakeRouter(weth, quote=200)

        receipt = Web3PaymentCollector(weth=weth, router=router).collect(BUYER, TOKEN, 500)

        assert receipt.amount == 500
        assert receipt.payment_token_spent == 200
        assert router.swaps == [(500, 202, [TOKEN, WETH])]
        assert fake_token.instances[0].calls == [
            ("pull", BUYER, 202),
            ("approve", router.contract_address, 202),
            ("approve", router.contract_address, 0),
            ("transfer", BUYER, 2),
        ]

    def test_unspent_swap_input_goes_back_to_buyer(self, settings, fake_token):
        settings.PAYMENT_SLIPPAGE_BPS = 100
        weth = FakeWeth()
        router = FakeRouter(weth, quote=200, spend=190)

        receipt = Web3PaymentCollector(weth=weth, router=router).collect(BUYER, TOKEN, 500)

        token = fake_token.instances[0]
        assert receipt.payment_token_spent == 190
        assert ("transfer", BUYER, 12) in token.calls
        # operator keeps only its prior holdings
        assert token.balance == 50

    def test_exact_spend_returns_nothing(self, settings, fake_token):
        settings.PAYMENT_SLIPPAGE_BPS = 0
        weth = FakeWeth()
        router = FakeRouter(weth, quote=200)

        receipt = Web3PaymentCollector(weth=weth, router=router).collect(BUYER, TOKEN, 500)

        assert receipt.payment_token_spent == 200
        assert not [c for c in fake_token.instances[0].calls if c[0] == "transfer"]

    def test_failed_swap_returns_pulled_tokens(self, settings, fake_token):
        settings.PAYMENT_SLIPPAGE_BPS = 100
        weth = FakeWeth()
        router = FakeRouter(weth, quote=200, fail=True)

        with pytest.raises(PaymentFailedError):
            Web3PaymentCollector(weth=weth, router=router).collect(BUYER, TOKEN, 500)

        token = fake_token.instances[0]
        assert token.calls[-1] == ("transfer", BUYER, 202)
        assert token.balance == 50

    def test_chain_errors_become_payment_failures(self):
        with pytest.raises(PaymentFailedError):
            Web3PaymentCollector(weth=FakeWeth(fail=True)).collect(BUYER, WETH, 1)

    def test_refund_sends_weth_back(self):
        weth = FakeWeth()
        receipt = PaymentReceipt(amount=500, tx_hash="0xpay", payment_token_spent=190)
        assert Web3PaymentCollector(weth=weth).refund(BUYER, receipt) == "0xrefund"
        assert weth.sent == [(BUYER, 500)]

    def test_refund_failure_is_a_payment_failure(self):
        receipt = PaymentReceipt(amount=500, tx_hash="0xpay")
        with pytest.raises(PaymentFailedError):
            Web3PaymentCollector(weth=FakeWeth(fail=True)).refund(BUYER, receipt)


class TestWeb3NftTransfer:
    def test_revert_becomes_transfer_failure(self, monkeypatch):
        class RevertingNft:
            def __init__(self, collection, web3=None):
                pass

            def safe_transfer(self, from_address, to_address, token_id):
                raise ContractLogicError("execution reverted: not approved")

        monkeypatch.setattr(collaborators, "ERC721Service", RevertingNft)
        with pytest.raises(TransferFailedError):
            Web3NftTransfer().transfer(COLLECTION, 1, SELLER, BUYER)

    def test_returns_tx_hash(self, monkeypatch):
        class Nft:
            def __init__(self, collection, web3=None):
                pass

            def safe_transfer(self, from_address, to_address, token_id):
                return {"tx_hash": "0xmoved"}

        monkeypatch.setattr(collaborators, "ERC721Service", Nft)
        assert Web3NftTransfer().transfer(COLLECTION, 1, SELLER, BUYER) == "0xmoved"


class TestWeb3NativePayout:
    def test_pays(self):
        assert Web3NativePayout(weth=FakeWeth()).pay(SELLER, 10) == "0xnative"

    def test_failure_becomes_payout_failure(self):
        with pytest.raises(PayoutFailedError):
            Web3NativePayout(weth=FakeWeth(fail=True)).pay(SELLER, 10)
