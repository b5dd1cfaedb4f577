import random

import pytest

from marketplace.exceptions import InvalidAmountError, ZeroAmountError
from marketplace.apps.pool import accounting
from marketplace.apps.pool.accounting import (
    MANTISSA,
    SimplePoolState,
    StakeCheckpoint,
    VaultState,
)


class TestSimplePool:
    def test_accrue_skips_empty_pool(self):
        pool = SimplePoolState()
        assert accounting.accrue(pool, 100) is False
        assert pool.accrual_index_scaled == 0

    def test_accrue_scales_by_mantissa(self):
        pool = SimplePoolState(total_principal=500)
        assert accounting.accrue(pool, 100) is True
        assert pool.accrual_index_scaled == 100 * MANTISSA // 500

    def test_small_fee_on_large_principal_is_not_lost(self):
        pool = SimplePoolState(total_principal=10**12)
        accounting.accrue(pool, 1)
        assert pool.accrual_index_scaled == MANTISSA // 10**12
        account = StakeCheckpoint(principal=10**12)
        assert accounting.pending_interest(pool, account) == 1

    def test_stake_settles_before_changing_principal(self):
        pool = SimplePoolState()
        account = StakeCheckpoint()
        accounting.stake(pool, account, 100)
        accounting.accrue(pool, 10)
        accounting.stake(pool, account, 100)
        assert account.earned == 10
        assert account.principal == 200
        assert account.accrual_snapshot == pool.accrual_index_scaled
        assert pool.total_principal == 200

    def test_late_staker_does_not_share_earlier_fees(self):
        pool = SimplePoolState()
        early, late = StakeCheckpoint(), StakeCheckpoint()
        accounting.stake(pool, early, 100)
        accounting.accrue(pool, 50)
        accounting.stake(pool, late, 100)
        accounting.accrue(pool, 50)
        assert accounting.pending_interest(pool, early) == 75
        assert accounting.pending_interest(pool, late) == 25

    def test_stake_rejects_zero_and_negative(self):
        pool, account = SimplePoolState(), StakeCheckpoint()
        with pytest.raises(ZeroAmountError):
            accounting.stake(pool, account, 0)
        with pytest.raises(InvalidAmountError):
            accounting.stake(pool, account, -5)
        assert pool == SimplePoolState()
        assert account == StakeCheckpoint()

    @pytest.mark.parametrize("amount", [0, -1, 501])
    def test_unstake_rejects_out_of_range(self, amount):
        pool = SimplePoolState(total_principal=500)
        account = StakeCheckpoint(principal=500)
        with pytest.raises(InvalidAmountError):
            accounting.unstake(pool, account, amount)
        assert account.principal == 500
        assert pool.total_principal == 500

    def test_unstake_half_claims_half_of_earned(self):
        pool = SimplePoolState(accrual_index_scaled=7 * MANTISSA, total_principal=500)
        account = StakeCheckpoint(principal=500, accrual_snapshot=7 * MANTISSA, earned=50)

        principal_out, interest_out = accounting.unstake(pool, account, 250)

        assert (principal_out, interest_out) == (250, 25)
        assert principal_out + interest_out == 275
        assert account.principal == 250
        assert account.earned == 25
        assert pool.total_principal == 250

    def test_full_unstake_pays_all_interest(self):
        pool = SimplePoolState()
        account = StakeCheckpoint()
        accounting.stake(pool, account, 300)
        accounting.accrue(pool, 30)
        assert accounting.unstake(pool, account, 300) == (300, 30)
        assert account.earned == 0
        assert pool.total_principal == 0

    def test_settle_is_idempotent(self):
        pool = SimplePoolState()
        account = StakeCheckpoint()
        accounting.stake(pool, account, 700)
        accounting.accrue(pool, 70)
        assert accounting.settle(pool, account) == 70
        before = StakeCheckpoint(**vars(account))
        assert accounting.settle(pool, account) == 0
        assert account == before

    def test_round_trip_without_fees(self):
        pool = SimplePoolState()
        account = StakeCheckpoint()
        accounting.stake(pool, account, 12345)
        assert accounting.unstake(pool, account, 12345) == (12345, 0)
        assert pool == SimplePoolState()

    def test_negative_fee_is_rejected(self):
        pool = SimplePoolState(total_principal=10)
        with pytest.raises(InvalidAmountError):
            accounting.accrue(pool, -1)


class TestSimplePoolSequences:
    @pytest.mark.parametrize("seed", range(8))
    def test_interest_is_conserved_within_truncation(self, seed):
        rng = random.Random(seed)
        pool = SimplePoolState()
        accounts = [StakeCheckpoint() for _ in range(4)]
        fees_routed = interest_paid = 0
        accruals = principal_changes = 0
        last_index = 0

        for _ in range(200):
            account = rng.choice(accounts)
            op = rng.random()
            if op < 0.4:
                accounting.stake(pool, account, rng.randint(1, 10**9))
                principal_changes += 1
            elif op < 0.6 and account.principal:
                _, interest = accounting.unstake(pool, account, rng.randint(1, account.principal))
                interest_paid += interest
                principal_changes += 1
            else:
                fee = rng.randint(0, 10**7)
                if accounting.accrue(pool, fee):
                    fees_routed += fee
                    accruals += 1
            assert pool.accrual_index_scaled >= last_index
            last_index = pool.accrual_index_scaled
            assert pool.total_principal == sum(a.principal for a in accounts)

        accounted = interest_paid + sum(
            a.earned + accounting.pending_interest(pool, a) for a in accounts
        )
        lost = fees_routed - accounted
        assert 0 <= lost <= accruals + principal_changes + len(accounts)


class TestCompoundVault:
    def test_first_deposit_is_one_to_one(self):
        vault = VaultState()
        assert accounting.deposit(vault, 0, 100) == 100
        assert vault.total_pooled == 100

    def test_deposit_then_full_drain(self):
        vault = VaultState(total_pooled=1000)
        shares = accounting.deposit(vault, 1000, 500)
        assert shares == 500
        assert vault.total_pooled == 1500
        assert accounting.withdraw(vault, 1500, 1500) == 1500
        assert vault.total_pooled == 0

    def test_rounding_favours_the_vault(self):
        vault = VaultState(total_pooled=3)
        shares = accounting.deposit(vault, 2, 2)
        assert shares == 1  # 2 * 2 // 3
        assert accounting.withdraw(vault, 3, 1) == 1  # 1 * 5 // 3
        assert vault.total_pooled == 4

    def test_deposit_rejects_zero_and_negative(self):
        vault = VaultState(total_pooled=10)
        with pytest.raises(ZeroAmountError):
            accounting.deposit(vault, 10, 0)
        with pytest.raises(InvalidAmountError):
            accounting.deposit(vault, 10, -1)
        assert vault.total_pooled == 10

    @pytest.mark.parametrize("shares", [0, -3, 11])
    def test_withdraw_rejects_out_of_range(self, shares):
        vault = VaultState(total_pooled=10)
        with pytest.raises(InvalidAmountError):
            accounting.withdraw(vault, 10, shares)
        assert vault.total_pooled == 10

    def test_share_value_with_no_supply_is_zero(self):
        assert accounting.assets_for_shares(VaultState(total_pooled=5), 0, 5) == 0


class TestCompoundVaultSequences:
    @pytest.mark.parametrize("seed", range(8))
    def test_share_price_never_decreases_and_drain_leaves_no_dust(self, seed):
        rng = random.Random(seed)
        vault = VaultState()
        holdings = [0, 0, 0]
        supply = 0

        for _ in range(300):
            holder = rng.randrange(len(holdings))
            before_pooled, before_supply = vault.total_pooled, supply
            if rng.random() < 0.6 or holdings[holder] == 0:
                shares = accounting.deposit(vault, supply, rng.randint(1, 10**12))
                holdings[holder] += shares
                supply += shares
            else:
                shares = rng.randint(1, holdings[holder])
                accounting.withdraw(vault, supply, shares)
                holdings[holder] -= shares
                supply -= shares
            if before_supply and supply:
                # pooled / supply compared by cross-multiplication
                assert vault.total_pooled * before_supply >= before_pooled * supply

        for holder, shares in enumerate(holdings):
            if shares:
                accounting.withdraw(vault, supply, shares)
                supply -= shares
        assert supply == 0
        assert vault.total_pooled == 0

    def test_round_trip_without_fees(self):
        vault = VaultState(total_pooled=1000)
        shares = accounting.deposit(vault, 1000, 250)
        assert accounting.withdraw(vault, 1250, shares) == 250
        assert vault.total_pooled == 1000
