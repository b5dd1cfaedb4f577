"""
Interest accounting for the two staking pools.

Pure integer arithmetic on plain state objects; no database access. The Django
services load rows into these structs, apply one operation and write them back,
so every rule about rounding and ordering lives here.

Simple pool
    A global accrual index (scaled by MANTISSA) grows by ``fee * MANTISSA /
    total_principal`` whenever a fee is routed in. Each account keeps the index
    value at its last settlement, so pending interest is
    ``principal * (index - snapshot) / MANTISSA``. Accounts must be settled
    before their principal changes.

Compound vault
    Shares are minted at ``amount * supply / pooled`` (1:1 for the first
    deposit) and redeemed at ``shares * pooled / supply``. Truncation always
    favours the vault.
"""

from dataclasses import dataclass
from typing import Tuple

from marketplace.exceptions import InvalidAmountError, ZeroAmountError

# Fixed-point scale of the accrual index. Python ints never overflow, so the
# products below are exact before the final floor division.
MANTISSA = 10**18


@dataclass
class SimplePoolState:
    accrual_index_scaled: int = 0
    total_principal: int = 0


@dataclass
class StakeCheckpoint:
    """Per-account view of the simple pool."""

    principal: int = 0
    accrual_snapshot: int = 0
    earned: int = 0


@dataclass
class VaultState:
    total_pooled: int = 0


def _require_stake_amount(amount: int) -> None:
    if amount == 0:
        raise ZeroAmountError("amount must be greater than zero")
    if amount < 0:
        raise InvalidAmountError(f"negative amount {amount}")


# ---------------------------
# Simple pool
# ---------------------------


def pending_interest(pool: SimplePoolState, account: StakeCheckpoint) -> int:
    """Interest accrued since the account's last settlement, not yet in ``earned``."""
    return account.principal * (pool.accrual_index_scaled - account.accrual_snapshot) // MANTISSA


def accrue(pool: SimplePoolState, fee: int) -> bool:
    """
    Route ``fee`` into the pool by raising the accrual index.

    Returns False (and changes nothing) when the pool holds no principal, since
    a fee routed there could never be claimed.
    """
    if fee < 0:
        raise InvalidAmountError(f"negative fee {fee}")
    if pool.total_principal == 0:
        return False
    pool.accrual_index_scaled += fee * MANTISSA // pool.total_principal
    return True


def settle(pool: SimplePoolState, account: StakeCheckpoint) -> int:
    """Crystallise pending interest into ``earned``; returns the amount credited."""
    pending = pending_interest(pool, account)
    account.earned += pending
    account.accrual_snapshot = pool.accrual_index_scaled
    return pending


def stake(pool: SimplePoolState, account: StakeCheckpoint, amount: int) -> None:
    _require_stake_amount(amount)
    settle(pool, account)
    account.principal += amount
    pool.total_principal += amount


def unstake(pool: SimplePoolState, account: StakeCheckpoint, amount: int) -> Tuple[int, int]:
    """
    Withdraw ``amount`` of principal together with the same fraction of the
    account's earned interest.

    Returns (principal_out, interest_out).
    """
    if amount <= 0 or amount > account.principal:
        raise InvalidAmountError(
            f"cannot unstake {amount}, staked principal is {account.principal}"
        )
    settle(pool, account)
    interest = amount * account.earned // account.principal
    account.earned -= interest
    account.principal -= amount
    pool.total_principal -= amount
    return amount, interest


# ---------------------------
# Compound vault
# ---------------------------


def shares_for_deposit(vault: VaultState, total_supply: int, amount: int) -> int:
    if total_supply == 0:
        return amount
    return amount * total_supply // vault.total_pooled


def assets_for_shares(vault: VaultState, total_supply: int, shares: int) -> int:
    if total_supply == 0:
        return 0
    return shares * vault.total_pooled // total_supply


def deposit(vault: VaultState, total_supply: int, amount: int) -> int:
    """Add ``amount`` to the vault; returns the shares the depositor must receive."""
    _require_stake_amount(amount)
    shares = shares_for_deposit(vault, total_supply, amount)
    vault.total_pooled += amount
    return shares


def withdraw(vault: VaultState, total_supply: int, shares: int) -> int:
    """Redeem ``shares``; returns the base-asset amount released by the vault."""
    if shares <= 0 or shares > total_supply:
        raise InvalidAmountError(f"cannot redeem {shares} shares of {total_supply}")
    amount = assets_for_shares(vault, total_supply, shares)
    vault.total_pooled -= amount
    return amount
