"""Coin balance rules.

A ``None`` balance is the unlimited sentinel, never zero.
"""

from enum import StrEnum


class TransactionType(StrEnum):
    MANUAL = "manual"
    PAYMENT = "payment"
    DAILY = "daily"
    SUBSCRIPTION = "subscription"
    CRYPTO = "crypto"


class UnlimitedGrantPolicy(StrEnum):
    """What a grant does to an unlimited (``None``) balance."""

    PRESERVE = "preserve"
    FINALIZE = "finalize"


def apply_delta(balance: int | None, delta: int, policy: UnlimitedGrantPolicy) -> int | None:
    """Return the balance after applying a signed delta.

    Finite balances never go negative: the caller must check
    ``can_cover`` first for debits.
    """
    if balance is None:
        if policy is UnlimitedGrantPolicy.PRESERVE:
            return None
        return delta
    return balance + delta


def can_cover(balance: int | None, amount: int) -> bool:
    return balance is None or balance >= amount


def can_deduct_one(balance: int | None) -> bool:
    return balance is None or balance > 0
