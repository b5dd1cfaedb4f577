"""
Marketplace fee: a fixed percentage of every sale price.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class FeeRate:
    """
    Percentage encoded as ``significand / 10**fraction_digits``.
    FeeRate(10, 2) is 10%, FeeRate(25, 3) is 2.5%.
    """

    significand: int
    fraction_digits: int

    def __post_init__(self):
        if self.significand < 0 or self.fraction_digits < 0:
            raise ValueError("fee rate components must be non-negative")
        if self.significand >= 10**self.fraction_digits:
            raise ValueError("fee rate must be below 100%")

    def fee(self, price: int) -> int:
        """Fee on `price`, truncated toward zero."""
        return price * self.significand // 10**self.fraction_digits

    def __str__(self):
        return f"{self.significand * 100 / 10**self.fraction_digits:g}%"


# Fixed for the life of the marketplace.
MARKETPLACE_FEE_RATE = FeeRate(significand=10, fraction_digits=2)


def calculate_fee(price: int, rate: FeeRate = MARKETPLACE_FEE_RATE) -> int:
    return rate.fee(price)
