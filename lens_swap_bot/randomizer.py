"""
Amount Randomizer

Draws transfer amounts, recipients and swap directions from one injectable
random source so tests can replay fixed sequences.
"""

import random
from decimal import Decimal, ROUND_DOWN
from typing import Optional, Sequence

from .config import SwapDirection


AMOUNT_QUANTUM = Decimal("0.000001")


class AmountRandomizer:
    """
    Random draws for the orchestrator.

    Args:
        min_amount: Lower transfer bound (inclusive), native units
        max_amount: Upper transfer bound (exclusive), native units
        recipients: Candidate recipient addresses (at least one)
        rng: ``random.Random``-compatible source; a fresh one by default
    """

    def __init__(
        self,
        min_amount: float,
        max_amount: float,
        recipients: Sequence[str],
        rng: Optional[random.Random] = None
    ):
        if not recipients:
            raise ValueError("Recipient pool must contain at least one address")
        if max_amount <= min_amount:
            raise ValueError(f"max_amount must exceed min_amount ({min_amount} >= {max_amount})")
        self.min_amount = Decimal(str(min_amount))
        self.max_amount = Decimal(str(max_amount))
        self.recipients = tuple(recipients)
        self.rng = rng or random.Random()

    def next_transfer_amount(self) -> Decimal:
        """Uniform in [min, max), truncated to 6 decimals."""
        value = Decimal(repr(self.rng.uniform(float(self.min_amount), float(self.max_amount))))
        amount = value.quantize(AMOUNT_QUANTUM, rounding=ROUND_DOWN)
        # Truncation can dip under a bound with more than 6 decimals
        amount = max(amount, self.min_amount)
        if amount >= self.max_amount:
            amount = (self.max_amount - AMOUNT_QUANTUM).max(self.min_amount)
        return amount

    def next_recipient(self, exclude: Optional[str] = None) -> str:
        """Uniform pick from the pool, skipping ``exclude`` when possible."""
        candidates = self.recipients
        if exclude is not None:
            others = tuple(r for r in candidates if r.lower() != exclude.lower())
            if others:
                candidates = others
        return self.rng.choice(candidates)

    def next_swap_direction(self) -> SwapDirection:
        return self.rng.choice((SwapDirection.WGHO_TO_USDC, SwapDirection.USDC_TO_WGHO))
