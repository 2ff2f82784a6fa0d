"""
Balance Reader

Native and ERC20 balance reads. A read that still fails after retries is
reported as an *unknown* zero balance (``known=False``) instead of raising,
so callers never size a trade from a balance they could not read.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from web3 import AsyncWeb3
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from .chain import ERC20_ABI, checksum
from .utils import BalanceReadFailure, logger, format_address, format_units


NATIVE_SYMBOL = "GHO"
NATIVE_DECIMALS = 18
DEFAULT_TOKEN_DECIMALS = 18


@dataclass(frozen=True)
class TokenBalance:
    """Balance in smallest units plus token metadata."""
    amount: int
    decimals: int
    symbol: str
    known: bool = True

    @property
    def is_positive(self) -> bool:
        return self.known and self.amount > 0

    def __str__(self) -> str:
        if not self.known:
            return f"? {self.symbol}"
        return f"{format_units(self.amount, self.decimals)} {self.symbol}"


class BalanceReader:
    """Reads native and token balances through the shared RPC client."""

    def __init__(self, w3: AsyncWeb3, retries: int = 3, retry_wait: float = 1.0):
        self.w3 = w3
        self.retries = retries
        self.retry_wait = retry_wait
        self._contracts = {}

    def _token(self, token_address: str):
        address = checksum(token_address)
        if address not in self._contracts:
            self._contracts[address] = self.w3.eth.contract(address=address, abi=ERC20_ABI)
        return self._contracts[address]

    async def _read(self, label: str, call: Callable[[], Awaitable[Any]]) -> Any:
        """Run one idempotent read with retries, raising BalanceReadFailure."""
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.retries),
                wait=wait_exponential(multiplier=self.retry_wait, max=8),
                reraise=True
            ):
                with attempt:
                    return await call()
        except Exception as e:
            raise BalanceReadFailure(f"{label} read failed: {e}") from e

    async def read_native(self, address: str) -> TokenBalance:
        """Native GHO balance in wei."""
        try:
            amount = await self._read("native balance", lambda: self.w3.eth.get_balance(address))
        except BalanceReadFailure as e:
            logger.error(f"Balance unknown for {format_address(address)}: {e}")
            return TokenBalance(0, NATIVE_DECIMALS, NATIVE_SYMBOL, known=False)
        return TokenBalance(int(amount), NATIVE_DECIMALS, NATIVE_SYMBOL)

    async def read_token(self, token_address: str, address: str) -> TokenBalance:
        """
        ERC20 balance with decimals and symbol.

        The three reads are independent and run concurrently.
        """
        token = self._token(token_address)
        fallback_symbol = format_address(token_address, 4)
        results = await asyncio.gather(
            self._read("balanceOf", lambda: token.functions.balanceOf(address).call()),
            self._read("decimals", lambda: token.functions.decimals().call()),
            self._read("symbol", lambda: token.functions.symbol().call()),
            return_exceptions=True
        )
        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            for failure in failures:
                if not isinstance(failure, BalanceReadFailure):
                    raise failure
            logger.error(
                f"Token balance unknown for {format_address(address)} ({fallback_symbol}): "
                f"{'; '.join(str(f) for f in failures)}"
            )
            return TokenBalance(0, DEFAULT_TOKEN_DECIMALS, fallback_symbol, known=False)

        amount, decimals, symbol = results
        return TokenBalance(int(amount), int(decimals), str(symbol))
