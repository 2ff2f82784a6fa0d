"""
Swap Executor

Approve-then-swap through the router, plus the WGHO deposit used by the
``wrap`` command.

Both router steps wait for their receipts: the swap reverts on-chain unless
the approval has landed first.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict

from web3 import AsyncWeb3, Web3

from .chain import ERC20_ABI, ROUTER_ABI, WGHO_ABI, checksum
from .wallet import Wallet
from .utils import (
    ConfigurationError,
    SwapFailure,
    activity_logger,
    logger,
    format_address,
    format_tx_hash,
    format_units,
)


BASIS_POINTS = 10_000
DEADLINE_SECONDS = 20 * 60
SQRT_PRICE_LIMIT = 0  # auxParam: no price limit
RECEIPT_TIMEOUT = 180


def calculate_min_amount_out(amount_in: int, slippage_percent: float) -> int:
    """
    Minimum acceptable output under a slippage tolerance.

    Slippage is converted to basis points so the amount math stays integral:
    ``amount_in * (10000 - bps) // 10000``.

    Raises:
        ValueError: if slippage is outside [0, 100] or amount_in is negative
    """
    if amount_in < 0:
        raise ValueError(f"amount_in cannot be negative, got {amount_in}")
    if not 0 <= slippage_percent <= 100:
        raise ValueError(f"Slippage must be within 0-100%, got {slippage_percent}")
    slippage_bps = int(round(slippage_percent * 100))
    return amount_in * (BASIS_POINTS - slippage_bps) // BASIS_POINTS


@dataclass(frozen=True)
class SwapQuote:
    """Parameters of a single swap attempt."""
    token_in: str
    token_out: str
    amount_in: int
    amount_out_min: int
    deadline: int


class ContractExecutor:
    """Signs, broadcasts and confirms contract calls for a wallet."""

    def __init__(self, w3: AsyncWeb3, chain_id: int, gas_price_wei: int, gas_limit: int):
        self.w3 = w3
        self.chain_id = chain_id
        self.gas_price_wei = gas_price_wei
        self.gas_limit = gas_limit

    async def _submit(self, wallet: Wallet, contract_call: Any, value: int = 0) -> str:
        """Build, sign and broadcast; returns the 0x tx hash."""
        nonce = await self.w3.eth.get_transaction_count(wallet.address, "pending")
        tx: Dict[str, Any] = await contract_call.build_transaction({
            "from": wallet.address,
            "value": value,
            "nonce": nonce,
            "gas": self.gas_limit,
            "gasPrice": self.gas_price_wei,
            "chainId": self.chain_id,
        })
        signed_tx = wallet.sign_transaction(tx)
        return Web3.to_hex(await self.w3.eth.send_raw_transaction(signed_tx.raw_transaction))

    async def _send_and_confirm(self, wallet: Wallet, label: str, contract_call: Any, value: int = 0) -> Dict[str, Any]:
        """Submit and wait for a successful receipt, raising SwapFailure otherwise."""
        try:
            tx_hash = await self._submit(wallet, contract_call, value)
        except Exception as e:
            raise SwapFailure(f"{label} from {format_address(wallet.address)} rejected: {e}") from e

        logger.info(f"{label} sent: {format_tx_hash(tx_hash)}")

        try:
            receipt = await self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=RECEIPT_TIMEOUT)
        except Exception as e:
            raise SwapFailure(f"{label} confirmation failed: {e}", tx_hash=tx_hash) from e

        if receipt["status"] != 1:
            raise SwapFailure(f"{label} reverted", tx_hash=tx_hash)

        return {"tx_hash": tx_hash, "block_number": receipt["blockNumber"]}


class SwapExecutor(ContractExecutor):
    """Approve and swap a token pair through the router."""

    def __init__(
        self,
        w3: AsyncWeb3,
        chain_id: int,
        router_address: str,
        gas_price_wei: int,
        gas_limit: int,
        slippage_percent: float,
        swap_flags: int,
        clock: Callable[[], float] = time.time
    ):
        super().__init__(w3, chain_id, gas_price_wei, gas_limit)
        if not router_address or not Web3.is_address(router_address):
            raise ConfigurationError(f"ROUTER must be set to a valid address, got {router_address!r}")
        self.router_address = checksum(router_address)
        self.router = w3.eth.contract(address=self.router_address, abi=ROUTER_ABI)
        self.slippage_percent = slippage_percent
        self.swap_flags = swap_flags
        self.clock = clock

    def build_quote(self, token_in: str, token_out: str, amount_in: int) -> SwapQuote:
        return SwapQuote(
            token_in=checksum(token_in),
            token_out=checksum(token_out),
            amount_in=amount_in,
            amount_out_min=calculate_min_amount_out(amount_in, self.slippage_percent),
            deadline=int(self.clock()) + DEADLINE_SECONDS,
        )

    async def approve(self, wallet: Wallet, token_address: str, amount: int) -> str:
        """Approve the router for exactly ``amount`` and wait for it to land."""
        token = self.w3.eth.contract(address=checksum(token_address), abi=ERC20_ABI)
        result = await self._send_and_confirm(
            wallet, "Approval", token.functions.approve(self.router_address, amount)
        )
        return result["tx_hash"]

    async def swap(self, wallet: Wallet, token_in: str, token_out: str, amount_in: int) -> int:
        """
        Approve and swap ``amount_in`` of ``token_in`` for ``token_out``.

        Returns:
            Block number of the confirmed swap

        Raises:
            SwapFailure: if either step is rejected or reverts
        """
        if amount_in <= 0:
            raise SwapFailure(f"Swap amount must be positive, got {amount_in}")

        await self.approve(wallet, token_in, amount_in)

        quote = self.build_quote(token_in, token_out, amount_in)
        call = self.router.functions.swap(
            quote.token_in,
            quote.token_out,
            self.swap_flags,
            wallet.address,
            quote.deadline,
            quote.amount_in,
            quote.amount_out_min,
            SQRT_PRICE_LIMIT,
        )
        result = await self._send_and_confirm(wallet, "Swap", call)

        activity_logger.info(
            f"SWAP {wallet.address} {quote.token_in} -> {quote.token_out} "
            f"in={quote.amount_in} min_out={quote.amount_out_min} | "
            f"tx {result['tx_hash']} block {result['block_number']}"
        )
        return result["block_number"]


class WrapExecutor(ContractExecutor):
    """Deposits native GHO into the WGHO contract."""

    def __init__(self, w3: AsyncWeb3, chain_id: int, wgho_address: str, gas_price_wei: int, gas_limit: int):
        super().__init__(w3, chain_id, gas_price_wei, gas_limit)
        self.wgho = w3.eth.contract(address=checksum(wgho_address), abi=WGHO_ABI)

    async def wrap(self, wallet: Wallet, amount_wei: int) -> int:
        """Deposit ``amount_wei`` and return the confirmed block number."""
        if amount_wei <= 0:
            raise SwapFailure(f"Wrap amount must be positive, got {amount_wei}")

        result = await self._send_and_confirm(wallet, "Wrap", self.wgho.functions.deposit(), value=amount_wei)

        activity_logger.info(
            f"WRAP {format_units(amount_wei)} GHO {wallet.address} | "
            f"tx {result['tx_hash']} block {result['block_number']}"
        )
        return result["block_number"]
