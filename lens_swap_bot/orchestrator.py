"""
Orchestrator - Multi-Wallet Activity Coordinator
================================================

Runs a one-shot native transfer pass over every wallet, then token swap
cycles forever:

    INITIALIZING -> TRANSFER_PASS -> SWAP_IDLE -> SWAP_RUNNING
                 -> SWAP_WAITING -> SWAP_RUNNING -> ...

Wallets are processed strictly one after another (one outstanding
operation, no nonce races on the shared connection). A failure on one
wallet never stops the others or the cycle. Every pause waits on the stop
event, so shutdown happens between wallets rather than between cycles.
"""

import asyncio
from enum import Enum
from dataclasses import dataclass, asdict
from typing import Dict, Iterator, Optional, Set

from web3 import Web3
from rich import box
from rich.table import Table

from .balances import BalanceReader, TokenBalance
from .config import Config, SwapDirection, SwapMode
from .randomizer import AmountRandomizer
from .swap import SwapExecutor
from .transfer import TransferExecutor
from .wallet import MIN_WALLETS, Wallet, WalletSet
from .utils import (
    ConfigurationError,
    SwapFailure,
    TransferFailure,
    logger,
    format_duration,
    format_tx_hash,
)


class BotState(Enum):
    INITIALIZING = "initializing"
    TRANSFER_PASS = "transfer_pass"
    SWAP_IDLE = "swap_idle"
    SWAP_RUNNING = "swap_running"
    SWAP_WAITING = "swap_waiting"
    STOPPED = "stopped"


class ProcessedMark:
    """Addresses that have had their one-shot transfer attempted this run."""

    def __init__(self):
        self._addresses: Set[str] = set()

    def add(self, address: str):
        if address in self._addresses:
            raise ValueError(f"{address} already marked as processed")
        self._addresses.add(address)

    def __contains__(self, address: str) -> bool:
        return address in self._addresses

    def __len__(self) -> int:
        return len(self._addresses)

    def __iter__(self) -> Iterator[str]:
        return iter(self._addresses)


@dataclass
class RunStats:
    """Aggregated statistics for a run."""
    transfers_sent: int = 0
    transfers_failed: int = 0
    transfers_skipped: int = 0
    swaps_succeeded: int = 0
    swaps_failed: int = 0
    swaps_skipped: int = 0
    cycles_completed: int = 0

    @property
    def transfers_attempted(self) -> int:
        return self.transfers_sent + self.transfers_failed

    @property
    def swaps_attempted(self) -> int:
        return self.swaps_succeeded + self.swaps_failed

    def to_dict(self) -> Dict[str, int]:
        data = asdict(self)
        data["transfers_attempted"] = self.transfers_attempted
        data["swaps_attempted"] = self.swaps_attempted
        return data

    def to_table(self) -> Table:
        table = Table(title="Run Statistics", box=box.ROUNDED)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("Transfers attempted", str(self.transfers_attempted))
        table.add_row("Transfers sent", str(self.transfers_sent))
        table.add_row("Transfers failed", str(self.transfers_failed))
        table.add_row("Transfers skipped", str(self.transfers_skipped))
        table.add_row("Swaps succeeded", str(self.swaps_succeeded))
        table.add_row("Swaps failed", str(self.swaps_failed))
        table.add_row("Swaps skipped", str(self.swaps_skipped))
        table.add_row("Cycles completed", str(self.cycles_completed))
        return table


class Orchestrator:
    """
    Owns the wallet set and per-run state, and sequences every operation.

    Collaborators are injected so tests can replace any of them.
    """

    def __init__(
        self,
        config: Config,
        wallets: WalletSet,
        balances: BalanceReader,
        randomizer: AmountRandomizer,
        transfers: TransferExecutor,
        swaps: SwapExecutor
    ):
        self.state = BotState.INITIALIZING
        if len(wallets) < MIN_WALLETS:
            raise ConfigurationError(f"At least {MIN_WALLETS} wallets are required, found {len(wallets)}")

        self.config = config
        self.wallets = wallets
        self.balances = balances
        self.randomizer = randomizer
        self.transfers = transfers
        self.swaps = swaps

        self.processed = ProcessedMark()
        self.stats = RunStats()
        self._last_direction: Dict[str, SwapDirection] = {}
        self._stop = asyncio.Event()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def stop(self):
        """Request shutdown at the next suspension point."""
        self._stop.set()

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()

    async def _pause(self, seconds: float) -> bool:
        """Sleep unless stopped first. Returns True if a stop was requested."""
        if seconds > 0 and not self._stop.is_set():
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=seconds)
            except asyncio.TimeoutError:
                pass
        return self._stop.is_set()

    async def run(self, stop_event: Optional[asyncio.Event] = None, max_cycles: Optional[int] = None):
        """
        Transfer pass, then swap cycles until stopped.

        Args:
            stop_event: External event that ends the run when set
            max_cycles: Stop after this many swap cycles (unbounded if None)
        """
        if stop_event is not None:
            self._stop = stop_event

        try:
            await self.transfer_pass()
        except Exception:
            logger.exception("Unexpected error in transfer pass")

        self.state = BotState.SWAP_IDLE
        cycle = 0
        while not self._stop.is_set():
            cycle += 1
            logger.info(f"Starting swap cycle {cycle}")
            try:
                await self.swap_cycle()
            except Exception:
                logger.exception(f"Unexpected error in swap cycle {cycle}")
            self.stats.cycles_completed += 1
            logger.info(f"Cycle {cycle} complete: {self.stats.to_dict()}")

            if max_cycles is not None and cycle >= max_cycles:
                break

            self.state = BotState.SWAP_WAITING
            logger.info(f"Waiting {format_duration(self.config.cycle_wait_seconds)} before next cycle")
            if await self._pause(self.config.cycle_wait_seconds):
                break

        self.state = BotState.STOPPED
        logger.info("Orchestrator stopped")

    # ------------------------------------------------------------------
    # Transfer pass
    # ------------------------------------------------------------------

    async def transfer_pass(self):
        """One randomized native transfer per funded wallet, in wallet order."""
        self.state = BotState.TRANSFER_PASS
        threshold = self.config.min_amount_wei
        logger.info(f"Transfer pass over {len(self.wallets)} wallets")

        for wallet in self.wallets:
            if self._stop.is_set():
                break
            if wallet.address in self.processed:
                continue

            balance = await self.balances.read_native(wallet.address)
            if not balance.known:
                logger.warning(f"Skipping transfer for {wallet}: balance unknown")
                self.stats.transfers_skipped += 1
                continue
            if balance.amount <= threshold:
                logger.info(f"Skipping transfer for {wallet}: balance {balance} at or below minimum")
                self.stats.transfers_skipped += 1
                continue

            await self._transfer_once(wallet)
            self.processed.add(wallet.address)

            if await self._pause(self.config.wallet_delay_seconds):
                break

    async def _transfer_once(self, wallet: Wallet):
        try:
            amount = self.randomizer.next_transfer_amount()
            recipient = self.randomizer.next_recipient(exclude=wallet.address)
            amount_wei = Web3.to_wei(amount, "ether")

            logger.info(f"Transferring {amount} GHO from {wallet} to {recipient}")
            tx_hash = await self.transfers.transfer(wallet, recipient, amount_wei)
        except TransferFailure as e:
            self.stats.transfers_failed += 1
            logger.error(f"Transfer failed for {wallet}: {e}")
        except Exception:
            self.stats.transfers_failed += 1
            logger.exception(f"Unexpected error transferring from {wallet}")
        else:
            self.stats.transfers_sent += 1
            logger.info(f"Transfer sent for {wallet}: {format_tx_hash(tx_hash)}")

    # ------------------------------------------------------------------
    # Swap cycle
    # ------------------------------------------------------------------

    async def swap_cycle(self):
        """One swap attempt per wallet, in wallet order."""
        self.state = BotState.SWAP_RUNNING
        last = len(self.wallets) - 1

        for index, wallet in enumerate(self.wallets):
            if self._stop.is_set():
                break

            try:
                await self._swap_wallet(wallet)
            except SwapFailure as e:
                self.stats.swaps_failed += 1
                logger.error(f"Swap failed for {wallet}: {e}")
            except Exception:
                self.stats.swaps_failed += 1
                logger.exception(f"Unexpected error swapping for {wallet}")

            if index < last and await self._pause(self.config.wallet_delay_seconds):
                break

    def _token_pair(self, direction: SwapDirection):
        if direction is SwapDirection.WGHO_TO_USDC:
            return self.config.wgho_address, self.config.usdc_address
        return self.config.usdc_address, self.config.wgho_address

    def resolve_direction(
        self,
        wallet: Wallet,
        wgho: TokenBalance,
        usdc: TokenBalance
    ) -> Optional[SwapDirection]:
        """Pick the swap direction for this wallet, or None if it has nothing to sell."""
        source = {
            SwapDirection.WGHO_TO_USDC: wgho,
            SwapDirection.USDC_TO_WGHO: usdc,
        }
        mode = self.config.swap_mode

        if mode is SwapMode.WGHO_TO_USDC:
            direction = SwapDirection.WGHO_TO_USDC
        elif mode is SwapMode.USDC_TO_WGHO:
            direction = SwapDirection.USDC_TO_WGHO
        elif mode is SwapMode.RANDOM:
            direction = self.randomizer.next_swap_direction()
        else:
            last = self._last_direction.get(wallet.address)
            direction = last.opposite if last else SwapDirection.WGHO_TO_USDC
            if not source[direction].is_positive:
                direction = direction.opposite

        if not source[direction].is_positive:
            return None
        return direction

    async def _swap_wallet(self, wallet: Wallet):
        wgho = await self.balances.read_token(self.config.wgho_address, wallet.address)
        usdc = await self.balances.read_token(self.config.usdc_address, wallet.address)
        logger.info(f"{wallet} balances: {wgho}, {usdc}")

        direction = self.resolve_direction(wallet, wgho, usdc)
        if direction is None:
            logger.info(f"No {self.config.swap_mode.value} swap for {wallet}: source balance is zero")
            self.stats.swaps_skipped += 1
            return

        source = wgho if direction is SwapDirection.WGHO_TO_USDC else usdc
        amount_in = source.amount * self.config.swap_percent // 100
        if amount_in <= 0:
            logger.info(f"No swap for {wallet}: {self.config.swap_percent}% of {source} rounds to zero")
            self.stats.swaps_skipped += 1
            return

        token_in, token_out = self._token_pair(direction)
        self._last_direction[wallet.address] = direction

        logger.info(f"Swapping {amount_in} units {direction.value} for {wallet}")
        block = await self.swaps.swap(wallet, token_in, token_out, amount_in)
        self.stats.swaps_succeeded += 1
        logger.info(f"Swap confirmed for {wallet} in block {block}")
