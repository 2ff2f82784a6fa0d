"""
Command Line Interface
======================

Usage:
    lens-swap-bot run                  # transfer pass, then swap cycles until Ctrl+C
    lens-swap-bot run --cycles 3       # bounded run
    lens-swap-bot balances             # GHO / WGHO / USDC per wallet
    lens-swap-bot wrap --count 5 --amount 0.005

Settings come from the environment (.env supported) and an optional YAML
file passed with --config.
"""

import sys
import signal
import asyncio
import argparse
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from web3 import Web3
from rich import box
from rich.panel import Panel
from rich.table import Table

from .balances import BalanceReader
from .chain import check_connection, get_web3
from .config import Config, load_config
from .orchestrator import Orchestrator
from .randomizer import AmountRandomizer
from .swap import SwapExecutor, WrapExecutor
from .transfer import TransferExecutor
from .wallet import WalletSet, load_wallets
from .utils import (
    BotError,
    ConfigurationError,
    SwapFailure,
    console,
    logger,
    setup_logging,
    format_address,
)


WRAP_PAUSE_SECONDS = 5


def print_banner(config: Config, wallets: WalletSet):
    console.print(Panel.fit(
        "[bold cyan]Lens Swap Bot[/bold cyan]\n"
        f"[dim]{len(wallets)} wallets | chain {config.chain_id} | mode {config.swap_mode.value}[/dim]",
        box=box.DOUBLE
    ))


def install_signal_handlers(stop_event: asyncio.Event):
    """Set the stop event on SIGINT/SIGTERM where the loop supports it."""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            # Windows: fall back to KeyboardInterrupt
            pass


async def run_command(config: Config, wallets: WalletSet, cycles: Optional[int]) -> int:
    w3 = get_web3(config.rpc_url)
    await check_connection(w3, config.chain_id)

    orchestrator = Orchestrator(
        config=config,
        wallets=wallets,
        balances=BalanceReader(w3, retries=config.read_retries),
        randomizer=AmountRandomizer(
            config.min_amount,
            config.max_amount,
            config.recipients or wallets.addresses
        ),
        transfers=TransferExecutor(w3, config.chain_id, config.gas_price_wei, config.gas_limit),
        swaps=SwapExecutor(
            w3,
            config.chain_id,
            config.router_address,
            config.gas_price_wei,
            config.swap_gas_limit,
            config.swap_slippage,
            config.swap_flags,
        ),
    )

    stop_event = asyncio.Event()
    install_signal_handlers(stop_event)
    console.print("[dim]Press Ctrl+C to stop[/dim]\n")

    try:
        await orchestrator.run(stop_event=stop_event, max_cycles=cycles)
    finally:
        console.print(orchestrator.stats.to_table())
    return 0


async def balances_command(config: Config, wallets: WalletSet) -> int:
    w3 = get_web3(config.rpc_url)
    await check_connection(w3, config.chain_id)
    reader = BalanceReader(w3, retries=config.read_retries)

    table = Table(title="Wallet Balances", box=box.ROUNDED)
    table.add_column("#", style="cyan")
    table.add_column("Address", style="dim")
    table.add_column("GHO", style="green")
    table.add_column("WGHO", style="yellow")
    table.add_column("USDC", style="blue")

    for index, wallet in enumerate(wallets, start=1):
        native = await reader.read_native(wallet.address)
        wgho = await reader.read_token(config.wgho_address, wallet.address)
        usdc = await reader.read_token(config.usdc_address, wallet.address)
        table.add_row(str(index), format_address(wallet.address), str(native), str(wgho), str(usdc))

    console.print(table)
    return 0


async def wrap_command(config: Config, wallets: WalletSet, count: int, amount: Decimal) -> int:
    """Deposit ``amount`` GHO into WGHO ``count`` times per wallet."""
    w3 = get_web3(config.rpc_url)
    await check_connection(w3, config.chain_id)
    reader = BalanceReader(w3, retries=config.read_retries)
    wrapper = WrapExecutor(w3, config.chain_id, config.wgho_address, config.gas_price_wei, config.swap_gas_limit)
    amount_wei = Web3.to_wei(amount, "ether")
    failures = 0

    for wallet in wallets:
        for i in range(count):
            logger.info(f"--- {wallet}: wrap {i + 1} of {count} ({amount} GHO) ---")
            before = await reader.read_token(config.wgho_address, wallet.address)
            logger.info(f"Balance before: {await reader.read_native(wallet.address)}, {before}")
            try:
                block = await wrapper.wrap(wallet, amount_wei)
                logger.info(f"Confirmed in block {block}")
            except SwapFailure as e:
                failures += 1
                logger.error(f"Wrap {i + 1} failed for {wallet}: {e}")
            after = await reader.read_token(config.wgho_address, wallet.address)
            logger.info(f"Balance after: {await reader.read_native(wallet.address)}, {after}")

            if i < count - 1:
                await asyncio.sleep(WRAP_PAUSE_SECONDS)

    logger.info(f"All wrap operations completed ({failures} failed)")
    return 0 if failures == 0 else 2


def _positive_decimal(value: str) -> Decimal:
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"invalid amount: {value!r}")
    if amount <= 0:
        raise argparse.ArgumentTypeError("amount must be positive")
    return amount


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lens-swap-bot",
        description="Multi-wallet transfer and swap bot for the Lens chain",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run forever (Ctrl+C to stop)
  lens-swap-bot run

  # Show balances for all configured wallets
  lens-swap-bot balances

  # Wrap 0.005 GHO five times per wallet
  lens-swap-bot wrap --count 5 --amount 0.005
        """
    )

    # Global options
    parser.add_argument('--env-file', default='.env', help='Path to .env file')
    parser.add_argument('--config', help='Optional YAML settings file')
    parser.add_argument('--log-level', help='Override LOG_LEVEL')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    run_parser = subparsers.add_parser('run', help='Transfer pass, then swap cycles')
    run_parser.add_argument('--cycles', type=int, help='Stop after N swap cycles')

    subparsers.add_parser('balances', help='Show wallet balances')

    wrap_parser = subparsers.add_parser('wrap', help='Wrap GHO into WGHO')
    wrap_parser.add_argument('--count', type=int, default=1, help='Number of deposits per wallet')
    wrap_parser.add_argument('--amount', type=_positive_decimal, default=Decimal("0.005"), help='GHO per deposit')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        config = load_config(env_file=args.env_file, config_file=args.config)
    except ConfigurationError as e:
        setup_logging(args.log_level or "INFO", None)
        logger.error(f"Configuration error: {e}")
        return 1

    setup_logging(args.log_level or config.log_level, config.log_dir)
    try:
        wallets = load_wallets(config.private_keys)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    print_banner(config, wallets)

    try:
        if args.command == 'run':
            return asyncio.run(run_command(config, wallets, args.cycles))
        elif args.command == 'balances':
            return asyncio.run(balances_command(config, wallets))
        elif args.command == 'wrap':
            return asyncio.run(wrap_command(config, wallets, args.count, args.amount))
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped by user[/yellow]")
        return 0
    except BotError as e:
        logger.error(f"Fatal error: {e}")
        return 1

    parser.print_help()
    return 1


if __name__ == '__main__':
    sys.exit(main())
