"""
Lens Swap Bot

Multi-wallet native transfer and WGHO/USDC swap cycles on the Lens chain.

Usage:
    from lens_swap_bot import load_config, load_wallets, Orchestrator

    # See README.md for full documentation
"""

__version__ = "1.0.0"
__license__ = "MIT"

from .config import Config, SwapMode, SwapDirection, load_config
from .wallet import Wallet, WalletSet, load_wallets
from .balances import BalanceReader, TokenBalance
from .randomizer import AmountRandomizer
from .transfer import TransferExecutor
from .swap import SwapExecutor, SwapQuote, WrapExecutor, calculate_min_amount_out
from .orchestrator import Orchestrator, BotState, ProcessedMark, RunStats
from .utils import (
    logger,
    setup_logging,
    BotError,
    ConfigurationError,
    BalanceReadFailure,
    TransferFailure,
    SwapFailure,
)

__all__ = [
    "Config",
    "SwapMode",
    "SwapDirection",
    "load_config",
    "Wallet",
    "WalletSet",
    "load_wallets",
    "BalanceReader",
    "TokenBalance",
    "AmountRandomizer",
    "TransferExecutor",
    "SwapExecutor",
    "SwapQuote",
    "WrapExecutor",
    "calculate_min_amount_out",
    "Orchestrator",
    "BotState",
    "ProcessedMark",
    "RunStats",
    "logger",
    "setup_logging",
    "BotError",
    "ConfigurationError",
    "BalanceReadFailure",
    "TransferFailure",
    "SwapFailure",
]
