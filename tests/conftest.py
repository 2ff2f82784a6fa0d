"""
Shared fixtures for the bot test suite.

Run with: pytest tests/ -v
"""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
from eth_account import Account

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from lens_swap_bot.config import Config
from lens_swap_bot.wallet import Wallet, WalletSet


WGHO = "0x6bDc36E20D267Ff0dd6097799f82e78907105e2F"
USDC = "0x88F08E304EC4f90D644Cec3Fb69b8aD414acf884"
ROUTER = "0x2626664c2603336E57B271c5C0b26F421741e481"
TX_HASH_BYTES = bytes.fromhex("ab" * 32)
TX_HASH = "0x" + "ab" * 32


def new_private_key() -> str:
    """Throwaway key - DO NOT USE IN PRODUCTION."""
    return "0x" + bytes(Account.create().key).hex()


@pytest.fixture
def private_keys():
    return [new_private_key() for _ in range(3)]


@pytest.fixture
def wallets(private_keys):
    return WalletSet(Wallet.from_key(k) for k in private_keys)


@pytest.fixture
def config():
    """Config with no delays, suitable for driving the orchestrator."""
    return Config(
        wgho_address=WGHO,
        usdc_address=USDC,
        router_address=ROUTER,
        swap_percent=50,
        swap_slippage=0.5,
        min_amount=0.000001,
        max_amount=0.00001,
        wallet_delay_seconds=0,
        cycle_wait_seconds=0,
    )


@pytest.fixture
def mock_w3():
    """Mock AsyncWeb3 with the RPC calls the executors use."""
    w3 = Mock()
    w3.eth = Mock()
    w3.eth.get_balance = AsyncMock(return_value=10**18)
    w3.eth.get_transaction_count = AsyncMock(return_value=7)
    w3.eth.send_raw_transaction = AsyncMock(return_value=TX_HASH_BYTES)
    w3.eth.wait_for_transaction_receipt = AsyncMock(return_value={"status": 1, "blockNumber": 123})
    return w3


def contract_call(to: str, data: str = "0x12345678") -> Mock:
    """Mock bound contract function whose build_transaction echoes its params."""
    call = Mock()
    call.build_transaction = AsyncMock(side_effect=lambda params: {**params, "to": to, "data": data})
    return call
