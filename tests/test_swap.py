"""
Tests for the swap and wrap executors.
"""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from lens_swap_bot.swap import (
    DEADLINE_SECONDS,
    SwapExecutor,
    WrapExecutor,
    calculate_min_amount_out,
)
from lens_swap_bot.utils import ConfigurationError, SwapFailure

from conftest import ROUTER, TX_HASH, USDC, WGHO, contract_call


class TestCalculateMinAmountOut:

    def test_half_percent(self):
        assert calculate_min_amount_out(1_000_000, 0.5) == 995_000

    def test_zero_slippage_is_identity(self):
        assert calculate_min_amount_out(123_456_789, 0) == 123_456_789

    @pytest.mark.parametrize("amount_in", [0, 1, 999, 10**18, 2**200])
    @pytest.mark.parametrize("slippage", [0, 0.01, 0.5, 3, 99.99, 100])
    def test_never_exceeds_input(self, amount_in, slippage):
        result = calculate_min_amount_out(amount_in, slippage)
        assert 0 <= result <= amount_in
        assert isinstance(result, int)

    def test_large_amounts_stay_exact(self):
        # 18-decimal amounts lose precision through float math
        assert calculate_min_amount_out(10**30 + 1, 1) == (10**30 + 1) * 9900 // 10000

    @pytest.mark.parametrize("slippage", [-0.1, 100.5])
    def test_invalid_slippage(self, slippage):
        with pytest.raises(ValueError):
            calculate_min_amount_out(1000, slippage)


@pytest.fixture
def contracts(mock_w3):
    token = Mock()
    token.functions.approve.return_value = contract_call(WGHO, "0x095ea7b3")
    router = Mock()
    router.functions.swap.return_value = contract_call(ROUTER)

    def contract(address, abi):
        return router if address == ROUTER else token

    mock_w3.eth.contract = Mock(side_effect=contract)
    return token, router


@pytest.fixture
def executor(mock_w3, contracts):
    return SwapExecutor(
        mock_w3,
        chain_id=232,
        router_address=ROUTER,
        gas_price_wei=5 * 10**9,
        gas_limit=300000,
        slippage_percent=0.5,
        swap_flags=3000,
        clock=lambda: 1_700_000_000.7,
    )


class TestSwapExecutor:

    def test_requires_router(self, mock_w3):
        with pytest.raises(ConfigurationError):
            SwapExecutor(mock_w3, 232, "", 1, 1, 0.5, 3000)

    def test_build_quote(self, executor):
        quote = executor.build_quote(WGHO, USDC, 1_000_000)

        assert quote.amount_out_min == 995_000
        assert quote.deadline == 1_700_000_000 + DEADLINE_SECONDS
        assert quote.token_in == WGHO

    def test_swap_approves_exact_amount_then_swaps(self, executor, contracts, wallets, mock_w3):
        token, router = contracts
        wallet = wallets[0]

        block = asyncio.run(executor.swap(wallet, WGHO, USDC, 1_000_000))

        assert block == 123
        token.functions.approve.assert_called_once_with(ROUTER, 1_000_000)
        router.functions.swap.assert_called_once_with(
            WGHO, USDC, 3000, wallet.address, 1_700_000_000 + DEADLINE_SECONDS, 1_000_000, 995_000, 0
        )
        # approval and swap both confirmed
        assert mock_w3.eth.wait_for_transaction_receipt.await_count == 2
        assert mock_w3.eth.send_raw_transaction.await_count == 2

    def test_fresh_nonce_per_transaction(self, executor, contracts, wallets, mock_w3):
        token, router = contracts
        mock_w3.eth.get_transaction_count = AsyncMock(side_effect=[4, 5])

        asyncio.run(executor.swap(wallets[0], WGHO, USDC, 1000))

        approve_params = token.functions.approve.return_value.build_transaction.await_args.args[0]
        swap_params = router.functions.swap.return_value.build_transaction.await_args.args[0]
        assert approve_params["nonce"] == 4
        assert swap_params["nonce"] == 5
        assert swap_params["gasPrice"] == 5 * 10**9
        assert swap_params["gas"] == 300000

    def test_reverted_approval_stops_before_swap(self, executor, contracts, wallets, mock_w3):
        _, router = contracts
        mock_w3.eth.wait_for_transaction_receipt = AsyncMock(return_value={"status": 0, "blockNumber": 1})

        with pytest.raises(SwapFailure) as exc_info:
            asyncio.run(executor.swap(wallets[0], WGHO, USDC, 1000))

        assert exc_info.value.tx_hash == TX_HASH
        router.functions.swap.assert_not_called()

    def test_reverted_swap_carries_hash(self, executor, wallets, mock_w3):
        mock_w3.eth.wait_for_transaction_receipt = AsyncMock(side_effect=[
            {"status": 1, "blockNumber": 1},
            {"status": 0, "blockNumber": 2},
        ])

        with pytest.raises(SwapFailure) as exc_info:
            asyncio.run(executor.swap(wallets[0], WGHO, USDC, 1000))

        assert exc_info.value.tx_hash == TX_HASH
        assert TX_HASH in str(exc_info.value)

    def test_rejected_broadcast_has_no_hash(self, executor, wallets, mock_w3):
        mock_w3.eth.send_raw_transaction = AsyncMock(side_effect=ValueError("insufficient funds"))

        with pytest.raises(SwapFailure) as exc_info:
            asyncio.run(executor.swap(wallets[0], WGHO, USDC, 1000))

        assert exc_info.value.tx_hash is None

    def test_zero_amount_rejected(self, executor, wallets, mock_w3):
        with pytest.raises(SwapFailure):
            asyncio.run(executor.swap(wallets[0], WGHO, USDC, 0))
        mock_w3.eth.send_raw_transaction.assert_not_awaited()


class TestWrapExecutor:

    def test_wrap_deposits_value(self, mock_w3, wallets):
        wgho = Mock()
        wgho.functions.deposit.return_value = contract_call(WGHO, "0xd0e30db0")
        mock_w3.eth.contract = Mock(return_value=wgho)
        wrapper = WrapExecutor(mock_w3, 232, WGHO, 5 * 10**9, 100000)

        block = asyncio.run(wrapper.wrap(wallets[0], 5 * 10**15))

        assert block == 123
        params = wgho.functions.deposit.return_value.build_transaction.await_args.args[0]
        assert params["value"] == 5 * 10**15

    def test_wrap_revert(self, mock_w3, wallets):
        wgho = Mock()
        wgho.functions.deposit.return_value = contract_call(WGHO, "0xd0e30db0")
        mock_w3.eth.contract = Mock(return_value=wgho)
        mock_w3.eth.wait_for_transaction_receipt = AsyncMock(return_value={"status": 0, "blockNumber": 9})
        wrapper = WrapExecutor(mock_w3, 232, WGHO, 5 * 10**9, 100000)

        with pytest.raises(SwapFailure):
            asyncio.run(wrapper.wrap(wallets[0], 10**15))
