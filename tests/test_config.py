"""
Tests for configuration loading and validation.
"""

import os

import pytest

from lens_swap_bot.config import (
    Config,
    SwapDirection,
    SwapMode,
    collect_private_keys,
    load_config,
)
from lens_swap_bot.utils import ConfigurationError

from conftest import ROUTER, USDC, WGHO


class TestConfig:
    """Tests for the Config dataclass."""

    def test_default_config(self):
        """Test default configuration values."""
        config = Config()

        assert config.chain_id == 232
        assert config.rpc_url == "https://rpc.lens.xyz"
        assert config.swap_mode is SwapMode.ALL
        assert config.swap_slippage == 0.5

    def test_config_is_immutable(self):
        config = Config()
        with pytest.raises(Exception):
            config.swap_percent = 99

    def test_to_dict_excludes_private_keys(self):
        config = Config(private_keys=("0x" + "a" * 64,))

        data = config.to_dict()
        assert "private_keys" not in data
        assert data["swap_mode"] == "ALL"

    def test_from_dict_coerces_strings(self):
        config = Config.from_dict({
            "chain_id": "232",
            "swap_percent": "25",
            "swap_slippage": "1.5",
            "swap_mode": "random",
            "recipients": f"{WGHO}, {USDC}",
        })

        assert config.chain_id == 232
        assert config.swap_percent == 25
        assert config.swap_slippage == 1.5
        assert config.swap_mode is SwapMode.RANDOM
        assert config.recipients == (WGHO, USDC)

    def test_config_ignores_invalid_fields(self):
        config = Config.from_dict({"chain_id": 232, "invalid_field": "ignored"})
        assert not hasattr(config, "invalid_field")

    def test_min_amount_wei(self):
        assert Config(min_amount=0.000001).min_amount_wei == 10**12

    def test_gas_price_wei(self):
        assert Config(gas_price_gwei=5).gas_price_wei == 5 * 10**9


class TestValidation:
    """Invalid settings are rejected with ConfigurationError."""

    @pytest.mark.parametrize("data", [
        {"swap_percent": 101},
        {"swap_percent": -1},
        {"swap_slippage": 100},
        {"min_amount": 0},
        {"min_amount": 0.01, "max_amount": 0.001},
        {"gas_limit": 0},
        {"cycle_wait_seconds": -5},
        {"wgho_address": "0xinvalid"},
        {"router_address": "not-an-address"},
        {"recipients": "0x1234"},
        {"swap_mode": "SIDEWAYS"},
        {"chain_id": "lens"},
    ])
    def test_rejects_invalid(self, data):
        with pytest.raises(ConfigurationError):
            Config.from_dict(data)


class TestSwapDirection:

    def test_opposite(self):
        assert SwapDirection.WGHO_TO_USDC.opposite is SwapDirection.USDC_TO_WGHO
        assert SwapDirection.USDC_TO_WGHO.opposite is SwapDirection.WGHO_TO_USDC


class TestLoadConfig:
    """Tests for load_config precedence."""

    def test_private_keys_in_index_order(self):
        environ = {
            "PRIVATE_KEY_2": "0xbbb",
            "PRIVATE_KEY_1": "0xaaa",
            "PRIVATE_KEY_10": "0xjjj",
            "PRIVATE_KEY_11": "0xignored",
            "PRIVATE_KEY": "0xsingle",
        }
        assert collect_private_keys(environ) == ["0xaaa", "0xbbb", "0xjjj", "0xsingle"]

    def test_environment_values(self):
        environ = {
            "RPC_URL": "https://rpc.example",
            "CHAIN_ID": "37111",
            "ROUTER": ROUTER,
            "SWAP_MODE": "USDC_TO_WGHO",
            "DURATION": "60",
            "MIN_BALANCE": "0.000001",
            "MAX_BALANCE": "0.00001",
            "PRIVATE_KEY_1": "0x" + "1" * 64,
        }
        config = load_config(environ=environ)

        assert config.rpc_url == "https://rpc.example"
        assert config.chain_id == 37111
        assert config.router_address == ROUTER
        assert config.swap_mode is SwapMode.USDC_TO_WGHO
        assert config.cycle_wait_seconds == 60
        assert config.private_keys == ("0x" + "1" * 64,)

    def test_yaml_file_overridden_by_environment(self, tmp_path):
        config_path = tmp_path / "bot.yaml"
        config_path.write_text(
            "swap_percent: 30\n"
            "swap_slippage: 2.0\n"
            "private_keys: ['0xshould-not-load']\n"
        )

        config = load_config(config_file=str(config_path), environ={"SWAP_PERCENT": "40"})

        assert config.swap_percent == 40
        assert config.swap_slippage == 2.0
        assert config.private_keys == ()

    def test_missing_yaml_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(config_file=str(tmp_path / "missing.yaml"), environ={})

    def test_env_file_loaded(self, tmp_path):
        env_path = tmp_path / ".env"
        env_path.write_text("SWAP_PERCENT=15\n")
        os.environ.pop("SWAP_PERCENT", None)

        try:
            config = load_config(env_file=str(env_path))
        finally:
            os.environ.pop("SWAP_PERCENT", None)

        assert config.swap_percent == 15
