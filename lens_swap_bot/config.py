"""
Configuration Management Module

Settings are resolved once at startup, in order of precedence:

1. environment variables (a ``.env`` file is loaded with python-dotenv)
2. an optional YAML file with non-secret settings keyed by field name
3. the defaults on :class:`Config`

Private keys are only ever read from the environment.
"""

import os
from enum import Enum
from pathlib import Path
from decimal import Decimal
from dataclasses import dataclass, asdict, field, fields
from typing import Dict, Any, List, Mapping, Optional, Tuple

import yaml
from dotenv import load_dotenv
from web3 import Web3

from .utils import ConfigurationError, logger


MAX_PRIVATE_KEYS = 10


class SwapMode(Enum):
    """How the swap direction is chosen for each wallet."""
    ALL = "ALL"                     # Alternate per wallet, falling back on balance
    WGHO_TO_USDC = "WGHO_TO_USDC"   # Always WGHO -> USDC
    USDC_TO_WGHO = "USDC_TO_WGHO"   # Always USDC -> WGHO
    RANDOM = "RANDOM"               # Coin flip per wallet per cycle


class SwapDirection(Enum):
    WGHO_TO_USDC = "WGHO_TO_USDC"
    USDC_TO_WGHO = "USDC_TO_WGHO"

    @property
    def opposite(self) -> "SwapDirection":
        if self is SwapDirection.WGHO_TO_USDC:
            return SwapDirection.USDC_TO_WGHO
        return SwapDirection.WGHO_TO_USDC


# Config field -> environment variable
ENV_KEYS: Dict[str, str] = {
    "rpc_url": "RPC_URL",
    "chain_id": "CHAIN_ID",
    "wgho_address": "WGHO",
    "usdc_address": "USDC",
    "router_address": "ROUTER",
    "swap_percent": "SWAP_PERCENT",
    "swap_slippage": "SWAP_SLIPPAGE",
    "swap_mode": "SWAP_MODE",
    "swap_flags": "SWAP_FLAGS",
    "cycle_wait_seconds": "DURATION",
    "wallet_delay_seconds": "WALLET_DELAY",
    "min_amount": "MIN_BALANCE",
    "max_amount": "MAX_BALANCE",
    "gas_price_gwei": "GAS_PRICE",
    "gas_limit": "GAS_LIMIT",
    "swap_gas_limit": "SWAP_GAS_LIMIT",
    "recipients": "RECIPIENTS",
    "read_retries": "READ_RETRIES",
    "log_level": "LOG_LEVEL",
    "log_dir": "LOG_DIR",
}


@dataclass(frozen=True)
class Config:
    """Bot configuration settings. Immutable once loaded."""

    # Network (Lens mainnet, native currency GHO)
    rpc_url: str = "https://rpc.lens.xyz"
    chain_id: int = 232

    # Contracts
    wgho_address: str = "0x6bDc36E20D267Ff0dd6097799f82e78907105e2F"
    usdc_address: str = "0x88F08E304EC4f90D644Cec3Fb69b8aD414acf884"
    router_address: str = ""

    # Swap settings
    swap_percent: int = 10            # Percent of the source balance traded per swap
    swap_slippage: float = 0.5        # Percent
    swap_mode: SwapMode = SwapMode.ALL
    swap_flags: int = 3000            # Fixed flag value passed to the router
    cycle_wait_seconds: int = 3600
    wallet_delay_seconds: float = 5.0

    # Transfer settings (native units)
    min_amount: float = 0.000001
    max_amount: float = 0.00001
    recipients: Tuple[str, ...] = ()

    # Gas settings
    gas_price_gwei: float = 5.0
    gas_limit: int = 21000
    swap_gas_limit: int = 300000

    # Operation
    read_retries: int = 3
    log_level: str = "INFO"
    log_dir: str = "./logs"

    # Secrets (never serialized)
    private_keys: Tuple[str, ...] = field(default=(), repr=False)

    @property
    def min_amount_wei(self) -> int:
        return Web3.to_wei(Decimal(str(self.min_amount)), "ether")

    @property
    def gas_price_wei(self) -> int:
        return Web3.to_wei(Decimal(str(self.gas_price_gwei)), "gwei")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (excluding sensitive data)."""
        data = asdict(self)
        data.pop("private_keys")
        data["swap_mode"] = self.swap_mode.value
        data["recipients"] = list(self.recipients)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create Config from a dictionary of raw (possibly string) values."""
        valid_fields = {f.name: f for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            if key not in valid_fields:
                continue
            kwargs[key] = _coerce(key, value, valid_fields[key].type)
        config = cls(**kwargs)
        config.validate()
        return config

    def validate(self):
        """Raise ConfigurationError on invalid settings."""
        for name in ("wgho_address", "usdc_address"):
            value = getattr(self, name)
            if not Web3.is_address(value):
                raise ConfigurationError(f"{name} is not a valid address: {value!r}")
        if self.router_address and not Web3.is_address(self.router_address):
            raise ConfigurationError(f"router_address is not a valid address: {self.router_address!r}")
        for recipient in self.recipients:
            if not Web3.is_address(recipient):
                raise ConfigurationError(f"Invalid recipient address: {recipient!r}")

        if not 0 <= self.swap_percent <= 100:
            raise ConfigurationError(f"SWAP_PERCENT must be within 0-100, got {self.swap_percent}")
        if not 0 <= self.swap_slippage < 100:
            raise ConfigurationError(f"SWAP_SLIPPAGE must be within [0, 100), got {self.swap_slippage}")
        if self.min_amount <= 0 or self.max_amount <= self.min_amount:
            raise ConfigurationError(
                f"Transfer bounds must satisfy 0 < MIN_BALANCE < MAX_BALANCE, "
                f"got {self.min_amount} / {self.max_amount}"
            )
        if self.gas_price_gwei <= 0 or self.gas_limit <= 0 or self.swap_gas_limit <= 0:
            raise ConfigurationError("Gas price and gas limits must be positive")
        if self.cycle_wait_seconds < 0 or self.wallet_delay_seconds < 0:
            raise ConfigurationError("DURATION and WALLET_DELAY cannot be negative")
        if self.read_retries < 1:
            raise ConfigurationError("READ_RETRIES must be at least 1")


def _coerce(name: str, value: Any, type_hint: Any) -> Any:
    """Convert a raw env/YAML value to the field's type."""
    try:
        if name == "swap_mode":
            return value if isinstance(value, SwapMode) else SwapMode(str(value).strip().upper())
        if name in ("recipients", "private_keys"):
            if isinstance(value, str):
                value = [p.strip() for p in value.split(",")]
            return tuple(p for p in value if p)
        if type_hint in (int, "int"):
            return int(value)
        if type_hint in (float, "float"):
            return float(value)
        return str(value).strip()
    except ValueError as e:
        raise ConfigurationError(f"Invalid value for {name}: {value!r} ({e})") from e


def collect_private_keys(environ: Mapping[str, str]) -> List[str]:
    """Read PRIVATE_KEY_1..PRIVATE_KEY_10, then the single PRIVATE_KEY slot."""
    keys = []
    for i in range(1, MAX_PRIVATE_KEYS + 1):
        value = (environ.get(f"PRIVATE_KEY_{i}") or "").strip()
        if value:
            keys.append(value)
    single = (environ.get("PRIVATE_KEY") or "").strip()
    if single:
        keys.append(single)
    return keys


def read_yaml_settings(config_path: Path) -> Dict[str, Any]:
    """Read non-secret settings from a YAML file."""
    config_path = Path(config_path)
    if not config_path.exists():
        raise ConfigurationError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file must contain a mapping: {config_path}")
    if "private_keys" in data:
        logger.warning("Ignoring private_keys in config file; use PRIVATE_KEY_n environment variables")
        data.pop("private_keys")
    return data


def load_config(
    env_file: Optional[str] = ".env",
    config_file: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None
) -> Config:
    """Load and validate configuration."""
    if environ is None:
        if env_file and Path(env_file).exists():
            load_dotenv(env_file, override=False)
        environ = os.environ

    data: Dict[str, Any] = {}
    if config_file:
        data.update(read_yaml_settings(Path(config_file)))

    for field_name, env_key in ENV_KEYS.items():
        value = (environ.get(env_key) or "").strip()
        if value:
            data[field_name] = value

    data["private_keys"] = collect_private_keys(environ)

    config = Config.from_dict(data)
    logger.debug(f"Configuration loaded: {config.to_dict()}")
    return config
