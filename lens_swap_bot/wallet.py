"""
Wallet Module
=============
Loads the signing wallets from private keys.

Each Wallet wraps an eth_account LocalAccount and is identified by its
checksummed address. The WalletSet keeps configuration order.
"""

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Tuple

from eth_account import Account
from eth_account.signers.local import LocalAccount

from .utils import ConfigurationError, SecureLogger, logger, format_address


MIN_WALLETS = 2


@dataclass(frozen=True)
class Wallet:
    """A signing wallet. Immutable for the process lifetime."""
    address: str
    account: LocalAccount = field(repr=False, compare=False)

    @classmethod
    def from_key(cls, private_key: str) -> "Wallet":
        if not validate_private_key(private_key):
            raise ConfigurationError("Private key must be 64 hex characters")
        try:
            account = Account.from_key(private_key)
        except Exception as e:
            raise ConfigurationError(f"Private key rejected: {type(e).__name__}") from e
        SecureLogger.register_secret(private_key)
        return cls(address=account.address, account=account)

    def sign_transaction(self, tx: dict):
        """Sign a transaction dict, returning eth_account's SignedTransaction."""
        return self.account.sign_transaction(tx)

    def __str__(self) -> str:
        return format_address(self.address)


class WalletSet:
    """Ordered, read-only collection of wallets."""

    def __init__(self, wallets: Iterable[Wallet]):
        self._wallets: Tuple[Wallet, ...] = tuple(wallets)

    def __iter__(self) -> Iterator[Wallet]:
        return iter(self._wallets)

    def __len__(self) -> int:
        return len(self._wallets)

    def __getitem__(self, index: int) -> Wallet:
        return self._wallets[index]

    @property
    def addresses(self) -> Tuple[str, ...]:
        return tuple(w.address for w in self._wallets)


def validate_private_key(key: str) -> bool:
    """Validate private key format."""
    if not key:
        return False

    # Remove 0x prefix if present
    key_clean = key[2:] if key.startswith("0x") else key

    # Check length and hex format
    if len(key_clean) != 64:
        return False

    try:
        int(key_clean, 16)
        return True
    except ValueError:
        return False


def load_wallets(private_keys: Iterable[str], min_wallets: int = MIN_WALLETS) -> WalletSet:
    """
    Build the WalletSet from private keys.

    Duplicate keys collapse onto one wallet (first occurrence wins).

    Raises:
        ConfigurationError: on a malformed key or fewer than ``min_wallets``
    """
    wallets = []
    seen = set()
    for position, key in enumerate(private_keys, start=1):
        try:
            wallet = Wallet.from_key(key.strip())
        except ConfigurationError as e:
            raise ConfigurationError(f"Private key #{position} is invalid: {e}") from e
        if wallet.address in seen:
            logger.warning(f"Duplicate private key #{position} for {wallet}, ignoring")
            continue
        seen.add(wallet.address)
        wallets.append(wallet)

    if len(wallets) < min_wallets:
        raise ConfigurationError(
            f"At least {min_wallets} wallets are required, found {len(wallets)}. "
            f"Set PRIVATE_KEY_1..PRIVATE_KEY_10 in the environment."
        )

    logger.info(f"Loaded {len(wallets)} wallets")
    return WalletSet(wallets)
