"""
Utility Module

Error types, secret-redacting logging, log file setup and formatting helpers
shared by every part of the bot.

Log layout:
- console: rich handler, INFO and up
- transactions.log: transfer, swap and wrap events (``lens_swap_bot.activity``)
- errors.log: every ERROR record from any bot logger
"""

import re
import logging
import logging.handlers
from pathlib import Path
from decimal import Decimal
from typing import Optional, Set

from rich.console import Console
from rich.logging import RichHandler


# Global console for Rich output
console = Console()

LOGGER_NAME = "lens_swap_bot"
ACTIVITY_LOGGER_NAME = "lens_swap_bot.activity"


class BotError(Exception):
    """Base class for bot errors."""
    pass


class ConfigurationError(BotError):
    """Fatal startup error: bad or missing configuration."""
    pass


class BalanceReadFailure(BotError):
    """A balance or token metadata read could not be completed."""
    pass


class TransferFailure(BotError):
    """Native transfer rejected by the network."""
    pass


class SwapFailure(BotError):
    """Approval, swap or wrap transaction failed."""

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        super().__init__(message)
        self.tx_hash = tx_hash

    def __str__(self) -> str:
        base = super().__str__()
        if self.tx_hash:
            return f"{base} (tx {self.tx_hash})"
        return base


class SecureLogger:
    """
    Logger that sanitizes sensitive data from log messages.

    Private keys are registered explicitly with ``register_secret`` so that
    transaction hashes (same length as a key) stay readable in the logs.
    """

    # Patterns to redact from logs
    SENSITIVE_PATTERNS = [
        (r'password["\']?\s*[:=]\s*["\'][^"\']+["\']', 'password=[REDACTED]'),
        (r'api[_-]?key["\']?\s*[:=]\s*["\'][^"\']+["\']', 'api_key=[REDACTED]'),
        (r'private[_-]?key["\']?\s*[:=]\s*\S+', 'private_key=[REDACTED]'),
    ]

    _secrets: Set[str] = set()

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    @property
    def name(self) -> str:
        return self._logger.name

    @classmethod
    def register_secret(cls, secret: str):
        """Redact this exact value (with or without 0x) from all messages."""
        if not secret:
            return
        clean = secret[2:] if secret.startswith("0x") else secret
        cls._secrets.add(clean.lower())

    @classmethod
    def clear_secrets(cls):
        cls._secrets.clear()

    def _sanitize(self, msg) -> str:
        """Remove sensitive data from log message."""
        if not isinstance(msg, str):
            msg = str(msg)

        sanitized = msg
        for secret in self._secrets:
            sanitized = re.sub(
                r"(0x)?" + re.escape(secret), "[PRIVATE_KEY_REDACTED]", sanitized, flags=re.IGNORECASE
            )
        for pattern, replacement in self.SENSITIVE_PATTERNS:
            sanitized = re.sub(pattern, replacement, sanitized, flags=re.IGNORECASE)
        return sanitized

    def debug(self, msg: str, *args, **kwargs):
        self._logger.debug(self._sanitize(msg), *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        self._logger.info(self._sanitize(msg), *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        self._logger.warning(self._sanitize(msg), *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        self._logger.error(self._sanitize(msg), *args, **kwargs)

    def exception(self, msg: str, *args, **kwargs):
        self._logger.exception(self._sanitize(msg), *args, **kwargs)

    def critical(self, msg: str, *args, **kwargs):
        self._logger.critical(self._sanitize(msg), *args, **kwargs)


def get_logger(name: str = LOGGER_NAME) -> SecureLogger:
    return SecureLogger(logging.getLogger(name))


logger = get_logger()
activity_logger = get_logger(ACTIVITY_LOGGER_NAME)


def setup_logging(
    log_level: str = "INFO",
    log_dir: Optional[str] = "./logs",
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5
) -> SecureLogger:
    """
    Setup console and file logging for the bot.

    Returns the package SecureLogger.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root = logging.getLogger(LOGGER_NAME)
    root.setLevel(level)

    # Remove existing handlers
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    # Transaction records are kept at INFO whatever the console level
    activity = logging.getLogger(ACTIVITY_LOGGER_NAME)
    activity.setLevel(min(level, logging.INFO))
    for handler in list(activity.handlers):
        activity.removeHandler(handler)
        handler.close()

    # Rich console handler
    rich_handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        rich_tracebacks=True
    )
    rich_handler.setLevel(level)
    rich_handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(rich_handler)

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        file_formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

        activity_handler = logging.handlers.RotatingFileHandler(
            log_path / "transactions.log",
            maxBytes=max_bytes,
            backupCount=backup_count
        )
        activity_handler.setLevel(logging.INFO)
        activity_handler.setFormatter(file_formatter)
        activity.addHandler(activity_handler)

        error_handler = logging.handlers.RotatingFileHandler(
            log_path / "errors.log",
            maxBytes=max_bytes,
            backupCount=backup_count
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(file_formatter)
        root.addHandler(error_handler)

    return SecureLogger(root)


# Formatting utilities

def format_units(amount: int, decimals: int = 18, precision: int = 6) -> str:
    """Format a smallest-unit integer amount as a decimal string."""
    if amount == 0:
        return "0"
    value = Decimal(amount) / (Decimal(10) ** decimals)
    return f"{value:.{precision}f}"


def format_duration(seconds: float) -> str:
    """Format duration in seconds to human-readable string."""
    seconds = int(seconds)
    if seconds < 60:
        return f"{seconds}s"
    elif seconds < 3600:
        minutes = seconds // 60
        secs = seconds % 60
        return f"{minutes}m {secs}s" if secs > 0 else f"{minutes}m"
    else:
        hours = seconds // 3600
        minutes = (seconds % 3600) // 60
        return f"{hours}h {minutes}m" if minutes > 0 else f"{hours}h"


def format_address(address: str, length: int = 6) -> str:
    """Format address with ellipsis."""
    if len(address) <= length * 2 + 2:
        return address
    return f"{address[:length + 2]}...{address[-length:]}"


def format_tx_hash(tx_hash: Optional[str], length: int = 10) -> str:
    """Format transaction hash with ellipsis."""
    if not tx_hash:
        return "-"
    if len(tx_hash) <= length * 2:
        return tx_hash
    return f"{tx_hash[:length]}...{tx_hash[-length:]}"
