"""
Transfer Executor

Submits native GHO transfers. Submission is fire-and-forget: ``transfer``
returns as soon as the network accepts the transaction and ``wait`` is
available for callers that need the receipt.
"""

from typing import Any, Dict

from web3 import AsyncWeb3, Web3

from .chain import checksum
from .wallet import Wallet
from .utils import TransferFailure, activity_logger, format_address, format_units


class TransferExecutor:
    """Native currency transfers with fixed gas settings."""

    def __init__(self, w3: AsyncWeb3, chain_id: int, gas_price_wei: int, gas_limit: int):
        self.w3 = w3
        self.chain_id = chain_id
        self.gas_price_wei = gas_price_wei
        self.gas_limit = gas_limit

    def _build_transaction(self, wallet: Wallet, recipient: str, amount_wei: int, nonce: int) -> Dict[str, Any]:
        return {
            "to": checksum(recipient),
            "value": amount_wei,
            "gas": self.gas_limit,
            "gasPrice": self.gas_price_wei,
            "nonce": nonce,
            "chainId": self.chain_id,
        }

    async def transfer(self, wallet: Wallet, recipient: str, amount_wei: int) -> str:
        """
        Sign and broadcast a transfer of ``amount_wei`` to ``recipient``.

        The nonce is read right before signing, never cached.

        Returns:
            Transaction hash (0x-prefixed hex)

        Raises:
            TransferFailure: if the transaction could not be built or was rejected
        """
        if amount_wei <= 0:
            raise TransferFailure(f"Transfer amount must be positive, got {amount_wei}")

        try:
            nonce = await self.w3.eth.get_transaction_count(wallet.address, "pending")
            tx = self._build_transaction(wallet, recipient, amount_wei, nonce)
            signed_tx = wallet.sign_transaction(tx)
            tx_hash = Web3.to_hex(await self.w3.eth.send_raw_transaction(signed_tx.raw_transaction))
        except Exception as e:
            raise TransferFailure(
                f"Transfer from {format_address(wallet.address)} to {format_address(recipient)} rejected: {e}"
            ) from e

        activity_logger.info(
            f"TRANSFER {format_units(amount_wei)} GHO {wallet.address} -> {recipient} | tx {tx_hash}"
        )
        return tx_hash

    async def wait(self, tx_hash: str, timeout: float = 180) -> int:
        """Wait for a submitted transfer; returns the block number."""
        receipt = await self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
        if receipt["status"] != 1:
            raise TransferFailure(f"Transfer reverted: {tx_hash}")
        return receipt["blockNumber"]
