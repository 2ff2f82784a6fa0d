"""
Chain connection and contract ABIs for the Lens network.
"""

from web3 import AsyncHTTPProvider, AsyncWeb3, Web3

from .utils import ConfigurationError, logger


# ERC20 Token ABI (minimal)
ERC20_ABI = [
    {
        "constant": True,
        "inputs": [{"name": "_owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "balance", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "constant": True,
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "constant": True,
        "inputs": [],
        "name": "symbol",
        "outputs": [{"name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "constant": False,
        "inputs": [
            {"name": "_spender", "type": "address"},
            {"name": "_value", "type": "uint256"}
        ],
        "name": "approve",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function"
    }
]

# Wrapped GHO adds the payable deposit on top of ERC20
WGHO_ABI = ERC20_ABI + [
    {
        "constant": False,
        "inputs": [],
        "name": "deposit",
        "outputs": [],
        "payable": True,
        "stateMutability": "payable",
        "type": "function"
    }
]

# Router single-pool swap entry point
ROUTER_ABI = [
    {
        "inputs": [
            {"internalType": "address", "name": "tokenIn", "type": "address"},
            {"internalType": "address", "name": "tokenOut", "type": "address"},
            {"internalType": "uint24", "name": "flags", "type": "uint24"},
            {"internalType": "address", "name": "recipient", "type": "address"},
            {"internalType": "uint256", "name": "deadline", "type": "uint256"},
            {"internalType": "uint256", "name": "amountIn", "type": "uint256"},
            {"internalType": "uint256", "name": "amountOutMin", "type": "uint256"},
            {"internalType": "uint160", "name": "auxParam", "type": "uint160"}
        ],
        "name": "swap",
        "outputs": [{"internalType": "uint256", "name": "amountOut", "type": "uint256"}],
        "stateMutability": "payable",
        "type": "function"
    }
]


def get_web3(rpc_url: str, timeout: int = 30) -> AsyncWeb3:
    """Create the async RPC client shared by every component."""
    if not rpc_url:
        raise ConfigurationError("RPC_URL is required")
    return AsyncWeb3(AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))


async def check_connection(w3: AsyncWeb3, expected_chain_id: int) -> int:
    """
    Verify the endpoint answers and serves the configured chain.

    Returns the latest block number.
    """
    if not await w3.is_connected():
        raise ConfigurationError("RPC not connected")

    chain_id = await w3.eth.chain_id
    if chain_id != expected_chain_id:
        raise ConfigurationError(f"RPC serves chain {chain_id}, expected {expected_chain_id}")

    block = await w3.eth.block_number
    logger.info(f"Connected to chain {chain_id} at block {block}")
    return block


def checksum(address: str) -> str:
    return Web3.to_checksum_address(address)
