"""Pytest configuration and fixtures for Drips SDK tests."""

from unittest.mock import MagicMock

import pytest
from web3 import AsyncWeb3, Web3

# Anvil's pre-funded test accounts (same as Hardhat/Foundry)
# Private keys are well-known - DO NOT use on mainnet
ANVIL_ACCOUNTS = [
    {
        "address": "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266",
        "private_key": "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80",
    },
    {
        "address": "0x70997970C51812dc3A010C7d01b50e0d17dc79C8",
        "private_key": "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d",
    },
    {
        "address": "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC",
        "private_key": "0x5de4111afa1a4b94908f83103eb1f1706367c2e68ca870fc3fb9a804cdab365a",
    },
]

SENDER = ANVIL_ACCOUNTS[0]["address"]
TOKEN = "0x7b79995e5f793a07bc00c21412e50ecae098e7f9"  # Sepolia WETH
CUSTOM_DRIVER = "0x5fbdb2315678afecb367f032d93f642f64180aa3"

MAINNET = 1
SEPOLIA = 11155111


class AsyncChainId:
    """Awaitable that returns chain_id each time it's awaited."""

    def __init__(self, chain_id: int):
        self._chain_id = chain_id

    def __await__(self):
        async def _coro():
            return self._chain_id

        return _coro().__await__()


class FailingChainId:
    """Awaitable that raises the given error when awaited."""

    def __init__(self, error: Exception):
        self._error = error

    def __await__(self):
        async def _coro():
            raise self._error

        return _coro().__await__()


def create_mock_w3(chain_id: int = SEPOLIA, contract=None):
    """
    Create a mock AsyncWeb3 instance with an awaitable chain_id.

    Without `contract`, contracts are real web3 contract objects (offline:
    encoding works, calls would need a node). Otherwise eth.contract returns
    the given mock.
    """
    mock_w3 = MagicMock()
    mock_eth = MagicMock()
    mock_eth.chain_id = AsyncChainId(chain_id)
    if contract is None:
        mock_eth.contract = offline_w3().eth.contract
    else:
        mock_eth.contract.return_value = contract
    mock_w3.eth = mock_eth
    return mock_w3


def create_mock_contract(data: str = "0xdeadbeef"):
    """Mock contract whose encode_abi returns fixed call data."""
    mock_contract = MagicMock()
    mock_contract.encode_abi.return_value = data
    return mock_contract


def offline_w3() -> AsyncWeb3:
    """AsyncWeb3 instance that is never connected; fine for ABI encoding."""
    return AsyncWeb3(AsyncWeb3.AsyncHTTPProvider("http://127.0.0.1:8545"))


def decode_call(data: str, signature: str, types: list[str]) -> tuple:
    """Check the selector of `data` against `signature` and decode its arguments."""
    raw = bytes.fromhex(data.removeprefix("0x"))
    assert raw[:4] == Web3.keccak(text=signature)[:4]
    return offline_w3().codec.decode(types, raw[4:])


@pytest.fixture
def account():
    """Signing account stand-in with a well-known address."""
    mock_account = MagicMock()
    mock_account.address = SENDER
    return mock_account


@pytest.fixture
def alice():
    """Get Alice's address (recipient)."""
    return ANVIL_ACCOUNTS[1]["address"]


@pytest.fixture
def bob():
    """Get Bob's address (recipient)."""
    return ANVIL_ACCOUNTS[2]["address"]
