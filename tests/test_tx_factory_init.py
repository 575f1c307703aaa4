"""Tests for transaction factory creation.

Factories must fail fast on an unusable signing credential and never hand
back a half-initialized instance.
"""

from unittest.mock import MagicMock

import pytest
from conftest import CUSTOM_DRIVER, MAINNET, SEPOLIA, FailingChainId, create_mock_w3
from web3 import Web3

from drips_sdk import (
    NETWORK_CONFIGS,
    AddressDriverTxFactory,
    CallerTxFactory,
    DripsTxFactory,
    ERC20TxFactory,
    ImmutableSplitsDriverTxFactory,
    InitializationError,
    NFTDriverTxFactory,
    RepoDriverTxFactory,
    UnsupportedNetworkError,
)


class TestDefaultDriverAddress:
    """Each factory binds the address from the network table."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("factory_class", "field"),
        [
            (DripsTxFactory, "drips_address"),
            (AddressDriverTxFactory, "address_driver_address"),
            (NFTDriverTxFactory, "nft_driver_address"),
            (RepoDriverTxFactory, "repo_driver_address"),
            (ImmutableSplitsDriverTxFactory, "immutable_splits_driver_address"),
            (CallerTxFactory, "caller_address"),
        ],
    )
    async def test_uses_network_address(self, factory_class, field, account) -> None:
        """Should bind the driver address configured for the connected chain."""
        w3 = create_mock_w3(SEPOLIA)

        factory = await factory_class.create(w3, account)

        assert factory.driver_address == getattr(NETWORK_CONFIGS[SEPOLIA], field)
        assert factory.chain_id == SEPOLIA
        assert factory.account is account

    @pytest.mark.asyncio
    async def test_mainnet_address(self, account) -> None:
        w3 = create_mock_w3(MAINNET)

        factory = await RepoDriverTxFactory.create(w3, account)

        assert factory.driver_address == NETWORK_CONFIGS[MAINNET].repo_driver_address

    @pytest.mark.asyncio
    async def test_contract_bound_to_driver_address(self, account) -> None:
        """The bound contract handle should target the resolved address."""
        w3 = create_mock_w3(SEPOLIA)

        factory = await AddressDriverTxFactory.create(w3, account)

        assert factory.contract.address == factory.driver_address


class TestCustomDriverAddress:
    """An explicit address overrides the table."""

    @pytest.mark.asyncio
    async def test_custom_address_is_used(self, account) -> None:
        w3 = create_mock_w3(SEPOLIA)

        factory = await NFTDriverTxFactory.create(w3, account, CUSTOM_DRIVER)

        assert factory.driver_address == Web3.to_checksum_address(CUSTOM_DRIVER)

    @pytest.mark.asyncio
    async def test_custom_address_still_requires_supported_chain(self, account) -> None:
        """The override does not bypass network validation."""
        w3 = create_mock_w3(137)

        with pytest.raises(InitializationError):
            await NFTDriverTxFactory.create(w3, account, CUSTOM_DRIVER)

    @pytest.mark.asyncio
    async def test_invalid_custom_address(self, account) -> None:
        w3 = create_mock_w3(SEPOLIA)

        with pytest.raises(InitializationError, match="invalid contract address"):
            await NFTDriverTxFactory.create(w3, account, "0xnot-an-address")

    @pytest.mark.asyncio
    async def test_erc20_requires_address(self, account) -> None:
        """ERC20 has no table entry; the token address is mandatory."""
        w3 = create_mock_w3(SEPOLIA)

        with pytest.raises(InitializationError, match="address is required"):
            await ERC20TxFactory.create(w3, account)


class TestInitializationErrors:
    """Tests for unusable credentials."""

    @pytest.mark.asyncio
    async def test_unsupported_chain(self, account) -> None:
        """Should raise InitializationError, chained from UnsupportedNetworkError."""
        w3 = create_mock_w3(8453)

        with pytest.raises(InitializationError) as exc_info:
            await AddressDriverTxFactory.create(w3, account)

        assert isinstance(exc_info.value.__cause__, UnsupportedNetworkError)
        assert "8453" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_network_query_fails(self, account) -> None:
        """A provider failure while reading the chain ID is an initialization error."""
        w3 = MagicMock()
        w3.eth.chain_id = FailingChainId(ConnectionError("connection refused"))

        with pytest.raises(InitializationError, match="connection refused"):
            await AddressDriverTxFactory.create(w3, account)

    @pytest.mark.asyncio
    async def test_missing_web3(self, account) -> None:
        with pytest.raises(InitializationError):
            await AddressDriverTxFactory.create(None, account)  # type: ignore[arg-type]

    @pytest.mark.asyncio
    async def test_missing_account(self) -> None:
        w3 = create_mock_w3(SEPOLIA)

        with pytest.raises(InitializationError, match="account"):
            await AddressDriverTxFactory.create(w3, None)  # type: ignore[arg-type]


class TestImmutability:
    """Factories expose read-only state."""

    @pytest.mark.asyncio
    async def test_driver_address_is_read_only(self, account) -> None:
        w3 = create_mock_w3(SEPOLIA)
        factory = await AddressDriverTxFactory.create(w3, account)

        with pytest.raises(AttributeError):
            factory.driver_address = CUSTOM_DRIVER  # type: ignore[misc]
