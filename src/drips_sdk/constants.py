"""Contract addresses and protocol constants for the Drips SDK."""

from types import MappingProxyType
from typing import Literal

from pydantic import BaseModel, field_validator
from web3 import Web3

from ._exceptions import UnsupportedNetworkError

# Protocol constants (enforced by the Drips contracts)
MAX_TOTAL_BALANCE = 2**127 - 1
TOTAL_SPLITS_WEIGHT = 1_000_000
MAX_DRIPS_RECEIVERS = 100
MAX_SPLITS_RECEIVERS = 200
AMT_PER_SEC_EXTRA_DECIMALS = 9
AMT_PER_SEC_MULTIPLIER = 10**AMT_PER_SEC_EXTRA_DECIMALS

# Driver IDs occupy the top 32 bits of every user ID.
ADDRESS_DRIVER_ID = 0
NFT_DRIVER_ID = 1
IMMUTABLE_SPLITS_DRIVER_ID = 2
REPO_DRIVER_ID = 3

DriverAddressField = Literal[
    "drips_address",
    "address_driver_address",
    "nft_driver_address",
    "immutable_splits_driver_address",
    "repo_driver_address",
    "caller_address",
]


class ProtocolConstants(BaseModel):
    """Protocol-wide constants shared by every deployment."""

    MAX_TOTAL_BALANCE: int = MAX_TOTAL_BALANCE
    TOTAL_SPLITS_WEIGHT: int = TOTAL_SPLITS_WEIGHT
    MAX_DRIPS_RECEIVERS: int = MAX_DRIPS_RECEIVERS
    MAX_SPLITS_RECEIVERS: int = MAX_SPLITS_RECEIVERS
    AMT_PER_SEC_MULTIPLIER: int = AMT_PER_SEC_MULTIPLIER
    AMT_PER_SEC_EXTRA_DECIMALS: int = AMT_PER_SEC_EXTRA_DECIMALS

    model_config = {"frozen": True}


PROTOCOL_CONSTANTS = ProtocolConstants()


class NetworkConfig(BaseModel):
    """Deployed contract addresses for one chain."""

    chain_id: int
    name: str
    drips_address: str
    address_driver_address: str
    nft_driver_address: str
    immutable_splits_driver_address: str
    repo_driver_address: str
    caller_address: str
    constants: ProtocolConstants = PROTOCOL_CONSTANTS

    model_config = {"frozen": True}

    @field_validator(
        "drips_address",
        "address_driver_address",
        "nft_driver_address",
        "immutable_splits_driver_address",
        "repo_driver_address",
        "caller_address",
    )
    @classmethod
    def _checksum(cls, address: str) -> str:
        return Web3.to_checksum_address(address)


_CONFIGS = [
    NetworkConfig(
        chain_id=1,
        name="mainnet",
        drips_address="0xd0Dd053392db676D57317CD4fe96Fc2cCf42D0b4",
        address_driver_address="0x1455d9bD6B98f95dd8FEB2b3D60ed825fcef0610",
        nft_driver_address="0xcf9c49B0962EDb01Cdaa5326299ba85D72405258",
        immutable_splits_driver_address="0x1212975c0642B07F696080ec1916998441c2b774",
        repo_driver_address="0x770023d55D09A9C110694827F1a6B32D5c2b373E",
        caller_address="0x60F25ac5F289Dc7F640f948521d486C964A248e5",
    ),
    NetworkConfig(
        chain_id=11155111,
        name="sepolia",
        drips_address="0x74A32a38D945b9527524900429b083547DeB9bF4",
        address_driver_address="0x70E1E1437AeFe8024B6780C94490662b45C3B567",
        nft_driver_address="0xdC773a04C0D6EFdb80E7dfF961B6a7B063a28B44",
        immutable_splits_driver_address="0xC3687FEEb5d6b54f7d0D5fca21A1D55E8fd1F6BB",
        repo_driver_address="0xa71bdf410D48d4AA9aE1517A69D7E29Ab3aB3E3A",
        caller_address="0x09e04Cb8168bd0E8773A79Cf2c4DC1A5A3d1fb3d",
    ),
]

# Loaded once; no mutation API.
NETWORK_CONFIGS = MappingProxyType({config.chain_id: config for config in _CONFIGS})

# Supported chain IDs
SUPPORTED_CHAIN_IDS: frozenset[int] = frozenset(NETWORK_CONFIGS)


def resolve_network_config(chain_id: int) -> NetworkConfig:
    """Get the network configuration for a given chain ID."""
    config = NETWORK_CONFIGS.get(chain_id)
    if config is None:
        raise UnsupportedNetworkError(chain_id)
    return config


def get_supported_chains() -> frozenset[int]:
    """Get the set of chain IDs with a deployment."""
    return SUPPORTED_CHAIN_IDS


def is_supported_chain(chain_id: int) -> bool:
    """Check if a chain is supported."""
    return chain_id in NETWORK_CONFIGS
