# Suppress websockets deprecation warning from web3.py (ethereum/web3.py#3530)
# web3.py unconditionally imports LegacyWebSocketProvider even for HTTP-only usage.
import warnings

warnings.filterwarnings(
    "ignore",
    message="websockets.legacy is deprecated",
    category=DeprecationWarning,
    module=r"websockets\.legacy",
)

"""
Drips SDK

Build transactions for the Drips streaming and splitting protocol.

Usage (transaction factories - you sign and send):
    import asyncio
    from eth_account import Account
    from web3 import AsyncWeb3
    from drips_sdk import AddressDriverTxFactory, SplitsReceiver

    async def main():
        w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider("https://rpc.sepolia.org"))
        account = Account.from_key("0x...")
        factory = await AddressDriverTxFactory.create(w3, account)

        tx = await factory.set_splits([
            SplitsReceiver(user_id=alice_id, weight=600_000),
            SplitsReceiver(user_id=bob_id, weight=400_000),
        ])
        signed = account.sign_transaction(tx.to_tx_params())

    asyncio.run(main())

Usage (clients - sign and send with the given account):
    from drips_sdk import AddressDriverClient, connect

    w3, account = connect("https://rpc.sepolia.org", "0x...")
    client = await AddressDriverClient.create(w3, account)
    tx_hash = await client.give(receiver_user_id, token, 1_000_000)
"""

from ._exceptions import (
    DripsError,
    InitializationError,
    InvalidArgumentError,
    InvalidReceiverListError,
    SubgraphQueryError,
    TransactionBuildError,
    TransactionError,
    TransactionRevertedError,
    UnsupportedNetworkError,
)
from ._version import __version__

# ABIs (for advanced usage)
from .abi import (
    ADDRESS_DRIVER_ABI,
    CALLER_ABI,
    DRIPS_ABI,
    ERC20_ABI,
    IMMUTABLE_SPLITS_DRIVER_ABI,
    NFT_DRIVER_ABI,
    REPO_DRIVER_ABI,
)

# Clients
from .async_client import (
    AddressDriverClient,
    CallerClient,
    DripsClient,
    ImmutableSplitsDriverClient,
    NFTDriverClient,
    RepoDriverClient,
    connect,
)

# Constants
from .constants import (
    AMT_PER_SEC_EXTRA_DECIMALS,
    AMT_PER_SEC_MULTIPLIER,
    MAX_DRIPS_RECEIVERS,
    MAX_SPLITS_RECEIVERS,
    MAX_TOTAL_BALANCE,
    NETWORK_CONFIGS,
    SUPPORTED_CHAIN_IDS,
    TOTAL_SPLITS_WEIGHT,
    NetworkConfig,
    ProtocolConstants,
    get_supported_chains,
    is_supported_chain,
    resolve_network_config,
)
from .deferred import Deferred, resolve_value

# Transaction factories
from .factories import (
    AddressDriverTxFactory,
    CallerTxFactory,
    DripsTxFactory,
    ERC20TxFactory,
    ImmutableSplitsDriverTxFactory,
    NFTDriverTxFactory,
    RepoDriverTxFactory,
)
from .presets import AddressDriverPresets, NFTDriverPresets
from .receivers import format_drips_receivers, format_splits_receivers
from .subgraph import DripsSubgraphClient
from .tx_factory import DriverKind, TxFactory, apply_gas_margin

# Types
from .types import (
    CallStruct,
    CollectableBalance,
    CollectedEvent,
    CycleInfo,
    DripsHistory,
    DripsReceiver,
    DripsReceiverConfig,
    DripsReceiverSeenEvent,
    DripsSetEvent,
    DripsSetEventWithFullReceivers,
    DripsState,
    GivenEvent,
    NftSubAccount,
    PopulatedTransaction,
    ReceivableBalance,
    ReceivedDripsEvent,
    RepoAccount,
    SplitEvent,
    SplitResult,
    SplitsEntry,
    SplitsReceiver,
    SplittableBalance,
    SqueezedDripsEvent,
    TxOverrides,
    UserAssetConfig,
    UserMetadata,
    UserMetadataEntry,
)

# Utils
from .utils import (
    build_drips_config,
    calc_address_user_id,
    decode_user_metadata_value,
    encode_user_metadata,
    hex_to_bytes,
    key_to_bytes32,
    parse_drips_config,
    to_amt_per_sec,
    to_bytes_like,
)

__all__ = [
    # Version
    "__version__",
    # Transaction factories
    "TxFactory",
    "DriverKind",
    "DripsTxFactory",
    "AddressDriverTxFactory",
    "NFTDriverTxFactory",
    "RepoDriverTxFactory",
    "ImmutableSplitsDriverTxFactory",
    "CallerTxFactory",
    "ERC20TxFactory",
    "apply_gas_margin",
    # Clients
    "DripsClient",
    "AddressDriverClient",
    "NFTDriverClient",
    "RepoDriverClient",
    "ImmutableSplitsDriverClient",
    "CallerClient",
    "DripsSubgraphClient",
    "connect",
    # Presets
    "AddressDriverPresets",
    "NFTDriverPresets",
    # Receivers
    "format_splits_receivers",
    "format_drips_receivers",
    # Deferred values
    "Deferred",
    "resolve_value",
    # Types
    "SplitsReceiver",
    "DripsReceiver",
    "DripsReceiverConfig",
    "DripsHistory",
    "UserMetadata",
    "CallStruct",
    "TxOverrides",
    "PopulatedTransaction",
    "DripsState",
    "CycleInfo",
    "ReceivableBalance",
    "SplittableBalance",
    "CollectableBalance",
    "SplitResult",
    "SplitsEntry",
    "DripsSetEvent",
    "DripsSetEventWithFullReceivers",
    "DripsReceiverSeenEvent",
    "GivenEvent",
    "SplitEvent",
    "CollectedEvent",
    "SqueezedDripsEvent",
    "ReceivedDripsEvent",
    "NftSubAccount",
    "RepoAccount",
    "UserAssetConfig",
    "UserMetadataEntry",
    # Constants
    "NetworkConfig",
    "ProtocolConstants",
    "NETWORK_CONFIGS",
    "SUPPORTED_CHAIN_IDS",
    "MAX_TOTAL_BALANCE",
    "TOTAL_SPLITS_WEIGHT",
    "MAX_DRIPS_RECEIVERS",
    "MAX_SPLITS_RECEIVERS",
    "AMT_PER_SEC_MULTIPLIER",
    "AMT_PER_SEC_EXTRA_DECIMALS",
    "resolve_network_config",
    "get_supported_chains",
    "is_supported_chain",
    # Utils
    "build_drips_config",
    "parse_drips_config",
    "to_amt_per_sec",
    "calc_address_user_id",
    "key_to_bytes32",
    "encode_user_metadata",
    "decode_user_metadata_value",
    "hex_to_bytes",
    "to_bytes_like",
    # ABIs
    "DRIPS_ABI",
    "ADDRESS_DRIVER_ABI",
    "NFT_DRIVER_ABI",
    "REPO_DRIVER_ABI",
    "IMMUTABLE_SPLITS_DRIVER_ABI",
    "CALLER_ABI",
    "ERC20_ABI",
    # Exceptions
    "DripsError",
    "UnsupportedNetworkError",
    "InitializationError",
    "InvalidArgumentError",
    "InvalidReceiverListError",
    "TransactionBuildError",
    "TransactionError",
    "TransactionRevertedError",
    "SubgraphQueryError",
]
