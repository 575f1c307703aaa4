"""
Transaction factories for the Drips contracts.

Each factory exposes its contract's methods and returns unsigned
PopulatedTransactions; signing and sending is left to the caller.

Example:
    >>> from web3 import AsyncWeb3
    >>> from eth_account import Account
    >>> from drips_sdk import AddressDriverTxFactory, SplitsReceiver
    >>>
    >>> w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider("https://rpc.sepolia.org"))
    >>> account = Account.from_key("0x...")
    >>> factory = await AddressDriverTxFactory.create(w3, account)
    >>> tx = await factory.set_splits([SplitsReceiver(user_id=alice_id, weight=500_000)])
"""

from collections.abc import Iterable

from .abi import (
    ADDRESS_DRIVER_ABI,
    CALLER_ABI,
    DRIPS_ABI,
    ERC20_ABI,
    IMMUTABLE_SPLITS_DRIVER_ABI,
    NFT_DRIVER_ABI,
    REPO_DRIVER_ABI,
)
from ._exceptions import InvalidArgumentError
from .deferred import Resolvable
from .receivers import format_drips_receivers, format_splits_receivers
from .tx_factory import DriverKind, TxFactory
from .types import (
    CallStruct,
    DripsHistory,
    DripsReceiver,
    PopulatedTransaction,
    SplitsReceiver,
    TxOverrides,
    UserMetadata,
)
from .utils import encode_user_metadata, hex_to_bytes, to_bytes_like, to_checksum

_ACCOUNT_METHODS = frozenset({"collect", "give", "setSplits", "setDrips", "emitUserMetadata"})

# Driver kinds
DRIPS = DriverKind(
    name="Drips",
    abi=DRIPS_ABI,
    methods=frozenset({"receiveDrips", "squeezeDrips", "split"}),
    address_field="drips_address",
)
ADDRESS_DRIVER = DriverKind(
    name="AddressDriver",
    abi=ADDRESS_DRIVER_ABI,
    methods=_ACCOUNT_METHODS,
    address_field="address_driver_address",
)
NFT_DRIVER = DriverKind(
    name="NFTDriver",
    abi=NFT_DRIVER_ABI,
    methods=_ACCOUNT_METHODS | {"mint", "safeMint"},
    address_field="nft_driver_address",
)
REPO_DRIVER = DriverKind(
    name="RepoDriver",
    abi=REPO_DRIVER_ABI,
    methods=_ACCOUNT_METHODS | {"requestUpdateOwner"},
    address_field="repo_driver_address",
)
IMMUTABLE_SPLITS_DRIVER = DriverKind(
    name="ImmutableSplitsDriver",
    abi=IMMUTABLE_SPLITS_DRIVER_ABI,
    methods=frozenset({"createSplits"}),
    address_field="immutable_splits_driver_address",
)
CALLER = DriverKind(
    name="Caller",
    abi=CALLER_ABI,
    methods=frozenset({"callBatched"}),
    address_field="caller_address",
)
ERC20 = DriverKind(
    name="ERC20",
    abi=ERC20_ABI,
    methods=frozenset({"approve"}),
)


class DripsTxFactory(TxFactory):
    """Transactions for the Drips hub contract itself."""

    KIND = DRIPS

    async def receive_drips(
        self,
        user_id: Resolvable[int],
        erc20: Resolvable[str],
        max_cycles: Resolvable[int],
        overrides: TxOverrides | None = None,
    ) -> PopulatedTransaction:
        """Receive streamed funds from up to `max_cycles` completed cycles."""
        user_id, erc20, max_cycles = await self._resolve(user_id, erc20, max_cycles)
        if max_cycles < 1:
            raise InvalidArgumentError(f"max_cycles must be at least 1, got {max_cycles}")
        return await self._populate("receiveDrips", [user_id, to_checksum(erc20, "erc20"), max_cycles], overrides)

    async def squeeze_drips(
        self,
        user_id: Resolvable[int],
        erc20: Resolvable[str],
        sender_id: Resolvable[int],
        history_hash: Resolvable[bytes],
        drips_history: Iterable[DripsHistory],
        overrides: TxOverrides | None = None,
    ) -> PopulatedTransaction:
        """Receive funds streamed by `sender_id` in the current, unfinished cycle."""
        user_id, erc20, sender_id, history_hash = await self._resolve(user_id, erc20, sender_id, history_hash)
        history = [
            (entry.drips_hash, format_drips_receivers(entry.receivers), entry.update_time, entry.max_end)
            for entry in drips_history
        ]
        return await self._populate(
            "squeezeDrips",
            [user_id, to_checksum(erc20, "erc20"), sender_id, history_hash, history],
            overrides,
        )

    async def split(
        self,
        user_id: Resolvable[int],
        erc20: Resolvable[str],
        curr_receivers: Iterable[SplitsReceiver],
        overrides: TxOverrides | None = None,
    ) -> PopulatedTransaction:
        """Split the user's splittable funds among `curr_receivers` (the current splits config)."""
        user_id, erc20 = await self._resolve(user_id, erc20)
        return await self._populate(
            "split",
            [user_id, to_checksum(erc20, "erc20"), format_splits_receivers(curr_receivers)],
            overrides,
        )


class AddressDriverTxFactory(TxFactory):
    """
    Transactions for the AddressDriver.

    The account acted on is always the one controlled by the sender, so no
    user ID is passed.
    """

    KIND = ADDRESS_DRIVER

    async def collect(
        self,
        erc20: Resolvable[str],
        transfer_to: Resolvable[str],
        overrides: TxOverrides | None = None,
    ) -> PopulatedTransaction:
        return await self._collect((), erc20, transfer_to, overrides)

    async def give(
        self,
        receiver: Resolvable[int],
        erc20: Resolvable[str],
        amt: Resolvable[int],
        overrides: TxOverrides | None = None,
    ) -> PopulatedTransaction:
        return await self._give((), receiver, erc20, amt, overrides)

    async def set_splits(
        self,
        receivers: Iterable[SplitsReceiver],
        overrides: TxOverrides | None = None,
    ) -> PopulatedTransaction:
        return await self._set_splits((), receivers, overrides)

    async def set_drips(
        self,
        erc20: Resolvable[str],
        curr_receivers: Iterable[DripsReceiver],
        balance_delta: Resolvable[int],
        new_receivers: Iterable[DripsReceiver],
        max_end_hint1: Resolvable[int] = 0,
        max_end_hint2: Resolvable[int] = 0,
        transfer_to: Resolvable[str] | None = None,
        overrides: TxOverrides | None = None,
    ) -> PopulatedTransaction:
        """
        Update the sender's streams for `erc20`.

        Without a gas_limit override, gas is estimated and a 20% margin added.
        `transfer_to` defaults to the sender and receives any withdrawn balance.
        """
        return await self._set_drips(
            (),
            erc20,
            curr_receivers,
            balance_delta,
            new_receivers,
            max_end_hint1,
            max_end_hint2,
            transfer_to,
            overrides,
        )

    async def emit_user_metadata(
        self,
        user_metadata: Iterable[UserMetadata],
        overrides: TxOverrides | None = None,
    ) -> PopulatedTransaction:
        return await self._emit_user_metadata((), user_metadata, overrides)


class _SubjectTxFactory(TxFactory):
    """
    Account operations for drivers whose accounts are named by an explicit
    user ID (an NFT token ID, a repository's user ID).
    """

    async def collect(
        self,
        user_id: Resolvable[int],
        erc20: Resolvable[str],
        transfer_to: Resolvable[str],
        overrides: TxOverrides | None = None,
    ) -> PopulatedTransaction:
        return await self._collect((user_id,), erc20, transfer_to, overrides)

    async def give(
        self,
        user_id: Resolvable[int],
        receiver: Resolvable[int],
        erc20: Resolvable[str],
        amt: Resolvable[int],
        overrides: TxOverrides | None = None,
    ) -> PopulatedTransaction:
        return await self._give((user_id,), receiver, erc20, amt, overrides)

    async def set_splits(
        self,
        user_id: Resolvable[int],
        receivers: Iterable[SplitsReceiver],
        overrides: TxOverrides | None = None,
    ) -> PopulatedTransaction:
        return await self._set_splits((user_id,), receivers, overrides)

    async def set_drips(
        self,
        user_id: Resolvable[int],
        erc20: Resolvable[str],
        curr_receivers: Iterable[DripsReceiver],
        balance_delta: Resolvable[int],
        new_receivers: Iterable[DripsReceiver],
        max_end_hint1: Resolvable[int] = 0,
        max_end_hint2: Resolvable[int] = 0,
        transfer_to: Resolvable[str] | None = None,
        overrides: TxOverrides | None = None,
    ) -> PopulatedTransaction:
        return await self._set_drips(
            (user_id,),
            erc20,
            curr_receivers,
            balance_delta,
            new_receivers,
            max_end_hint1,
            max_end_hint2,
            transfer_to,
            overrides,
        )

    async def emit_user_metadata(
        self,
        user_id: Resolvable[int],
        user_metadata: Iterable[UserMetadata],
        overrides: TxOverrides | None = None,
    ) -> PopulatedTransaction:
        return await self._emit_user_metadata((user_id,), user_metadata, overrides)


class NFTDriverTxFactory(_SubjectTxFactory):
    """Transactions for the NFTDriver. The user ID is the token ID."""

    KIND = NFT_DRIVER

    async def mint(
        self,
        to: Resolvable[str],
        user_metadata: Iterable[UserMetadata] = (),
        overrides: TxOverrides | None = None,
    ) -> PopulatedTransaction:
        """Mint a new account token for `to`."""
        (to,) = await self._resolve(to)
        return await self._populate("mint", [to_checksum(to, "to"), encode_user_metadata(user_metadata)], overrides)

    async def safe_mint(
        self,
        to: Resolvable[str],
        user_metadata: Iterable[UserMetadata] = (),
        overrides: TxOverrides | None = None,
    ) -> PopulatedTransaction:
        """Like mint(), but reverts if `to` is a contract that can't hold ERC721 tokens."""
        (to,) = await self._resolve(to)
        return await self._populate(
            "safeMint", [to_checksum(to, "to"), encode_user_metadata(user_metadata)], overrides
        )


class RepoDriverTxFactory(_SubjectTxFactory):
    """Transactions for the RepoDriver. Accounts belong to source code repositories."""

    KIND = REPO_DRIVER

    async def request_update_owner(
        self,
        forge: Resolvable[int],
        name: Resolvable[bytes | str],
        overrides: TxOverrides | None = None,
    ) -> PopulatedTransaction:
        """
        Ask the oracle to update the owner of the repository `name` on `forge`.

        Args:
            forge: Forge ID (0 = GitHub, 1 = GitLab)
            name: Repository name, e.g. "drips-network/app". Bytes and 0x-prefixed
                hex strings are taken as the raw name bytes.
        """
        forge, name = await self._resolve(forge, name)
        return await self._populate("requestUpdateOwner", [forge, to_bytes_like(name, "name")], overrides)


class ImmutableSplitsDriverTxFactory(TxFactory):
    """Transactions for the ImmutableSplitsDriver."""

    KIND = IMMUTABLE_SPLITS_DRIVER

    async def create_splits(
        self,
        receivers: Iterable[SplitsReceiver],
        user_metadata: Iterable[UserMetadata] = (),
        overrides: TxOverrides | None = None,
    ) -> PopulatedTransaction:
        """Create a new account whose splits configuration can never change."""
        return await self._populate(
            "createSplits",
            [format_splits_receivers(receivers), encode_user_metadata(user_metadata)],
            overrides,
        )


class CallerTxFactory(TxFactory):
    """Transactions for the Caller contract, which runs several calls in one transaction."""

    KIND = CALLER

    async def call_batched(
        self,
        calls: Iterable[CallStruct],
        overrides: TxOverrides | None = None,
    ) -> PopulatedTransaction:
        encoded = []
        for call in calls:
            encoded.append((to_checksum(call.target, "target"), hex_to_bytes(call.data, "call data"), call.value))
        return await self._populate("callBatched", [encoded], overrides)


class ERC20TxFactory(TxFactory):
    """
    Transactions for an ERC20 token. The token address must be given to create().

    Example:
        >>> factory = await ERC20TxFactory.create(w3, account, token_address)
        >>> tx = await factory.approve(address_driver_address, 2**256 - 1)
    """

    KIND = ERC20

    async def approve(
        self,
        spender: Resolvable[str],
        amount: Resolvable[int],
        overrides: TxOverrides | None = None,
    ) -> PopulatedTransaction:
        spender, amount = await self._resolve(spender, amount)
        return await self._populate("approve", [to_checksum(spender, "spender"), amount], overrides)
