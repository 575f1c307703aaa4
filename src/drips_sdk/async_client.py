"""Async high-level clients for the Drips contracts."""

import logging
import time
from collections.abc import Iterable
from typing import cast

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_typing import ChecksumAddress
from web3 import AsyncWeb3

from ._exceptions import InitializationError, TransactionRevertedError, UnsupportedNetworkError
from .abi import DRIPS_ABI, ERC20_ABI
from .constants import resolve_network_config
from .factories import (
    AddressDriverTxFactory,
    CallerTxFactory,
    ERC20TxFactory,
    ImmutableSplitsDriverTxFactory,
    NFTDriverTxFactory,
    RepoDriverTxFactory,
)
from .receivers import format_drips_receivers, format_splits_receivers
from .tx_factory import TxFactory
from .types import (
    CallStruct,
    CollectableBalance,
    CycleInfo,
    DripsReceiver,
    DripsState,
    PopulatedTransaction,
    ReceivableBalance,
    SplitResult,
    SplitsReceiver,
    SplittableBalance,
    TxOverrides,
    UserMetadata,
)
from .utils import to_bytes_like, to_checksum

logger = logging.getLogger(__name__)

UINT256_MAX = 2**256 - 1


def connect(rpc_url: str, private_key: str | None = None) -> tuple[AsyncWeb3, LocalAccount | None]:
    """
    Build an AsyncWeb3 instance and, when a key is given, the signing account.

    Example:
        >>> w3, account = connect("https://rpc.sepolia.org", "0x...")
        >>> client = await AddressDriverClient.create(w3, account)
    """
    w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))
    account = Account.from_key(private_key) if private_key else None
    return w3, account


class DripsClient:
    """
    Read-only client for the Drips hub contract.

    Example:
        >>> w3, _ = connect("https://rpc.sepolia.org")
        >>> client = await DripsClient.create(w3)
        >>> balance = await client.get_collectable_balance(user_id, token)
    """

    def __init__(self, w3: AsyncWeb3, drips_address: ChecksumAddress, chain_id: int) -> None:
        self.w3 = w3
        self.chain_id = chain_id
        self.drips_address = drips_address
        self._contract = w3.eth.contract(address=drips_address, abi=DRIPS_ABI)

    @classmethod
    async def create(cls, w3: AsyncWeb3, drips_address: str | None = None) -> "DripsClient":
        """
        Create a client for the network `w3` is connected to.

        Raises:
            InitializationError: If the network cannot be queried or is not supported
        """
        try:
            chain_id = await w3.eth.chain_id
        except Exception as e:
            raise InitializationError(f"Drips: could not query the connected network: {e}") from e
        try:
            config = resolve_network_config(chain_id)
        except UnsupportedNetworkError as e:
            raise InitializationError(f"Drips: {e}") from e

        return cls(w3, AsyncWeb3.to_checksum_address(drips_address or config.drips_address), chain_id)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.w3.provider.disconnect()

    async def __aenter__(self) -> "DripsClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def get_cycle_info(self) -> CycleInfo:
        """Get the current cycle boundaries."""
        cycle_secs = await self._contract.functions.cycleSecs().call()
        now = int(time.time())
        current_cycle_start = now - now % cycle_secs
        return CycleInfo(
            cycle_duration_secs=cycle_secs,
            current_cycle_secs=now % cycle_secs,
            current_cycle_start_date=current_cycle_start,
            next_cycle_start_date=current_cycle_start + cycle_secs,
        )

    async def get_splittable_balance(self, user_id: int, erc20: str) -> SplittableBalance:
        """Get the amount received but not split yet."""
        erc20 = to_checksum(erc20, "erc20")
        amount = await self._contract.functions.splittable(user_id, erc20).call()
        return SplittableBalance(token_address=erc20, splittable_amount=amount)

    async def get_collectable_balance(self, user_id: int, erc20: str) -> CollectableBalance:
        """Get the amount already split and ready to be collected."""
        erc20 = to_checksum(erc20, "erc20")
        amount = await self._contract.functions.collectable(user_id, erc20).call()
        return CollectableBalance(token_address=erc20, collectable_amount=amount)

    async def get_receivable_balance(self, user_id: int, erc20: str, max_cycles: int = 2**32 - 1) -> ReceivableBalance:
        """Get the streamed amount receivable from up to `max_cycles` completed cycles."""
        erc20 = to_checksum(erc20, "erc20")
        amount = await self._contract.functions.receiveDripsResult(user_id, erc20, max_cycles).call()
        cycles = await self._contract.functions.receivableDripsCycles(user_id, erc20).call()
        return ReceivableBalance(
            token_address=erc20,
            receivable_amount=amount,
            remaining_receivable_cycles=max(cycles - max_cycles, 0),
        )

    async def get_drips_state(self, user_id: int, erc20: str) -> DripsState:
        """Get the user's current streams configuration for `erc20`."""
        result = await self._contract.functions.dripsState(user_id, to_checksum(erc20, "erc20")).call()
        return DripsState(
            drips_hash=result[0],
            drips_history_hash=result[1],
            update_time=result[2],
            balance=result[3],
            max_end=result[4],
        )

    async def get_balance_at(
        self,
        user_id: int,
        erc20: str,
        receivers: Iterable[DripsReceiver],
        timestamp: int,
    ) -> int:
        """Get the user's streams balance at `timestamp`, given its current receivers."""
        return await self._contract.functions.balanceAt(
            user_id,
            to_checksum(erc20, "erc20"),
            format_drips_receivers(receivers),
            timestamp,
        ).call()

    async def get_splits_hash(self, user_id: int) -> bytes:
        """Get the hash of the user's current splits configuration."""
        return await self._contract.functions.splitsHash(user_id).call()

    async def hash_splits(self, receivers: Iterable[SplitsReceiver]) -> bytes:
        return await self._contract.functions.hashSplits(format_splits_receivers(receivers)).call()

    async def hash_drips(self, receivers: Iterable[DripsReceiver]) -> bytes:
        return await self._contract.functions.hashDrips(format_drips_receivers(receivers)).call()

    async def get_split_result(
        self,
        user_id: int,
        curr_receivers: Iterable[SplitsReceiver],
        amount: int,
    ) -> SplitResult:
        """Preview how `amount` would be divided by the current splits configuration."""
        result = await self._contract.functions.splitResult(
            user_id, format_splits_receivers(curr_receivers), amount
        ).call()
        return SplitResult(collectable_amount=result[0], split_amount=result[1])


class _DriverClient:
    """Signs and broadcasts transactions built by a driver factory."""

    FACTORY: type[TxFactory]

    def __init__(self, w3: AsyncWeb3, account: LocalAccount, tx_factory: TxFactory) -> None:
        self.w3 = w3
        self.account = account
        self.tx_factory = tx_factory

    @classmethod
    async def create(cls, w3: AsyncWeb3, account: LocalAccount, driver_address: str | None = None):
        """
        Create a client for the network `w3` is connected to.

        Raises:
            InitializationError: If the network cannot be queried or is not supported
        """
        tx_factory = await cls.FACTORY.create(w3, account, driver_address)
        return cls(w3, account, tx_factory)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.w3.provider.disconnect()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def driver_address(self) -> ChecksumAddress:
        return self.tx_factory.driver_address

    @property
    def address(self) -> str:
        """Get the wallet address."""
        return self.account.address

    async def _send(self, tx: PopulatedTransaction) -> str:
        """
        Sign with the client's account, broadcast and wait for the receipt.

        Returns:
            Transaction hash

        Raises:
            TransactionRevertedError: If the transaction reverted
        """
        tx_params = tx.to_tx_params()
        if "nonce" not in tx_params:
            tx_params["nonce"] = await self.w3.eth.get_transaction_count(cast(ChecksumAddress, self.account.address))
        if "gas" not in tx_params:
            tx_params["gas"] = await self.w3.eth.estimate_gas(tx_params)  # type: ignore[arg-type]
        if "gasPrice" not in tx_params and "maxFeePerGas" not in tx_params:
            tx_params["gasPrice"] = await self.w3.eth.gas_price

        signed = self.account.sign_transaction(tx_params)
        tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
        receipt = await self.w3.eth.wait_for_transaction_receipt(tx_hash)

        if receipt["status"] == 0:
            raise TransactionRevertedError(AsyncWeb3.to_hex(tx_hash))
        logger.debug("Transaction %s mined in block %s", AsyncWeb3.to_hex(tx_hash), receipt.get("blockNumber"))
        return AsyncWeb3.to_hex(tx_hash)

    async def get_allowance(self, erc20: str) -> int:
        """Get how much of `erc20` the driver may spend on behalf of the wallet."""
        token = self.w3.eth.contract(address=to_checksum(erc20, "erc20"), abi=ERC20_ABI)
        return await token.functions.allowance(self.account.address, self.driver_address).call()

    async def approve(self, erc20: str, amount: int = UINT256_MAX, overrides: TxOverrides | None = None) -> str:
        """Allow the driver to spend `amount` of `erc20` (unlimited by default)."""
        erc20_factory = await ERC20TxFactory.create(self.w3, self.account, erc20)
        return await self._send(await erc20_factory.approve(self.driver_address, amount, overrides))


class AddressDriverClient(_DriverClient):
    """
    Client for accounts owned by an Ethereum address.

    Example:
        >>> w3, account = connect("https://rpc.sepolia.org", "0x...")
        >>> client = await AddressDriverClient.create(w3, account)
        >>> await client.approve(token)
        >>> await client.give(receiver_user_id, token, 1_000_000)
    """

    FACTORY = AddressDriverTxFactory
    tx_factory: AddressDriverTxFactory

    async def get_user_id(self) -> int:
        """Get the user ID of the wallet's account."""
        return await self.get_user_id_by_address(self.account.address)

    async def get_user_id_by_address(self, address: str) -> int:
        return await self.tx_factory.contract.functions.calcUserId(to_checksum(address)).call()

    async def collect(self, erc20: str, transfer_to: str | None = None, overrides: TxOverrides | None = None) -> str:
        tx = await self.tx_factory.collect(erc20, transfer_to or self.account.address, overrides)
        return await self._send(tx)

    async def give(self, receiver_user_id: int, erc20: str, amount: int, overrides: TxOverrides | None = None) -> str:
        return await self._send(await self.tx_factory.give(receiver_user_id, erc20, amount, overrides))

    async def set_splits(self, receivers: Iterable[SplitsReceiver], overrides: TxOverrides | None = None) -> str:
        return await self._send(await self.tx_factory.set_splits(receivers, overrides))

    async def set_drips(
        self,
        erc20: str,
        curr_receivers: Iterable[DripsReceiver],
        new_receivers: Iterable[DripsReceiver],
        balance_delta: int = 0,
        transfer_to: str | None = None,
        overrides: TxOverrides | None = None,
    ) -> str:
        """Replace the wallet's streams for `erc20` and top up (or withdraw) `balance_delta`."""
        tx = await self.tx_factory.set_drips(
            erc20,
            curr_receivers,
            balance_delta,
            new_receivers,
            transfer_to=transfer_to,
            overrides=overrides,
        )
        return await self._send(tx)

    async def emit_user_metadata(self, user_metadata: Iterable[UserMetadata], overrides: TxOverrides | None = None) -> str:
        return await self._send(await self.tx_factory.emit_user_metadata(user_metadata, overrides))


class NFTDriverClient(_DriverClient):
    """Client for accounts represented by NFTDriver tokens."""

    FACTORY = NFTDriverTxFactory
    tx_factory: NFTDriverTxFactory

    async def create_account(
        self,
        transfer_to: str | None = None,
        user_metadata: Iterable[UserMetadata] = (),
        overrides: TxOverrides | None = None,
    ) -> str:
        """Mint a new account token, by default to the wallet. Returns the transaction hash."""
        tx = await self.tx_factory.safe_mint(transfer_to or self.account.address, user_metadata, overrides)
        return await self._send(tx)

    async def get_next_token_id(self) -> int:
        return await self.tx_factory.contract.functions.nextTokenId().call()

    async def get_owner(self, token_id: int) -> str:
        return await self.tx_factory.contract.functions.ownerOf(token_id).call()

    async def collect(
        self, token_id: int, erc20: str, transfer_to: str | None = None, overrides: TxOverrides | None = None
    ) -> str:
        tx = await self.tx_factory.collect(token_id, erc20, transfer_to or self.account.address, overrides)
        return await self._send(tx)

    async def give(
        self, token_id: int, receiver_user_id: int, erc20: str, amount: int, overrides: TxOverrides | None = None
    ) -> str:
        return await self._send(await self.tx_factory.give(token_id, receiver_user_id, erc20, amount, overrides))

    async def set_splits(
        self, token_id: int, receivers: Iterable[SplitsReceiver], overrides: TxOverrides | None = None
    ) -> str:
        return await self._send(await self.tx_factory.set_splits(token_id, receivers, overrides))

    async def set_drips(
        self,
        token_id: int,
        erc20: str,
        curr_receivers: Iterable[DripsReceiver],
        new_receivers: Iterable[DripsReceiver],
        balance_delta: int = 0,
        transfer_to: str | None = None,
        overrides: TxOverrides | None = None,
    ) -> str:
        tx = await self.tx_factory.set_drips(
            token_id,
            erc20,
            curr_receivers,
            balance_delta,
            new_receivers,
            transfer_to=transfer_to,
            overrides=overrides,
        )
        return await self._send(tx)

    async def emit_user_metadata(
        self, token_id: int, user_metadata: Iterable[UserMetadata], overrides: TxOverrides | None = None
    ) -> str:
        return await self._send(await self.tx_factory.emit_user_metadata(token_id, user_metadata, overrides))


class RepoDriverClient(_DriverClient):
    """Client for accounts owned by source code repositories."""

    FACTORY = RepoDriverTxFactory
    tx_factory: RepoDriverTxFactory

    async def get_user_id(self, forge: int, name: str) -> int:
        """Get the user ID of the repository `name` on `forge`."""
        return await self.tx_factory.contract.functions.calcUserId(forge, to_bytes_like(name, "name")).call()

    async def get_owner(self, user_id: int) -> str:
        return await self.tx_factory.contract.functions.ownerOf(user_id).call()

    async def request_owner_update(self, forge: int, name: str, overrides: TxOverrides | None = None) -> str:
        return await self._send(await self.tx_factory.request_update_owner(forge, name, overrides))

    async def collect(
        self, user_id: int, erc20: str, transfer_to: str | None = None, overrides: TxOverrides | None = None
    ) -> str:
        tx = await self.tx_factory.collect(user_id, erc20, transfer_to or self.account.address, overrides)
        return await self._send(tx)

    async def give(
        self, user_id: int, receiver_user_id: int, erc20: str, amount: int, overrides: TxOverrides | None = None
    ) -> str:
        return await self._send(await self.tx_factory.give(user_id, receiver_user_id, erc20, amount, overrides))

    async def set_splits(
        self, user_id: int, receivers: Iterable[SplitsReceiver], overrides: TxOverrides | None = None
    ) -> str:
        return await self._send(await self.tx_factory.set_splits(user_id, receivers, overrides))

    async def set_drips(
        self,
        user_id: int,
        erc20: str,
        curr_receivers: Iterable[DripsReceiver],
        new_receivers: Iterable[DripsReceiver],
        balance_delta: int = 0,
        transfer_to: str | None = None,
        overrides: TxOverrides | None = None,
    ) -> str:
        tx = await self.tx_factory.set_drips(
            user_id,
            erc20,
            curr_receivers,
            balance_delta,
            new_receivers,
            transfer_to=transfer_to,
            overrides=overrides,
        )
        return await self._send(tx)

    async def emit_user_metadata(
        self, user_id: int, user_metadata: Iterable[UserMetadata], overrides: TxOverrides | None = None
    ) -> str:
        return await self._send(await self.tx_factory.emit_user_metadata(user_id, user_metadata, overrides))


class ImmutableSplitsDriverClient(_DriverClient):
    """Client for creating accounts with a fixed splits configuration."""

    FACTORY = ImmutableSplitsDriverTxFactory
    tx_factory: ImmutableSplitsDriverTxFactory

    async def get_next_user_id(self) -> int:
        return await self.tx_factory.contract.functions.nextUserId().call()

    async def create_splits(
        self,
        receivers: Iterable[SplitsReceiver],
        user_metadata: Iterable[UserMetadata] = (),
        overrides: TxOverrides | None = None,
    ) -> str:
        return await self._send(await self.tx_factory.create_splits(receivers, user_metadata, overrides))


class CallerClient(_DriverClient):
    """
    Client for the Caller contract, which runs a batch of calls in one transaction.

    Example:
        >>> caller = await CallerClient.create(w3, account)
        >>> calls = await AddressDriverPresets.create_new_stream_flow(address_driver, token, [], receivers, amount)
        >>> tx_hash = await caller.call_batched(calls)
    """

    FACTORY = CallerTxFactory
    tx_factory: CallerTxFactory

    async def call_batched(self, calls: Iterable[CallStruct], overrides: TxOverrides | None = None) -> str:
        """Send `calls` as one transaction. Without a value override, the calls' values are summed and attached."""
        calls = list(calls)
        overrides = overrides or TxOverrides()
        if overrides.value is None:
            total_value = sum(call.value for call in calls)
            if total_value:
                overrides = overrides.model_copy(update={"value": total_value})
        return await self._send(await self.tx_factory.call_batched(calls, overrides))
