"""
Preset call batches for the Caller contract.

A preset is a list of CallStructs that configure an account in one
transaction. Run it with CallerClient.call_batched() or
CallerTxFactory.call_batched(). The drivers trust the Caller as a forwarder,
so every call acts for the account that sends the batch.

Example:
    >>> factory = await AddressDriverTxFactory.create(w3, account)
    >>> calls = await AddressDriverPresets.create_new_stream_flow(
    ...     factory, token, [], [DripsReceiver(user_id=bob_id, config=config)], 10**18,
    ...     user_metadata=[UserMetadata(key="description", value="salary")],
    ... )
    >>> tx_hash = await caller_client.call_batched(calls)
"""

from collections.abc import Iterable

from ._exceptions import InvalidArgumentError
from .deferred import Resolvable
from .factories import AddressDriverTxFactory, NFTDriverTxFactory
from .receivers import format_splits_receivers
from .types import CallStruct, DripsReceiver, SplitsReceiver, UserMetadata
from .utils import encode_user_metadata, to_checksum


class AddressDriverPresets:
    """Batches for accounts owned by the sending address."""

    @staticmethod
    async def create_new_stream_flow(
        factory: AddressDriverTxFactory,
        erc20: Resolvable[str],
        curr_receivers: Iterable[DripsReceiver],
        new_receivers: Iterable[DripsReceiver],
        balance_delta: Resolvable[int],
        user_metadata: Iterable[UserMetadata] = (),
        max_end_hint1: Resolvable[int] = 0,
        max_end_hint2: Resolvable[int] = 0,
        transfer_to: Resolvable[str] | None = None,
    ) -> list[CallStruct]:
        """
        Set the sender's streams for `erc20` and emit metadata describing them.

        The driver must already be allowed to spend `balance_delta` of the token.
        """
        calls = [
            factory._call(
                "setDrips",
                await factory._set_drips_args(
                    (), erc20, curr_receivers, balance_delta, new_receivers, max_end_hint1, max_end_hint2, transfer_to
                ),
            )
        ]
        metadata = encode_user_metadata(user_metadata)
        if metadata:
            calls.append(factory._call("emitUserMetadata", [metadata]))
        return calls


class NFTDriverPresets:
    """
    Batches for NFTDriver accounts.

    Minting flows need the token ID up front; pass the value of
    `nextTokenId()` (a Deferred works). If another mint lands first the
    batch reverts as a whole.
    """

    @staticmethod
    async def create_new_account_flow(
        factory: NFTDriverTxFactory,
        token_id: Resolvable[int],
        to: Resolvable[str] | None = None,
        user_metadata: Iterable[UserMetadata] = (),
        splits_receivers: Iterable[SplitsReceiver] | None = None,
    ) -> list[CallStruct]:
        """
        Mint a new account token and optionally set its splits.

        `to` defaults to the factory's account. Setting splits requires the
        sender to own the new token, so `to` must then be the sender.
        """
        token_id, to = await factory._resolve(token_id, to)
        to = to_checksum(to if to is not None else factory.account.address, "to")

        calls = [factory._call("safeMint", [to, encode_user_metadata(user_metadata)])]
        if splits_receivers is not None:
            if to != factory.account.address:
                raise InvalidArgumentError("Splits can only be set on a token minted to the sender")
            calls.append(factory._call("setSplits", [token_id, format_splits_receivers(splits_receivers)]))
        return calls

    @staticmethod
    async def create_new_stream_flow(
        factory: NFTDriverTxFactory,
        token_id: Resolvable[int],
        erc20: Resolvable[str],
        curr_receivers: Iterable[DripsReceiver],
        new_receivers: Iterable[DripsReceiver],
        balance_delta: Resolvable[int],
        user_metadata: Iterable[UserMetadata] = (),
        max_end_hint1: Resolvable[int] = 0,
        max_end_hint2: Resolvable[int] = 0,
        transfer_to: Resolvable[str] | None = None,
    ) -> list[CallStruct]:
        """Set the token's streams for `erc20` and emit metadata describing them."""
        (token_id,) = await factory._resolve(token_id)
        calls = [
            factory._call(
                "setDrips",
                await factory._set_drips_args(
                    (token_id,),
                    erc20,
                    curr_receivers,
                    balance_delta,
                    new_receivers,
                    max_end_hint1,
                    max_end_hint2,
                    transfer_to,
                ),
            )
        ]
        metadata = encode_user_metadata(user_metadata)
        if metadata:
            calls.append(factory._call("emitUserMetadata", [token_id, metadata]))
        return calls
