"""Tests for Caller batch presets."""

import pytest
from conftest import SENDER, SEPOLIA, TOKEN, create_mock_w3, decode_call

from drips_sdk import (
    NETWORK_CONFIGS,
    AddressDriverPresets,
    AddressDriverTxFactory,
    CallerTxFactory,
    Deferred,
    DripsReceiver,
    InvalidArgumentError,
    InvalidReceiverListError,
    NFTDriverPresets,
    NFTDriverTxFactory,
    SplitsReceiver,
    UserMetadata,
    key_to_bytes32,
)

CONFIG = NETWORK_CONFIGS[SEPOLIA]

SET_DRIPS = "setDrips(address,(uint256,uint256)[],int128,(uint256,uint256)[],uint32,uint32,address)"
SET_DRIPS_TYPES = ["address", "(uint256,uint256)[]", "int128", "(uint256,uint256)[]", "uint32", "uint32", "address"]


async def _value(value):
    return value


class TestAddressDriverPresets:
    """Tests for AddressDriver stream batches."""

    @pytest.mark.asyncio
    async def test_create_new_stream_flow(self, account) -> None:
        factory = await AddressDriverTxFactory.create(create_mock_w3(), account)

        calls = await AddressDriverPresets.create_new_stream_flow(
            factory,
            TOKEN,
            [],
            [DripsReceiver(user_id=9, config=2), DripsReceiver(user_id=3, config=1)],
            1_000,
            user_metadata=[UserMetadata(key="description", value="salary")],
        )

        assert [call.target for call in calls] == [CONFIG.address_driver_address] * 2
        assert all(call.value == 0 for call in calls)
        erc20, curr, delta, new, hint1, hint2, transfer_to = decode_call(calls[0].data, SET_DRIPS, SET_DRIPS_TYPES)
        assert erc20.lower() == TOKEN
        assert list(curr) == []
        assert delta == 1_000
        assert [tuple(r) for r in new] == [(3, 1), (9, 2)]
        assert (hint1, hint2) == (0, 0)
        assert transfer_to.lower() == SENDER.lower()
        (entries,) = decode_call(calls[1].data, "emitUserMetadata((bytes32,bytes)[])", ["(bytes32,bytes)[]"])
        assert [tuple(e) for e in entries] == [(key_to_bytes32("description"), b"salary")]

    @pytest.mark.asyncio
    async def test_without_metadata(self, account) -> None:
        factory = await AddressDriverTxFactory.create(create_mock_w3(), account)

        calls = await AddressDriverPresets.create_new_stream_flow(factory, TOKEN, [], [], 0)

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_invalid_receivers(self, account) -> None:
        factory = await AddressDriverTxFactory.create(create_mock_w3(), account)

        with pytest.raises(InvalidReceiverListError):
            await AddressDriverPresets.create_new_stream_flow(
                factory, TOKEN, [], [DripsReceiver(user_id=1, config=1), DripsReceiver(user_id=1, config=2)], 0
            )

    @pytest.mark.asyncio
    async def test_calls_feed_caller_factory(self, account) -> None:
        w3 = create_mock_w3()
        factory = await AddressDriverTxFactory.create(w3, account)
        caller = await CallerTxFactory.create(w3, account)

        calls = await AddressDriverPresets.create_new_stream_flow(factory, TOKEN, [], [], 0)
        tx = await caller.call_batched(calls)

        (batched,) = decode_call(tx.data, "callBatched((address,bytes,uint256)[])", ["(address,bytes,uint256)[]"])
        assert batched[0][0].lower() == CONFIG.address_driver_address.lower()
        assert "0x" + batched[0][1].hex() == calls[0].data


class TestNFTDriverPresets:
    """Tests for NFTDriver account batches."""

    @pytest.mark.asyncio
    async def test_create_new_account_flow(self, account) -> None:
        factory = await NFTDriverTxFactory.create(create_mock_w3(), account)

        calls = await NFTDriverPresets.create_new_account_flow(
            factory,
            Deferred(_value(77)),
            user_metadata=[UserMetadata(key="name", value="fund")],
            splits_receivers=[SplitsReceiver(user_id=5, weight=1), SplitsReceiver(user_id=2, weight=1)],
        )

        assert [call.target for call in calls] == [CONFIG.nft_driver_address] * 2
        to, entries = decode_call(calls[0].data, "safeMint(address,(bytes32,bytes)[])", ["address", "(bytes32,bytes)[]"])
        assert to.lower() == SENDER.lower()
        assert entries[0][1] == b"fund"
        token_id, receivers = decode_call(
            calls[1].data, "setSplits(uint256,(uint256,uint32)[])", ["uint256", "(uint256,uint32)[]"]
        )
        assert token_id == 77
        assert [tuple(r) for r in receivers] == [(2, 1), (5, 1)]

    @pytest.mark.asyncio
    async def test_mint_to_other_address(self, account, alice) -> None:
        factory = await NFTDriverTxFactory.create(create_mock_w3(), account)

        calls = await NFTDriverPresets.create_new_account_flow(factory, 77, to=alice)

        assert len(calls) == 1
        to, _ = decode_call(calls[0].data, "safeMint(address,(bytes32,bytes)[])", ["address", "(bytes32,bytes)[]"])
        assert to.lower() == alice.lower()

    @pytest.mark.asyncio
    async def test_splits_need_sender_as_owner(self, account, alice) -> None:
        factory = await NFTDriverTxFactory.create(create_mock_w3(), account)

        with pytest.raises(InvalidArgumentError, match="sender"):
            await NFTDriverPresets.create_new_account_flow(
                factory, 77, to=alice, splits_receivers=[SplitsReceiver(user_id=1, weight=1)]
            )

    @pytest.mark.asyncio
    async def test_create_new_stream_flow(self, account) -> None:
        factory = await NFTDriverTxFactory.create(create_mock_w3(), account)

        calls = await NFTDriverPresets.create_new_stream_flow(
            factory,
            77,
            TOKEN,
            [],
            [DripsReceiver(user_id=4, config=1)],
            500,
            user_metadata=[UserMetadata(key="k", value="v")],
        )

        decoded = decode_call(
            calls[0].data,
            "setDrips(uint256,address,(uint256,uint256)[],int128,(uint256,uint256)[],uint32,uint32,address)",
            ["uint256", *SET_DRIPS_TYPES],
        )
        assert decoded[0] == 77
        assert decoded[3] == 500
        token_id, _ = decode_call(
            calls[1].data, "emitUserMetadata(uint256,(bytes32,bytes)[])", ["uint256", "(bytes32,bytes)[]"]
        )
        assert token_id == 77
