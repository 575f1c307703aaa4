"""Tests for the subgraph client."""

import json

import httpx
import pytest

from drips_sdk import DripsSubgraphClient, SubgraphQueryError, key_to_bytes32

API_URL = "https://subgraph.example/drips"


def create_client(handler) -> DripsSubgraphClient:
    """Subgraph client whose requests are answered by `handler`."""
    return DripsSubgraphClient(API_URL, http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def respond_with(data: dict, requests: list | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(json.loads(request.content))
        return httpx.Response(200, json={"data": data})

    return handler


class TestQuery:
    """Tests for raw GraphQL queries."""

    @pytest.mark.asyncio
    async def test_posts_query_and_variables(self) -> None:
        requests: list = []
        client = create_client(respond_with({"ok": True}, requests))

        data = await client.query("query { ok }", {"a": 1})

        assert data == {"ok": True}
        assert requests == [{"query": "query { ok }", "variables": {"a": 1}}]

    @pytest.mark.asyncio
    async def test_graphql_errors(self) -> None:
        client = create_client(lambda request: httpx.Response(200, json={"errors": [{"message": "bad field"}]}))

        with pytest.raises(SubgraphQueryError, match="bad field"):
            await client.query("query { nope }")

    @pytest.mark.asyncio
    async def test_http_error(self) -> None:
        client = create_client(lambda request: httpx.Response(500, text="boom"))

        with pytest.raises(SubgraphQueryError, match="request failed"):
            await client.query("query { ok }")

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        client = create_client(lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(SubgraphQueryError, match="invalid JSON"):
            await client.query("query { ok }")

    def test_requires_url(self) -> None:
        with pytest.raises(ValueError):
            DripsSubgraphClient("")

    @pytest.mark.asyncio
    async def test_shared_client_not_closed(self) -> None:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(respond_with({})))

        async with DripsSubgraphClient(API_URL, http_client=http_client):
            pass

        assert not http_client.is_closed
        await http_client.aclose()


class TestEntities:
    """Tests for the typed queries."""

    @pytest.mark.asyncio
    async def test_splits_config(self) -> None:
        requests: list = []
        client = create_client(
            respond_with(
                {"user": {"splitsEntries": [{"id": "1-2", "senderId": "1", "userId": "2", "weight": "500000"}]}},
                requests,
            )
        )

        entries = await client.get_splits_config_by_user_id(1)

        assert len(entries) == 1
        assert entries[0].sender_id == 1
        assert entries[0].user_id == 2
        assert entries[0].weight == 500_000
        assert requests[0]["variables"] == {"userId": "1"}

    @pytest.mark.asyncio
    async def test_unknown_user(self) -> None:
        client = create_client(respond_with({"user": None}))

        assert await client.get_splits_config_by_user_id(1) == []
        assert await client.get_user_assets_configs(1) == []

    @pytest.mark.asyncio
    async def test_asset_configs(self) -> None:
        client = create_client(
            respond_with(
                {
                    "user": {
                        "assetConfigs": [
                            {
                                "id": "1-7",
                                "assetId": "7",
                                "balance": "1000",
                                "amountCollected": "0",
                                "lastUpdatedBlockTimestamp": "1700000000",
                                "dripsEntries": [{"id": "e", "userId": "3", "config": "18446744073709551616"}],
                            }
                        ]
                    }
                }
            )
        )

        (config,) = await client.get_user_assets_configs(1)

        assert config.asset_id == 7
        assert config.balance == 1_000
        assert config.drips_entries[0].config == 1 << 64

    @pytest.mark.asyncio
    async def test_drips_set_events_paging(self) -> None:
        requests: list = []
        event = {
            "id": "ev",
            "userId": "1",
            "assetId": "7",
            "receiversHash": "0x01",
            "dripsHistoryHash": "0x02",
            "balance": "10",
            "blockTimestamp": "5",
            "maxEnd": "9",
            "dripsReceiverSeenEvents": [{"id": "s", "receiverUserId": "4", "config": "1"}],
        }
        client = create_client(respond_with({"dripsSetEvents": [event]}, requests))

        (result,) = await client.get_drips_set_events_by_user_id(1, skip=100, first=50)

        assert result.max_end == 9
        assert result.drips_receiver_seen_events[0].receiver_user_id == 4
        assert requests[0]["variables"] == {"userId": "1", "skip": 100, "first": 50}

    @pytest.mark.asyncio
    async def test_latest_metadata(self) -> None:
        requests: list = []
        entries = [
            {"id": "b", "key": "ipfs", "value": "new", "userId": "1", "lastUpdatedBlockTimestamp": "20"},
            {"id": "a", "key": "ipfs", "value": "old", "userId": "1", "lastUpdatedBlockTimestamp": "10"},
        ]
        client = create_client(respond_with({"userMetadataEvents": entries}, requests))

        latest = await client.get_latest_user_metadata(1, "ipfs")

        assert latest is not None
        assert latest.value == "new"
        assert requests[0]["variables"]["key"] == "0x" + key_to_bytes32("ipfs").hex()

    @pytest.mark.asyncio
    async def test_latest_metadata_missing(self) -> None:
        client = create_client(respond_with({"userMetadataEvents": []}))

        assert await client.get_latest_user_metadata(1, "ipfs") is None


class TestMalformedEntities:
    """Entities that don't match the schema surface as SubgraphQueryError."""

    @pytest.mark.asyncio
    async def test_splits_entry_missing_fields(self) -> None:
        client = create_client(respond_with({"user": {"splitsEntries": [{"id": "x", "senderId": "1"}]}}))

        with pytest.raises(SubgraphQueryError, match="SplitsEntry"):
            await client.get_splits_config_by_user_id(1)

    @pytest.mark.asyncio
    async def test_metadata_entry_missing_fields(self) -> None:
        client = create_client(respond_with({"userMetadataEvents": [{"id": "x"}]}))

        with pytest.raises(SubgraphQueryError, match="UserMetadataEntry"):
            await client.get_metadata_history(1)

    @pytest.mark.asyncio
    async def test_non_numeric_amount(self) -> None:
        event = {
            "id": "g",
            "userId": "1",
            "receiverUserId": "2",
            "assetId": "7",
            "amt": "lots",
            "blockTimestamp": "5",
        }
        client = create_client(respond_with({"givenEvents": [event]}))

        with pytest.raises(SubgraphQueryError):
            await client.get_given_events_by_user_id(1)


def drips_set_event(event_id: str, receivers_hash: str, seen: list[tuple[str, str]], asset_id: str = "7") -> dict:
    return {
        "id": event_id,
        "userId": "1",
        "assetId": asset_id,
        "receiversHash": receivers_hash,
        "dripsHistoryHash": "0x00",
        "balance": "0",
        "blockTimestamp": event_id,
        "maxEnd": "0",
        "dripsReceiverSeenEvents": [
            {"id": f"{event_id}-{receiver}", "receiverUserId": receiver, "config": config} for receiver, config in seen
        ],
    }


class TestEventQueries:
    """Tests for the event and account queries."""

    @pytest.mark.asyncio
    async def test_given_events_by_receiver(self) -> None:
        requests: list = []
        event = {
            "id": "g",
            "userId": "1",
            "receiverUserId": "2",
            "assetId": "7",
            "amt": "500",
            "blockTimestamp": "5",
        }
        client = create_client(respond_with({"givenEvents": [event]}, requests))

        (given,) = await client.get_given_events_by_receiver_user_id(2)

        assert (given.user_id, given.receiver_user_id, given.amt) == (1, 2, 500)
        assert requests[0]["variables"] == {"receiverUserId": "2", "skip": 0, "first": 100}

    @pytest.mark.asyncio
    async def test_split_collected_squeezed_received(self) -> None:
        client = create_client(
            respond_with(
                {
                    "splitEvents": [
                        {"id": "s", "userId": "1", "receiverId": "3", "assetId": "7", "amt": "9", "blockTimestamp": "1"}
                    ],
                    "collectedEvents": [
                        {"id": "c", "userId": "1", "assetId": "7", "collected": "11", "blockTimestamp": "2"}
                    ],
                    "squeezedDripsEvents": [
                        {
                            "id": "q",
                            "userId": "1",
                            "assetId": "7",
                            "senderId": "4",
                            "amt": "12",
                            "dripsHistoryHashes": ["0x01"],
                            "blockTimestamp": "3",
                        }
                    ],
                    "receivedDripsEvents": [
                        {
                            "id": "r",
                            "userId": "1",
                            "assetId": "7",
                            "amt": "13",
                            "receivableCycles": "2",
                            "blockTimestamp": "4",
                        }
                    ],
                }
            )
        )

        (split,) = await client.get_split_events_by_user_id(1)
        (collected,) = await client.get_collected_events_by_user_id(1)
        (squeezed,) = await client.get_squeezed_drips_events_by_user_id(1)
        (received,) = await client.get_received_drips_events_by_user_id(1)

        assert split.receiver_id == 3
        assert collected.collected == 11
        assert squeezed.sender_id == 4
        assert squeezed.drips_history_hashes == ["0x01"]
        assert received.receivable_cycles == 2

    @pytest.mark.asyncio
    async def test_nft_sub_accounts(self) -> None:
        requests: list = []
        owner = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
        client = create_client(
            respond_with({"nftSubAccounts": [{"id": str(1 << 224), "ownerAddress": owner.lower()}]}, requests)
        )

        (account,) = await client.get_nft_sub_accounts_by_owner(owner)

        assert account.token_id == 1 << 224
        assert requests[0]["variables"] == {"ownerAddress": owner.lower()}

    @pytest.mark.asyncio
    async def test_repo_account(self) -> None:
        repo = {
            "userId": "42",
            "name": "drips-network/app",
            "forge": "0",
            "status": "CLAIMED",
            "ownerAddress": "0xabc",
            "lastUpdatedBlockTimestamp": "10",
        }
        client = create_client(respond_with({"repoAccount": repo}))

        account = await client.get_repo_account_by_id(42)

        assert account is not None
        assert account.name == "drips-network/app"
        assert account.status == "CLAIMED"

    @pytest.mark.asyncio
    async def test_repo_account_missing(self) -> None:
        client = create_client(respond_with({"repoAccount": None}))

        assert await client.get_repo_account_by_id(42) is None


class TestFullReceivers:
    """Events reusing a receivers hash get the receivers seen when it was first used."""

    @pytest.mark.asyncio
    async def test_reused_hash_gets_earlier_receivers(self) -> None:
        events = [
            drips_set_event("1", "0xaa", [("2", "100"), ("3", "200")]),
            drips_set_event("2", "0xbb", [("4", "300")]),
            drips_set_event("3", "0xaa", []),
        ]
        client = create_client(respond_with({"dripsSetEvents": events}))

        result = await client.get_drips_set_events_with_full_receivers(1)

        assert [event.id for event in result] == ["1", "2", "3"]
        assert [r.receiver_user_id for r in result[2].current_receivers] == [2, 3]
        assert [r.receiver_user_id for r in result[1].current_receivers] == [4]
        assert result[2].drips_receiver_seen_events == []

    @pytest.mark.asyncio
    async def test_pages_until_short_page(self) -> None:
        requests: list = []
        first_page = [drips_set_event(str(i), "0xaa", [("2", "1")] if i == 0 else []) for i in range(100)]
        pages = [first_page, [drips_set_event("100", "0xaa", [])]]

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(json.loads(request.content))
            return httpx.Response(200, json={"data": {"dripsSetEvents": pages[len(requests) - 1]}})

        client = create_client(handler)

        result = await client.get_drips_set_events_with_full_receivers(1)

        assert len(result) == 101
        assert [r["variables"]["skip"] for r in requests] == [0, 100]
        assert all(event.current_receivers[0].receiver_user_id == 2 for event in result)

    @pytest.mark.asyncio
    async def test_filters_by_asset(self) -> None:
        events = [drips_set_event("1", "0xaa", [("2", "1")], asset_id="7"), drips_set_event("2", "0xcc", [], "8")]
        client = create_client(respond_with({"dripsSetEvents": events}))

        result = await client.get_drips_set_events_with_full_receivers(1, asset_id=7)

        assert [event.id for event in result] == ["1"]
