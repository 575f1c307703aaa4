"""Client for the Drips subgraph."""

from __future__ import annotations

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ._exceptions import SubgraphQueryError
from .types import (
    CollectedEvent,
    DripsReceiverSeenEvent,
    DripsSetEvent,
    DripsSetEventWithFullReceivers,
    GivenEvent,
    NftSubAccount,
    ReceivedDripsEvent,
    RepoAccount,
    SplitEvent,
    SplitsEntry,
    SqueezedDripsEvent,
    UserAssetConfig,
    UserMetadataEntry,
)
from .utils import key_to_bytes32

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100

ModelT = TypeVar("ModelT", bound=BaseModel)

GET_SPLITS_CONFIG_BY_USER_ID = """
query getSplitsConfigByUserId($userId: ID!) {
  user(id: $userId) {
    splitsEntries {
      id
      senderId
      userId
      weight
    }
  }
}
"""

GET_USER_ASSET_CONFIGS = """
query getUserAssetConfigs($userId: ID!) {
  user(id: $userId) {
    assetConfigs {
      id
      assetId
      balance
      amountCollected
      lastUpdatedBlockTimestamp
      dripsEntries {
        id
        userId
        config
      }
    }
  }
}
"""

GET_DRIPS_SET_EVENTS_BY_USER_ID = """
query getDripsSetEventsByUserId($userId: String!, $skip: Int, $first: Int) {
  dripsSetEvents(where: {userId: $userId}, skip: $skip, first: $first, orderBy: blockTimestamp, orderDirection: asc) {
    id
    userId
    assetId
    receiversHash
    dripsHistoryHash
    balance
    blockTimestamp
    maxEnd
    dripsReceiverSeenEvents {
      id
      receiverUserId
      config
    }
  }
}
"""

GET_METADATA_HISTORY = """
query getMetadataHistory($userId: String!, $key: Bytes) {
  userMetadataEvents(where: {userId: $userId, key: $key}, orderBy: lastUpdatedBlockTimestamp, orderDirection: desc) {
    id
    key
    value
    userId
    lastUpdatedBlockTimestamp
  }
}
"""

GET_METADATA_HISTORY_ALL_KEYS = """
query getMetadataHistory($userId: String!) {
  userMetadataEvents(where: {userId: $userId}, orderBy: lastUpdatedBlockTimestamp, orderDirection: desc) {
    id
    key
    value
    userId
    lastUpdatedBlockTimestamp
  }
}
"""


GET_GIVEN_EVENTS_BY_USER_ID = """
query getGivenEventsByUserId($userId: String!, $skip: Int, $first: Int) {
  givenEvents(where: {userId: $userId}, skip: $skip, first: $first, orderBy: blockTimestamp, orderDirection: asc) {
    id
    userId
    receiverUserId
    assetId
    amt
    blockTimestamp
  }
}
"""

GET_GIVEN_EVENTS_BY_RECEIVER_USER_ID = """
query getGivenEventsByReceiverUserId($receiverUserId: String!, $skip: Int, $first: Int) {
  givenEvents(
    where: {receiverUserId: $receiverUserId}, skip: $skip, first: $first, orderBy: blockTimestamp, orderDirection: asc
  ) {
    id
    userId
    receiverUserId
    assetId
    amt
    blockTimestamp
  }
}
"""

GET_SPLIT_EVENTS_BY_USER_ID = """
query getSplitEventsByUserId($userId: String!, $skip: Int, $first: Int) {
  splitEvents(where: {userId: $userId}, skip: $skip, first: $first, orderBy: blockTimestamp, orderDirection: asc) {
    id
    userId
    receiverId
    assetId
    amt
    blockTimestamp
  }
}
"""

GET_SPLIT_EVENTS_BY_RECEIVER_USER_ID = """
query getSplitEventsByReceiverUserId($receiverId: String!, $skip: Int, $first: Int) {
  splitEvents(where: {receiverId: $receiverId}, skip: $skip, first: $first, orderBy: blockTimestamp, orderDirection: asc) {
    id
    userId
    receiverId
    assetId
    amt
    blockTimestamp
  }
}
"""

GET_COLLECTED_EVENTS_BY_USER_ID = """
query getCollectedEventsByUserId($userId: String!, $skip: Int, $first: Int) {
  collectedEvents(where: {userId: $userId}, skip: $skip, first: $first, orderBy: blockTimestamp, orderDirection: asc) {
    id
    userId
    assetId
    collected
    blockTimestamp
  }
}
"""

GET_SQUEEZED_DRIPS_EVENTS_BY_USER_ID = """
query getSqueezedDripsEventsByUserId($userId: String!, $skip: Int, $first: Int) {
  squeezedDripsEvents(where: {userId: $userId}, skip: $skip, first: $first, orderBy: blockTimestamp, orderDirection: asc) {
    id
    userId
    assetId
    senderId
    amt
    dripsHistoryHashes
    blockTimestamp
  }
}
"""

GET_RECEIVED_DRIPS_EVENTS_BY_USER_ID = """
query getReceivedDripsEventsByUserId($userId: String!, $skip: Int, $first: Int) {
  receivedDripsEvents(where: {userId: $userId}, skip: $skip, first: $first, orderBy: blockTimestamp, orderDirection: asc) {
    id
    userId
    assetId
    amt
    receivableCycles
    blockTimestamp
  }
}
"""

GET_NFT_SUB_ACCOUNTS_BY_OWNER = """
query getNftSubAccountsByOwner($ownerAddress: Bytes!) {
  nftSubAccounts(where: {ownerAddress: $ownerAddress}) {
    id
    ownerAddress
  }
}
"""

GET_REPO_ACCOUNT_BY_ID = """
query getRepoAccountById($userId: ID!) {
  repoAccount(id: $userId) {
    userId
    name
    forge
    status
    ownerAddress
    lastUpdatedBlockTimestamp
  }
}
"""


def _parse(model: type[ModelT], entries: list[dict[str, Any]] | None) -> list[ModelT]:
    """Validate subgraph entities, raising SubgraphQueryError on malformed ones."""
    try:
        return [model.model_validate(entry) for entry in entries or []]
    except ValidationError as e:
        raise SubgraphQueryError(f"Subgraph returned a malformed {model.__name__}: {e}") from e


def attach_full_receivers(events: list[DripsSetEvent]) -> list[DripsSetEventWithFullReceivers]:
    """
    Give every DripsSet event the full receiver list for its receivers hash.

    DripsReceiverSeen events are only emitted for a hash's first use, so the
    lists are collected across all `events` (one user and token, any order).
    """
    receivers_by_hash: dict[str, list[DripsReceiverSeenEvent]] = {}
    for event in events:
        if event.drips_receiver_seen_events:
            receivers_by_hash.setdefault(event.receivers_hash, list(event.drips_receiver_seen_events))

    return [
        DripsSetEventWithFullReceivers(
            **event.model_dump(),
            current_receivers=receivers_by_hash.get(event.receivers_hash, []),
        )
        for event in events
    ]


class DripsSubgraphClient:
    """
    Async client for the Drips subgraph GraphQL API.

    Example:
        >>> async with DripsSubgraphClient(api_url) as subgraph:
        ...     entries = await subgraph.get_splits_config_by_user_id(user_id)
    """

    def __init__(
        self,
        api_url: str,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        """
        Args:
            api_url: The subgraph's GraphQL endpoint
            http_client: Client to send requests with (a new one is created and owned if not provided)
            timeout: Request timeout in seconds for an owned client
        """
        if not api_url:
            raise ValueError("api_url is required")
        self.api_url = api_url
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> DripsSubgraphClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def query(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Run a GraphQL query and return its `data`.

        Raises:
            SubgraphQueryError: On HTTP failures or GraphQL errors
        """
        logger.debug("Subgraph query to %s with %s", self.api_url, variables)
        try:
            response = await self._http.post(self.api_url, json={"query": query, "variables": variables or {}})
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as e:
            raise SubgraphQueryError(f"Subgraph request failed: {e}") from e
        except ValueError as e:
            raise SubgraphQueryError(f"Subgraph returned invalid JSON: {e}") from e

        if body.get("errors"):
            messages = "; ".join(error.get("message", str(error)) for error in body["errors"])
            raise SubgraphQueryError(f"Subgraph query failed: {messages}")

        return body.get("data") or {}

    async def _page(
        self,
        query: str,
        field: str,
        model: type[ModelT],
        variables: dict[str, Any],
        skip: int,
        first: int,
    ) -> list[ModelT]:
        data = await self.query(query, {**variables, "skip": skip, "first": first})
        return _parse(model, data.get(field))

    async def get_splits_config_by_user_id(self, user_id: int) -> list[SplitsEntry]:
        """Get the user's current splits receivers (empty if it has none)."""
        data = await self.query(GET_SPLITS_CONFIG_BY_USER_ID, {"userId": str(user_id)})
        user = data.get("user")
        if not user:
            return []
        return _parse(SplitsEntry, user.get("splitsEntries"))

    async def get_user_assets_configs(self, user_id: int) -> list[UserAssetConfig]:
        """Get the user's streams configuration for every token it streams."""
        data = await self.query(GET_USER_ASSET_CONFIGS, {"userId": str(user_id)})
        user = data.get("user")
        if not user:
            return []
        return _parse(UserAssetConfig, user.get("assetConfigs"))

    async def get_drips_set_events_by_user_id(
        self,
        user_id: int,
        skip: int = 0,
        first: int = DEFAULT_PAGE_SIZE,
    ) -> list[DripsSetEvent]:
        """Get one page of the user's DripsSet events, oldest first."""
        return await self._page(
            GET_DRIPS_SET_EVENTS_BY_USER_ID, "dripsSetEvents", DripsSetEvent, {"userId": str(user_id)}, skip, first
        )

    async def get_drips_set_events_with_full_receivers(
        self,
        user_id: int,
        asset_id: int | None = None,
    ) -> list[DripsSetEventWithFullReceivers]:
        """
        Get all of the user's DripsSet events, oldest first, each with its full receiver list.

        Pages through every event; pass `asset_id` to keep one token's events.
        """
        events: list[DripsSetEvent] = []
        skip = 0
        while True:
            page = await self.get_drips_set_events_by_user_id(user_id, skip, DEFAULT_PAGE_SIZE)
            events.extend(page)
            if len(page) < DEFAULT_PAGE_SIZE:
                break
            skip += DEFAULT_PAGE_SIZE

        if asset_id is not None:
            events = [event for event in events if event.asset_id == asset_id]
        return attach_full_receivers(events)

    async def get_given_events_by_user_id(
        self, user_id: int, skip: int = 0, first: int = DEFAULT_PAGE_SIZE
    ) -> list[GivenEvent]:
        """Get one page of the funds the user gave, oldest first."""
        return await self._page(
            GET_GIVEN_EVENTS_BY_USER_ID, "givenEvents", GivenEvent, {"userId": str(user_id)}, skip, first
        )

    async def get_given_events_by_receiver_user_id(
        self, receiver_user_id: int, skip: int = 0, first: int = DEFAULT_PAGE_SIZE
    ) -> list[GivenEvent]:
        """Get one page of the funds given to the user, oldest first."""
        return await self._page(
            GET_GIVEN_EVENTS_BY_RECEIVER_USER_ID,
            "givenEvents",
            GivenEvent,
            {"receiverUserId": str(receiver_user_id)},
            skip,
            first,
        )

    async def get_split_events_by_user_id(
        self, user_id: int, skip: int = 0, first: int = DEFAULT_PAGE_SIZE
    ) -> list[SplitEvent]:
        return await self._page(
            GET_SPLIT_EVENTS_BY_USER_ID, "splitEvents", SplitEvent, {"userId": str(user_id)}, skip, first
        )

    async def get_split_events_by_receiver_user_id(
        self, receiver_user_id: int, skip: int = 0, first: int = DEFAULT_PAGE_SIZE
    ) -> list[SplitEvent]:
        return await self._page(
            GET_SPLIT_EVENTS_BY_RECEIVER_USER_ID,
            "splitEvents",
            SplitEvent,
            {"receiverId": str(receiver_user_id)},
            skip,
            first,
        )

    async def get_collected_events_by_user_id(
        self, user_id: int, skip: int = 0, first: int = DEFAULT_PAGE_SIZE
    ) -> list[CollectedEvent]:
        return await self._page(
            GET_COLLECTED_EVENTS_BY_USER_ID, "collectedEvents", CollectedEvent, {"userId": str(user_id)}, skip, first
        )

    async def get_squeezed_drips_events_by_user_id(
        self, user_id: int, skip: int = 0, first: int = DEFAULT_PAGE_SIZE
    ) -> list[SqueezedDripsEvent]:
        return await self._page(
            GET_SQUEEZED_DRIPS_EVENTS_BY_USER_ID,
            "squeezedDripsEvents",
            SqueezedDripsEvent,
            {"userId": str(user_id)},
            skip,
            first,
        )

    async def get_received_drips_events_by_user_id(
        self, user_id: int, skip: int = 0, first: int = DEFAULT_PAGE_SIZE
    ) -> list[ReceivedDripsEvent]:
        return await self._page(
            GET_RECEIVED_DRIPS_EVENTS_BY_USER_ID,
            "receivedDripsEvents",
            ReceivedDripsEvent,
            {"userId": str(user_id)},
            skip,
            first,
        )

    async def get_nft_sub_accounts_by_owner(self, owner_address: str) -> list[NftSubAccount]:
        """Get the NFTDriver accounts whose token is held by `owner_address`."""
        data = await self.query(GET_NFT_SUB_ACCOUNTS_BY_OWNER, {"ownerAddress": owner_address.lower()})
        return _parse(NftSubAccount, data.get("nftSubAccounts"))

    async def get_repo_account_by_id(self, user_id: int) -> RepoAccount | None:
        """Get a RepoDriver account, or None if the subgraph has not seen it."""
        data = await self.query(GET_REPO_ACCOUNT_BY_ID, {"userId": str(user_id)})
        account = data.get("repoAccount")
        if not account:
            return None
        return _parse(RepoAccount, [account])[0]

    async def get_metadata_history(self, user_id: int, key: str | None = None) -> list[UserMetadataEntry]:
        """Get the user's emitted metadata, newest first, optionally for one key."""
        if key is None:
            data = await self.query(GET_METADATA_HISTORY_ALL_KEYS, {"userId": str(user_id)})
        else:
            data = await self.query(
                GET_METADATA_HISTORY,
                {"userId": str(user_id), "key": "0x" + key_to_bytes32(key).hex()},
            )
        return _parse(UserMetadataEntry, data.get("userMetadataEvents"))

    async def get_latest_user_metadata(self, user_id: int, key: str) -> UserMetadataEntry | None:
        """Get the most recent metadata value emitted for `key`, or None."""
        history = await self.get_metadata_history(user_id, key)
        return history[0] if history else None
