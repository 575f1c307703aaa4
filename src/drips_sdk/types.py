"""Type definitions for drips-sdk."""

from pydantic import BaseModel, ConfigDict, Field

from .constants import TOTAL_SPLITS_WEIGHT
from .deferred import Deferred

UINT256_MAX = 2**256 - 1

# Type alias for web3 transaction params
TxParams = dict[str, int | str]

DEFAULT_PRIORITY_FEE = 1_000_000_000  # 1 gwei


class SplitsReceiver(BaseModel):
    """
    A receiver of a weighted share of funds being split.

    The weight is a fraction of TOTAL_SPLITS_WEIGHT (1_000_000 = 100%).

    Example:
        SplitsReceiver(user_id=alice_id, weight=250_000)  # 25%
    """

    user_id: int = Field(ge=0, le=UINT256_MAX)
    weight: int = Field(ge=1, le=TOTAL_SPLITS_WEIGHT)

    model_config = {"frozen": True}


class DripsReceiver(BaseModel):
    """
    A receiver of a continuous stream of funds.

    `config` is the packed stream configuration, see utils.build_drips_config().
    """

    user_id: int = Field(ge=0, le=UINT256_MAX)
    config: int = Field(ge=0, le=UINT256_MAX)

    model_config = {"frozen": True}


class DripsReceiverConfig(BaseModel):
    """Unpacked stream configuration."""

    drip_id: int = Field(ge=0, lt=2**32)
    amt_per_sec: int = Field(ge=1, lt=2**160)
    """Amount per second multiplied by AMT_PER_SEC_MULTIPLIER."""
    start: int = Field(ge=0, lt=2**32)
    """Start timestamp, 0 means the moment the stream is configured."""
    duration: int = Field(ge=0, lt=2**32)
    """Duration in seconds, 0 means until the balance runs out."""

    model_config = {"frozen": True}


class UserMetadata(BaseModel):
    """A key/value pair emitted as account metadata."""

    key: str
    value: str | bytes

    model_config = {"frozen": True}


class DripsHistory(BaseModel):
    """One entry of a sender's drips history, used when squeezing."""

    drips_hash: bytes
    receivers: list[DripsReceiver]
    update_time: int
    max_end: int

    model_config = {"frozen": True}


class CallStruct(BaseModel):
    """A call executed by the Caller contract."""

    target: str
    data: str | bytes
    value: int = 0

    model_config = {"frozen": True}


class TxOverrides(BaseModel):
    """
    Transaction overrides.

    Every field accepts a literal or a Deferred. Without gas_limit, set_drips
    estimates gas and adds a 20% margin; other operations leave gas to the
    signer.

    Example:
        TxOverrides(gas_limit=500_000)
        TxOverrides(max_fee_per_gas=50_000_000_000)  # 50 gwei max fee
    """

    gas_limit: int | Deferred | None = None
    gas_price: int | Deferred | None = None
    max_fee_per_gas: int | Deferred | None = None
    """EIP-1559 max fee per gas in wei. If set, uses type 2 transactions."""
    max_priority_fee_per_gas: int | Deferred | None = None
    """EIP-1559 priority fee per gas in wei. Defaults to 1 gwei if max_fee is set."""
    nonce: int | Deferred | None = None
    value: int | Deferred | None = None
    from_address: str | Deferred | None = None
    """Caller-address override. Defaults to the factory's account."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class PopulatedTransaction(BaseModel):
    """An unsigned transaction ready to be signed by the caller."""

    to: str
    data: str
    from_address: str | None = None
    gas_limit: int | None = None
    gas_price: int | None = None
    max_fee_per_gas: int | None = None
    max_priority_fee_per_gas: int | None = None
    nonce: int | None = None
    value: int | None = None
    chain_id: int | None = None

    model_config = {"frozen": True}

    def to_tx_params(self) -> TxParams:
        """Convert to the dict web3 expects for signing and sending."""
        tx_params: TxParams = {"to": self.to, "data": self.data}
        if self.from_address is not None:
            tx_params["from"] = self.from_address
        if self.chain_id is not None:
            tx_params["chainId"] = self.chain_id
        if self.nonce is not None:
            tx_params["nonce"] = self.nonce
        if self.value is not None:
            tx_params["value"] = self.value
        if self.gas_limit is not None:
            tx_params["gas"] = self.gas_limit

        # EIP-1559 or legacy
        if self.max_fee_per_gas is not None:
            tx_params["type"] = "0x2"
            tx_params["maxFeePerGas"] = self.max_fee_per_gas
            tx_params["maxPriorityFeePerGas"] = (
                self.max_priority_fee_per_gas if self.max_priority_fee_per_gas is not None else DEFAULT_PRIORITY_FEE
            )
        elif self.gas_price is not None:
            tx_params["gasPrice"] = self.gas_price

        return tx_params


class DripsState(BaseModel):
    """Streams configuration of a user for one token."""

    drips_hash: bytes
    """The current drips receivers list hash."""
    drips_history_hash: bytes
    """The current drips history hash."""
    update_time: int
    """The time when drips have been configured for the last time."""
    balance: int
    """The balance when drips have been configured for the last time."""
    max_end: int
    """The current maximum end time of drips."""

    model_config = {"frozen": True}


class CycleInfo(BaseModel):
    cycle_duration_secs: int
    current_cycle_secs: int
    current_cycle_start_date: int
    next_cycle_start_date: int

    model_config = {"frozen": True}


class ReceivableBalance(BaseModel):
    token_address: str
    receivable_amount: int
    remaining_receivable_cycles: int

    model_config = {"frozen": True}


class SplittableBalance(BaseModel):
    token_address: str
    splittable_amount: int

    model_config = {"frozen": True}


class CollectableBalance(BaseModel):
    token_address: str
    collectable_amount: int

    model_config = {"frozen": True}


class SplitResult(BaseModel):
    """What splitting `amount` would leave collectable and split out."""

    collectable_amount: int
    split_amount: int

    model_config = {"frozen": True}


# Subgraph entities. Field aliases follow the subgraph schema.
_SUBGRAPH_CONFIG = ConfigDict(frozen=True, populate_by_name=True)


class SplitsEntry(BaseModel):
    id: str
    sender_id: int = Field(alias="senderId")
    user_id: int = Field(alias="userId")
    weight: int

    model_config = _SUBGRAPH_CONFIG


class DripsEntry(BaseModel):
    id: str
    user_id: int = Field(alias="userId")
    config: int

    model_config = _SUBGRAPH_CONFIG


class UserAssetConfig(BaseModel):
    id: str
    asset_id: int = Field(alias="assetId")
    balance: int
    amount_collected: int = Field(alias="amountCollected")
    last_updated_block_timestamp: int = Field(alias="lastUpdatedBlockTimestamp")
    drips_entries: list[DripsEntry] = Field(alias="dripsEntries", default_factory=list)

    model_config = _SUBGRAPH_CONFIG


class DripsReceiverSeenEvent(BaseModel):
    id: str
    receiver_user_id: int = Field(alias="receiverUserId")
    config: int

    model_config = _SUBGRAPH_CONFIG


class DripsSetEvent(BaseModel):
    id: str
    user_id: int = Field(alias="userId")
    asset_id: int = Field(alias="assetId")
    receivers_hash: str = Field(alias="receiversHash")
    drips_history_hash: str = Field(alias="dripsHistoryHash")
    balance: int
    block_timestamp: int = Field(alias="blockTimestamp")
    max_end: int = Field(alias="maxEnd")
    drips_receiver_seen_events: list[DripsReceiverSeenEvent] = Field(
        alias="dripsReceiverSeenEvents", default_factory=list
    )

    model_config = _SUBGRAPH_CONFIG


class UserMetadataEntry(BaseModel):
    id: str
    key: str
    value: str
    user_id: int = Field(alias="userId")
    last_updated_block_timestamp: int = Field(alias="lastUpdatedBlockTimestamp")

    model_config = _SUBGRAPH_CONFIG



class DripsSetEventWithFullReceivers(DripsSetEvent):
    """
    A DripsSet event with the complete receiver list it configured.

    The contract only emits DripsReceiverSeen events the first time a
    receivers hash is used, so later events reuse an earlier event's list.
    """

    current_receivers: list[DripsReceiverSeenEvent] = Field(alias="currentReceivers", default_factory=list)


class GivenEvent(BaseModel):
    id: str
    user_id: int = Field(alias="userId")
    receiver_user_id: int = Field(alias="receiverUserId")
    asset_id: int = Field(alias="assetId")
    amt: int
    block_timestamp: int = Field(alias="blockTimestamp")

    model_config = _SUBGRAPH_CONFIG


class SplitEvent(BaseModel):
    id: str
    user_id: int = Field(alias="userId")
    receiver_id: int = Field(alias="receiverId")
    asset_id: int = Field(alias="assetId")
    amt: int
    block_timestamp: int = Field(alias="blockTimestamp")

    model_config = _SUBGRAPH_CONFIG


class CollectedEvent(BaseModel):
    id: str
    user_id: int = Field(alias="userId")
    asset_id: int = Field(alias="assetId")
    collected: int
    block_timestamp: int = Field(alias="blockTimestamp")

    model_config = _SUBGRAPH_CONFIG


class SqueezedDripsEvent(BaseModel):
    id: str
    user_id: int = Field(alias="userId")
    asset_id: int = Field(alias="assetId")
    sender_id: int = Field(alias="senderId")
    amt: int
    drips_history_hashes: list[str] = Field(alias="dripsHistoryHashes", default_factory=list)
    block_timestamp: int = Field(alias="blockTimestamp")

    model_config = _SUBGRAPH_CONFIG


class ReceivedDripsEvent(BaseModel):
    id: str
    user_id: int = Field(alias="userId")
    asset_id: int = Field(alias="assetId")
    amt: int
    receivable_cycles: int = Field(alias="receivableCycles")
    block_timestamp: int = Field(alias="blockTimestamp")

    model_config = _SUBGRAPH_CONFIG


class NftSubAccount(BaseModel):
    """An NFTDriver account; `token_id` is also its user ID."""

    token_id: int = Field(alias="id")
    owner_address: str = Field(alias="ownerAddress")

    model_config = _SUBGRAPH_CONFIG


class RepoAccount(BaseModel):
    user_id: int = Field(alias="userId")
    name: str
    forge: int
    status: str | None = None
    """Owner verification status, e.g. "CLAIMED"."""
    owner_address: str | None = Field(alias="ownerAddress", default=None)
    last_updated_block_timestamp: int = Field(alias="lastUpdatedBlockTimestamp")

    model_config = _SUBGRAPH_CONFIG
