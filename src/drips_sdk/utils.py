"""Helper functions for drips-sdk."""

from collections.abc import Iterable
from decimal import Decimal

from eth_typing import ChecksumAddress
from web3 import Web3

from ._exceptions import InvalidArgumentError
from .constants import ADDRESS_DRIVER_ID, AMT_PER_SEC_MULTIPLIER
from .types import DripsReceiverConfig, UserMetadata

_UINT32_MASK = 2**32 - 1
_UINT160_MASK = 2**160 - 1


def to_checksum(address: str, name: str = "address") -> ChecksumAddress:
    """
    Validate an address and return it checksummed.

    Raises:
        InvalidArgumentError: If `address` is not a valid EVM address
    """
    if not isinstance(address, str) or not Web3.is_address(address):
        raise InvalidArgumentError(f"Invalid {name}: {address!r}")
    return Web3.to_checksum_address(address)


def to_amt_per_sec(amount_per_second: int | str | Decimal) -> int:
    """
    Scale a per-second token amount (in the token's smallest unit) to the
    precision the contracts store.

    Example:
        >>> to_amt_per_sec(1)
        1000000000
        >>> to_amt_per_sec("0.5")
        500000000
    """
    scaled = Decimal(amount_per_second) * AMT_PER_SEC_MULTIPLIER
    if scaled != scaled.to_integral_value():
        raise InvalidArgumentError(f"Amount per second {amount_per_second} has too many decimals")
    return int(scaled)


def build_drips_config(drip_id: int, amt_per_sec: int, start: int = 0, duration: int = 0) -> int:
    """
    Pack a stream configuration into the uint256 the contracts expect.

    Layout (most significant first): dripId (32 bits), amtPerSec (160 bits),
    start (32 bits), duration (32 bits).

    Raises:
        InvalidArgumentError: If any field is out of range
    """
    if not 0 <= drip_id <= _UINT32_MASK:
        raise InvalidArgumentError(f"Invalid drip_id: {drip_id}")
    if not 1 <= amt_per_sec <= _UINT160_MASK:
        raise InvalidArgumentError(f"Invalid amt_per_sec: {amt_per_sec}")
    if not 0 <= start <= _UINT32_MASK:
        raise InvalidArgumentError(f"Invalid start: {start}")
    if not 0 <= duration <= _UINT32_MASK:
        raise InvalidArgumentError(f"Invalid duration: {duration}")

    config = drip_id
    config = (config << 160) | amt_per_sec
    config = (config << 32) | start
    config = (config << 32) | duration
    return config


def parse_drips_config(config: int) -> DripsReceiverConfig:
    """Unpack a stream configuration built by build_drips_config()."""
    if not 0 <= config < 2**256:
        raise InvalidArgumentError(f"Invalid drips config: {config}")

    return DripsReceiverConfig(
        drip_id=(config >> 224) & _UINT32_MASK,
        amt_per_sec=(config >> 64) & _UINT160_MASK,
        start=(config >> 32) & _UINT32_MASK,
        duration=config & _UINT32_MASK,
    )


def calc_address_user_id(address: str, driver_id: int = ADDRESS_DRIVER_ID) -> int:
    """
    Compute the user ID an address-owned account has under a driver.

    The driver ID fills the top 32 bits, the address the low 160 bits.
    """
    address = to_checksum(address)
    return (driver_id << 224) | int(address, 16)


def key_to_bytes32(key: str) -> bytes:
    """
    Encode a metadata key as a right-padded bytes32.

    Raises:
        InvalidArgumentError: If the key is longer than 32 bytes in UTF-8
    """
    raw = key.encode("utf-8")
    if len(raw) > 32:
        raise InvalidArgumentError(f"Metadata key must fit in 32 bytes, got {len(raw)}: {key!r}")
    return raw.ljust(32, b"\x00")


def bytes32_to_key(raw: bytes) -> str:
    return raw.rstrip(b"\x00").decode("utf-8")


def encode_user_metadata(metadata: Iterable[UserMetadata]) -> list[tuple[bytes, bytes]]:
    """Encode metadata entries as (bytes32 key, bytes value) tuples."""
    encoded = []
    for entry in metadata:
        value = entry.value.encode("utf-8") if isinstance(entry.value, str) else entry.value
        encoded.append((key_to_bytes32(entry.key), value))
    return encoded


def hex_to_bytes(value: str | bytes, name: str = "value") -> bytes:
    """
    Convert 0x-prefixed (or bare) hex to bytes; bytes pass through.

    Raises:
        InvalidArgumentError: If `value` is not valid hex
    """
    if isinstance(value, bytes):
        return value
    try:
        return bytes.fromhex(value.removeprefix("0x"))
    except ValueError as e:
        raise InvalidArgumentError(f"Invalid hex {name}: {value!r}") from e


def to_bytes_like(value: str | bytes, name: str = "value") -> bytes:
    """
    Convert a bytes-like argument to bytes.

    0x-prefixed strings are hex, other strings are UTF-8 text.

    Example:
        >>> to_bytes_like("0x6162")
        b'ab'
        >>> to_bytes_like("drips-network/app")
        b'drips-network/app'
    """
    if isinstance(value, str) and not value.startswith("0x"):
        return value.encode("utf-8")
    return hex_to_bytes(value, name)


def decode_user_metadata_value(value: str | bytes) -> str:
    """
    Decode a metadata value as emitted on-chain (raw or 0x-prefixed hex).

    Raises:
        InvalidArgumentError: If the value is not valid hex or not UTF-8
    """
    if isinstance(value, str):
        if not value.startswith("0x"):
            return value
        value = hex_to_bytes(value, "metadata value")
    try:
        return value.decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidArgumentError(f"Metadata value is not UTF-8: {value!r}") from e
