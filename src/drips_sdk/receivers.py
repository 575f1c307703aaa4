"""
Receiver list formatting.

The driver contracts verify that receiver lists are sorted and reject
anything else, so every list is validated and put in canonical order here
before it is encoded.
"""

from collections.abc import Iterable

from ._exceptions import InvalidReceiverListError
from .constants import MAX_DRIPS_RECEIVERS, MAX_SPLITS_RECEIVERS, TOTAL_SPLITS_WEIGHT
from .types import DripsReceiver, SplitsReceiver

# Encoded form passed to the ABI codec: (userId, weight) or (userId, config)
EncodedReceiver = tuple[int, int]


def _check_count(count: int, max_receivers: int, kind: str) -> None:
    if count > max_receivers:
        raise InvalidReceiverListError(f"{kind} receivers: expected at most {max_receivers}, got {count}")


def _check_unique(user_ids: Iterable[int], kind: str) -> None:
    seen: set[int] = set()
    for user_id in user_ids:
        if user_id in seen:
            raise InvalidReceiverListError(f"Duplicate {kind} receiver user ID: {user_id}")
        seen.add(user_id)


def format_splits_receivers(
    receivers: Iterable[SplitsReceiver],
    max_receivers: int = MAX_SPLITS_RECEIVERS,
) -> list[EncodedReceiver]:
    """
    Validate splits receivers and encode them sorted by user ID.

    Raises:
        InvalidReceiverListError: If there are too many receivers, a user ID
            repeats, or the weights add up to more than TOTAL_SPLITS_WEIGHT
    """
    receivers = list(receivers)
    _check_count(len(receivers), max_receivers, "Splits")
    _check_unique((r.user_id for r in receivers), "splits")

    total_weight = sum(r.weight for r in receivers)
    if total_weight > TOTAL_SPLITS_WEIGHT:
        raise InvalidReceiverListError(
            f"Splits receivers weights must sum to at most {TOTAL_SPLITS_WEIGHT}, got {total_weight}"
        )

    ordered = sorted(receivers, key=lambda r: r.user_id)
    return [(r.user_id, r.weight) for r in ordered]


def format_drips_receivers(
    receivers: Iterable[DripsReceiver],
    max_receivers: int = MAX_DRIPS_RECEIVERS,
) -> list[EncodedReceiver]:
    """
    Validate drips receivers and encode them sorted by (user ID, config).

    Raises:
        InvalidReceiverListError: If there are too many receivers or a user ID repeats
    """
    receivers = list(receivers)
    _check_count(len(receivers), max_receivers, "Drips")
    _check_unique((r.user_id for r in receivers), "drips")

    ordered = sorted(receivers, key=lambda r: (r.user_id, r.config))
    return [(r.user_id, r.config) for r in ordered]
