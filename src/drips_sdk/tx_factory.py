"""
Generic transaction factory.

A factory binds a signing credential (an AsyncWeb3 instance plus a
LocalAccount) to one deployed contract and turns method calls into unsigned
PopulatedTransactions. Which contract, and which of its methods may be
populated, is described by a DriverKind; the per-driver factories in
factories.py only add their public method surface.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any, ClassVar, TypeVar

from eth_account.signers.local import LocalAccount
from eth_typing import ChecksumAddress
from web3 import AsyncWeb3
from web3.contract.async_contract import AsyncContract

from ._exceptions import (
    DripsError,
    InitializationError,
    InvalidArgumentError,
    TransactionBuildError,
    UnsupportedNetworkError,
)
from .constants import DriverAddressField, resolve_network_config
from .deferred import Resolvable, resolve_value
from .receivers import format_drips_receivers, format_splits_receivers
from .types import CallStruct, DripsReceiver, PopulatedTransaction, SplitsReceiver, TxOverrides, UserMetadata
from .utils import encode_user_metadata, to_checksum

logger = logging.getLogger(__name__)

# set_drips gas limit = ceil(estimate * 12 / 10)
GAS_MARGIN_NUMERATOR = 12
GAS_MARGIN_DENOMINATOR = 10


def apply_gas_margin(estimate: int) -> int:
    """
    Add the 20% safety margin to a gas estimate, rounding up.

    Integer arithmetic, so 100_001 becomes 120_002 and never 120_001.
    """
    return -(-estimate * GAS_MARGIN_NUMERATOR // GAS_MARGIN_DENOMINATOR)


@dataclass(frozen=True)
class DriverKind:
    """Describes one contract a factory can target."""

    name: str
    abi: list[dict]
    methods: frozenset[str]
    address_field: DriverAddressField | None = None
    """NetworkConfig attribute holding the default address; None means it must be given."""


FactoryT = TypeVar("FactoryT", bound="TxFactory")


class TxFactory:
    """
    Base class for transaction factories.

    Use the async `create()` classmethod; the constructor does no validation.
    After creation a factory never changes, so one instance can serve
    concurrent calls.
    """

    KIND: ClassVar[DriverKind]

    def __init__(
        self,
        w3: AsyncWeb3,
        account: LocalAccount,
        driver_address: ChecksumAddress,
        chain_id: int,
    ) -> None:
        self._w3 = w3
        self._account = account
        self._driver_address = driver_address
        self._chain_id = chain_id
        self._contract: AsyncContract = w3.eth.contract(address=driver_address, abi=self.KIND.abi)

    @classmethod
    async def create(
        cls: type[FactoryT],
        w3: AsyncWeb3,
        account: LocalAccount,
        driver_address: str | None = None,
    ) -> FactoryT:
        """
        Create a factory for the network `w3` is connected to.

        Args:
            w3: AsyncWeb3 instance connected to a supported chain
            account: Account the generated transactions are sent from
            driver_address: Custom contract address (uses the network default if not provided)

        Raises:
            InitializationError: If the network cannot be queried or is not supported,
                or no account is given
        """
        if w3 is None:
            raise InitializationError(f"{cls.KIND.name}: a connected AsyncWeb3 instance is required")
        if account is None or not getattr(account, "address", None):
            raise InitializationError(f"{cls.KIND.name}: a signing account is required")

        try:
            chain_id = await w3.eth.chain_id
        except Exception as e:
            raise InitializationError(f"{cls.KIND.name}: could not query the connected network: {e}") from e

        try:
            config = resolve_network_config(chain_id)
        except UnsupportedNetworkError as e:
            raise InitializationError(f"{cls.KIND.name}: {e}") from e

        if driver_address is None:
            if cls.KIND.address_field is None:
                raise InitializationError(f"{cls.KIND.name}: a contract address is required")
            driver_address = getattr(config, cls.KIND.address_field)

        if not AsyncWeb3.is_address(driver_address):
            raise InitializationError(f"{cls.KIND.name}: invalid contract address {driver_address!r}")

        factory = cls(w3, account, AsyncWeb3.to_checksum_address(driver_address), chain_id)
        logger.debug("Created %s factory for %s on chain %d", cls.KIND.name, factory.driver_address, chain_id)
        return factory

    @property
    def driver_address(self) -> ChecksumAddress:
        """Address of the contract transactions are built for."""
        return self._driver_address

    @property
    def account(self) -> LocalAccount:
        return self._account

    @property
    def chain_id(self) -> int:
        return self._chain_id

    @property
    def contract(self) -> AsyncContract:
        return self._contract

    async def _resolve(self, *values: Resolvable[Any]) -> list[Any]:
        """Resolve every input once, before anything is validated or encoded."""
        resolved = []
        for value in values:
            try:
                resolved.append(await resolve_value(value))
            except DripsError:
                raise
            except Exception as e:
                raise TransactionBuildError(f"Could not resolve a deferred input: {e}") from e
        return resolved

    async def _populate(
        self,
        method: str,
        args: Sequence[Any],
        overrides: TxOverrides | None = None,
        estimate_gas: bool = False,
    ) -> PopulatedTransaction:
        """
        Encode a call to `method` with already resolved arguments.

        With `estimate_gas` and no gas limit override, gas is estimated once
        and the margin applied; otherwise no network call is made.
        """
        opts = overrides or TxOverrides()
        (
            gas_limit,
            gas_price,
            max_fee_per_gas,
            max_priority_fee_per_gas,
            nonce,
            value,
            from_address,
        ) = await self._resolve(
            opts.gas_limit,
            opts.gas_price,
            opts.max_fee_per_gas,
            opts.max_priority_fee_per_gas,
            opts.nonce,
            opts.value,
            opts.from_address,
        )
        sender = to_checksum(from_address, "from_address") if from_address is not None else self._account.address

        tx = PopulatedTransaction(
            to=self._driver_address,
            data=self._encode(method, args),
            from_address=sender,
            gas_limit=gas_limit,
            gas_price=gas_price,
            max_fee_per_gas=max_fee_per_gas,
            max_priority_fee_per_gas=max_priority_fee_per_gas,
            nonce=nonce,
            value=value,
            chain_id=self._chain_id,
        )

        if estimate_gas and gas_limit is None:
            estimate = await self._estimate_gas(method, args, tx)
            tx = tx.model_copy(update={"gas_limit": apply_gas_margin(estimate)})
            logger.debug("%s.%s: estimated %d gas, limit %d", self.KIND.name, method, estimate, tx.gas_limit)

        return tx

    def _encode(self, method: str, args: Sequence[Any]) -> str:
        if method not in self.KIND.methods:
            raise ValueError(f"{self.KIND.name} has no method {method!r}")
        try:
            return self._contract.encode_abi(method, args=list(args))
        except Exception as e:
            raise InvalidArgumentError(f"Could not encode {self.KIND.name}.{method}: {e}") from e

    def _call(self, method: str, args: Sequence[Any]) -> CallStruct:
        """Encode `method` as one call of a Caller batch. Never estimates gas."""
        return CallStruct(target=self._driver_address, data=self._encode(method, args))

    async def _estimate_gas(self, method: str, args: Sequence[Any], tx: PopulatedTransaction) -> int:
        # web3 fills `to` and `data` from the contract call itself
        params = {k: v for k, v in tx.to_tx_params().items() if k not in ("to", "data", "chainId")}
        try:
            contract_call = getattr(self._contract.functions, method)(*args)
            return await contract_call.estimate_gas(params)
        except Exception as e:
            raise TransactionBuildError(f"Gas estimation for {self.KIND.name}.{method} failed: {e}") from e

    # Operations shared by the drivers. `subject` holds the leading account
    # identifier argument, empty when the contract derives it from the sender.

    async def _collect(
        self,
        subject: tuple[Resolvable[int], ...],
        erc20: Resolvable[str],
        transfer_to: Resolvable[str],
        overrides: TxOverrides | None,
    ) -> PopulatedTransaction:
        *subject_args, erc20, transfer_to = await self._resolve(*subject, erc20, transfer_to)
        return await self._populate(
            "collect",
            [*subject_args, to_checksum(erc20, "erc20"), to_checksum(transfer_to, "transfer_to")],
            overrides,
        )

    async def _give(
        self,
        subject: tuple[Resolvable[int], ...],
        receiver: Resolvable[int],
        erc20: Resolvable[str],
        amt: Resolvable[int],
        overrides: TxOverrides | None,
    ) -> PopulatedTransaction:
        *subject_args, receiver, erc20, amt = await self._resolve(*subject, receiver, erc20, amt)
        if amt <= 0:
            raise InvalidArgumentError(f"Amount to give must be positive, got {amt}")
        return await self._populate(
            "give",
            [*subject_args, receiver, to_checksum(erc20, "erc20"), amt],
            overrides,
        )

    async def _set_splits(
        self,
        subject: tuple[Resolvable[int], ...],
        receivers: Iterable[SplitsReceiver],
        overrides: TxOverrides | None,
    ) -> PopulatedTransaction:
        subject_args = await self._resolve(*subject)
        return await self._populate(
            "setSplits",
            [*subject_args, format_splits_receivers(receivers)],
            overrides,
        )

    async def _set_drips(
        self,
        subject: tuple[Resolvable[int], ...],
        erc20: Resolvable[str],
        curr_receivers: Iterable[DripsReceiver],
        balance_delta: Resolvable[int],
        new_receivers: Iterable[DripsReceiver],
        max_end_hint1: Resolvable[int],
        max_end_hint2: Resolvable[int],
        transfer_to: Resolvable[str] | None,
        overrides: TxOverrides | None,
    ) -> PopulatedTransaction:
        args = await self._set_drips_args(
            subject, erc20, curr_receivers, balance_delta, new_receivers, max_end_hint1, max_end_hint2, transfer_to
        )
        return await self._populate("setDrips", args, overrides, estimate_gas=True)

    async def _set_drips_args(
        self,
        subject: tuple[Resolvable[int], ...],
        erc20: Resolvable[str],
        curr_receivers: Iterable[DripsReceiver],
        balance_delta: Resolvable[int],
        new_receivers: Iterable[DripsReceiver],
        max_end_hint1: Resolvable[int],
        max_end_hint2: Resolvable[int],
        transfer_to: Resolvable[str] | None,
    ) -> list[Any]:
        *subject_args, erc20, balance_delta, max_end_hint1, max_end_hint2, transfer_to = await self._resolve(
            *subject, erc20, balance_delta, max_end_hint1, max_end_hint2, transfer_to
        )
        if transfer_to is None:
            transfer_to = self._account.address

        return [
            *subject_args,
            to_checksum(erc20, "erc20"),
            format_drips_receivers(curr_receivers),
            balance_delta,
            format_drips_receivers(new_receivers),
            max_end_hint1,
            max_end_hint2,
            to_checksum(transfer_to, "transfer_to"),
        ]

    async def _emit_user_metadata(
        self,
        subject: tuple[Resolvable[int], ...],
        user_metadata: Iterable[UserMetadata],
        overrides: TxOverrides | None,
    ) -> PopulatedTransaction:
        subject_args = await self._resolve(*subject)
        return await self._populate(
            "emitUserMetadata",
            [*subject_args, encode_user_metadata(user_metadata)],
            overrides,
        )
