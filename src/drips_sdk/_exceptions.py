"""Custom exceptions for drips-sdk."""


class DripsError(Exception):
    """Base exception for drips-sdk."""


class UnsupportedNetworkError(DripsError):
    """Chain ID has no entry in the network configuration table."""

    def __init__(self, chain_id: int) -> None:
        super().__init__(f"Chain {chain_id} is not supported")
        self.chain_id = chain_id


class InitializationError(DripsError):
    """Signing credential cannot be used (no network, unsupported chain, missing account)."""


class InvalidArgumentError(DripsError):
    """An argument failed validation before any transaction was built."""


class InvalidReceiverListError(InvalidArgumentError):
    """Receiver list is too long, has duplicate IDs, or exceeds the total split weight."""


class TransactionBuildError(DripsError):
    """Resolving inputs, encoding call data or estimating gas failed."""


class TransactionError(DripsError):
    """Transaction failed."""


class TransactionRevertedError(TransactionError):
    """Transaction reverted on-chain."""

    def __init__(self, tx_hash: str) -> None:
        super().__init__(f"Transaction {tx_hash} reverted")
        self.tx_hash = tx_hash


class SubgraphQueryError(DripsError):
    """Subgraph request failed or returned GraphQL errors."""
