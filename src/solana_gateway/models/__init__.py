"""Models package."""

from solana_gateway.models.network import NetworkProfile
from solana_gateway.models.operation import (
    ErrorDescriptor,
    OperationDescriptor,
    OperationRequest,
    OperationResult,
)
from solana_gateway.models.params import (
    AddressParams,
    CreateTokenParams,
    NoParams,
    OperationParams,
    SignatureParams,
    TokenBalanceParams,
    TransactionsParams,
    TransferParams,
)
from solana_gateway.models.state import ConnectionState

__all__ = [
    "AddressParams",
    "ConnectionState",
    "CreateTokenParams",
    "ErrorDescriptor",
    "NetworkProfile",
    "NoParams",
    "OperationDescriptor",
    "OperationParams",
    "OperationRequest",
    "OperationResult",
    "SignatureParams",
    "TokenBalanceParams",
    "TransactionsParams",
    "TransferParams",
]
