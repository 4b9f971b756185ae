# Services package

from solana_gateway.services.connection_manager import ConnectionManager
from solana_gateway.services.dispatcher import OperationDispatcher
from solana_gateway.services.endpoint_pool import EndpointPool
from solana_gateway.services.ledger import LedgerService
from solana_gateway.services.log_service import (
    SecretRedactingFilter,
    SizeAndTimeRotatingHandler,
    configure_logging,
)
from solana_gateway.services.metadata_client import (
    CreateTransactionRequest,
    MetadataClient,
    MetadataClientError,
    MetadataUpload,
    TokenImage,
    TokenMetadata,
)
from solana_gateway.services.metrics import GatewayMetrics
from solana_gateway.services.operation_registry import OperationRegistry
from solana_gateway.services.operations import build_registry
from solana_gateway.services.token_flow import TokenFlow
from solana_gateway.services.transfer_flow import TransferFlow

__all__ = [
    "ConnectionManager",
    "CreateTransactionRequest",
    "EndpointPool",
    "GatewayMetrics",
    "LedgerService",
    "MetadataClient",
    "MetadataClientError",
    "MetadataUpload",
    "OperationDispatcher",
    "OperationRegistry",
    "SecretRedactingFilter",
    "SizeAndTimeRotatingHandler",
    "TokenFlow",
    "TokenImage",
    "TokenMetadata",
    "TransferFlow",
    "build_registry",
    "configure_logging",
]
