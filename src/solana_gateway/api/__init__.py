# API package

from solana_gateway.api.app import GatewayAPI
from solana_gateway.api.models import (
    ErrorResponse,
    ExecuteRequest,
    HealthResponse,
    TransferRequest,
)
from solana_gateway.api.websocket import WebSocketSession

__all__ = [
    "ErrorResponse",
    "ExecuteRequest",
    "GatewayAPI",
    "HealthResponse",
    "TransferRequest",
    "WebSocketSession",
]
