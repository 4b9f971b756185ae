"""FastAPI HTTP and WebSocket API for the gateway."""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, WebSocket
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from solana_gateway.api.models import (
    ErrorResponse,
    ExecuteRequest,
    HealthResponse,
    TransferRequest,
)
from solana_gateway.api.websocket import WebSocketSession
from solana_gateway.errors import HTTP_STATUS_BY_KIND
from solana_gateway.models.operation import OperationResult
from solana_gateway.services.connection_manager import ConnectionManager
from solana_gateway.services.dispatcher import OperationDispatcher
from solana_gateway.services.metrics import GatewayMetrics

logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
    504: {"model": ErrorResponse},
}


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def result_response(result: OperationResult) -> JSONResponse:
    """Render an operation result as the payload or an {error} body."""
    if result.success:
        return JSONResponse(content=result.payload)
    return error_response(HTTP_STATUS_BY_KIND[result.error.category], result.error.message)


class GatewayAPI:
    """HTTP and WebSocket front-end over the operation dispatcher."""

    def __init__(
        self,
        dispatcher: OperationDispatcher,
        connections: ConnectionManager,
        metrics: GatewayMetrics | None = None,
        version: str = "1.0.0",
    ):
        """Initialize API with dependencies."""
        if dispatcher is None:
            raise ValueError("dispatcher is required")
        if connections is None:
            raise ValueError("connections is required")

        self._dispatcher = dispatcher
        self._connections = connections
        self._metrics = metrics
        self._version = version

    @asynccontextmanager
    async def lifespan(self, app: FastAPI):
        """Connect before serving and release every handle on shutdown."""
        await self._connections.connect()
        self._connections.start()
        try:
            yield
        finally:
            await self._connections.stop()
            logger.info("Ledger connections closed")

    async def _dispatch(self, action: Any, parameters: Any = None) -> JSONResponse:
        return result_response(await self._dispatcher.execute_raw(action, parameters))

    def create_app(self) -> FastAPI:
        """Create FastAPI application."""
        app = FastAPI(
            title="Solana Gateway API",
            description="HTTP and WebSocket gateway for Solana ledger operations",
            version=self._version,
            lifespan=self.lifespan,
        )

        @app.exception_handler(RequestValidationError)
        async def validation_error(request: Request, exc: RequestValidationError):
            parts = []
            for item in exc.errors():
                location = ".".join(str(p) for p in item.get("loc", ()) if p != "body")
                parts.append(f"{location or 'body'}: {item.get('msg', 'invalid value')}")
            return error_response(400, "; ".join(parts))

        @app.exception_handler(StarletteHTTPException)
        async def http_error(request: Request, exc: StarletteHTTPException):
            return error_response(exc.status_code, str(exc.detail))

        @app.get("/health", response_model=HealthResponse)
        async def health_check() -> HealthResponse:
            """Health check endpoint."""
            return HealthResponse(
                status="healthy",
                network=self._connections.network,
                connected=self._connections.connected,
            )

        @app.get("/metrics")
        async def metrics() -> Response:
            """Prometheus metrics."""
            if self._metrics is None:
                return error_response(404, "Metrics are disabled")
            return Response(
                content=self._metrics.render(),
                media_type="text/plain; version=0.0.4; charset=utf-8",
            )

        @app.get("/api/network", responses=ERROR_RESPONSES)
        async def network_status():
            """Network version, slot, block time, health and supply."""
            return await self._dispatch("getNetworkStatus")

        @app.get("/api/balance/{address}", responses=ERROR_RESPONSES)
        async def balance(address: str):
            """SOL balance of an address."""
            result = await self._dispatcher.execute_raw("getBalance", {"address": address})
            if not result.success:
                return result_response(result)
            return JSONResponse(
                content={
                    "address": address,
                    "balance": result.payload["balanceInSol"],
                    "balanceInLamports": result.payload["balanceInLamports"],
                }
            )

        @app.get("/api/transactions/{address}", responses=ERROR_RESPONSES)
        async def transactions(address: str, limit: str | None = None):
            """Recent transactions for an address, newest first."""
            parameters = {"address": address}
            if limit is not None:
                parameters["limit"] = limit
            result = await self._dispatcher.execute_raw("getTransactions", parameters)
            if not result.success:
                return result_response(result)
            return JSONResponse(content={"address": address, "transactions": result.payload})

        @app.post("/api/wallet/create", responses=ERROR_RESPONSES)
        async def create_wallet():
            """Generate a new wallet; the private key is not stored."""
            return await self._dispatch("createWallet")

        @app.post("/api/transfer", responses=ERROR_RESPONSES)
        async def transfer(request: TransferRequest):
            """Sign, submit and confirm a SOL transfer."""
            return await self._dispatch("transferFunds", request.to_parameters())

        @app.get("/api/account/{address}", responses=ERROR_RESPONSES)
        async def account(address: str):
            """Account information, or exists=false."""
            return await self._dispatch("getAccountInfo", {"address": address})

        @app.post("/api/mcp/execute", responses=ERROR_RESPONSES)
        async def execute(request: ExecuteRequest):
            """Generic dispatch into the operation registry."""
            return await self._dispatch(request.action, request.parameters)

        session = WebSocketSession(self._dispatcher)

        @app.websocket("/")
        async def websocket_root(websocket: WebSocket):
            await session.serve(websocket)

        @app.websocket("/ws")
        async def websocket_ws(websocket: WebSocket):
            await session.serve(websocket)

        return app
