"""Stdio tool server with a side HTTP listener for supervision."""

import asyncio
import contextlib
import json
import logging
import signal
from datetime import datetime, timezone
from typing import Any

import mcp.types as types
import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse, Response
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from solana_gateway.models.operation import OperationResult
from solana_gateway.services.connection_manager import ConnectionManager
from solana_gateway.services.dispatcher import OperationDispatcher
from solana_gateway.services.metrics import GatewayMetrics

logger = logging.getLogger(__name__)


def tool_result(result: OperationResult) -> types.CallToolResult:
    """Wrap an operation result as JSON text content."""
    if result.success:
        text = json.dumps(result.payload, indent=2)
        return types.CallToolResult(
            content=[types.TextContent(type="text", text=text)], isError=False
        )
    text = json.dumps(
        {"error": result.error.message, "category": result.error.category.value}
    )
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)], isError=True
    )


class MonitorServer(uvicorn.Server):
    """uvicorn server that leaves signal handling to the stdio server."""

    def install_signal_handlers(self) -> None:
        pass

    @contextlib.contextmanager
    def capture_signals(self):
        yield


def create_monitor_app(connections: ConnectionManager, metrics: GatewayMetrics) -> FastAPI:
    """Side application exposing /health and /metrics."""
    app = FastAPI(title="Solana Gateway Monitor", docs_url=None, redoc_url=None)
    started = datetime.fromtimestamp(metrics.started_at, tz=timezone.utc).isoformat()

    @app.get("/health")
    async def health() -> JSONResponse:
        state = connections.state
        return JSONResponse(
            content={
                "status": "Solana MCP server is running",
                "uptime": int(metrics.uptime_seconds()),
                "started": started,
                "network": connections.network,
                "connected": state.connected,
                "endpoint": state.endpoint,
            }
        )

    @app.get("/metrics")
    async def prometheus_metrics() -> Response:
        return Response(
            content=metrics.render(),
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )

    return app


class StdioToolServer:
    """Exposes every registered operation as a tool over stdin/stdout.

    Runs until stdin closes or SIGINT/SIGTERM arrives; a signal allows
    in-flight responses a short grace period before shutdown.
    """

    def __init__(
        self,
        dispatcher: OperationDispatcher,
        connections: ConnectionManager,
        metrics: GatewayMetrics,
        name: str = "solana-mcp",
        version: str = "1.0.0",
        monitor_host: str = "127.0.0.1",
        monitor_port: int = 0,
        shutdown_grace: float = 1.0,
    ):
        if dispatcher is None:
            raise ValueError("dispatcher is required")
        if connections is None:
            raise ValueError("connections is required")
        if metrics is None:
            raise ValueError("metrics is required")
        if shutdown_grace < 0:
            raise ValueError("shutdown_grace must be non-negative")

        self._dispatcher = dispatcher
        self._connections = connections
        self._metrics = metrics
        self._monitor_host = monitor_host
        self._monitor_port = monitor_port
        self._shutdown_grace = shutdown_grace
        self._stop_requested: asyncio.Event | None = None

        self.server = Server(name, version=version)
        self.server.list_tools()(self.list_tools)
        # Registered directly so failures come back as isError results
        # carrying the gateway's own validation messages.
        self.server.request_handlers[types.CallToolRequest] = self._handle_call_tool

    async def list_tools(self) -> list[types.Tool]:
        return [
            types.Tool(
                name=descriptor.name,
                description=descriptor.description,
                inputSchema=descriptor.input_schema(),
            )
            for descriptor in self._dispatcher.registry.descriptors()
        ]

    async def call_tool(self, name: str, arguments: dict[str, Any] | None) -> types.CallToolResult:
        result = await self._dispatcher.execute_raw(name, arguments or {})
        return tool_result(result)

    async def _handle_call_tool(self, request: types.CallToolRequest) -> types.ServerResult:
        result = await self.call_tool(request.params.name, request.params.arguments)
        return types.ServerResult(result)

    def request_shutdown(self, signame: str = "signal") -> None:
        logger.info(f"Received {signame}, shutting down gracefully")
        if self._stop_requested is not None:
            self._stop_requested.set()

    async def run(self) -> None:
        """Connect, serve stdio and the monitor listener, then clean up."""
        loop = asyncio.get_running_loop()
        loop.set_exception_handler(self._on_loop_exception)
        self._stop_requested = asyncio.Event()
        self._install_signal_handlers(loop)

        await self._connections.connect()
        self._connections.start()

        monitor = MonitorServer(
            uvicorn.Config(
                create_monitor_app(self._connections, self._metrics),
                host=self._monitor_host,
                port=self._monitor_port,
                log_config=None,
                access_log=False,
            )
        )
        monitor_task = asyncio.create_task(monitor.serve(), name="monitor-http")
        stdio_task = asyncio.create_task(self._serve_stdio(), name="stdio-tools")
        stop_task = asyncio.create_task(self._stop_requested.wait(), name="stop-signal")

        try:
            await asyncio.wait({stdio_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
            if not stdio_task.done():
                await asyncio.wait({stdio_task}, timeout=self._shutdown_grace)
        finally:
            for task in (stdio_task, stop_task):
                task.cancel()
            await asyncio.gather(stdio_task, stop_task, return_exceptions=True)

            monitor.should_exit = True
            await asyncio.gather(monitor_task, return_exceptions=True)
            await self._connections.stop()
            self._remove_signal_handlers(loop)
            logger.info("Stdio tool server stopped")

    async def _serve_stdio(self) -> None:
        async with stdio_server() as (read_stream, write_stream):
            logger.info("Solana MCP server connected via stdio transport")
            await self.server.run(
                read_stream, write_stream, self.server.create_initialization_options()
            )

    def _install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.request_shutdown, sig.name)
            except (NotImplementedError, RuntimeError):
                # Not supported on this platform or outside the main thread.
                logger.debug(f"Cannot install handler for {sig.name}")

    @staticmethod
    def _remove_signal_handlers(loop: asyncio.AbstractEventLoop) -> None:
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.remove_signal_handler(sig)
            except (NotImplementedError, RuntimeError):
                pass

    @staticmethod
    def _on_loop_exception(loop: asyncio.AbstractEventLoop, context: dict) -> None:
        exc = context.get("exception")
        message = context.get("message", "Unhandled exception in event loop")
        if exc is not None:
            logger.error(f"{message}: {exc}", exc_info=exc)
        else:
            logger.error(message)
