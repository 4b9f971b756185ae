"""Ledger connection ownership with ordered failover and health checks."""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, TypeVar

import httpx
from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment

from solana_gateway.errors import ErrorKind, GatewayError
from solana_gateway.models.state import ConnectionState
from solana_gateway.services.endpoint_pool import EndpointPool
from solana_gateway.services.metrics import GatewayMetrics

logger = logging.getLogger(__name__)

T = TypeVar("T")

ClientFactory = Callable[[str, str, float], Any]

CONNECTION_ERRORS = (
    httpx.TransportError,
    httpx.HTTPStatusError,
    asyncio.TimeoutError,
    ConnectionError,
)


def default_client_factory(endpoint: str, commitment: str, timeout: float) -> AsyncClient:
    """Create a solana-py async RPC client for an endpoint."""
    return AsyncClient(endpoint, commitment=Commitment(commitment), timeout=timeout)


def unwrap_rpc_error(exc: BaseException) -> BaseException:
    """Return the error solana-py wrapped in SolanaRpcException, if any."""
    if isinstance(exc, SolanaRpcException) and exc.__cause__ is not None:
        return exc.__cause__
    return exc


def is_connection_error(exc: BaseException) -> bool:
    """True when the failure is at the transport level rather than an RPC error."""
    return isinstance(unwrap_rpc_error(exc), CONNECTION_ERRORS)


class ConnectionManager:
    """Owns the single active ledger connection for a network.

    Readers take a snapshot of the published ConnectionState; connect and
    failover build a complete new state before publishing it.
    """

    def __init__(
        self,
        pool: EndpointPool,
        client_factory: ClientFactory = default_client_factory,
        rpc_timeout: float = 10.0,
        debounce_seconds: float = 10.0,
        health_check_interval: float = 30.0,
        retire_grace: float = 60.0,
        metrics: GatewayMetrics | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if pool is None:
            raise ValueError("pool is required")
        if rpc_timeout <= 0:
            raise ValueError("rpc_timeout must be positive")
        if debounce_seconds < 0:
            raise ValueError("debounce_seconds must be non-negative")
        if health_check_interval <= 0:
            raise ValueError("health_check_interval must be positive")
        if retire_grace < 0:
            raise ValueError("retire_grace must be non-negative")

        self._pool = pool
        self._client_factory = client_factory
        self._rpc_timeout = rpc_timeout
        self._debounce = debounce_seconds
        self._interval = health_check_interval
        self._retire_grace = retire_grace
        self._metrics = metrics
        self._clock = clock

        self._state = ConnectionState.disconnected()
        self._lock = asyncio.Lock()
        # (retired_at, handle) pairs, closed once retire_grace has passed.
        self._retired: list[tuple[float, Any]] = []
        self._health_task: asyncio.Task | None = None

    @property
    def network(self) -> str:
        return self._pool.network

    @property
    def commitment(self) -> str:
        return self._pool.commitment

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state.connected

    async def connect(self) -> ConnectionState:
        """Connect to the first endpoint that answers a liveness probe.

        Never raises; when every endpoint fails the manager stays degraded.
        """
        async with self._lock:
            return await self._connect_locked()

    async def _connect_locked(self) -> ConnectionState:
        network = self._pool.network
        for endpoint in self._pool.candidates():
            logger.info(f"Attempting to connect to {network} via {endpoint}")
            client = None
            try:
                client = self._client_factory(endpoint, self._pool.commitment, self._rpc_timeout)
                await self._probe(client)
            except Exception as e:
                logger.warning(f"Failed to connect to {endpoint}: {e}")
                self._record_attempt(False)
                if client is not None:
                    await self._close_quietly(client)
                continue

            self._record_attempt(True)
            self._replace(
                ConnectionState(
                    endpoint=endpoint,
                    connected=True,
                    last_check=self._clock(),
                    handle=client,
                )
            )
            logger.info(f"Connected to Solana {network} via {endpoint}")
            return self._state

        logger.error(f"Could not connect to any {network} endpoints")
        self._replace(ConnectionState.disconnected(last_check=self._clock()))
        return self._state

    async def check_health(self, force: bool = False) -> bool:
        """Re-probe the active endpoint, failing over when it is down.

        Calls inside the debounce window return the last known status.
        Retired handles past their grace period are closed afterwards.
        """
        state = self._state
        if not force and self._clock() - state.last_check < self._debounce:
            return state.connected

        async with self._lock:
            healthy = await self._check_locked()
        await self.close_retired()
        return healthy

    async def _check_locked(self) -> bool:
        state = self._state
        if not state.connected:
            return (await self._connect_locked()).connected

        try:
            await self._probe(state.handle)
        except Exception as e:
            logger.warning(f"Connection check failed for {state.endpoint}: {e}")
            return await self._failover_locked(state)

        self._state = ConnectionState(
            endpoint=state.endpoint,
            connected=True,
            last_check=self._clock(),
            handle=state.handle,
        )
        return True

    async def close_retired(self) -> int:
        """Close handles retired more than retire_grace seconds ago.

        Returns how many were closed.
        """
        cutoff = self._clock() - self._retire_grace
        expired = [handle for retired_at, handle in self._retired if retired_at <= cutoff]
        if not expired:
            return 0
        self._retired = [entry for entry in self._retired if entry[0] > cutoff]
        for handle in expired:
            await self._close_quietly(handle)
        logger.debug(f"Closed {len(expired)} retired RPC client(s)")
        return len(expired)

    def get_active_handle(self) -> Any:
        """Return the live client handle or raise Unavailable."""
        state = self._state
        if not state.connected or state.handle is None:
            raise GatewayError(
                ErrorKind.UNAVAILABLE,
                f"Not connected to Solana {self._pool.network}",
            )
        return state.handle

    async def call(
        self,
        operation: str,
        fn: Callable[[Any], Awaitable[T]],
        retry: bool = True,
    ) -> T:
        """Run fn against the active handle with domain error mapping.

        Transport failures fail over once and retry when retry is set.
        """
        state = self._state
        handle = self.get_active_handle()
        try:
            return await fn(handle)
        except GatewayError:
            raise
        except Exception as e:
            if not (retry and is_connection_error(e)):
                raise self._remote_error(operation, e) from e
            logger.warning(f"{operation} failed on {state.endpoint}: {e}; failing over")

        if not await self._failover_from(state):
            raise GatewayError(
                ErrorKind.UNAVAILABLE,
                f"{operation} failed: no healthy Solana {self._pool.network} endpoint",
            )

        handle = self.get_active_handle()
        try:
            return await fn(handle)
        except GatewayError:
            raise
        except Exception as e:
            raise self._remote_error(operation, e) from e

    def start(self) -> None:
        """Start the periodic health-check task on the running loop."""
        if self._health_task is not None and not self._health_task.done():
            return
        self._health_task = asyncio.get_running_loop().create_task(
            self._health_loop(), name="ledger-health-check"
        )

    async def stop(self) -> None:
        """Stop health checks and close every handle this manager opened."""
        if self._health_task is not None:
            self._health_task.cancel()
            try:
                await self._health_task
            except asyncio.CancelledError:
                pass
            self._health_task = None

        async with self._lock:
            handles = [handle for _, handle in self._retired] + [self._state.handle]
            self._retired.clear()
            self._publish(ConnectionState.disconnected(last_check=self._clock()))

        for handle in handles:
            if handle is not None:
                await self._close_quietly(handle)

    async def _health_loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.check_health()
            except Exception:
                logger.exception("Health check raised unexpectedly")

    async def _failover_from(self, snapshot: ConnectionState) -> bool:
        async with self._lock:
            current = self._state
            if current is not snapshot:
                # Another caller already replaced the failed connection.
                return current.connected
            return await self._failover_locked(snapshot)

    async def _failover_locked(self, failed: ConnectionState) -> bool:
        if self._metrics is not None:
            self._metrics.failovers.inc()
        # The failed state stays visible until connect publishes its replacement.
        return (await self._connect_locked()).connected

    async def _probe(self, client: Any) -> None:
        await asyncio.wait_for(client.get_slot(), timeout=self._rpc_timeout)

    def _replace(self, state: ConnectionState) -> None:
        previous = self._state.handle
        if previous is not None and previous is not state.handle:
            # In-flight calls may still hold the old handle.
            self._retired.append((self._clock(), previous))
        self._publish(state)

    def _publish(self, state: ConnectionState) -> None:
        self._state = state
        if self._metrics is not None:
            self._metrics.set_connected(state.connected)

    def _record_attempt(self, success: bool) -> None:
        if self._metrics is not None:
            self._metrics.record_attempt(success)

    def _remote_error(self, operation: str, exc: Exception) -> GatewayError:
        return GatewayError(
            ErrorKind.REMOTE_CALL_FAILED, f"{operation} failed: {unwrap_rpc_error(exc)}"
        )

    async def _close_quietly(self, client: Any) -> None:
        close = getattr(client, "close", None)
        if close is None:
            return
        try:
            await close()
        except Exception as e:
            logger.debug(f"Error closing RPC client: {e}")
