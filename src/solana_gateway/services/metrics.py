"""Prometheus counters for gateway supervision."""

import time

import prometheus_client


class GatewayMetrics:
    """Per-process metrics kept in a private registry."""

    def __init__(self, registry: prometheus_client.CollectorRegistry | None = None):
        self.registry = registry or prometheus_client.CollectorRegistry()
        self.started_at = time.time()

        self.operations = prometheus_client.Counter(
            "gateway_operations_total",
            "Dispatched operations by name and outcome",
            ["operation", "outcome"],
            registry=self.registry,
        )
        self.connection_attempts = prometheus_client.Counter(
            "gateway_connection_attempts_total",
            "Endpoint connection attempts by outcome",
            ["outcome"],
            registry=self.registry,
        )
        self.failovers = prometheus_client.Counter(
            "gateway_failovers_total",
            "Connection failovers triggered by failed probes or calls",
            registry=self.registry,
        )
        self.connected = prometheus_client.Gauge(
            "gateway_connected",
            "1 when a healthy ledger connection is active",
            registry=self.registry,
        )
        self.uptime = prometheus_client.Gauge(
            "gateway_uptime_seconds",
            "Seconds since the gateway started",
            registry=self.registry,
        )
        self.uptime.set_function(self.uptime_seconds)

    def uptime_seconds(self) -> float:
        return time.time() - self.started_at

    def record_operation(self, operation: str, outcome: str) -> None:
        self.operations.labels(operation=operation, outcome=outcome).inc()

    def record_attempt(self, success: bool) -> None:
        self.connection_attempts.labels(outcome="success" if success else "failure").inc()

    def set_connected(self, connected: bool) -> None:
        self.connected.set(1 if connected else 0)

    def render(self) -> bytes:
        """Plaintext exposition of every metric."""
        return prometheus_client.generate_latest(self.registry)
