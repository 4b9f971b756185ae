"""Main entry point for the gateway HTTP/WebSocket server."""

import argparse
import logging
import os
import sys
from dataclasses import dataclass

import uvicorn

from solana_gateway.api.app import GatewayAPI
from solana_gateway.config import GatewayConfig, build_network_profile, load_config
from solana_gateway.services.connection_manager import (
    ClientFactory,
    ConnectionManager,
    default_client_factory,
)
from solana_gateway.services.dispatcher import OperationDispatcher
from solana_gateway.services.endpoint_pool import EndpointPool
from solana_gateway.services.ledger import LedgerService
from solana_gateway.services.log_service import configure_logging
from solana_gateway.services.metadata_client import MetadataClient
from solana_gateway.services.metrics import GatewayMetrics
from solana_gateway.services.operations import build_registry
from solana_gateway.services.token_flow import TokenFlow
from solana_gateway.services.transfer_flow import TransferFlow

logger = logging.getLogger(__name__)

SHUTDOWN_TIMEOUT = 5


@dataclass
class Gateway:
    """Services shared by every front-end, wired once per process."""

    config: GatewayConfig
    metrics: GatewayMetrics
    connections: ConnectionManager
    dispatcher: OperationDispatcher


def build_gateway(
    config: GatewayConfig,
    metrics: GatewayMetrics | None = None,
    client_factory: ClientFactory = default_client_factory,
    image_dir: str | None = None,
) -> Gateway:
    """Construct the connection manager, registry and dispatcher.

    image_dir overrides PUMPFUN_IMAGE_DIR for local token images.
    """
    metrics = metrics or GatewayMetrics()
    solana = config.solana

    connections = ConnectionManager(
        EndpointPool(solana.profile),
        client_factory=client_factory,
        rpc_timeout=solana.rpc_timeout,
        debounce_seconds=solana.health_check_debounce,
        health_check_interval=solana.health_check_interval,
        retire_grace=solana.rpc_timeout + solana.confirmation_timeout,
        metrics=metrics,
    )
    metadata_client = MetadataClient(
        config.pumpfun.ipfs_url,
        config.pumpfun.trade_url,
        timeout=config.pumpfun.request_timeout,
    )
    registry = build_registry(
        LedgerService(connections),
        TransferFlow(connections, confirmation_timeout=solana.confirmation_timeout),
        TokenFlow(
            connections,
            metadata_client,
            default_private_key=config.pumpfun.private_key,
            image_dir=image_dir or config.pumpfun.image_dir,
        ),
    )
    dispatcher = OperationDispatcher(registry, metrics)
    return Gateway(
        config=config, metrics=metrics, connections=connections, dispatcher=dispatcher
    )


def create_app(config: GatewayConfig | None = None) -> "uvicorn.ASGIApplication":
    """Create FastAPI application with all dependencies."""
    gateway = build_gateway(config or load_config())
    api = GatewayAPI(
        gateway.dispatcher,
        gateway.connections,
        gateway.metrics,
        version=gateway.config.server.version,
    )
    return api.create_app()


def apply_network(config: GatewayConfig, network: str | None) -> GatewayConfig:
    """Override the configured network, keeping other settings."""
    if not network:
        return config
    profile = build_network_profile(
        network, os.environ, commitment=config.solana.profile.commitment
    )
    solana = config.solana.model_copy(update={"profile": profile})
    return config.model_copy(update={"solana": solana})


def main() -> int:
    """Run the gateway HTTP/WebSocket server."""
    config = load_config()
    parser = argparse.ArgumentParser(description="Solana Gateway Server")
    parser.add_argument(
        "--host",
        default=config.server.host,
        help="Host to bind to (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=config.server.port,
        help="Port to bind to (default: 3000)",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default=config.server.log_level.lower(),
        help="Log level (default: info)",
    )
    parser.add_argument(
        "--network",
        default=None,
        help="Solana network: mainnet-beta, devnet, testnet or localnet",
    )
    args = parser.parse_args()

    configure_logging(
        log_dir=config.server.log_dir,
        log_file="solana-gateway.log",
        level=args.log_level.upper(),
    )
    config = apply_network(config, args.network)

    logger.info("Starting Solana gateway server")
    logger.info(f"Network: {config.solana.profile.name}")

    app = create_app(config)
    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        log_level=args.log_level,
        timeout_graceful_shutdown=SHUTDOWN_TIMEOUT,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
