"""Entry point for the stdio tool server."""

import argparse
import asyncio
import logging
import os
import sys

from solana_gateway.config import load_config
from solana_gateway.main import apply_network, build_gateway
from solana_gateway.services.log_service import configure_logging
from solana_gateway.services.stdio_server import StdioToolServer

logger = logging.getLogger(__name__)


def main() -> int:
    """Run the stdio tool server until stdin closes or a signal arrives."""
    config = load_config()
    parser = argparse.ArgumentParser(description="Solana Gateway stdio tool server")
    parser.add_argument(
        "--monitor-port",
        type=int,
        default=config.server.monitor_port,
        help="Port for /health and /metrics (default: 0, ephemeral)",
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

    # stdout carries the tool protocol, so logs go to stderr and file only.
    configure_logging(
        log_dir=config.server.log_dir,
        log_file="solana-gateway-mcp.log",
        level=args.log_level.upper(),
    )
    config = apply_network(config, args.network)
    logger.info(f"Starting {config.server.name} v{config.server.version}")
    logger.info(f"Network: {config.solana.profile.name}")

    # The stdio caller runs on this machine, so its working directory is trusted.
    gateway = build_gateway(config, image_dir=config.pumpfun.image_dir or os.getcwd())
    server = StdioToolServer(
        gateway.dispatcher,
        gateway.connections,
        gateway.metrics,
        name=config.server.name,
        version=config.server.version,
        monitor_host=config.server.host,
        monitor_port=args.monitor_port,
        shutdown_grace=config.server.shutdown_grace,
    )
    asyncio.run(server.run())
    return 0


if __name__ == "__main__":
    sys.exit(main())
