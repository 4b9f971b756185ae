"""Environment-sourced configuration for the gateway."""

import logging
import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from solana_gateway.models.network import NetworkProfile

logger = logging.getLogger(__name__)

DEFAULT_NETWORK = "devnet"

# (override variable, fixed endpoints) per network; the override replaces
# the primary endpoint and keeps the fallbacks behind it.
NETWORK_ENDPOINTS: dict[str, tuple[str, tuple[str, ...]]] = {
    "mainnet-beta": (
        "MAINNET_RPC_URL",
        (
            "https://api.mainnet-beta.solana.com",
            "https://solana-api.projectserum.com",
            "https://rpc.ankr.com/solana",
        ),
    ),
    "devnet": (
        "DEVNET_RPC_URL",
        ("https://api.devnet.solana.com", "https://devnet.genesysgo.net"),
    ),
    "testnet": ("TESTNET_RPC_URL", ("https://api.testnet.solana.com",)),
    "localnet": ("LOCALNET_RPC_URL", ("http://localhost:8899",)),
}


class ServerSettings(BaseModel):
    """Process and listener settings."""

    model_config = ConfigDict(frozen=True)

    name: str = "solana-mcp"
    version: str = "1.0.0"
    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=0, le=65535)
    monitor_port: int = Field(default=0, ge=0, le=65535)
    log_level: str = "INFO"
    log_dir: str | None = "logs"
    shutdown_grace: float = Field(default=1.0, ge=0)

    @field_validator("log_level")
    @classmethod
    def log_level_known(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {v}")
        return level


class SolanaSettings(BaseModel):
    """Ledger connection settings."""

    model_config = ConfigDict(frozen=True)

    profile: NetworkProfile
    rpc_timeout: float = Field(default=10.0, gt=0)
    health_check_interval: float = Field(default=30.0, gt=0)
    health_check_debounce: float = Field(default=10.0, ge=0)
    confirmation_timeout: float = Field(default=30.0, gt=0)


class PumpFunSettings(BaseModel):
    """Token creation collaborator settings."""

    model_config = ConfigDict(frozen=True)

    private_key: SecretStr | None = None
    ipfs_url: str = "https://pump.fun/api/ipfs"
    trade_url: str = "https://pumpportal.fun/api/trade-local"
    request_timeout: float = Field(default=30.0, gt=0)
    # imagePath is only honoured for files under this directory.
    image_dir: str | None = None


class GatewayConfig(BaseModel):
    """Complete gateway configuration."""

    model_config = ConfigDict(frozen=True)

    server: ServerSettings = ServerSettings()
    solana: SolanaSettings
    pumpfun: PumpFunSettings = PumpFunSettings()


def build_network_profile(
    network: str, environ: Mapping[str, str], commitment: str = "confirmed"
) -> NetworkProfile:
    """Build the endpoint list for a network, applying URL overrides."""
    if network not in NETWORK_ENDPOINTS:
        logger.warning(f"Unknown network '{network}', falling back to {DEFAULT_NETWORK}")
        network = DEFAULT_NETWORK

    override_var, defaults = NETWORK_ENDPOINTS[network]
    override = environ.get(override_var, "").strip()
    endpoints = (override, *defaults[1:]) if override else defaults
    return NetworkProfile(name=network, endpoints=endpoints, commitment=commitment)


def _float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


def _int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def load_config(environ: Mapping[str, str] | None = None) -> GatewayConfig:
    """Load configuration from environment variables."""
    env = os.environ if environ is None else environ

    profile = build_network_profile(
        env.get("SOLANA_NETWORK", DEFAULT_NETWORK).strip() or DEFAULT_NETWORK,
        env,
        commitment=env.get("SOLANA_COMMITMENT", "confirmed").strip().lower(),
    )

    log_dir = env.get("LOG_DIR", "logs").strip() or None
    server = ServerSettings(
        name=env.get("MCP_SERVER_NAME", "solana-mcp"),
        version=env.get("MCP_SERVER_VERSION", "1.0.0"),
        host=env.get("HOST", "0.0.0.0"),
        port=_int(env, "PORT", 3000),
        monitor_port=_int(env, "MCP_SERVER_PORT", 0),
        log_level=env.get("LOG_LEVEL", "INFO"),
        log_dir=log_dir,
    )

    solana = SolanaSettings(
        profile=profile,
        rpc_timeout=_float(env, "RPC_TIMEOUT", 10.0),
        health_check_interval=_float(env, "HEALTH_CHECK_INTERVAL", 30.0),
        health_check_debounce=_float(env, "HEALTH_CHECK_DEBOUNCE", 10.0),
        confirmation_timeout=_float(env, "CONFIRMATION_TIMEOUT", 30.0),
    )

    private_key = env.get("PUMPFUN_PRIVATE_KEY", "").strip()
    pumpfun = PumpFunSettings(
        private_key=SecretStr(private_key) if private_key else None,
        ipfs_url=env.get("PUMPFUN_IPFS_URL", "https://pump.fun/api/ipfs"),
        trade_url=env.get(
            "PUMPFUN_TRADE_URL", "https://pumpportal.fun/api/trade-local"
        ),
        image_dir=env.get("PUMPFUN_IMAGE_DIR", "").strip() or None,
    )

    return GatewayConfig(server=server, solana=solana, pumpfun=pumpfun)
