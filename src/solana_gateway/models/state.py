"""State models for the active ledger connection."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ConnectionState:
    """Snapshot of the connection owned by the connection manager.

    A new instance is published on every connect or failover; readers holding
    an older snapshot keep a fully built handle.
    """

    endpoint: str | None = None
    connected: bool = False
    last_check: float = 0.0
    handle: Any = None

    @classmethod
    def disconnected(cls, last_check: float = 0.0) -> "ConnectionState":
        return cls(endpoint=None, connected=False, last_check=last_check, handle=None)
