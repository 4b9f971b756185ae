"""Network profile model for ledger endpoint selection."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator

Commitment = Literal["processed", "confirmed", "finalized"]


class NetworkProfile(BaseModel):
    """A logical Solana network and its candidate RPC endpoints."""

    model_config = ConfigDict(frozen=True)

    name: str
    endpoints: tuple[str, ...]
    commitment: Commitment = "confirmed"

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("name is required")
        return v

    @field_validator("endpoints")
    @classmethod
    def validate_endpoints(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        if not v:
            raise ValueError("at least one endpoint is required")
        for url in v:
            if not url.startswith(("http://", "https://")):
                raise ValueError(f"endpoint must be an http(s) URL: {url}")
        return v
