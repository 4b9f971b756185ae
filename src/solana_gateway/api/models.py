"""Request and response models for the HTTP API."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TransferRequest(BaseModel):
    """Body of POST /api/transfer.

    Fields stay loosely typed here; the operation registry validates them so
    every front-end accepts exactly the same calls.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    from_address: Any = Field(default=None, alias="from")
    to_address: Any = Field(default=None, alias="to")
    amount: Any = None
    private_key: Any = Field(default=None, alias="privateKey")

    def to_parameters(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ExecuteRequest(BaseModel):
    """Body of POST /api/mcp/execute."""

    model_config = ConfigDict(extra="ignore")

    action: Any = None
    parameters: Any = None


class ErrorResponse(BaseModel):
    """Error response."""

    model_config = ConfigDict(frozen=True)

    error: str


class HealthResponse(BaseModel):
    """Health check response."""

    model_config = ConfigDict(frozen=True)

    status: str
    network: str
    connected: bool
