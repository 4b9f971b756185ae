"""Operation request, result and descriptor models."""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from solana_gateway.errors import ErrorKind
from solana_gateway.models.params import OperationParams

Handler = Callable[[Any], Awaitable[Any]]


@dataclass(frozen=True)
class OperationDescriptor:
    """A registered operation: name, parameter schema and handler."""

    name: str
    description: str
    params_model: type[OperationParams]
    handler: Handler

    def input_schema(self) -> dict[str, Any]:
        """JSON schema for the operation parameters."""
        schema = self.params_model.model_json_schema(by_alias=True)
        schema.pop("title", None)
        schema.setdefault("properties", {})
        return schema


class OperationRequest(BaseModel):
    """Inbound call from any front-end."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    action: str
    parameters: dict[str, Any] = Field(default_factory=dict)
    request_id: str | None = Field(default=None, alias="requestId")

    @field_validator("action")
    @classmethod
    def action_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("action is required")
        return v.strip()

    @field_validator("parameters", mode="before")
    @classmethod
    def parameters_default(cls, v: Any) -> Any:
        return {} if v is None else v


class ErrorDescriptor(BaseModel):
    """Error half of an operation result."""

    model_config = ConfigDict(frozen=True)

    message: str
    category: ErrorKind


class OperationResult(BaseModel):
    """Outcome of a dispatched operation."""

    model_config = ConfigDict(frozen=True)

    success: bool
    payload: Any = None
    error: ErrorDescriptor | None = None

    @model_validator(mode="after")
    def exactly_one_outcome(self) -> "OperationResult":
        if self.success and self.error is not None:
            raise ValueError("successful result must not carry an error")
        if not self.success and self.error is None:
            raise ValueError("failed result requires an error")
        if not self.success and self.payload is not None:
            raise ValueError("failed result must not carry a payload")
        return self

    @classmethod
    def ok(cls, payload: Any) -> "OperationResult":
        return cls(success=True, payload=payload)

    @classmethod
    def failed(cls, kind: ErrorKind, message: str) -> "OperationResult":
        return cls(success=False, error=ErrorDescriptor(message=message, category=kind))
