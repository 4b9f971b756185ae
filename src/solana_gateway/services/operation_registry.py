"""Declarative registry of gateway operations."""

from typing import Any

from pydantic import ValidationError

from solana_gateway.errors import ErrorKind, GatewayError
from solana_gateway.models.operation import Handler, OperationDescriptor
from solana_gateway.models.params import OperationParams


def format_validation_error(error: ValidationError) -> str:
    """Flatten pydantic errors into one readable message."""
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ())) or "parameters"
        message = item.get("msg", "invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        parts.append(f"{location}: {message}")
    return "; ".join(parts)


class OperationRegistry:
    """Single source of truth for which calls are legal."""

    def __init__(self):
        self._descriptors: dict[str, OperationDescriptor] = {}
        self._aliases: dict[str, str] = {}

    def register(
        self,
        name: str,
        params_model: type[OperationParams],
        handler: Handler,
        description: str = "",
        aliases: tuple[str, ...] = (),
    ) -> OperationDescriptor:
        """Register an operation; names and aliases must be unique."""
        if not name or not name.strip():
            raise ValueError("name is required")
        if params_model is None:
            raise ValueError("params_model is required")
        if handler is None:
            raise ValueError("handler is required")
        for key in (name, *aliases):
            if key in self._descriptors or key in self._aliases:
                raise ValueError(f"Operation already registered: {key}")

        descriptor = OperationDescriptor(
            name=name,
            description=description,
            params_model=params_model,
            handler=handler,
        )
        self._descriptors[name] = descriptor
        for alias in aliases:
            self._aliases[alias] = name
        return descriptor

    def resolve(self, name: str) -> OperationDescriptor:
        """Look up an operation by name or alias."""
        key = self._aliases.get(name, name)
        descriptor = self._descriptors.get(key)
        if descriptor is None:
            raise GatewayError(ErrorKind.UNKNOWN_OPERATION, f"Unsupported action: {name}")
        return descriptor

    def validate(self, name: str, params: Any) -> OperationParams:
        """Validate raw parameters against the operation's schema."""
        descriptor = self.resolve(name)
        if params is None:
            params = {}
        if not isinstance(params, dict):
            raise GatewayError(ErrorKind.INVALID_PARAMS, "parameters must be an object")
        try:
            return descriptor.params_model.model_validate(params)
        except ValidationError as e:
            raise GatewayError(
                ErrorKind.INVALID_PARAMS,
                f"Invalid parameters for {descriptor.name}: {format_validation_error(e)}",
            ) from None

    def descriptors(self) -> list[OperationDescriptor]:
        """Registered operations in registration order."""
        return list(self._descriptors.values())

    def names(self) -> list[str]:
        return list(self._descriptors)

    def __contains__(self, name: object) -> bool:
        return name in self._descriptors or name in self._aliases

    def __len__(self) -> int:
        return len(self._descriptors)
