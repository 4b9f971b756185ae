"""Shared validation and error mapping for every front-end."""

import logging
from typing import Any

from pydantic import ValidationError

from solana_gateway.errors import ErrorKind, GatewayError
from solana_gateway.models.operation import OperationRequest, OperationResult
from solana_gateway.services.metrics import GatewayMetrics
from solana_gateway.services.operation_registry import (
    OperationRegistry,
    format_validation_error,
)

logger = logging.getLogger(__name__)


class OperationDispatcher:
    """Validates, resolves and runs operations; never raises."""

    def __init__(self, registry: OperationRegistry, metrics: GatewayMetrics | None = None):
        if registry is None:
            raise ValueError("registry is required")
        self._registry = registry
        self._metrics = metrics

    @property
    def registry(self) -> OperationRegistry:
        return self._registry

    async def execute(self, request: OperationRequest) -> OperationResult:
        """Run one request to completion and describe the outcome."""
        action = request.action
        try:
            descriptor = self._registry.resolve(action)
            params = self._registry.validate(descriptor.name, request.parameters)
            payload = await descriptor.handler(params)
        except GatewayError as e:
            logger.warning(f"{action} failed ({e.kind.value}): {e.message}")
            self._record(action, e.kind.value)
            return OperationResult.failed(e.kind, e.message)
        except Exception as e:
            logger.exception(f"Unexpected error in {action}")
            self._record(action, ErrorKind.INTERNAL.value)
            return OperationResult.failed(ErrorKind.INTERNAL, f"{action} failed: {e}")

        self._record(descriptor.name, "success")
        return OperationResult.ok(payload)

    async def execute_raw(
        self, action: Any, parameters: Any = None, request_id: Any = None
    ) -> OperationResult:
        """Build and run a request from loosely-typed front-end input."""
        try:
            request = OperationRequest(
                action=action,
                parameters=parameters,
                request_id=None if request_id is None else str(request_id),
            )
        except ValidationError as e:
            message = f"Invalid request: {format_validation_error(e)}"
            return OperationResult.failed(ErrorKind.INVALID_PARAMS, message)
        return await self.execute(request)

    def _record(self, action: str, outcome: str) -> None:
        if self._metrics is None:
            return
        # Unknown actions share one label to keep cardinality bounded.
        name = action if action in self._registry else "unknown"
        self._metrics.record_operation(name, outcome)
