"""Error taxonomy shared by every gateway front-end."""

from enum import Enum


class ErrorKind(str, Enum):
    """Categories of gateway failures."""

    INVALID_PARAMS = "InvalidParams"
    UNKNOWN_OPERATION = "UnknownOperation"
    UNAVAILABLE = "Unavailable"
    REMOTE_CALL_FAILED = "RemoteCallFailed"
    KEY_MISMATCH = "KeyMismatch"
    CONFIRMATION_TIMEOUT = "ConfirmationTimeout"
    METADATA_UPLOAD_FAILED = "MetadataUploadFailed"
    INTERNAL = "Internal"


HTTP_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.INVALID_PARAMS: 400,
    ErrorKind.UNKNOWN_OPERATION: 400,
    ErrorKind.KEY_MISMATCH: 400,
    ErrorKind.UNAVAILABLE: 503,
    ErrorKind.REMOTE_CALL_FAILED: 502,
    ErrorKind.METADATA_UPLOAD_FAILED: 502,
    ErrorKind.CONFIRMATION_TIMEOUT: 504,
    ErrorKind.INTERNAL: 500,
}


class GatewayError(Exception):
    """Raised when a gateway operation fails."""

    def __init__(self, kind: ErrorKind, message: str):
        self.kind = kind
        self.message = message
        super().__init__(message)

    @property
    def status_code(self) -> int:
        return HTTP_STATUS_BY_KIND[self.kind]

    def __repr__(self) -> str:
        return f"GatewayError({self.kind.value}, {self.message!r})"
