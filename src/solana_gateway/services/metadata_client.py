"""HTTP client for token metadata upload and create-transaction building."""

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator


class MetadataClientError(Exception):
    """Raised when a metadata or trade API call fails."""

    pass


class TokenMetadata(BaseModel):
    """Metadata fields sent to the IPFS upload endpoint."""

    model_config = ConfigDict(frozen=True)

    name: str
    symbol: str
    description: str = ""
    twitter: str | None = None
    telegram: str | None = None
    website: str | None = None
    show_name: bool = True

    @field_validator("name", "symbol")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("name and symbol are required")
        return v

    def form_fields(self) -> dict[str, str]:
        fields = {
            "name": self.name,
            "symbol": self.symbol,
            "showName": "true" if self.show_name else "false",
        }
        for key in ("description", "twitter", "telegram", "website"):
            value = getattr(self, key)
            if value:
                fields[key] = value
        return fields


class TokenImage(BaseModel):
    """Image file attached to the metadata upload."""

    model_config = ConfigDict(frozen=True)

    filename: str
    content: bytes
    content_type: str = "image/png"


class MetadataUpload(BaseModel):
    """Response from the IPFS upload endpoint."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    metadata_uri: str = Field(alias="metadataUri")
    metadata: dict = {}

    @field_validator("metadata_uri")
    @classmethod
    def uri_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("metadataUri is required")
        return v


class CreateTransactionRequest(BaseModel):
    """Request body for the trade-local create action."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    public_key: str = Field(alias="publicKey")
    action: str = "create"
    token_metadata: dict = Field(alias="tokenMetadata")
    mint: str
    denominated_in_sol: str = Field(default="true", alias="denominatedInSol")
    amount: float
    slippage: int
    priority_fee: float = Field(alias="priorityFee")
    pool: str = "pump"


class MetadataClient:
    """Async HTTP client for the token launch collaborators."""

    def __init__(
        self,
        ipfs_url: str,
        trade_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not ipfs_url or not ipfs_url.strip():
            raise ValueError("ipfs_url is required")
        if not trade_url or not trade_url.strip():
            raise ValueError("trade_url is required")
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self._ipfs_url = ipfs_url
        self._trade_url = trade_url
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    async def upload_metadata(
        self, metadata: TokenMetadata, image: TokenImage | None = None
    ) -> MetadataUpload:
        """POST metadata and image as multipart form data."""
        files = None
        if image is not None:
            files = {"file": (image.filename, image.content, image.content_type)}

        try:
            async with self._client() as client:
                response = await client.post(
                    self._ipfs_url, data=metadata.form_fields(), files=files
                )
        except httpx.TimeoutException as e:
            raise MetadataClientError(f"Upload timed out: {e}") from e
        except httpx.RequestError as e:
            raise MetadataClientError(f"Upload failed: {e}") from e

        if response.status_code != 200:
            raise MetadataClientError(
                f"IPFS upload failed with HTTP {response.status_code}: {response.text}"
            )

        try:
            return MetadataUpload.model_validate(response.json())
        except Exception as e:
            raise MetadataClientError(f"Invalid upload response: {e}") from e

    async def build_create_transaction(self, request: CreateTransactionRequest) -> bytes:
        """POST the create request; returns the serialized unsigned transaction."""
        try:
            async with self._client() as client:
                response = await client.post(
                    self._trade_url, json=request.model_dump(mode="json", by_alias=True)
                )
        except httpx.TimeoutException as e:
            raise MetadataClientError(f"Request timed out: {e}") from e
        except httpx.RequestError as e:
            raise MetadataClientError(f"Request failed: {e}") from e

        if response.status_code != 200:
            raise MetadataClientError(
                f"Transaction creation failed with HTTP {response.status_code}: {response.text}"
            )
        if not response.content:
            raise MetadataClientError("Transaction creation returned an empty body")
        return response.content
