"""Custom token creation: metadata upload, mint, sign and submit."""

import base64
import binascii
import logging
from datetime import datetime, timezone
from pathlib import Path

from pydantic import SecretStr
from solana.rpc.types import TxOpts
from solders.keypair import Keypair
from solders.transaction import VersionedTransaction

from solana_gateway.errors import ErrorKind, GatewayError
from solana_gateway.models.keys import keypair_from_secret
from solana_gateway.models.params import CreateTokenParams
from solana_gateway.models.results import TokenReceipt
from solana_gateway.services.connection_manager import ConnectionManager
from solana_gateway.services.metadata_client import (
    CreateTransactionRequest,
    MetadataClient,
    MetadataClientError,
    TokenImage,
    TokenMetadata,
)

logger = logging.getLogger(__name__)

TOKEN_URL_BASE = "https://pump.fun"


def load_image(params: CreateTokenParams, image_dir: Path | None = None) -> TokenImage | None:
    """Read the token image from base64 or a local path, if one was given.

    Local paths are resolved against image_dir and must stay inside it;
    without an image_dir only imageBase64 is accepted.
    """
    if params.image_base64:
        data = params.image_base64
        if data.startswith("data:") and "," in data:
            data = data.split(",", 1)[1]
        try:
            content = base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise GatewayError(ErrorKind.INVALID_PARAMS, f"imageBase64 is not valid base64: {e}")
        return TokenImage(filename="image.png", content=content)

    if params.image_path:
        if image_dir is None:
            raise GatewayError(
                ErrorKind.INVALID_PARAMS, "imagePath is not enabled on this server; use imageBase64"
            )
        root = Path(image_dir).resolve()
        path = (root / params.image_path).resolve()
        if not path.is_relative_to(root):
            raise GatewayError(
                ErrorKind.INVALID_PARAMS, "imagePath must be inside the configured image directory"
            )
        try:
            content = path.read_bytes()
        except OSError as e:
            raise GatewayError(
                ErrorKind.INVALID_PARAMS, f"Failed to read image file: {e.strerror or e}"
            )
        return TokenImage(filename=path.name, content=content)

    return None


class TokenFlow:
    """Creates a token through the metadata host and the ledger."""

    def __init__(
        self,
        connections: ConnectionManager,
        metadata_client: MetadataClient,
        default_private_key: SecretStr | None = None,
        image_dir: str | Path | None = None,
    ):
        if connections is None:
            raise ValueError("connections is required")
        if metadata_client is None:
            raise ValueError("metadata_client is required")

        self._connections = connections
        self._metadata_client = metadata_client
        self._default_private_key = default_private_key
        self._image_dir = Path(image_dir) if image_dir else None

    async def execute(self, params: CreateTokenParams) -> dict:
        """Upload metadata, then build, sign and submit the create transaction.

        Metadata uploaded before a failed submission is left in place.
        """
        secret = params.private_key or self._default_private_key
        if secret is None or not secret.get_secret_value().strip():
            raise GatewayError(
                ErrorKind.INVALID_PARAMS,
                "No private key provided and PUMPFUN_PRIVATE_KEY is not configured",
            )
        try:
            signer = keypair_from_secret(secret.get_secret_value())
        except ValueError as e:
            raise GatewayError(ErrorKind.INVALID_PARAMS, str(e)) from None

        # Fail fast before touching the metadata host.
        self._connections.get_active_handle()

        metadata = TokenMetadata(
            name=params.name,
            symbol=params.symbol,
            description=params.description
            or f"Created via Solana MCP on {datetime.now(timezone.utc).isoformat()}",
            twitter=params.twitter,
            telegram=params.telegram,
            website=params.website,
        )
        image = load_image(params, self._image_dir)
        if image is None:
            logger.warning("No image provided, token will be created without an image")

        try:
            upload = await self._metadata_client.upload_metadata(metadata, image)
        except MetadataClientError as e:
            raise GatewayError(
                ErrorKind.METADATA_UPLOAD_FAILED, f"Failed to upload metadata: {e}"
            ) from e
        logger.info(f"Metadata uploaded: {upload.metadata_uri}")

        mint = Keypair()
        logger.info(f"Generated mint address: {mint.pubkey()}")

        request = CreateTransactionRequest(
            public_key=str(signer.pubkey()),
            token_metadata={
                "name": upload.metadata.get("name", params.name),
                "symbol": upload.metadata.get("symbol", params.symbol),
                "uri": upload.metadata_uri,
            },
            mint=str(mint.pubkey()),
            amount=params.amount,
            slippage=params.slippage,
            priority_fee=params.priority_fee,
        )
        try:
            unsigned = await self._metadata_client.build_create_transaction(request)
        except MetadataClientError as e:
            raise GatewayError(
                ErrorKind.REMOTE_CALL_FAILED, f"Failed to build create transaction: {e}"
            ) from e

        try:
            message = VersionedTransaction.from_bytes(unsigned).message
            signed = VersionedTransaction(message, [mint, signer])
        except Exception as e:
            # solders reports bad bytes as ValueError and signer problems as SignerError.
            raise GatewayError(
                ErrorKind.REMOTE_CALL_FAILED, f"Could not sign create transaction: {e}"
            ) from e

        signature = await self._connections.call(
            "createCustomToken",
            lambda client: self._submit(client, bytes(signed)),
            retry=False,
        )
        logger.info(f"Token creation transaction submitted: {signature}")

        mint_address = str(mint.pubkey())
        return TokenReceipt(
            success=True,
            transaction_id=str(signature),
            mint_address=mint_address,
            metadata_uri=upload.metadata_uri,
            token_url=f"{TOKEN_URL_BASE}/{mint_address}",
        ).to_payload()

    @staticmethod
    async def _submit(client, raw_tx: bytes):
        response = await client.send_raw_transaction(raw_tx, opts=TxOpts(skip_confirmation=True))
        return response.value
