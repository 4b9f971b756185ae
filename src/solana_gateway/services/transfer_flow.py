"""SOL transfer sub-flow: sign, submit and await confirmation."""

import asyncio
import logging
import time
from typing import Any

from solana.rpc.types import TxOpts
from solders.message import Message
from solders.signature import Signature
from solders.system_program import TransferParams as SystemTransferParams
from solders.system_program import transfer
from solders.transaction import Transaction

from solana_gateway.errors import ErrorKind, GatewayError
from solana_gateway.models.keys import keypair_from_secret, parse_address
from solana_gateway.models.params import TransferParams
from solana_gateway.models.results import TransferReceipt
from solana_gateway.services.connection_manager import ConnectionManager
from solana_gateway.services.ledger import status_name

logger = logging.getLogger(__name__)

COMMITMENT_RANK = {"processed": 0, "confirmed": 1, "finalized": 2}


def reached_commitment(status: str | None, commitment: str) -> bool:
    """True when a confirmation status satisfies the commitment level."""
    if status is None:
        return False
    return COMMITMENT_RANK.get(status, -1) >= COMMITMENT_RANK.get(commitment, 1)


async def await_confirmation(
    client: Any,
    signature: Signature,
    commitment: str,
    timeout: float,
    poll_interval: float = 0.5,
) -> str:
    """Poll signature status until it reaches the commitment level.

    Returns the confirmation status. Raises ConfirmationTimeout when the
    deadline passes and RemoteCallFailed when the transaction failed.
    """
    deadline = time.monotonic() + timeout
    while True:
        response = await client.get_signature_statuses([signature])
        status = response.value[0] if response.value else None
        if status is not None:
            if status.err is not None:
                raise GatewayError(
                    ErrorKind.REMOTE_CALL_FAILED,
                    f"Transaction {signature} failed: {status.err}",
                )
            name = status_name(status.confirmation_status)
            if reached_commitment(name, commitment):
                return name

        if time.monotonic() >= deadline:
            raise GatewayError(
                ErrorKind.CONFIRMATION_TIMEOUT,
                f"Transaction {signature} was submitted but not confirmed "
                f"within {timeout:g}s; check getTransactionStatus before resubmitting",
            )
        await asyncio.sleep(poll_interval)


class TransferFlow:
    """Runs one SOL transfer from validated parameters to a receipt."""

    def __init__(
        self,
        connections: ConnectionManager,
        confirmation_timeout: float = 30.0,
        poll_interval: float = 0.5,
    ):
        if connections is None:
            raise ValueError("connections is required")
        if confirmation_timeout <= 0:
            raise ValueError("confirmation_timeout must be positive")
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")

        self._connections = connections
        self._confirmation_timeout = confirmation_timeout
        self._poll_interval = poll_interval

    async def execute(self, params: TransferParams) -> dict:
        """Transfer SOL; any failed step aborts the flow without retry."""
        from_pubkey = parse_address(params.from_address)
        to_pubkey = parse_address(params.to_address)
        lamports = params.lamports

        raw_tx = await self._sign_transfer(params, from_pubkey, to_pubkey, lamports)

        signature = await self._connections.call(
            "transferFunds",
            lambda client: self._submit(client, raw_tx),
            retry=False,
        )
        logger.info(f"Transfer {signature} submitted: {lamports} lamports to {to_pubkey}")

        status = await self._connections.call(
            "transferFunds",
            lambda client: await_confirmation(
                client,
                signature,
                self._connections.commitment,
                self._confirmation_timeout,
                self._poll_interval,
            ),
            retry=False,
        )

        return TransferReceipt(
            success=True,
            signature=str(signature),
            from_address=params.from_address,
            to_address=params.to_address,
            amount=params.amount,
            lamports=lamports,
            status=status,
        ).to_payload()

    async def _sign_transfer(self, params, from_pubkey, to_pubkey, lamports) -> bytes:
        """Derive the signer, check it owns from_address and sign the transfer."""
        try:
            signer = keypair_from_secret(params.from_private_key.get_secret_value())
        except ValueError as e:
            raise GatewayError(ErrorKind.INVALID_PARAMS, str(e)) from None

        if signer.pubkey() != from_pubkey:
            raise GatewayError(
                ErrorKind.KEY_MISMATCH, "Private key does not match sender address"
            )

        instruction = transfer(
            SystemTransferParams(from_pubkey=from_pubkey, to_pubkey=to_pubkey, lamports=lamports)
        )
        blockhash = await self._connections.call(
            "transferFunds",
            lambda client: self._latest_blockhash(client),
        )
        message = Message.new_with_blockhash([instruction], from_pubkey, blockhash)
        return bytes(Transaction([signer], message, blockhash))

    @staticmethod
    async def _latest_blockhash(client):
        return (await client.get_latest_blockhash()).value.blockhash

    @staticmethod
    async def _submit(client, raw_tx: bytes) -> Signature:
        response = await client.send_raw_transaction(raw_tx, opts=TxOpts(skip_confirmation=True))
        return response.value
