"""Read-side ledger operations and wallet creation."""

import logging
from datetime import datetime, timezone
from typing import Any

from solana.exceptions import SolanaRpcException
from solana.rpc.core import RPCException
from solana.rpc.types import TokenAccountOpts
from solders.keypair import Keypair
from solders.signature import Signature
from spl.token.constants import TOKEN_PROGRAM_ID
from spl.token.instructions import get_associated_token_address

from solana_gateway.errors import ErrorKind, GatewayError
from solana_gateway.models.keys import encode_secret, parse_address
from solana_gateway.models.params import (
    LAMPORTS_PER_SOL,
    AddressParams,
    NoParams,
    SignatureParams,
    TokenBalanceParams,
    TransactionsParams,
)
from solana_gateway.models.results import (
    AccountInfo,
    Balance,
    NetworkStatus,
    TokenAccount,
    TokenAccounts,
    TokenBalance,
    TransactionStatus,
    TransactionSummary,
    Wallet,
)
from solana_gateway.services.connection_manager import ConnectionManager, unwrap_rpc_error

logger = logging.getLogger(__name__)


def to_iso(timestamp: int | None) -> str | None:
    """Convert a unix block time to ISO-8601 UTC."""
    if timestamp is None:
        return None
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


def status_name(status: Any) -> str | None:
    """Normalize a solders confirmation status enum to its lowercase name."""
    if status is None:
        return None
    return str(status).rsplit(".", 1)[-1].lower()


def is_rpc_error(exc: BaseException) -> bool:
    return isinstance(unwrap_rpc_error(exc), RPCException)


class LedgerService:
    """Handlers for read operations against the active connection."""

    def __init__(self, connections: ConnectionManager):
        if connections is None:
            raise ValueError("connections is required")
        self._connections = connections

    async def get_network_status(self, params: NoParams) -> dict:
        """Network status; each sub-query that fails degrades to null."""
        state = self._connections.state
        if not state.connected:
            raise GatewayError(
                ErrorKind.UNAVAILABLE,
                f"Not connected to Solana {self._connections.network}",
            )
        client = state.handle

        version = None
        slot = None
        block_time = None
        healthy = None
        total_supply = None
        circulating_supply = None

        try:
            info = (await client.get_version()).value
            version = {"solana-core": info.solana_core, "feature-set": info.feature_set}
        except Exception as e:
            logger.warning(f"Could not get version: {e}")

        try:
            slot = (await client.get_slot()).value
        except Exception as e:
            logger.warning(f"Could not get slot: {e}")

        if slot is not None:
            try:
                block_time = to_iso((await client.get_block_time(slot)).value)
            except Exception as e:
                logger.warning(f"Could not get block time: {e}")

        try:
            healthy = bool(await client.is_connected())
        except Exception as e:
            logger.warning(f"Could not get health: {e}")

        try:
            supply = (await client.get_supply()).value
            total_supply = supply.total / LAMPORTS_PER_SOL
            circulating_supply = supply.circulating / LAMPORTS_PER_SOL
        except Exception as e:
            logger.warning(f"Could not get supply info: {e}")

        return NetworkStatus(
            network=self._connections.network,
            connected=state.connected,
            endpoint=state.endpoint,
            version=version,
            current_slot=slot,
            block_time=block_time,
            healthy=healthy,
            total_supply=total_supply,
            circulating_supply=circulating_supply,
        ).to_payload()

    async def get_balance(self, params: AddressParams) -> dict:
        pubkey = parse_address(params.address)
        lamports = await self._connections.call(
            "getBalance", lambda client: self._value(client.get_balance(pubkey))
        )
        return Balance(
            address=params.address,
            balance_in_lamports=lamports,
            balance_in_sol=lamports / LAMPORTS_PER_SOL,
        ).to_payload()

    async def get_account_info(self, params: AddressParams) -> dict:
        pubkey = parse_address(params.address)
        account = await self._connections.call(
            "getAccountInfo", lambda client: self._value(client.get_account_info(pubkey))
        )
        if account is None:
            return AccountInfo(address=params.address, exists=False).to_payload()

        return AccountInfo(
            address=params.address,
            exists=True,
            owner=str(account.owner),
            lamports=account.lamports,
            sol=account.lamports / LAMPORTS_PER_SOL,
            executable=account.executable,
            rent_epoch=account.rent_epoch,
            data_size=len(account.data),
        ).to_payload()

    async def get_transactions(self, params: TransactionsParams) -> list[dict]:
        pubkey = parse_address(params.address)
        signatures = await self._connections.call(
            "getTransactions",
            lambda client: self._value(
                client.get_signatures_for_address(pubkey, limit=params.limit)
            ),
        )
        return [
            TransactionSummary(
                signature=str(sig.signature),
                slot=sig.slot,
                block_time=to_iso(sig.block_time),
                status=status_name(sig.confirmation_status),
                err=str(sig.err) if sig.err is not None else None,
                memo=sig.memo,
            ).to_payload()
            for sig in signatures[: params.limit]
        ]

    async def create_wallet(self, params: NoParams) -> dict:
        """Generate a fresh keypair; the secret is returned once and not kept."""
        keypair = Keypair()
        return Wallet(
            public_key=str(keypair.pubkey()),
            private_key=encode_secret(keypair),
        ).to_payload()

    async def get_token_balance(self, params: TokenBalanceParams) -> dict:
        wallet = parse_address(params.wallet_address)
        mint = parse_address(params.mint_address)
        token_address = get_associated_token_address(wallet, mint)

        async def fetch(client):
            try:
                return (await client.get_token_account_balance(token_address)).value
            except (RPCException, SolanaRpcException) as e:
                if not is_rpc_error(e):
                    raise
                # The associated token account has not been created.
                return None

        amount = await self._connections.call("getTokenBalance", fetch)
        if amount is None:
            return TokenBalance(
                wallet_address=params.wallet_address,
                mint_address=params.mint_address,
                token_address=str(token_address),
                balance=0,
                decimals=0,
                exists=False,
            ).to_payload()

        return TokenBalance(
            wallet_address=params.wallet_address,
            mint_address=params.mint_address,
            token_address=str(token_address),
            balance=amount.ui_amount or 0,
            decimals=amount.decimals,
            exists=True,
        ).to_payload()

    async def get_token_accounts(self, params: AddressParams) -> dict:
        owner = parse_address(params.address)
        accounts = await self._connections.call(
            "getTokenAccounts",
            lambda client: self._value(
                client.get_token_accounts_by_owner_json_parsed(
                    owner, TokenAccountOpts(program_id=TOKEN_PROGRAM_ID)
                )
            ),
        )

        token_accounts = []
        for keyed in accounts:
            info = keyed.account.data.parsed.get("info", {})
            token_amount = info.get("tokenAmount", {})
            token_accounts.append(
                TokenAccount(
                    pubkey=str(keyed.pubkey),
                    mint=info.get("mint"),
                    owner=info.get("owner"),
                    amount=token_amount.get("uiAmount"),
                    decimals=token_amount.get("decimals"),
                )
            )
        return TokenAccounts(address=params.address, token_accounts=token_accounts).to_payload()

    async def get_transaction_status(self, params: SignatureParams) -> dict:
        """Look up a signature, e.g. after a confirmation timeout."""
        try:
            signature = Signature.from_string(params.signature)
        except ValueError as e:
            raise GatewayError(ErrorKind.INVALID_PARAMS, f"Invalid signature: {e}") from None

        statuses = await self._connections.call(
            "getTransactionStatus",
            lambda client: self._value(
                client.get_signature_statuses([signature], search_transaction_history=True)
            ),
        )
        status = statuses[0] if statuses else None
        if status is None:
            return TransactionStatus(signature=params.signature, found=False).to_payload()

        return TransactionStatus(
            signature=params.signature,
            found=True,
            slot=status.slot,
            confirmations=status.confirmations,
            status=status_name(status.confirmation_status),
            err=str(status.err) if status.err is not None else None,
        ).to_payload()

    @staticmethod
    async def _value(request) -> Any:
        return (await request).value
