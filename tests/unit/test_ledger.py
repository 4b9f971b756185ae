"""Unit tests for LedgerService handlers."""

from types import SimpleNamespace

import pytest
from solders.keypair import Keypair
from solders.signature import Signature

from fixtures.fake_ledger import (
    SYSTEM_PROGRAM,
    TOKEN_PROGRAM,
    WRAPPED_SOL_MINT,
    FakeRpcClient,
    connected_manager,
)
from solana_gateway.errors import ErrorKind, GatewayError
from solana_gateway.models.keys import keypair_from_secret
from solana_gateway.models.params import (
    AddressParams,
    NoParams,
    SignatureParams,
    TokenBalanceParams,
    TransactionsParams,
)
from solana_gateway.services.ledger import LedgerService, status_name, to_iso


def address(value=SYSTEM_PROGRAM):
    return AddressParams(address=value)


class TestHelpers:
    """Tests for module helpers."""

    def test_to_iso(self):
        assert to_iso(0) == "1970-01-01T00:00:00+00:00"
        assert to_iso(None) is None

    def test_status_name(self):
        assert status_name("TransactionConfirmationStatus.Finalized") == "finalized"
        assert status_name("confirmed") == "confirmed"
        assert status_name(None) is None


class TestLedgerServiceInit:
    def test_none_connections_raises(self):
        with pytest.raises(ValueError, match="connections is required"):
            LedgerService(None)


class TestGetNetworkStatus:
    """Tests for get_network_status."""

    @pytest.mark.asyncio
    async def test_full_status(self):
        client = FakeRpcClient()
        ledger = LedgerService(await connected_manager(client))

        status = await ledger.get_network_status(NoParams())

        assert status["network"] == "devnet"
        assert status["connected"] is True
        assert status["endpoint"] == client.endpoint
        assert status["version"] == {"solana-core": "1.18.0", "feature-set": 123}
        assert status["currentSlot"] == 1000
        assert status["blockTime"] == "2023-11-14T22:13:20+00:00"
        assert status["healthy"] is True
        assert status["totalSupply"] == 580_000_000
        assert status["circulatingSupply"] == 420_000_000

    @pytest.mark.asyncio
    async def test_failed_sub_query_degrades_to_null(self):
        """A failing sub-query nulls only its own field."""
        client = FakeRpcClient()

        async def no_supply():
            raise RuntimeError("supply unavailable")

        client.get_supply = no_supply
        ledger = LedgerService(await connected_manager(client))

        status = await ledger.get_network_status(NoParams())

        assert status["totalSupply"] is None
        assert status["circulatingSupply"] is None
        assert status["currentSlot"] == 1000

    @pytest.mark.asyncio
    async def test_slot_is_monotonic(self):
        """Repeated calls with a healthy connection never go backwards."""
        client = FakeRpcClient()
        ledger = LedgerService(await connected_manager(client))

        first = await ledger.get_network_status(NoParams())
        client.slot += 5
        second = await ledger.get_network_status(NoParams())

        assert second["currentSlot"] >= first["currentSlot"]

    @pytest.mark.asyncio
    async def test_disconnected_raises_unavailable(self):
        client = FakeRpcClient(healthy=False)
        ledger = LedgerService(await connected_manager(client))

        with pytest.raises(GatewayError) as exc_info:
            await ledger.get_network_status(NoParams())

        assert exc_info.value.kind is ErrorKind.UNAVAILABLE


class TestGetBalance:
    """Tests for get_balance."""

    @pytest.mark.asyncio
    async def test_balance_in_lamports_and_sol(self):
        client = FakeRpcClient()
        client.balances[SYSTEM_PROGRAM] = 2_500_000_000
        ledger = LedgerService(await connected_manager(client))

        balance = await ledger.get_balance(address())

        assert balance == {
            "address": SYSTEM_PROGRAM,
            "balanceInLamports": 2_500_000_000,
            "balanceInSol": 2.5,
        }

    @pytest.mark.asyncio
    async def test_remote_failure_is_wrapped(self):
        client = FakeRpcClient()

        async def broken(pubkey):
            raise RuntimeError("rate limited")

        client.get_balance = broken
        ledger = LedgerService(await connected_manager(client))

        with pytest.raises(GatewayError) as exc_info:
            await ledger.get_balance(address())

        assert exc_info.value.kind is ErrorKind.REMOTE_CALL_FAILED
        assert "rate limited" in exc_info.value.message


class TestGetAccountInfo:
    """Tests for get_account_info."""

    @pytest.mark.asyncio
    async def test_missing_account_only_reports_existence(self):
        ledger = LedgerService(await connected_manager())

        info = await ledger.get_account_info(address())

        assert info == {"exists": False, "address": SYSTEM_PROGRAM}

    @pytest.mark.asyncio
    async def test_existing_account(self):
        client = FakeRpcClient()
        client.accounts[SYSTEM_PROGRAM] = SimpleNamespace(
            owner=TOKEN_PROGRAM,
            lamports=1_000_000_000,
            executable=True,
            rent_epoch=361,
            data=b"\x00" * 14,
        )
        ledger = LedgerService(await connected_manager(client))

        info = await ledger.get_account_info(address())

        assert info["exists"] is True
        assert info["owner"] == TOKEN_PROGRAM
        assert info["sol"] == 1.0
        assert info["executable"] is True
        assert info["rentEpoch"] == 361
        assert info["dataSize"] == 14


class TestGetTransactions:
    """Tests for get_transactions."""

    @pytest.mark.asyncio
    async def test_newest_first_with_limit(self):
        client = FakeRpcClient()
        client.signatures = [
            SimpleNamespace(
                signature=Signature.default(),
                slot=300 - i,
                block_time=None,
                confirmation_status="finalized",
                err=None if i else {"InstructionError": [0, "Custom"]},
                memo=None,
            )
            for i in range(5)
        ]
        ledger = LedgerService(await connected_manager(client))

        txs = await ledger.get_transactions(TransactionsParams(address=SYSTEM_PROGRAM, limit=3))

        assert [tx["slot"] for tx in txs] == [300, 299, 298]
        assert txs[0]["err"] is not None
        assert txs[1]["err"] is None
        assert txs[0]["status"] == "finalized"


class TestCreateWallet:
    """Tests for create_wallet."""

    @pytest.mark.asyncio
    async def test_private_key_derives_public_key(self):
        ledger = LedgerService(await connected_manager())

        wallet = await ledger.create_wallet(NoParams())

        assert str(keypair_from_secret(wallet["privateKey"]).pubkey()) == wallet["publicKey"]

    @pytest.mark.asyncio
    async def test_works_while_disconnected(self):
        """Wallet generation is local and needs no connection."""
        ledger = LedgerService(await connected_manager(FakeRpcClient(healthy=False)))

        wallet = await ledger.create_wallet(NoParams())

        assert len(wallet["publicKey"]) >= 32


class TestGetTokenBalance:
    """Tests for get_token_balance."""

    @pytest.mark.asyncio
    async def test_missing_token_account(self):
        """A missing associated token account reports balance 0."""
        ledger = LedgerService(await connected_manager())
        owner = str(Keypair().pubkey())

        balance = await ledger.get_token_balance(
            TokenBalanceParams(wallet_address=owner, mint_address=WRAPPED_SOL_MINT)
        )

        assert balance["balance"] == 0
        assert balance["exists"] is False
        assert balance["walletAddress"] == owner

    @pytest.mark.asyncio
    async def test_existing_token_account(self):
        client = FakeRpcClient()
        client.token_balance = SimpleNamespace(ui_amount=12.5, decimals=6)
        ledger = LedgerService(await connected_manager(client))
        owner = str(Keypair().pubkey())

        balance = await ledger.get_token_balance(
            TokenBalanceParams(wallet_address=owner, mint_address=WRAPPED_SOL_MINT)
        )

        assert balance["balance"] == 12.5
        assert balance["decimals"] == 6
        assert balance["exists"] is True


class TestGetTokenAccounts:
    """Tests for get_token_accounts."""

    @pytest.mark.asyncio
    async def test_lists_parsed_accounts(self):
        client = FakeRpcClient()
        owner = str(Keypair().pubkey())
        client.token_accounts = [
            SimpleNamespace(
                pubkey=SYSTEM_PROGRAM,
                account=SimpleNamespace(
                    data=SimpleNamespace(
                        parsed={
                            "info": {
                                "mint": WRAPPED_SOL_MINT,
                                "owner": owner,
                                "tokenAmount": {"uiAmount": 3.0, "decimals": 9},
                            }
                        }
                    )
                ),
            )
        ]
        ledger = LedgerService(await connected_manager(client))

        result = await ledger.get_token_accounts(address(owner))

        assert result["address"] == owner
        assert result["tokenAccounts"] == [
            {
                "pubkey": SYSTEM_PROGRAM,
                "mint": WRAPPED_SOL_MINT,
                "owner": owner,
                "amount": 3.0,
                "decimals": 9,
            }
        ]


class TestGetTransactionStatus:
    """Tests for get_transaction_status."""

    @pytest.mark.asyncio
    async def test_found(self):
        ledger = LedgerService(await connected_manager())
        signature = str(Signature.default())

        status = await ledger.get_transaction_status(SignatureParams(signature=signature))

        assert status["found"] is True
        assert status["status"] == "confirmed"
        assert status["slot"] == 1001

    @pytest.mark.asyncio
    async def test_not_found(self):
        client = FakeRpcClient()
        client.statuses = [None]
        ledger = LedgerService(await connected_manager(client))
        signature = str(Signature.default())

        status = await ledger.get_transaction_status(SignatureParams(signature=signature))

        assert status == {
            "signature": signature,
            "found": False,
            "slot": None,
            "confirmations": None,
            "status": None,
            "err": None,
        }
