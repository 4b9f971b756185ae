"""Built-in operation set bound to the ledger services."""

from solana_gateway.models.params import (
    AddressParams,
    CreateTokenParams,
    NoParams,
    SignatureParams,
    TokenBalanceParams,
    TransactionsParams,
    TransferParams,
)
from solana_gateway.services.ledger import LedgerService
from solana_gateway.services.operation_registry import OperationRegistry
from solana_gateway.services.token_flow import TokenFlow
from solana_gateway.services.transfer_flow import TransferFlow


def build_registry(
    ledger: LedgerService,
    transfer_flow: TransferFlow,
    token_flow: TokenFlow,
) -> OperationRegistry:
    """Register every gateway operation once at startup."""
    if ledger is None:
        raise ValueError("ledger is required")
    if transfer_flow is None:
        raise ValueError("transfer_flow is required")
    if token_flow is None:
        raise ValueError("token_flow is required")

    registry = OperationRegistry()
    registry.register(
        "getNetworkStatus",
        NoParams,
        ledger.get_network_status,
        "Get Solana network version, slot, block time, health and supply",
    )
    registry.register(
        "getBalance",
        AddressParams,
        ledger.get_balance,
        "Get the SOL balance of an address",
    )
    registry.register(
        "getAccountInfo",
        AddressParams,
        ledger.get_account_info,
        "Get account owner, lamports and data size, or exists=false",
    )
    registry.register(
        "getTransactions",
        TransactionsParams,
        ledger.get_transactions,
        "Get recent transaction signatures for an address, newest first",
    )
    registry.register(
        "createWallet",
        NoParams,
        ledger.create_wallet,
        "Generate a new keypair; the private key is returned once and not stored",
    )
    registry.register(
        "transferFunds",
        TransferParams,
        transfer_flow.execute,
        "Sign, submit and confirm a SOL transfer",
        aliases=("transferSol",),
    )
    registry.register(
        "getTokenBalance",
        TokenBalanceParams,
        ledger.get_token_balance,
        "Get the SPL token balance of a wallet for a mint",
    )
    registry.register(
        "createCustomToken",
        CreateTokenParams,
        token_flow.execute,
        "Upload token metadata and mint a new token with an initial buy",
        aliases=("createPumpFunToken",),
    )
    registry.register(
        "getTokenAccounts",
        AddressParams,
        ledger.get_token_accounts,
        "List SPL token accounts owned by an address",
    )
    registry.register(
        "getTransactionStatus",
        SignatureParams,
        ledger.get_transaction_status,
        "Look up the confirmation status of a submitted transaction",
    )
    return registry
