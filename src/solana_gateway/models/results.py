"""Result payload models returned by registry operations."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ResultModel(BaseModel):
    """Base for result payloads (camelCase on the wire)."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class NetworkStatus(ResultModel):
    network: str
    connected: bool
    endpoint: str | None = None
    version: dict | None = None
    current_slot: int | None = None
    block_time: str | None = None
    healthy: bool | None = None
    total_supply: float | None = None
    circulating_supply: float | None = None


class Balance(ResultModel):
    address: str
    balance_in_lamports: int
    balance_in_sol: float


class AccountInfo(ResultModel):
    address: str
    exists: bool
    owner: str | None = None
    lamports: int | None = None
    sol: float | None = None
    executable: bool | None = None
    rent_epoch: int | None = None
    data_size: int | None = None

    def to_payload(self) -> dict:
        # Absent accounts only report existence.
        if not self.exists:
            return {"exists": False, "address": self.address}
        return super().to_payload()


class TransactionSummary(ResultModel):
    signature: str
    slot: int
    block_time: str | None = None
    status: str | None = None
    err: str | None = None
    memo: str | None = None


class Wallet(ResultModel):
    public_key: str
    private_key: str


class TransferReceipt(ResultModel):
    success: bool
    signature: str
    from_address: str
    to_address: str
    amount: float
    lamports: int
    status: str

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload["from"] = payload.pop("fromAddress")
        payload["to"] = payload.pop("toAddress")
        return payload


class TokenBalance(ResultModel):
    wallet_address: str
    mint_address: str
    token_address: str
    balance: float
    decimals: int
    exists: bool


class TokenAccount(ResultModel):
    pubkey: str
    mint: str | None = None
    owner: str | None = None
    amount: float | None = None
    decimals: int | None = None


class TokenAccounts(ResultModel):
    address: str
    token_accounts: list[TokenAccount]


class TransactionStatus(ResultModel):
    signature: str
    found: bool
    slot: int | None = None
    confirmations: int | None = None
    status: str | None = None
    err: str | None = None


class TokenReceipt(ResultModel):
    success: bool
    transaction_id: str
    mint_address: str
    metadata_uri: str
    token_url: str
