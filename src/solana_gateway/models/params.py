"""Parameter models for registry operations.

Each operation declares one model; the registry validates inbound parameters
against it before any handler runs, whichever front-end received the call.
"""

import math

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    field_validator,
)
from pydantic.alias_generators import to_camel

from solana_gateway.models.keys import validate_address

LAMPORTS_PER_SOL = 1_000_000_000
DEFAULT_TRANSACTION_LIMIT = 10
MAX_TRANSACTION_LIMIT = 100


class OperationParams(BaseModel):
    """Base for operation parameters (camelCase on the wire)."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class NoParams(OperationParams):
    """Parameters for operations that take none."""


class AddressParams(OperationParams):
    """Parameters naming a single account."""

    address: str = Field(description="Base58 Solana address")

    @field_validator("address")
    @classmethod
    def address_valid(cls, v: str) -> str:
        return validate_address(v)


class TransactionsParams(AddressParams):
    """Parameters for transaction history."""

    limit: int = Field(
        default=DEFAULT_TRANSACTION_LIMIT,
        ge=1,
        le=MAX_TRANSACTION_LIMIT,
        description="Maximum number of signatures to return",
    )


class TransferParams(OperationParams):
    """Parameters for a SOL transfer."""

    from_address: str = Field(
        validation_alias=AliasChoices("fromAddress", "from", "from_address"),
        description="Sender address",
    )
    to_address: str = Field(
        validation_alias=AliasChoices("toAddress", "to", "to_address"),
        description="Recipient address",
    )
    amount: float = Field(description="Amount in SOL")
    from_private_key: SecretStr = Field(
        validation_alias=AliasChoices(
            "fromPrivateKey", "privateKey", "from_private_key"
        ),
        description="Base58 secret key of the sender",
    )

    @field_validator("from_address", "to_address")
    @classmethod
    def addresses_valid(cls, v: str) -> str:
        return validate_address(v)

    @field_validator("amount")
    @classmethod
    def amount_positive(cls, v: float) -> float:
        if not math.isfinite(v) or v <= 0:
            raise ValueError("amount must be greater than 0")
        if round(v * LAMPORTS_PER_SOL) < 1:
            raise ValueError("amount is smaller than one lamport")
        return v

    @field_validator("from_private_key")
    @classmethod
    def private_key_not_empty(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value().strip():
            raise ValueError("private key is required")
        return v

    @property
    def lamports(self) -> int:
        return round(self.amount * LAMPORTS_PER_SOL)


class TokenBalanceParams(OperationParams):
    """Parameters for an SPL token balance lookup."""

    wallet_address: str = Field(
        validation_alias=AliasChoices("walletAddress", "address", "wallet_address"),
        description="Owner wallet address",
    )
    mint_address: str = Field(
        validation_alias=AliasChoices("mintAddress", "mint_address"),
        description="Token mint address",
    )

    @field_validator("wallet_address", "mint_address")
    @classmethod
    def addresses_valid(cls, v: str) -> str:
        return validate_address(v)


class SignatureParams(OperationParams):
    """Parameters naming a transaction signature."""

    signature: str = Field(min_length=64, max_length=88)

    @field_validator("signature")
    @classmethod
    def signature_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("signature is required")
        return v.strip()


class CreateTokenParams(OperationParams):
    """Parameters for custom token creation."""

    name: str = Field(min_length=1, max_length=32)
    symbol: str = Field(min_length=1, max_length=10)
    description: str = ""
    twitter: str | None = None
    telegram: str | None = None
    website: str | None = None
    image_path: str | None = None
    image_base64: str | None = None
    amount: float = Field(default=0.1, ge=0, description="Initial buy in SOL")
    slippage: int = Field(default=10, ge=0, le=100, description="Percent")
    priority_fee: float = Field(default=0.0005, ge=0, description="SOL")
    private_key: SecretStr | None = None

    @field_validator("name", "symbol")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()
