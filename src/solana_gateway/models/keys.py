"""Address and key encoding helpers."""

import base58
from solders.keypair import Keypair
from solders.pubkey import Pubkey

ADDRESS_MIN_LENGTH = 32
ADDRESS_MAX_LENGTH = 44
PUBKEY_BYTES = 32
SECRET_KEY_BYTES = 64


def parse_address(value: str) -> Pubkey:
    """Decode a base58 address into a public key.

    Raises ValueError when the string is not a 32-byte base58 key.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError("address is required")
    value = value.strip()
    if not ADDRESS_MIN_LENGTH <= len(value) <= ADDRESS_MAX_LENGTH:
        raise ValueError("Invalid Solana address")
    try:
        raw = base58.b58decode(value)
    except ValueError as e:
        raise ValueError("Invalid Solana address") from e
    if len(raw) != PUBKEY_BYTES:
        raise ValueError("Invalid Solana address")
    return Pubkey.from_bytes(raw)


def validate_address(value: str) -> str:
    """Return the stripped address if it decodes, else raise ValueError."""
    parse_address(value)
    return value.strip()


def keypair_from_secret(secret: str) -> Keypair:
    """Build a keypair from a base58 encoded 64-byte secret key."""
    if not secret or not secret.strip():
        raise ValueError("private key is required")
    try:
        raw = base58.b58decode(secret.strip())
    except ValueError as e:
        raise ValueError("Invalid private key encoding") from e
    if len(raw) != SECRET_KEY_BYTES:
        raise ValueError("Invalid private key length")
    try:
        return Keypair.from_bytes(raw)
    except ValueError as e:
        raise ValueError("Invalid private key") from e


def encode_secret(keypair: Keypair) -> str:
    """Encode a keypair's 64-byte secret key as base58."""
    return base58.b58encode(bytes(keypair)).decode("ascii")
