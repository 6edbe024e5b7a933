"""Shared validation helpers for gateway inputs."""

from __future__ import annotations

import base64
import binascii
import re
from typing import Any, Optional

from pytoniq_core import Address
from pytoniq_core.boc import AddressError

from ton_gateway.errors import ValidationError

PUBLIC_KEY_LENGTH = 32
# VarUInteger 16 holds at most 15 bytes.
MAX_AMOUNT = (1 << 120) - 1

RAW_ADDRESS_REGEX = re.compile(r"^(-?\d{1,3}):[0-9a-fA-F]{64}$")
FRIENDLY_ADDRESS_REGEX = re.compile(r"^[A-Za-z0-9+/_-]{48}$")
HEX_HASH_REGEX = re.compile(r"^[0-9a-fA-F]{64}$")
BASE64_HASH_REGEX = re.compile(r"^[A-Za-z0-9+/_-]{43}=?$")
DIGITS_REGEX = re.compile(r"^\d+$")


def parse_address(value: Any) -> Address:
    """
    Parse a raw (``wc:hex``) or user-friendly address or raise ValidationError.

    User-friendly input must carry a valid checksum and a known tag. Raw input
    parses as non-bounceable.
    """
    if isinstance(value, Address):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Address is required.")
    text = value.strip()

    raw_match = RAW_ADDRESS_REGEX.fullmatch(text)
    if raw_match:
        if not -128 <= int(raw_match.group(1)) <= 127:
            raise ValidationError("Invalid workchain id.")
        return Address(text)

    if not FRIENDLY_ADDRESS_REGEX.fullmatch(text):
        raise ValidationError("Invalid TON address.")
    try:
        address = Address(text)
    except (AddressError, binascii.Error, ValueError) as exc:
        raise ValidationError("Invalid TON address.") from exc
    # Re-rendering catches tags other than bounceable/non-bounceable.
    if format_address(address) != text.replace("+", "-").replace("/", "_"):
        raise ValidationError("Invalid TON address.")
    return address


def format_address(
    address: Address,
    *,
    bounceable: Optional[bool] = None,
    test_only: Optional[bool] = None,
) -> str:
    """48-character url-safe form, keeping the address's own flags unless overridden."""
    return address.to_str(
        is_user_friendly=True,
        is_url_safe=True,
        is_bounceable=address.is_bounceable if bounceable is None else bounceable,
        is_test_only=address.is_test_only if test_only is None else test_only,
    )


def raw_address(address: Address) -> str:
    return address.to_str(is_user_friendly=False)


def parse_amount(value: Any) -> int:
    """Amount in nanotons: a non-negative integer or a string of digits."""
    if isinstance(value, bool):
        raise ValidationError("Amount must be a non-negative integer.")
    if isinstance(value, int):
        amount = value
    elif isinstance(value, str) and DIGITS_REGEX.fullmatch(value.strip()):
        amount = int(value.strip())
    else:
        raise ValidationError("Amount must be a non-negative integer.")
    if amount < 0:
        raise ValidationError("Amount must be a non-negative integer.")
    if amount > MAX_AMOUNT:
        raise ValidationError("Amount is too large.")
    return amount


def decode_key_material(value: Any) -> bytes:
    """
    Decode the base64 ``privateKey`` request field.

    The field carries the wallet's 32-byte Ed25519 public key; it is only used
    to derive the wallet address. The decoded bytes must never be logged.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("privateKey is required.")
    text = value.strip().replace("-", "+").replace("_", "/")
    text += "=" * (-len(text) % 4)
    try:
        decoded = base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("privateKey must be base64.") from exc
    if len(decoded) != PUBLIC_KEY_LENGTH:
        raise ValidationError(f"privateKey must decode to {PUBLIC_KEY_LENGTH} bytes.")
    return decoded


def normalize_tx_hash(value: Optional[str]) -> str:
    """Accept a 64-char hex or 44-char base64 transaction hash."""
    if not value or not isinstance(value, str):
        raise ValidationError("Transaction hash is required.")
    text = value.strip()
    if HEX_HASH_REGEX.fullmatch(text):
        return text.lower()
    if BASE64_HASH_REGEX.fullmatch(text):
        return text
    raise ValidationError("Invalid transaction hash.")
