"""
Hex, hashing and padding helpers shared across the pipeline
"""

import hashlib
import secrets
from typing import Union

from eth_utils import keccak

from .errors import ValidationError


def strip0x(value: str) -> str:
    return value[2:] if value.startswith(("0x", "0X")) else value


def ensure0x(value: str) -> str:
    return value if value.startswith(("0x", "0X")) else "0x" + value


def hex_to_bytes(value: str) -> bytes:
    """Decode hex (with or without 0x). Odd lengths are rejected, never padded."""
    raw = strip0x(value)
    if len(raw) % 2 != 0:
        raise ValidationError(f"Malformed hex string of odd length {len(raw)}")
    try:
        return bytes.fromhex(raw)
    except ValueError as e:
        raise ValidationError(f"Malformed hex string: {e}") from e


def bytes_to_hex(data: bytes, prefix: bool = True) -> str:
    encoded = data.hex()
    return "0x" + encoded if prefix else encoded


def zero_pad_hex(value: str, length: int) -> str:
    """Left pad a hex string to `length` bytes"""
    raw = strip0x(value)
    if len(raw) > length * 2:
        raise ValidationError(
            f"Hex value of {len(raw) // 2} bytes does not fit in {length}")
    return "0x" + raw.rjust(length * 2, "0")


def random_hex(num_bytes: int = 32) -> str:
    """Keccak of fresh random bytes, truncated to `num_bytes`"""
    return "0x" + keccak(secrets.token_bytes(32)).hex()[:num_bytes * 2]


def keccak256_hex(data: Union[bytes, str]) -> str:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return "0x" + keccak(data).hex()


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()
