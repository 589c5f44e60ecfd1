"""
BN254 field and arbo (little-endian) encodings used by the anonymous circuit
"""

import hashlib
from typing import List, Optional

from utils.codec import hex_to_bytes, strip0x

# BN254 scalar field prime
BN254_SCALAR_FIELD = 21888242871839275222246405745257275088548364400416034343698204186575808495617

# personal_sign is 65 bytes; the trailing recovery byte is not part of the SIK
SIK_SIGNATURE_LENGTH = 64

SIK_PAYLOAD = (
    "This signature request is used to create your own secret identity key (SIK) for Vocdoni.\n"
    "Be sure that you are on the correct domain."
)

DEFAULT_PASSWORD = "0"


def big_int_to_ff(value: int) -> int:
    return value % BN254_SCALAR_FIELD


def hex_to_ff(value: str) -> int:
    """Big-endian hex to a field element. Odd-length hex is read as a number."""
    raw = strip0x(value)
    if not raw:
        return 0
    return big_int_to_ff(int(raw, 16))


def arbo_to_big_int(value: str) -> int:
    """Integer encoded by an arbo (byte-reversed) hex string"""
    return int.from_bytes(hex_to_bytes(value), "little")


def arbo_from_big_int(value: int) -> str:
    """Arbo hex encoding of `value`, unprefixed"""
    length = max(1, (value.bit_length() + 7) // 8)
    return value.to_bytes(length, "little").hex()


def arbo_split_hash(data: bytes) -> List[str]:
    """SHA-256 of `data` as two 128-bit arbo integers (decimal strings)"""
    digest = hashlib.sha256(data).digest()
    return [
        str(int.from_bytes(digest[:16], "little")),
        str(int.from_bytes(digest[16:], "little")),
    ]


def sik_signature(signature: str) -> str:
    """Drop the recovery byte of a personal_sign signature"""
    raw = hex_to_bytes(signature)
    return raw[:SIK_SIGNATURE_LENGTH].hex()


def signature_to_ff(signature: str) -> int:
    return hex_to_ff(sik_signature(signature))


def password_to_ff(password: Optional[str]) -> int:
    """UTF-8 password as a field element; a missing or empty password becomes '0'"""
    if not password:
        password = DEFAULT_PASSWORD
    return big_int_to_ff(int.from_bytes(password.encode("utf-8"), "big"))
