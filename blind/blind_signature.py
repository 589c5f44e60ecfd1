"""
Blind Schnorr-style signatures over secp256k1.

Signer:  picks k, publishes R = kG; signs a blinded message as s' = d*m' + k.
User:    picks a, b; F = aR + bG; r = F.x mod N; m' = a^-1 * r * m;
         unblinds s = a*s' + b.
Verify:  sG == r*m*Q + F.

Points are exchanged as 64-byte x||y hex (33-byte compressed and 65-byte
uncompressed encodings are also accepted). A signature is the 32-byte
big-endian s followed by the 64-byte F point.
"""

import logging
import secrets
from dataclasses import dataclass
from typing import Tuple

from eth_keys import keys
from eth_keys.backends.native.jacobian import fast_add, fast_multiply
from eth_keys.constants import SECPK1_G, SECPK1_N, SECPK1_P
from eth_keys.exceptions import ValidationError as KeyValidationError

from tx.wire import encode_ca_bundle
from utils.codec import bytes_to_hex, hex_to_bytes, keccak256_hex, strip0x, zero_pad_hex
from utils.errors import ValidationError

logger = logging.getLogger(__name__)

Point = Tuple[int, int]

SIGNATURE_LENGTH = 96


@dataclass(frozen=True)
class UserSecretData:
    """Unblinding factors. Lives only for the duration of one signing request."""
    a: int
    b: int
    f: Point

    def __repr__(self):
        return "UserSecretData(<redacted>)"


@dataclass(frozen=True)
class BlindSignature:
    s: int
    f: Point


def _is_on_curve(point: Point) -> bool:
    x, y = point
    return (y * y - x * x * x - 7) % SECPK1_P == 0


def _random_scalar() -> int:
    return secrets.randbelow(SECPK1_N - 1) + 1


def decode_point(point_hex: str) -> Point:
    raw = hex_to_bytes(point_hex)
    if len(raw) == 33:
        try:
            raw = keys.PublicKey.from_compressed_bytes(raw).to_bytes()
        except (KeyValidationError, ValueError) as e:
            raise ValidationError(f"Invalid compressed point: {e}") from e
    elif len(raw) == 65 and raw[0] == 4:
        raw = raw[1:]

    if len(raw) != 64:
        raise ValidationError(f"Invalid point encoding of {len(raw)} bytes")

    point = (int.from_bytes(raw[:32], "big"), int.from_bytes(raw[32:], "big"))
    if not _is_on_curve(point):
        raise ValidationError("Point is not on secp256k1")
    return point


def encode_point(point: Point) -> str:
    x, y = point
    return bytes_to_hex(x.to_bytes(32, "big") + y.to_bytes(32, "big"), prefix=False)


def signature_to_hex(signature: BlindSignature) -> str:
    return bytes_to_hex(signature.s.to_bytes(32, "big"), prefix=False) + encode_point(signature.f)


def signature_from_hex(signature_hex: str) -> BlindSignature:
    raw = hex_to_bytes(signature_hex)
    if len(raw) != SIGNATURE_LENGTH:
        raise ValidationError(
            f"Blind signature must be {SIGNATURE_LENGTH} bytes, got {len(raw)}")
    return BlindSignature(
        s=int.from_bytes(raw[:32], "big"),
        f=decode_point(raw[32:].hex()),
    )


# ============================================================================
# SIGNER SIDE (diagnostics and tests)
# ============================================================================


def new_request_parameters() -> Tuple[int, Point]:
    """Fresh signer nonce k and its public R = kG"""
    k = _random_scalar()
    return k, fast_multiply(SECPK1_G, k)


def blind_sign(private_key: int, blinded_message: int, k: int) -> int:
    return (private_key * blinded_message + k) % SECPK1_N


# ============================================================================
# USER SIDE
# ============================================================================


def blind(message: int, signer_r: Point) -> Tuple[int, UserSecretData]:
    """Blind `message` for the signer that published `signer_r`"""
    while True:
        a = _random_scalar()
        b = _random_scalar()
        f = fast_add(fast_multiply(signer_r, a), fast_multiply(SECPK1_G, b))
        r = f[0] % SECPK1_N
        if r != 0:
            break

    blinded = (pow(a, -1, SECPK1_N) * r * message) % SECPK1_N
    return blinded, UserSecretData(a=a, b=b, f=f)


def unblind(blinded_signature: int, secret: UserSecretData) -> BlindSignature:
    s = (secret.a * blinded_signature + secret.b) % SECPK1_N
    return BlindSignature(s=s, f=secret.f)


def verify_signature(message: int, signature: BlindSignature, public_key: Point) -> bool:
    r = signature.f[0] % SECPK1_N
    left = fast_multiply(SECPK1_G, signature.s)
    right = fast_add(fast_multiply(public_key, (r * message) % SECPK1_N), signature.f)
    return left == right


def verify(message_hex: str, signature_hex: str, public_key_hex: str) -> bool:
    """Check an unblinded signature against the signer's public key"""
    try:
        message = int.from_bytes(hex_to_bytes(message_hex), "big")
        signature = signature_from_hex(signature_hex)
        public_key = decode_point(public_key_hex)
    except ValidationError as e:
        logger.debug(f"Rejected malformed blind signature input: {e}")
        return False
    return verify_signature(message, signature, public_key)


def ca_bundle_hash(process_id: str, address: str) -> str:
    """keccak256 of the protobuf CA bundle, unprefixed hex"""
    bundle = encode_ca_bundle(hex_to_bytes(process_id), hex_to_bytes(address))
    return strip0x(keccak256_hex(bundle))


def get_blinded_payload(process_id: str, token_r: str, address: str) -> Tuple[str, UserSecretData]:
    """Blinded CA bundle hash (32-byte hex) for `address` and its unblinding data"""
    signer_r = decode_point(token_r)
    message = int(ca_bundle_hash(process_id, address), 16)
    blinded, secret = blind(message, signer_r)
    return strip0x(zero_pad_hex(hex(blinded), 32)), secret
