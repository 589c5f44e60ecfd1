"""
Sequential sealed-box encryption of vote packages.

The package is sealed once per election key in ascending key index order, each
layer wrapping the previous ciphertext. Decryption peels the layers in the
reverse order.
"""

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

from nacl.exceptions import CryptoError
from nacl.public import PrivateKey, PublicKey, SealedBox

from utils.codec import hex_to_bytes
from utils.errors import ValidationError


@dataclass(frozen=True)
class EncryptionKey:
    index: int
    key: str  # hex curve25519 public key

    @classmethod
    def from_api(cls, data) -> 'EncryptionKey':
        return cls(index=int(data["index"]), key=data["publicKey"])


def sort_keys(keys: Iterable[EncryptionKey]) -> List[EncryptionKey]:
    return sorted(keys, key=lambda k: k.index)


def encrypt_sequential(data: bytes, keys: Sequence[EncryptionKey]) -> Tuple[bytes, List[int]]:
    """Seal `data` with every key; returns the ciphertext and the key indexes used"""
    ordered = sort_keys(keys)
    for encryption_key in ordered:
        data = SealedBox(PublicKey(hex_to_bytes(encryption_key.key))).encrypt(data)
    return data, [k.index for k in ordered]


def decrypt_sequential(data: bytes, private_keys: Sequence[Tuple[int, str]]) -> bytes:
    """Open a sequentially sealed package with (index, hex private key) pairs"""
    for _, private_key in sorted(private_keys, key=lambda k: k[0], reverse=True):
        try:
            data = SealedBox(PrivateKey(hex_to_bytes(private_key))).decrypt(data)
        except CryptoError as e:
            raise ValidationError(f"Could not open vote package layer: {e}") from e
    return data
