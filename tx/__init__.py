"""Vote transaction wire format and signing."""

from .signing import (
    SignerCapability,
    LocalKeySigner,
    RemoteSigner,
    SIGNED_TX_PREFIX,
    build_signing_payload,
    hash_transaction,
    sign_transaction,
    recover_transaction_signer,
)
from .wire import encode_signed_tx, decode_signed_tx, decode_tx

__all__ = [
    'SignerCapability',
    'LocalKeySigner',
    'RemoteSigner',
    'SIGNED_TX_PREFIX',
    'build_signing_payload',
    'hash_transaction',
    'sign_transaction',
    'recover_transaction_signer',
    'encode_signed_tx',
    'decode_signed_tx',
    'decode_tx',
]
